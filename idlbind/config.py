"""Generator configuration.

Defaults come from the environment so build scripts can steer generation
without threading options through every call:

- ``IDLBIND_BASE_DIR``: directory relative ``idl_path`` values resolve against.
- ``IDLBIND_RUNTIME_MODULE``: module the generated code imports its runtime from.
- ``IDLBIND_ENCODING``: text encoding of IDL documents.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_RUNTIME_MODULE = "idlbind.runtime"
DEFAULT_ENCODING = "utf-8"


@dataclass(frozen=True)
class GeneratorConfig:
    base_dir: Path | None = None
    runtime_module: str = DEFAULT_RUNTIME_MODULE
    encoding: str = DEFAULT_ENCODING

    @classmethod
    def from_env(cls) -> GeneratorConfig:
        base_dir = os.environ.get("IDLBIND_BASE_DIR", "")
        return cls(
            base_dir=Path(base_dir) if base_dir else None,
            runtime_module=os.environ.get("IDLBIND_RUNTIME_MODULE", DEFAULT_RUNTIME_MODULE),
            encoding=os.environ.get("IDLBIND_ENCODING", DEFAULT_ENCODING),
        )

    def with_overrides(self, **overrides) -> GeneratorConfig:
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
