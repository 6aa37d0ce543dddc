"""Binding generator — runs a directive through the whole pipeline.

directive -> schema loader -> synthesizer -> emitter -> module source.

Each call is independent: nothing read or built for one directive is reused
for another, and a failure at any step yields no output at all.
"""

from __future__ import annotations

import importlib.abc
import importlib.util
import logging
import types
from dataclasses import dataclass, field
from pathlib import Path

from idlbind.config import GeneratorConfig
from idlbind.directive import Directive, parse_directive
from idlbind.emitter import emit_module
from idlbind.errors import GenerationError, SourceLocation
from idlbind.idl.loader import load_program
from idlbind.idl.models import CanonicalProgram
from idlbind.synth import BindingDescriptor, synthesize

logger = logging.getLogger(__name__)


@dataclass
class GeneratedModule:
    """The result of one successful generation."""

    name: str
    source: str
    program: CanonicalProgram
    bindings: list[BindingDescriptor] = field(default_factory=list)
    directive: Directive | None = None

    @property
    def filename(self) -> str:
        return f"{self.name}.py"


class BindingGenerator:
    """Generates binding modules from directives."""

    def __init__(self, config: GeneratorConfig | None = None):
        self.config = config or GeneratorConfig()

    def generate(self, directive: Directive) -> GeneratedModule:
        """Generate the module for one directive.

        Raises:
            GenerationError: any failure, tagged with the directive's location.
        """
        try:
            # Step 1: Load and normalize the IDL
            program = load_program(
                directive.document_path,
                directive.schema_version,
                base_dir=self.config.base_dir,
                encoding=self.config.encoding,
            )

            # Step 2: One descriptor per instruction
            bindings = synthesize(program)

            # Step 3: Emit
            source = emit_module(directive, program, bindings, self.config.runtime_module)
        except GenerationError as e:
            if e.location is None:
                e.location = directive.location
            raise

        logger.info(
            "Generated module '%s' (%d instructions) from %s",
            directive.name,
            len(bindings),
            directive.document_path,
        )
        return GeneratedModule(
            name=directive.name,
            source=source,
            program=program,
            bindings=bindings,
            directive=directive,
        )

    def generate_from_text(
        self, text: str, location: SourceLocation | None = None
    ) -> GeneratedModule:
        return self.generate(parse_directive(text, location))

    def write(self, generated: GeneratedModule, output_dir: str | Path) -> Path:
        """Write the module source as ``<output_dir>/<name>.py``."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / generated.filename
        output_path.write_text(generated.source, encoding="utf-8")
        logger.debug("Wrote %s", output_path)
        return output_path

    def materialize(self, generated: GeneratedModule) -> types.ModuleType:
        """Load the generated source as a fresh module object.

        The module is not added to ``sys.modules``.
        """
        loader = GeneratedSourceLoader(generated)
        spec = importlib.util.spec_from_loader(generated.name, loader, origin=loader.origin)
        module = importlib.util.module_from_spec(spec)
        loader.exec_module(module)
        return module


class GeneratedSourceLoader(importlib.abc.SourceLoader):
    """Serves a generated module's source from memory."""

    def __init__(self, generated: GeneratedModule):
        self.generated = generated
        self.origin = f"<idlbind:{generated.name}>"

    def get_filename(self, fullname: str) -> str:
        return self.origin

    def get_data(self, path: str) -> bytes:
        return self.generated.source.encode("utf-8")


def declare_program(
    text: str,
    *,
    base_dir: str | Path | None = None,
    location: SourceLocation | None = None,
    config: GeneratorConfig | None = None,
) -> types.ModuleType:
    """Generate and load a binding module in one call.

    ``text`` is the directive surface, e.g.
    ``'name = "spl", idl_path = "spl_token.json", idl_version = 1'``.
    """
    config = (config or GeneratorConfig.from_env()).with_overrides(
        base_dir=Path(base_dir) if base_dir is not None else None
    )
    generator = BindingGenerator(config)
    return generator.materialize(generator.generate_from_text(text, location))
