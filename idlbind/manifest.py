"""Binding manifests — several directives in one YAML file.

::

    bindings:
      - name: test_spl
        id: TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA
        idl_path: fixtures/spl_token.json
        idl_version: 1

Relative ``idl_path`` values resolve against the manifest's directory and are
stored as absolute paths. Module names must be unique. Each
directive is tagged with the manifest path and the line of its entry so
generation errors point back at the entry that caused them.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from idlbind.directive import Directive, directive_from_pairs
from idlbind.errors import ManifestError, SourceLocation

logger = logging.getLogger(__name__)

BINDINGS_KEY = "bindings"


def load_manifest(path: str | Path) -> list[Directive]:
    """Read a manifest and validate every entry as a directive."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Failed to read manifest: {e}", SourceLocation(str(path))) from e
    return parse_manifest(text, path)


def parse_manifest(text: str, path: str | Path = "<manifest>") -> list[Directive]:
    path = Path(path)
    try:
        data = yaml.safe_load(text)
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML: {e}", SourceLocation(str(path))) from e

    if not isinstance(data, dict) or not isinstance(data.get(BINDINGS_KEY), list):
        raise ManifestError(
            f"Manifest must be a mapping with a '{BINDINGS_KEY}' list",
            SourceLocation(str(path)),
        )

    lines = _entry_lines(root)
    directives = []
    declared: dict[str, SourceLocation] = {}
    for index, entry in enumerate(data[BINDINGS_KEY]):
        location = SourceLocation(str(path), lines[index] if index < len(lines) else 0)
        if not isinstance(entry, dict):
            raise ManifestError("Each binding entry must be a mapping", location)

        directive = directive_from_pairs(entry.items(), location)
        first = declared.get(directive.name)
        if first is not None:
            raise ManifestError(
                f"Duplicate module name '{directive.name}' (first declared at {first})",
                location,
            )
        declared[directive.name] = location

        document_path = Path(directive.document_path)
        if not document_path.is_absolute():
            directive.document_path = str(path.parent.absolute() / document_path)
        directives.append(directive)

    logger.debug("Manifest %s declares %d bindings", path, len(directives))
    return directives


def _entry_lines(root) -> list[int]:
    """1-based start line of every item in the ``bindings`` sequence."""
    if not isinstance(root, yaml.MappingNode):
        return []
    for key_node, value_node in root.value:
        if key_node.value == BINDINGS_KEY and isinstance(value_node, yaml.SequenceNode):
            return [item.start_mark.line + 1 for item in value_node.value]
    return []
