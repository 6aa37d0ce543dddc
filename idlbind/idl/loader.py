"""Schema loader — reads an IDL document and normalizes it.

The requested schema version selects one document variant. The version is
checked before the file is touched; the text is then JSON-decoded, checked
against the version's JSON Schema and built into typed models.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable

from idlbind.errors import DocumentAccessError, DocumentParseError, UnsupportedVersionError
from idlbind.idl import SUPPORTED_VERSIONS
from idlbind.idl.models import (
    CanonicalProgram,
    IdlAccount,
    IdlArg,
    IdlDocument,
    IdlDocumentV1,
    IdlDocumentV2,
    IdlInstruction,
    IdlMetadata,
    SchemaVersion,
)
from idlbind.idl.schema_validator import validate_document

logger = logging.getLogger(__name__)

# Precedence: the first key present in the tuple wins, later aliases are ignored.
WRITABLE_ALIASES = ("is_mut", "isMut", "writable", "mutable")
SIGNER_ALIASES = ("is_signer", "isSigner", "signer", "signs")

_ACCOUNT_KEYS = {"name", *WRITABLE_ALIASES, *SIGNER_ALIASES}
_INSTRUCTION_KEYS = {"name", "accounts", "args"}


def check_version(version: Any) -> SchemaVersion:
    """Map a requested version onto a supported variant.

    Raises:
        UnsupportedVersionError: anything outside ``SUPPORTED_VERSIONS``.
    """
    if isinstance(version, bool) or version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersionError(version, SUPPORTED_VERSIONS)
    return SchemaVersion(version)


def read_document(path: str | Path, version: int = 1, encoding: str = "utf-8") -> str:
    """Read the full document text."""
    try:
        return Path(path).read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentAccessError(str(path), version, str(e)) from e


def parse_document(
    text: str, version: SchemaVersion | int, source: str = "<string>"
) -> IdlDocument:
    """Decode document text as the given schema version.

    Raises:
        UnsupportedVersionError: ``version`` is not supported.
        DocumentParseError: malformed JSON or a shape mismatch for ``version``.
    """
    version = check_version(version)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentParseError(version, source, [str(e)]) from e

    issues = validate_document(data, version)
    if issues:
        raise DocumentParseError(version, source, issues)

    return _BUILDERS[version](data)


def normalize(document: IdlDocument) -> CanonicalProgram:
    """Collapse a document variant into the version-independent model."""
    return CanonicalProgram(
        program_name=document.program_name,
        instructions=list(document.instructions),
    )


def load_program(
    path: str | Path,
    version: int = 1,
    base_dir: str | Path | None = None,
    encoding: str = "utf-8",
) -> CanonicalProgram:
    """Read, parse and normalize one IDL document.

    Args:
        path: Document path. Relative paths resolve against ``base_dir``.
        version: Schema version the document is expected to follow.
        base_dir: Directory for relative paths (default: the working directory).
        encoding: Text encoding of the document.
    """
    schema_version = check_version(version)

    path = Path(path)
    if base_dir is not None and not path.is_absolute():
        path = Path(base_dir) / path

    logger.debug("Loading IDL %s as version %d", path, schema_version)
    text = read_document(path, schema_version, encoding)
    document = parse_document(text, schema_version, source=str(path))
    program = normalize(document)
    logger.debug(
        "Loaded program '%s' with %d instructions",
        program.program_name,
        len(program.instructions),
    )
    return program


# --- Variant builders ---


def _build_v1(data: dict) -> IdlDocumentV1:
    return IdlDocumentV1(
        name=data["name"],
        instructions=[_build_instruction(ix) for ix in data["instructions"]],
        extra=_extra(data, {"name", "instructions"}),
    )


def _build_v2(data: dict) -> IdlDocumentV2:
    meta = data["metadata"]
    return IdlDocumentV2(
        metadata=IdlMetadata(name=meta["name"], version=meta["version"], spec=meta["spec"]),
        instructions=[_build_instruction(ix) for ix in data["instructions"]],
        extra=_extra(data, {"metadata", "instructions"}),
    )


_BUILDERS: dict[SchemaVersion, Callable[[dict], IdlDocument]] = {
    SchemaVersion.V1: _build_v1,
    SchemaVersion.V2: _build_v2,
}


def _build_instruction(data: dict) -> IdlInstruction:
    return IdlInstruction(
        name=data["name"],
        accounts=[_build_account(acc) for acc in data["accounts"]],
        args=[IdlArg(name=arg["name"], type=arg["type"]) for arg in data.get("args", [])],
        extra=_extra(data, _INSTRUCTION_KEYS),
    )


def _build_account(data: dict) -> IdlAccount:
    return IdlAccount(
        name=data["name"],
        is_mut=resolve_flag(data, WRITABLE_ALIASES),
        is_signer=resolve_flag(data, SIGNER_ALIASES),
        extra=_extra(data, _ACCOUNT_KEYS),
    )


def resolve_flag(data: dict, aliases: tuple[str, ...]) -> bool:
    """Read a boolean flag from the first alias present; ``False`` if none is."""
    for key in aliases:
        if key in data:
            return data[key]
    return False


def _extra(data: dict, known: set[str]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}
