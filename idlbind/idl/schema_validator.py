"""Structural validation of IDL documents against their JSON Schema.

Produces human-readable complaints with a JSONPath location so a parse
failure says which field of which version's shape was wrong.
"""

from __future__ import annotations

from jsonschema import Draft202012Validator

from idlbind.idl.models import SchemaVersion
from idlbind.idl.schema import get_schema


def validate_document(data, version: SchemaVersion | int) -> list[str]:
    """Validate a decoded IDL document against the schema for ``version``.

    Returns:
        Sorted list of ``"<json path>: <message>"`` strings.
        Empty list means valid.
    """
    validator = Draft202012Validator(get_schema(version))
    return sorted(f"{error.json_path}: {error.message}" for error in validator.iter_errors(data))
