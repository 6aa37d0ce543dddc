"""JSON Schema for the supported IDL document versions.

These schemas are the structural gate a document passes before it is turned
into typed models. They only describe the fields the generator reads;
unknown fields are allowed everywhere (``additionalProperties`` is left open)
so newer IDL producers keep working.
"""

from __future__ import annotations

import copy

from idlbind.idl.models import SchemaVersion

_ARG_SCHEMA: dict = {
    "type": "object",
    "required": ["name", "type"],
    "properties": {
        "name": {"type": "string", "description": "Argument name; becomes a bytes parameter."},
        "type": {"description": "Declared argument type. Carried, never interpreted."},
    },
}

_FLAG = {"type": "boolean"}

_ACCOUNT_SCHEMA: dict = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "description": "Account name; becomes a parameter."},
        # Writable flag and its aliases
        "is_mut": _FLAG,
        "isMut": _FLAG,
        "writable": _FLAG,
        "mutable": _FLAG,
        # Signer flag and its aliases
        "is_signer": _FLAG,
        "isSigner": _FLAG,
        "signer": _FLAG,
        "signs": _FLAG,
    },
}

_INSTRUCTION_SCHEMA: dict = {
    "type": "object",
    "required": ["name", "accounts"],
    "properties": {
        "name": {"type": "string"},
        "accounts": {"type": "array", "items": _ACCOUNT_SCHEMA},
        "args": {"type": "array", "items": _ARG_SCHEMA},
    },
}

IDL_V1_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "urn:idlbind:schema:idl:v1",
    "title": "Program IDL (version 1)",
    "type": "object",
    "required": ["name", "instructions"],
    "properties": {
        "name": {"type": "string", "description": "Program name."},
        "instructions": {"type": "array", "items": _INSTRUCTION_SCHEMA},
    },
}

IDL_V2_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$id": "urn:idlbind:schema:idl:v2",
    "title": "Program IDL (version 2)",
    "type": "object",
    "required": ["metadata", "instructions"],
    "properties": {
        "metadata": {
            "type": "object",
            "required": ["name", "version", "spec"],
            "properties": {
                "name": {"type": "string", "description": "Program name."},
                "version": {"type": "string"},
                "spec": {"type": "string"},
            },
        },
        "instructions": {"type": "array", "items": _INSTRUCTION_SCHEMA},
    },
}

_SCHEMAS = {
    SchemaVersion.V1: IDL_V1_SCHEMA,
    SchemaVersion.V2: IDL_V2_SCHEMA,
}


def get_schema(version: SchemaVersion | int = SchemaVersion.V1) -> dict:
    """Return a copy of the JSON Schema for one document version."""
    return copy.deepcopy(_SCHEMAS[SchemaVersion(version)])
