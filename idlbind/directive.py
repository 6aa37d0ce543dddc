"""Directive reader — turns ``key = value`` arguments into a typed request.

A directive names the module to generate, an optional fixed program id, the
IDL document path and the document's schema version::

    name = "test_spl", id = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
    idl_path = "fixtures/spl_token.json", idl_version = 1
"""

from __future__ import annotations

import ast
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable

from idlbind.errors import (
    DirectiveError,
    MissingParameterError,
    SourceLocation,
    UnknownKeyError,
)

logger = logging.getLogger(__name__)

ALLOWED_KEYS = ("name", "id", "idl_path", "idl_version")
REQUIRED_KEYS = ("name", "idl_path")
DEFAULT_SCHEMA_VERSION = 1

# Expected literal kind per key
_KEY_TYPES: dict[str, type] = {
    "name": str,
    "id": str,
    "idl_path": str,
    "idl_version": int,
}

_TOKEN = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<eq>=)
  | (?P<comma>,)
  | (?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
  | (?P<int>[0-9][0-9_]*)
    """,
    re.VERBOSE,
)


@dataclass
class Directive:
    """A validated generation request."""

    name: str
    document_path: str
    id: str | None = None
    schema_version: int = DEFAULT_SCHEMA_VERSION
    location: SourceLocation | None = None


def directive_from_pairs(
    pairs: Iterable[tuple[str, Any]], location: SourceLocation | None = None
) -> Directive:
    """Validate a flat sequence of ``(key, value)`` pairs.

    A repeated key overwrites the earlier value.

    Raises:
        UnknownKeyError: a key outside ``ALLOWED_KEYS``.
        MissingParameterError: ``name`` or ``idl_path`` absent.
        DirectiveError: a value of the wrong literal kind.
    """
    values: dict[str, Any] = {}
    for key, value in pairs:
        if key not in ALLOWED_KEYS:
            raise UnknownKeyError(key, ALLOWED_KEYS, location)
        expected = _KEY_TYPES[key]
        # bool is an int subclass; reject it for idl_version
        if not isinstance(value, expected) or isinstance(value, bool):
            kind = "string" if expected is str else "integer"
            raise DirectiveError(
                f"Expected {kind} literal for '{key}', got {value!r}", location
            )
        if key in values:
            logger.debug("Directive key '%s' repeated; keeping the last value", key)
        values[key] = value

    for key in REQUIRED_KEYS:
        if key not in values:
            raise MissingParameterError(key, location)

    return Directive(
        name=values["name"],
        document_path=values["idl_path"],
        id=values.get("id"),
        schema_version=values.get("idl_version", DEFAULT_SCHEMA_VERSION),
        location=location,
    )


def parse_directive(text: str, location: SourceLocation | None = None) -> Directive:
    """Parse the textual directive surface into a ``Directive``."""
    return directive_from_pairs(_parse_pairs(text, location), location)


def _parse_pairs(text: str, location: SourceLocation | None) -> list[tuple[str, Any]]:
    tokens = _tokenize(text, location)
    pairs: list[tuple[str, Any]] = []
    i = 0
    while i < len(tokens):
        kind, value, col = tokens[i]
        if kind != "ident":
            raise DirectiveError(f"Expected a key at column {col}, found {value!r}", location)
        if i + 1 >= len(tokens) or tokens[i + 1][0] != "eq":
            raise DirectiveError(f"Expected '=' after '{value}' at column {col}", location)
        if i + 2 >= len(tokens) or tokens[i + 2][0] not in ("string", "int"):
            raise DirectiveError(f"Expected a literal value for '{value}'", location)

        literal_kind, literal, _ = tokens[i + 2]
        if literal_kind == "string":
            try:
                pairs.append((value, ast.literal_eval(literal)))
            except (SyntaxError, ValueError) as e:
                raise DirectiveError(
                    f"Invalid string literal for '{value}' at column {col}: {e}", location
                ) from e
        else:
            pairs.append((value, int(literal.replace("_", ""))))
        i += 3

        if i < len(tokens):
            if tokens[i][0] == "comma":
                i += 1
            elif tokens[i][0] != "ident":
                raise DirectiveError(
                    f"Expected ',' at column {tokens[i][2]}, found {tokens[i][1]!r}", location
                )
    return pairs


def _tokenize(text: str, location: SourceLocation | None) -> list[tuple[str, str, int]]:
    tokens = []
    pos = 0
    while pos < len(text):
        match = _TOKEN.match(text, pos)
        if match is None:
            raise DirectiveError(
                f"Unexpected character {text[pos]!r} at column {pos + 1}", location
            )
        if match.lastgroup != "ws":
            tokens.append((match.lastgroup, match.group(), pos + 1))
        pos = match.end()
    return tokens
