"""IDL data models — typed document variants and the canonical program.

Unrecognized document fields are kept in each node's ``extra`` map. They are
carried for round-tripping and inspection only; synthesis never reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class SchemaVersion(IntEnum):
    V1 = 1
    V2 = 2


# --- Shared nodes ---


@dataclass
class IdlArg:
    """An instruction argument. ``type`` is opaque to the generator."""

    name: str
    type: Any = None


@dataclass
class IdlAccount:
    """An account an instruction touches."""

    name: str
    is_mut: bool = False
    is_signer: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class IdlInstruction:
    name: str
    accounts: list[IdlAccount] = field(default_factory=list)
    args: list[IdlArg] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)


# --- Document variants ---


@dataclass
class IdlMetadata:
    name: str
    version: str
    spec: str


@dataclass
class IdlDocumentV1:
    name: str
    instructions: list[IdlInstruction] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    schema_version = SchemaVersion.V1

    @property
    def program_name(self) -> str:
        return self.name


@dataclass
class IdlDocumentV2:
    metadata: IdlMetadata
    instructions: list[IdlInstruction] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    schema_version = SchemaVersion.V2

    @property
    def program_name(self) -> str:
        return self.metadata.name


IdlDocument = IdlDocumentV1 | IdlDocumentV2


# --- Canonical model ---


@dataclass
class CanonicalProgram:
    """The version-independent program the synthesizer reads.

    Instruction order is declaration order; each instruction's index is its
    one-byte discriminant.
    """

    program_name: str
    instructions: list[IdlInstruction] = field(default_factory=list)

    @property
    def instruction_names(self) -> list[str]:
        return [ix.name for ix in self.instructions]

    def discriminant_of(self, instruction_name: str) -> int:
        """Zero-based position of the first instruction with this name."""
        for index, ix in enumerate(self.instructions):
            if ix.name == instruction_name:
                return index
        raise KeyError(instruction_name)
