"""Binding synthesizer — derives one call descriptor per IDL instruction.

A descriptor fixes everything the emitter needs: the Python function name,
the positional parameter list (accounts first, then args), each account's
permission tag, and the one-byte discriminant that prefixes the payload.
"""

from __future__ import annotations

import keyword
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

import base58

from idlbind.errors import (
    InvalidIdentifierError,
    InvalidProgramIdError,
    SynthesisLimitError,
)
from idlbind.idl.models import CanonicalProgram, IdlInstruction

logger = logging.getLogger(__name__)

MAX_INSTRUCTIONS = 256
ADDRESS_LENGTH = 32
UNASSIGNED_PROGRAM_ID = "11111111111111111111111111111111"

# Names the emitted function bodies rely on
LOCAL_NAMES = frozenset({"_rt", "_PROGRAM_ADDRESS", "_instruction"})
# Names the emitted module defines for itself
RESERVED_NAMES = LOCAL_NAMES | {
    "MODULE_NAME",
    "PROGRAM_ID",
    "INSTRUCTION_COUNT",
    "INSTRUCTIONS",
    "program_id",
}


class PermissionTag(Enum):
    """How an account is passed to the callee.

    The value is the name of the ``AccountMeta`` constructor that builds the
    account's permission metadata.
    """

    WRITABLE_SIGNER = "writable_signer"
    WRITABLE = "writable"
    READONLY_SIGNER = "readonly_signer"
    READONLY = "readonly"

    @classmethod
    def from_flags(cls, is_mut: bool, is_signer: bool) -> PermissionTag:
        if is_mut:
            return cls.WRITABLE_SIGNER if is_signer else cls.WRITABLE
        return cls.READONLY_SIGNER if is_signer else cls.READONLY

    @property
    def is_writable(self) -> bool:
        return self in (PermissionTag.WRITABLE_SIGNER, PermissionTag.WRITABLE)

    @property
    def is_signer(self) -> bool:
        return self in (PermissionTag.WRITABLE_SIGNER, PermissionTag.READONLY_SIGNER)


class ParameterKind(Enum):
    ACCOUNT = "account"
    ARG = "arg"


@dataclass(frozen=True)
class Parameter:
    name: str
    kind: ParameterKind


@dataclass
class AccountBinding:
    name: str  # Name as declared in the IDL
    param: str  # Python parameter name
    tag: PermissionTag


@dataclass
class ArgBinding:
    name: str
    param: str
    type: Any = None


@dataclass
class BindingDescriptor:
    """Everything needed to emit the call stub for one instruction."""

    instruction_name: str
    function_name: str
    discriminant: int
    accounts: list[AccountBinding] = field(default_factory=list)
    args: list[ArgBinding] = field(default_factory=list)

    @property
    def parameters(self) -> list[Parameter]:
        return [Parameter(a.param, ParameterKind.ACCOUNT) for a in self.accounts] + [
            Parameter(a.param, ParameterKind.ARG) for a in self.args
        ]

    @property
    def permission_tags(self) -> list[PermissionTag]:
        return [a.tag for a in self.accounts]

    def payload(self, *arg_bytes: bytes) -> bytes:
        """Assemble the wire payload for concrete argument values."""
        if len(arg_bytes) != len(self.args):
            raise TypeError(
                f"{self.function_name}() takes {len(self.args)} argument payloads "
                f"but {len(arg_bytes)} were given"
            )
        return encode_payload(self.discriminant, arg_bytes)


def encode_payload(discriminant: int, args: Sequence[bytes] = ()) -> bytes:
    """Discriminant byte followed by the raw concatenation of ``args``."""
    if not 0 <= discriminant < MAX_INSTRUCTIONS:
        raise ValueError(f"discriminant {discriminant} does not fit in one byte")
    return bytes([discriminant]) + b"".join(args)


def synthesize(program: CanonicalProgram) -> list[BindingDescriptor]:
    """Build one descriptor per instruction, in declaration order.

    Raises:
        SynthesisLimitError: more instructions than one-byte discriminants.
        InvalidIdentifierError: a name that cannot become a Python identifier,
            or that collides with another name in the same scope.
    """
    count = len(program.instructions)
    if count > MAX_INSTRUCTIONS:
        raise SynthesisLimitError(count, MAX_INSTRUCTIONS)

    bindings = []
    seen: dict[str, str] = {}
    for index, instruction in enumerate(program.instructions):
        binding = _synthesize_instruction(instruction, index)
        if binding.function_name in seen:
            raise InvalidIdentifierError(
                f"Instruction '{instruction.name}' maps to function "
                f"'{binding.function_name}', already used by '{seen[binding.function_name]}'"
            )
        seen[binding.function_name] = instruction.name
        bindings.append(binding)

    logger.debug("Synthesized %d bindings for '%s'", len(bindings), program.program_name)
    return bindings


def _synthesize_instruction(instruction: IdlInstruction, discriminant: int) -> BindingDescriptor:
    function_name = python_identifier(instruction.name, "instruction")
    what = f"parameter of instruction '{instruction.name}'"

    accounts = [
        AccountBinding(
            name=acc.name,
            param=python_identifier(acc.name, what, LOCAL_NAMES),
            tag=PermissionTag.from_flags(acc.is_mut, acc.is_signer),
        )
        for acc in instruction.accounts
    ]
    args = [
        ArgBinding(
            name=arg.name,
            param=python_identifier(arg.name, what, LOCAL_NAMES),
            type=arg.type,
        )
        for arg in instruction.args
    ]

    params = [a.param for a in accounts] + [a.param for a in args]
    duplicates = sorted({p for p in params if params.count(p) > 1})
    if duplicates:
        raise InvalidIdentifierError(
            f"Instruction '{instruction.name}' declares duplicate parameter(s): "
            + ", ".join(duplicates)
        )

    return BindingDescriptor(
        instruction_name=instruction.name,
        function_name=function_name,
        discriminant=discriminant,
        accounts=accounts,
        args=args,
    )


def python_identifier(
    name: str, what: str = "name", reserved: frozenset[str] = RESERVED_NAMES
) -> str:
    """Map an IDL name to a Python identifier.

    Keywords get a trailing underscore (``from`` -> ``from_``).
    """
    if not name.isidentifier():
        raise InvalidIdentifierError(f"'{name}' ({what}) is not a valid Python identifier")
    if keyword.iskeyword(name):
        name = f"{name}_"
    if name in reserved:
        raise InvalidIdentifierError(
            f"'{name}' ({what}) collides with a name the generated module defines"
        )
    return name


def decode_program_id(program_id: str) -> bytes:
    """Decode a base58 program id into its 32-byte address."""
    try:
        address = base58.b58decode(program_id)
    except ValueError as e:
        raise InvalidProgramIdError(f"Program id '{program_id}' is not valid base58: {e}") from e
    if len(address) != ADDRESS_LENGTH:
        raise InvalidProgramIdError(
            f"Program id '{program_id}' decodes to {len(address)} bytes, "
            f"expected {ADDRESS_LENGTH}"
        )
    return address
