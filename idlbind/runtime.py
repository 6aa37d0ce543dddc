"""Runtime the generated bindings execute against.

Generated modules only build an ``Instruction`` and hand it to ``invoke``.
What ``invoke`` actually does (submit it, simulate it, record it) is up to
the invoker installed by the host environment::

    recorder = RecordingInvoker()
    with use_invoker(recorder):
        result = test_spl.transfer(source, destination, owner, amount)
"""

from __future__ import annotations

import contextlib
import contextvars
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Sequence

Pubkey = bytes


@dataclass(frozen=True)
class AccountInfo:
    """An account handle passed to a binding."""

    key: Pubkey
    is_signer: bool = False
    is_writable: bool = False
    lamports: int = 0
    data: bytes = b""
    owner: Pubkey = bytes(32)


@dataclass(frozen=True)
class AccountMeta:
    pubkey: Pubkey
    is_writable: bool
    is_signer: bool

    @classmethod
    def writable_signer(cls, pubkey: Pubkey) -> AccountMeta:
        return cls(pubkey, is_writable=True, is_signer=True)

    @classmethod
    def writable(cls, pubkey: Pubkey) -> AccountMeta:
        return cls(pubkey, is_writable=True, is_signer=False)

    @classmethod
    def readonly_signer(cls, pubkey: Pubkey) -> AccountMeta:
        return cls(pubkey, is_writable=False, is_signer=True)

    @classmethod
    def readonly(cls, pubkey: Pubkey) -> AccountMeta:
        return cls(pubkey, is_writable=False, is_signer=False)


@dataclass(frozen=True)
class Instruction:
    program_id: Pubkey
    accounts: tuple[AccountMeta, ...]
    data: bytes


class ProgramError(Enum):
    CUSTOM = "custom"
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_INSTRUCTION_DATA = "invalid_instruction_data"
    INVALID_ACCOUNT_DATA = "invalid_account_data"
    ACCOUNT_DATA_TOO_SMALL = "account_data_too_small"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INCORRECT_PROGRAM_ID = "incorrect_program_id"
    MISSING_REQUIRED_SIGNATURE = "missing_required_signature"
    ACCOUNT_ALREADY_INITIALIZED = "account_already_initialized"
    UNINITIALIZED_ACCOUNT = "uninitialized_account"
    NOT_ENOUGH_ACCOUNT_KEYS = "not_enough_account_keys"
    ACCOUNT_BORROW_FAILED = "account_borrow_failed"


@dataclass(frozen=True)
class ProgramResult:
    """Outcome of an invocation: success, or a classified failure."""

    error: ProgramError | None = None
    custom_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> ProgramResult:
        return cls()

    @classmethod
    def failure(cls, error: ProgramError, custom_code: int | None = None) -> ProgramResult:
        return cls(error=error, custom_code=custom_code)

    def __bool__(self) -> bool:
        return self.ok


Invoker = Callable[[Instruction, Sequence[AccountInfo]], ProgramResult]


class NoInvokerError(RuntimeError):
    """A binding was called with no invoker installed."""


_invoker: contextvars.ContextVar[Invoker | None] = contextvars.ContextVar(
    "idlbind_invoker", default=None
)


def set_invoker(invoker: Invoker | None) -> contextvars.Token:
    """Install ``invoker`` for the current context. Returns a reset token."""
    return _invoker.set(invoker)


def reset_invoker(token: contextvars.Token) -> None:
    _invoker.reset(token)


@contextlib.contextmanager
def use_invoker(invoker: Invoker) -> Iterator[Invoker]:
    token = set_invoker(invoker)
    try:
        yield invoker
    finally:
        reset_invoker(token)


def invoke(instruction: Instruction, accounts: Sequence[AccountInfo]) -> ProgramResult:
    """Hand an instruction to the installed invoker."""
    invoker = _invoker.get()
    if invoker is None:
        raise NoInvokerError("No invoker installed; wrap the call in use_invoker(...)")
    if len(accounts) != len(instruction.accounts):
        return ProgramResult.failure(ProgramError.NOT_ENOUGH_ACCOUNT_KEYS)
    return invoker(instruction, tuple(accounts))


@dataclass
class RecordingInvoker:
    """Invoker that records every call and answers with a fixed result."""

    result: ProgramResult = field(default_factory=ProgramResult.success)
    calls: list[tuple[Instruction, tuple[AccountInfo, ...]]] = field(default_factory=list)

    def __call__(self, instruction: Instruction, accounts: Sequence[AccountInfo]) -> ProgramResult:
        self.calls.append((instruction, tuple(accounts)))
        return self.result

    @property
    def last(self) -> Instruction:
        return self.calls[-1][0]
