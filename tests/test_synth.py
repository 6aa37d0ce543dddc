"""Tests for the binding synthesizer."""

from pathlib import Path

import pytest

from idlbind.errors import InvalidIdentifierError, InvalidProgramIdError, SynthesisLimitError
from idlbind.idl.loader import load_program
from idlbind.idl.models import CanonicalProgram, IdlAccount, IdlArg, IdlInstruction
from idlbind.synth import (
    MAX_INSTRUCTIONS,
    UNASSIGNED_PROGRAM_ID,
    ParameterKind,
    PermissionTag,
    decode_program_id,
    encode_payload,
    python_identifier,
    synthesize,
)

FIXTURES = Path(__file__).parent / "fixtures"


def _program(*instructions: IdlInstruction) -> CanonicalProgram:
    return CanonicalProgram(program_name="prog", instructions=list(instructions))


def _transfer() -> IdlInstruction:
    return IdlInstruction(
        name="transfer",
        accounts=[
            IdlAccount(name="src", is_mut=True),
            IdlAccount(name="dst", is_mut=True),
            IdlAccount(name="auth", is_signer=True),
        ],
        args=[IdlArg(name="amount", type="u64")],
    )


# --- Permission tags ---


def test_permission_tag_mapping_is_total():
    assert PermissionTag.from_flags(True, True) is PermissionTag.WRITABLE_SIGNER
    assert PermissionTag.from_flags(True, False) is PermissionTag.WRITABLE
    assert PermissionTag.from_flags(False, True) is PermissionTag.READONLY_SIGNER
    assert PermissionTag.from_flags(False, False) is PermissionTag.READONLY


def test_permission_tag_round_trips_flags():
    for is_mut in (True, False):
        for is_signer in (True, False):
            tag = PermissionTag.from_flags(is_mut, is_signer)
            assert (tag.is_writable, tag.is_signer) == (is_mut, is_signer)


def test_tags_are_deterministic():
    program = load_program(FIXTURES / "pump_v2.json", 2)
    first = [b.permission_tags for b in synthesize(program)]
    second = [b.permission_tags for b in synthesize(load_program(FIXTURES / "pump_v2.json", 2))]
    assert first == second


# --- Payloads ---


def test_payload_without_args_is_discriminant_byte():
    assert encode_payload(7) == b"\x07"
    assert encode_payload(0, []) == b"\x00"


def test_payload_concatenates_args_without_separators():
    assert encode_payload(3, [b"\x01\x02", b"", b"\xff"]) == b"\x03\x01\x02\xff"


def test_payload_discriminant_range():
    assert encode_payload(255) == b"\xff"
    with pytest.raises(ValueError):
        encode_payload(256)


def test_descriptor_payload_checks_arity():
    (binding,) = synthesize(_program(_transfer()))
    amount = (1000).to_bytes(8, "little")
    assert binding.payload(amount) == b"\x00" + amount
    with pytest.raises(TypeError):
        binding.payload()


# --- Descriptors ---


def test_transfer_scenario():
    (binding,) = synthesize(_program(_transfer()))
    assert binding.function_name == "transfer"
    assert binding.discriminant == 0
    assert [(p.name, p.kind) for p in binding.parameters] == [
        ("src", ParameterKind.ACCOUNT),
        ("dst", ParameterKind.ACCOUNT),
        ("auth", ParameterKind.ACCOUNT),
        ("amount", ParameterKind.ARG),
    ]
    assert binding.permission_tags == [
        PermissionTag.WRITABLE,
        PermissionTag.WRITABLE,
        PermissionTag.READONLY_SIGNER,
    ]
    assert binding.args[0].type == "u64"


def test_discriminant_is_position():
    program = load_program(FIXTURES / "spl_token.json", 1)
    bindings = synthesize(program)
    assert [b.discriminant for b in bindings] == list(range(len(program.instructions)))
    assert [b.instruction_name for b in bindings] == program.instruction_names


def test_spl_signatures():
    program = load_program(FIXTURES / "spl_token.json", 1)
    shapes = {b.function_name: (len(b.accounts), len(b.args)) for b in synthesize(program)}
    assert shapes["transfer"] == (3, 1)
    assert shapes["mintTo"] == (3, 1)
    assert shapes["revoke"] == (2, 0)
    assert shapes["initializeMint"] == (2, 3)


def test_instruction_limit():
    at_limit = _program(*[IdlInstruction(name=f"ix{i}") for i in range(MAX_INSTRUCTIONS)])
    assert synthesize(at_limit)[-1].discriminant == 255

    over = _program(*[IdlInstruction(name=f"ix{i}") for i in range(MAX_INSTRUCTIONS + 1)])
    with pytest.raises(SynthesisLimitError) as exc:
        synthesize(over)
    assert exc.value.count == 257
    assert exc.value.limit == 256


# --- Identifiers ---


def test_keywords_get_trailing_underscore():
    instruction = IdlInstruction(
        name="import",
        accounts=[IdlAccount(name="from"), IdlAccount(name="global")],
        args=[IdlArg(name="lambda", type="u8")],
    )
    (binding,) = synthesize(_program(instruction))
    assert binding.function_name == "import_"
    assert [p.name for p in binding.parameters] == ["from_", "global_", "lambda_"]
    assert binding.instruction_name == "import"


def test_invalid_identifier():
    with pytest.raises(InvalidIdentifierError, match="not a valid Python identifier"):
        synthesize(_program(IdlInstruction(name="set-params")))


def test_duplicate_parameter_names():
    instruction = IdlInstruction(
        name="swap",
        accounts=[IdlAccount(name="amount")],
        args=[IdlArg(name="amount", type="u64")],
    )
    with pytest.raises(InvalidIdentifierError, match="duplicate"):
        synthesize(_program(instruction))


def test_duplicate_instruction_names():
    with pytest.raises(InvalidIdentifierError, match="already used"):
        synthesize(_program(IdlInstruction(name="ping"), IdlInstruction(name="ping")))


def test_reserved_names():
    with pytest.raises(InvalidIdentifierError, match="collides"):
        python_identifier("program_id")
    with pytest.raises(InvalidIdentifierError):
        synthesize(_program(IdlInstruction(name="INSTRUCTIONS")))
    # An account may be called program_id; only module-level names clash
    instruction = IdlInstruction(name="call", accounts=[IdlAccount(name="program_id")])
    assert synthesize(_program(instruction))[0].accounts[0].param == "program_id"


# --- Program ids ---


def test_unassigned_program_id_is_zero_address():
    assert decode_program_id(UNASSIGNED_PROGRAM_ID) == bytes(32)


def test_decode_program_id():
    address = decode_program_id("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
    assert len(address) == 32
    assert address.hex() == "06ddf6e1d765a193d9cbe146ceeb79ac1cb485ed5f5b37913a8cf5857eff00a9"


def test_invalid_program_id():
    with pytest.raises(InvalidProgramIdError, match="base58"):
        decode_program_id("not base58 0OIl")
    with pytest.raises(InvalidProgramIdError, match="32"):
        decode_program_id("abc")
