"""Module emitter — assembles constants and call stubs into one Python module.

The module is built as a Python AST and unparsed, so the output is always
syntactically valid and identifiers/literals are quoted by the unparser, never
by string formatting.
"""

from __future__ import annotations

import ast
import keyword
import logging

from idlbind.config import DEFAULT_RUNTIME_MODULE
from idlbind.directive import Directive
from idlbind.errors import InvalidIdentifierError
from idlbind.idl.models import CanonicalProgram
from idlbind.synth import (
    UNASSIGNED_PROGRAM_ID,
    BindingDescriptor,
    decode_program_id,
    encode_payload,
)

logger = logging.getLogger(__name__)

RUNTIME_ALIAS = "_rt"
ADDRESS_CONSTANT = "_PROGRAM_ADDRESS"
INSTRUCTION_LOCAL = "_instruction"


def emit_module(
    directive: Directive,
    program: CanonicalProgram,
    bindings: list[BindingDescriptor],
    runtime_module: str = DEFAULT_RUNTIME_MODULE,
) -> str:
    """Render the module for ``directive`` as source text."""
    tree = build_module(directive, program, bindings, runtime_module)
    return ast.unparse(tree) + "\n"


def build_module(
    directive: Directive,
    program: CanonicalProgram,
    bindings: list[BindingDescriptor],
    runtime_module: str = DEFAULT_RUNTIME_MODULE,
) -> ast.Module:
    if not directive.name.isidentifier() or keyword.iskeyword(directive.name):
        raise InvalidIdentifierError(
            f"Module name '{directive.name}' is not a valid Python module identifier"
        )
    program_id = directive.id if directive.id is not None else UNASSIGNED_PROGRAM_ID
    address = decode_program_id(program_id)

    body: list[ast.stmt] = [
        ast.Expr(_const(_module_docstring(directive, program))),
        ast.Import(names=[ast.alias(name=runtime_module, asname=RUNTIME_ALIAS)]),
        _constant("MODULE_NAME", "str", directive.name),
        _constant("PROGRAM_ID", "str", program_id),
        _constant("INSTRUCTION_COUNT", "int", len(program.instructions)),
        _constant(
            "INSTRUCTIONS",
            "tuple[str, ...]",
            ast.Tuple(elts=[_const(n) for n in program.instruction_names], ctx=ast.Load()),
        ),
        ast.Assign(targets=[_store(ADDRESS_CONSTANT)], value=_const(address)),
        _program_id_accessor(),
    ]
    body.extend(_binding_function(binding) for binding in bindings)

    logger.debug("Emitting module '%s' with %d bindings", directive.name, len(bindings))
    return ast.fix_missing_locations(ast.Module(body=body, type_ignores=[]))


def _module_docstring(directive: Directive, program: CanonicalProgram) -> str:
    return (
        f"Call bindings for the '{program.program_name}' program.\n\n"
        f"Generated by idlbind from {directive.document_path} "
        f"(IDL version {directive.schema_version}). Do not edit.\n"
    )


def _program_id_accessor() -> ast.FunctionDef:
    return _function(
        "program_id",
        params=[],
        returns=_annotation("bytes"),
        body=[
            ast.Expr(_const("32-byte address of PROGRAM_ID.")),
            ast.Return(_load(ADDRESS_CONSTANT)),
        ],
    )


def _binding_function(binding: BindingDescriptor) -> ast.FunctionDef:
    params = [
        ast.arg(arg=acc.param, annotation=_rt_attr("AccountInfo")) for acc in binding.accounts
    ] + [ast.arg(arg=arg.param, annotation=_annotation("bytes")) for arg in binding.args]

    metas = [
        _call(
            _rt_attr("AccountMeta", acc.tag.value),
            [ast.Attribute(value=_load(acc.param), attr="key", ctx=ast.Load())],
        )
        for acc in binding.accounts
    ]

    instruction = _call(
        _rt_attr("Instruction"),
        [],
        program_id=_load(ADDRESS_CONSTANT),
        accounts=ast.Tuple(elts=metas, ctx=ast.Load()),
        data=_payload_expr(binding),
    )

    invoke = _call(
        _rt_attr("invoke"),
        [
            _load(INSTRUCTION_LOCAL),
            ast.Tuple(elts=[_load(acc.param) for acc in binding.accounts], ctx=ast.Load()),
        ],
    )

    return _function(
        binding.function_name,
        params=params,
        returns=_rt_attr("ProgramResult"),
        body=[
            ast.Expr(_const(_binding_docstring(binding))),
            ast.Assign(targets=[_store(INSTRUCTION_LOCAL)], value=instruction),
            ast.Return(invoke),
        ],
    )


def _payload_expr(binding: BindingDescriptor) -> ast.expr:
    """``b'\\x03'`` with no args, ``b''.join((b'\\x03', a, b))`` otherwise.

    The emitted expression evaluates to ``encode_payload(discriminant, args)``.
    """
    prefix = _const(encode_payload(binding.discriminant))
    if not binding.args:
        return prefix
    parts = [prefix] + [_load(arg.param) for arg in binding.args]
    return _call(
        ast.Attribute(value=_const(b""), attr="join", ctx=ast.Load()),
        [ast.Tuple(elts=parts, ctx=ast.Load())],
    )


def _binding_docstring(binding: BindingDescriptor) -> str:
    lines = [f"Invoke '{binding.instruction_name}' (discriminant {binding.discriminant})."]
    if binding.accounts:
        lines.append("")
        lines.append("Accounts:")
        lines.extend(f"    {acc.param}: {acc.tag.value}" for acc in binding.accounts)
    if binding.args:
        lines.append("")
        lines.append("Args (pre-serialized bytes):")
        lines.extend(f"    {arg.param}" for arg in binding.args)
    return "\n".join(lines)


# --- AST helpers ---


def _const(value) -> ast.Constant:
    return ast.Constant(value=value)


def _load(name: str) -> ast.Name:
    return ast.Name(id=name, ctx=ast.Load())


def _store(name: str) -> ast.Name:
    return ast.Name(id=name, ctx=ast.Store())


def _annotation(text: str) -> ast.expr:
    return ast.parse(text, mode="eval").body


def _rt_attr(*attrs: str) -> ast.expr:
    node: ast.expr = _load(RUNTIME_ALIAS)
    for attr in attrs:
        node = ast.Attribute(value=node, attr=attr, ctx=ast.Load())
    return node


def _call(func: ast.expr, args: list[ast.expr], **keywords: ast.expr) -> ast.Call:
    return ast.Call(
        func=func,
        args=args,
        keywords=[ast.keyword(arg=k, value=v) for k, v in keywords.items()],
    )


def _constant(name: str, annotation: str, value) -> ast.AnnAssign:
    if not isinstance(value, ast.expr):
        value = _const(value)
    return ast.AnnAssign(
        target=_store(name), annotation=_annotation(annotation), value=value, simple=1
    )


def _function(
    name: str, params: list[ast.arg], returns: ast.expr, body: list[ast.stmt]
) -> ast.FunctionDef:
    node = ast.FunctionDef(
        name=name,
        args=ast.arguments(
            posonlyargs=[],
            args=params,
            vararg=None,
            kwonlyargs=[],
            kw_defaults=[],
            kwarg=None,
            defaults=[],
        ),
        body=body,
        decorator_list=[],
        returns=returns,
    )
    # Python 3.12+ generic functions
    if "type_params" in ast.FunctionDef._fields:
        node.type_params = []
    return node
