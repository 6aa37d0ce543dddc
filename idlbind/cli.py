"""idlbind CLI — the main entry point for the binding generator."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from idlbind import __version__
from idlbind.config import GeneratorConfig
from idlbind.errors import GenerationError

console = Console()
err_console = Console(stderr=True)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log every pipeline step")
@click.option("--base-dir", default=None, help="Directory relative IDL paths resolve against")
@click.option(
    "--runtime-module", default=None, help="Module the generated code imports its runtime from"
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, base_dir: str | None, runtime_module: str | None):
    """idlbind — typed call bindings from program IDL documents.

    Reads a directive (module name, program id, IDL path, IDL version) and
    the JSON IDL it names, and emits a Python module with one call stub
    per instruction.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )
    ctx.obj = GeneratorConfig.from_env().with_overrides(
        base_dir=Path(base_dir) if base_dir else None, runtime_module=runtime_module
    )


def _fail(error: GenerationError):
    err_console.print(f"[red]error:[/] {escape(str(error))}", highlight=False)
    sys.exit(1)


# ── Expand ───────────────────────────────────────────────────────────


@main.command()
@click.argument("directive")
@click.option("--output", "-o", default=None, help="Write the module here instead of printing it")
@click.pass_obj
def expand(config: GeneratorConfig, directive: str, output: str | None):
    """Generate the module for one directive.

    DIRECTIVE is the key = value form, e.g.
    'name = "spl", idl_path = "spl_token.json", idl_version = 1'.
    """
    from idlbind.errors import SourceLocation
    from idlbind.generator import BindingGenerator

    generator = BindingGenerator(config)
    try:
        generated = generator.generate_from_text(directive, SourceLocation("<command line>"))
    except GenerationError as e:
        _fail(e)

    if output is None:
        console.print(Syntax(generated.source, "python"))
        return

    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(generated.source, encoding="utf-8")
    console.print(f"[green]Module written to:[/] {path}")


# ── Build ────────────────────────────────────────────────────────────


@main.command()
@click.argument("manifest_path")
@click.option("--output", "-o", default=".", help="Output directory for generated modules")
@click.pass_obj
def build(config: GeneratorConfig, manifest_path: str, output: str):
    """Generate every binding declared in a YAML manifest."""
    from idlbind.generator import BindingGenerator
    from idlbind.manifest import load_manifest

    console.print(f"\n[bold blue]idlbind[/] — Building: {manifest_path}\n")

    generator = BindingGenerator(config)
    try:
        directives = load_manifest(manifest_path)
        # Generate everything first so a failure writes nothing
        modules = [generator.generate(d) for d in directives]
    except GenerationError as e:
        _fail(e)

    table = Table(title=f"Generated Modules ({len(modules)})")
    table.add_column("Module", style="cyan")
    table.add_column("Program")
    table.add_column("Instructions", justify="right", style="green")
    table.add_column("Path")

    for module in modules:
        path = generator.write(module, output)
        table.add_row(
            module.name, module.program.program_name, str(len(module.bindings)), str(path)
        )

    console.print(table)


# ── Inspect ──────────────────────────────────────────────────────────


@main.command()
@click.argument("idl_path")
@click.option("--idl-version", default=1, type=int, help="IDL schema version (1 or 2)")
@click.pass_obj
def inspect(config: GeneratorConfig, idl_path: str, idl_version: int):
    """Show the instructions an IDL document would generate."""
    from idlbind.idl.loader import load_program
    from idlbind.synth import synthesize

    try:
        program = load_program(
            idl_path, idl_version, base_dir=config.base_dir, encoding=config.encoding
        )
        bindings = synthesize(program)
    except GenerationError as e:
        _fail(e)

    table = Table(title=f"{program.program_name} ({len(bindings)} instructions)")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Instruction", style="cyan")
    table.add_column("Accounts")
    table.add_column("Args")

    for binding in bindings:
        table.add_row(
            str(binding.discriminant),
            binding.function_name,
            "\n".join(f"{a.param} [dim]({a.tag.value})[/]" for a in binding.accounts),
            ", ".join(a.param for a in binding.args) or "-",
        )

    console.print(table)


# ── Schema ───────────────────────────────────────────────────────────


@main.command(name="schema")
@click.option("--idl-version", default=1, type=click.Choice(["1", "2"]), help="IDL schema version")
def dump_schema(idl_version: str):
    """Print the JSON Schema for an IDL document version."""
    import json

    from idlbind.idl.schema import get_schema

    console.print_json(json.dumps(get_schema(int(idl_version))))


if __name__ == "__main__":
    main()
