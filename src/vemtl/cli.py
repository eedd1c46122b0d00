"""vemtl CLI

Usage:
    vemtl render page.vemtl -d data.yaml        # render to stdout
    vemtl render page.vemtl -d data.yaml -o out # render to a file
    vemtl code page.vemtl                       # show the generated program
    vemtl check page.vemtl                      # static validation
    vemtl imports page.vemtl                    # list imported templates
    vemtl data page.vemtl                       # list data declarations

Imports are read from the vemtl.yaml found next to the template or in one
of its parent directories (or passed with --config).
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

from vemtl._version import __version__
from vemtl.config import ProjectConfig, find_config_file
from vemtl.exceptions import VemtlError
from vemtl.template import Template

log = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(help="Compile vemtl templates into Python and render them.")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the vemtl CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level
    - Debug (VEMTL_DEBUG=1): DEBUG level - shows every compile stage
    """
    if os.environ.get("VEMTL_DEBUG"):
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=err_console,
        show_time=verbose,
        show_path=bool(os.environ.get("VEMTL_DEBUG")),
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    vemtl_logger = logging.getLogger("vemtl")
    vemtl_logger.setLevel(level)
    vemtl_logger.handlers = [handler]
    vemtl_logger.propagate = False


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    err_console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(code=exit_code)


def load_template(
    path: Path,
    config_path: Optional[Path] = None,
    name: Optional[str] = None,
    disable_imports: bool = False,
) -> Template:
    """Build a Template for a file, with the imports of its project."""
    if not path.exists():
        exit_with_error(f"File not found: {path}")

    config_file = config_path or find_config_file(path.resolve().parent)
    if config_file is not None:
        config = ProjectConfig.load(config_file)
    else:
        config = ProjectConfig(base_dir=path.parent)

    options = config.to_options(template_name=name or path.name)
    if disable_imports:
        options = options.model_copy(update={"disable_imports_processing": True})

    return Template(path.read_text(encoding="utf-8"), options)


def load_data(path: Optional[Path]) -> dict[str, Any]:
    """Load a YAML (or JSON) data context."""
    if path is None:
        return {}
    if not path.exists():
        exit_with_error(f"Data file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        exit_with_error(f"Data file {path} must contain a mapping")
    return data


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show info logs."),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    setup_logging(verbose)

    if version:
        typer.echo(f"vemtl {__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


@app.command()
def render(
    template: Path = typer.Argument(..., help="Template file to render."),
    data: Optional[Path] = typer.Option(None, "-d", "--data", help="YAML/JSON data file."),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Path to vemtl.yaml."),
    name: Optional[str] = typer.Option(None, "-n", "--name", help="Template name for errors."),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to a file."),
    use_async: bool = typer.Option(False, "--async", help="Allow await in the template."),
) -> None:
    """Render a template against a data file."""
    try:
        compiler = load_template(template, config, name)
    except VemtlError as exc:
        exit_with_error(str(exc))
    context = load_data(data)
    log.info("Rendering %s with %d data fields", template, len(context))

    try:
        if use_async:
            result = asyncio.run(compiler.compile_async_with_error_treatment(context))
        else:
            result = compiler.compile_with_error_treatment(context)
    except Exception as exc:
        latest = compiler.get_latest_error()
        where = f" (template line {latest.template_line})" if latest else ""
        exit_with_error(f"{exc}{where}")

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result, encoding="utf-8")
        typer.echo(f"Wrote rendered template to {output}")
    else:
        typer.echo(result, nl=False)


@app.command()
def code(
    template: Path = typer.Argument(..., help="Template file to compile."),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Path to vemtl.yaml."),
    plain: bool = typer.Option(False, "--plain", help="No syntax highlighting."),
) -> None:
    """Print the generated Python program."""
    try:
        source = load_template(template, config).get_generated_code()
    except VemtlError as exc:
        exit_with_error(str(exc))

    if plain:
        typer.echo(source, nl=False)
    else:
        console.print(Syntax(source, "python", line_numbers=True))


@app.command()
def check(
    template: Path = typer.Argument(..., help="Template file to validate."),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Path to vemtl.yaml."),
) -> None:
    """Check the generated program is valid Python, without running it."""
    try:
        result = load_template(template, config).validate()
    except VemtlError as exc:
        exit_with_error(str(exc))

    if result.valid:
        console.print(f"[green]{template}: OK[/green]")
        return

    exit_with_error(
        f"{template}: {result.message} "
        f"(template line {result.template_line}, code line {result.code_line})"
    )


@app.command()
def imports(
    template: Path = typer.Argument(..., help="Template file to inspect."),
) -> None:
    """List the templates imported directly by a template."""
    try:
        names = load_template(template, disable_imports=True).get_imported_templates()
    except VemtlError as exc:
        exit_with_error(str(exc))

    for import_name in names:
        typer.echo(import_name)


@app.command("data")
def data_declarations(
    template: Path = typer.Argument(..., help="Template file to inspect."),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Path to vemtl.yaml."),
) -> None:
    """List the DATA declarations of a template."""
    try:
        declarations = load_template(template, config).get_data_declarations()
    except VemtlError as exc:
        exit_with_error(str(exc))

    if not declarations:
        console.print("[yellow]No data declarations found[/yellow]")
        return

    table = Table()
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Value")

    for declaration in declarations.values():
        table.add_row(declaration.name, declaration.type, repr(declaration.value))

    console.print(table)


if __name__ == "__main__":
    app()
