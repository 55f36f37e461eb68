"""Typer-based CLI for cxt."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__, config
from .clang_backend import ClangContext
from .compile_options import CompileOptionFlags, CompileOptionSet, build_arguments
from .errors import CxtError
from .processor import SourceProcessor
from .visitors import VISITORS

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="🛠️  cxt: compile_commands.json driven C/C++ AST explorer.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"cxt v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
):
    """cxt: reconstruct compiler options and walk C/C++ translation units."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fatal(exc: CxtError) -> typer.Exit:
    typer.echo(f"fatal error: {exc}", err=True)
    return typer.Exit(code=1)


def _load_options(input_path: Path, keep_tests: bool, settings: dict) -> CompileOptionSet:
    options = CompileOptionSet.from_path(input_path)
    if not keep_tests and settings["process"].get("exclude_tests", True):
        options.exclude_tests(console)
    return options


@app.command("options")
def show_options(
    input_path: Path = typer.Argument(..., help="Build directory or compile_commands.json file."),
    keep_tests: bool = typer.Option(False, "--keep-tests", help="Do not discard test sources."),
):
    """Show the compile options reconstructed from a compilation database."""
    settings = config.load_config()
    try:
        options = _load_options(input_path, keep_tests, settings)
    except CxtError as exc:
        raise _fatal(exc)
    console.print(options.render_table())


@app.command("args")
def show_arguments(
    input_path: Path = typer.Argument(..., help="Build directory or compile_commands.json file."),
    source: str = typer.Argument(..., help="Source file as listed in the database (or its file name)."),
    all_flags: bool = typer.Option(False, "--all", help="Emit every category, not only what indexing needs."),
):
    """Print the reconstructed argument vector for one source file."""
    try:
        options = CompileOptionSet.from_path(input_path)
    except CxtError as exc:
        raise _fatal(exc)

    matches = [opt for opt in options if str(opt.source) == source or str(opt.resolved_source) == source]
    if not matches:
        matches = [opt for opt in options if opt.source.name == Path(source).name]
    if not matches:
        raise typer.BadParameter(f"'{source}' is not in the compilation database.")

    flags = CompileOptionFlags.ALL if all_flags else CompileOptionFlags.REQUIRED_FOR_INDEXING
    for opt in matches:
        typer.echo(shlex.join(build_arguments(opt, flags)))


@app.command("process")
def process(
    input_path: Path = typer.Argument(..., help="Build directory or compile_commands.json file."),
    mode: str = typer.Option("functions", "--mode", "-m", help="Visitor to run: ast or functions."),
    ignore_kind: Optional[List[str]] = typer.Option(
        None, "--ignore-kind", "-k", help="Cursor kind whose children are skipped (repeatable)."
    ),
    include: Optional[List[str]] = typer.Option(
        None, "--include", "-I", help="Extra system include directory (repeatable)."
    ),
    keep_tests: bool = typer.Option(False, "--keep-tests", help="Do not discard test sources."),
    verbose: bool = typer.Option(
        False, "--verbose", "--show-options", help="Print the reconstructed compile options first."
    ),
):
    """Parse every source of a compilation database and visit its declarations."""
    if mode not in VISITORS:
        raise typer.BadParameter(f"Mode must be one of: {', '.join(VISITORS)}")

    settings = config.load_config()
    ignore_kinds = set(settings["process"].get("ignore_kinds", [])) | set(ignore_kind or [])
    include_flags = list(settings["process"].get("include_flags", [])) + list(include or [])

    try:
        options = _load_options(input_path, keep_tests, settings)
        if verbose:
            console.print(options.render_table())
        if not options.options:
            typer.echo("Nothing to process.")
            raise typer.Exit(code=0)
        context = ClangContext.initialize(config.libclang_library_file(settings))
    except CxtError as exc:
        raise _fatal(exc)

    processor = SourceProcessor(
        context,
        include_flags=include_flags,
        ignore_kinds=ignore_kinds or None,
        console=console,
    )
    report = processor.run(options, VISITORS[mode](console))

    typer.echo(
        f"Processed {report.processed} file(s), {len(report.failed)} failed. "
        f"Nodes: {report.nodes} | Matched: {report.matched}"
    )


if __name__ == "__main__":
    app()
