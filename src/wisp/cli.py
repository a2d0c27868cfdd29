"""
Wisp command-line interface.

Commands:
  run     Execute a program
  tokens  Show the token stream of a program
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from wisp import __version__
from wisp.core.config import RunConfig, load_config, normalize_log_level
from wisp.core.errors import ConfigError, WispError
from wisp.core.lexer import Lexer, TokenType
from wisp.core.program import run_file
from wisp.core.runtime import Context

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Wisp – run programs written in the Wisp scripting language",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        typer.echo(f"Wisp version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Wisp CLI main callback for global options."""
    pass


def _report(error: Exception) -> None:
    err_console.print(Text.assemble(("Error: ", "bold red"), str(error)), soft_wrap=True)


def _configure(config_path: Path | None, log_level: str | None) -> RunConfig:
    """Load configuration and set up logging for a command."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        _report(e)
        raise typer.Exit(code=1) from e

    if log_level:
        config.log_level = normalize_log_level(log_level)

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return config


FileArgument = Annotated[
    Path,
    typer.Argument(exists=True, dir_okay=False, readable=True, help="Program source file"),
]


@app.command()
def run(
    file: FileArgument,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to wisp.toml (default: ./wisp.toml)"),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level (overrides config and WISP_LOG_LEVEL)"),
    ] = None,
) -> None:
    """Execute a Wisp program, writing its output to stdout."""
    run_config = _configure(config, log_level)
    if run_config.recursion_limit > sys.getrecursionlimit():
        sys.setrecursionlimit(run_config.recursion_limit)

    try:
        run_file(file, Context(sys.stdout))
    except WispError as e:
        sys.stdout.flush()
        logger.debug("Program %s failed", file, exc_info=True)
        _report(e)
        raise typer.Exit(code=1) from e


@app.command()
def tokens(file: FileArgument) -> None:
    """Show the token stream of a Wisp program."""
    table = Table(title=str(file))
    table.add_column("Line", justify="right")
    table.add_column("Col", justify="right")
    table.add_column("Token")

    try:
        lexer = Lexer(file.read_text(encoding="utf-8"), file)
        token = lexer.current_token()
        while True:
            table.add_row(str(token.line), str(token.column), Text(str(token)))
            if token.type == TokenType.EOF:
                break
            token = lexer.next_token()
    except WispError as e:
        _report(e)
        raise typer.Exit(code=1) from e

    console.print(table)


def main() -> None:
    """Console script entry point."""
    app()
