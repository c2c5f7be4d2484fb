"""CLI entry point for provql.

Invoked as::

    provql [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m provql.cli.main

Commands
--------
shell       Connect to the query service and start the interactive client
parse       Dump the AST of one query line to JSON or YAML
grammar     Show the query language grammar
version     Show version information
"""
from __future__ import annotations

import logging
import sys

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

PROMPT = "-> "
SESSION_FAILURE_EXIT_CODE = -1


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _read_line() -> str | None:
    """Read one line from the terminal; ``None`` on end of input."""
    try:
        return console.input(PROMPT)
    except (EOFError, KeyboardInterrupt):
        console.print()
        return None


def _session_failure(message: str) -> None:
    err_console.print(f"[red]Error connecting to the query service:[/red] {message}")
    sys.exit(SESSION_FAILURE_EXIT_CODE)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="provql")
def cli() -> None:
    """Query client for a remote provenance store."""


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from provql import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]provql[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# grammar command
# ---------------------------------------------------------------------------


@cli.command(name="grammar")
def grammar_command() -> None:
    """Show the query language grammar."""
    from provql.grammar import FULL_GRAMMAR

    console.print(Syntax(FULL_GRAMMAR.strip(), "ebnf", theme="ansi_dark"))


# ---------------------------------------------------------------------------
# parse command
# ---------------------------------------------------------------------------


@cli.command(name="parse")
@click.argument("line")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    default="json",
    help="AST output format",
)
def parse_command(line: str, output_format: str) -> None:
    """Parse one query line and dump its AST.

    LINE is a single query, e.g. "g1 = getVertices(type:Process)".
    """
    from provql.ast import AstSerializer
    from provql.parser import ParseError, parse_statement

    try:
        statement = parse_statement(line)
    except ParseError as exc:
        err_console.print(f"[red]Parse error:[/red] {exc}")
        sys.exit(1)
    if statement is None:
        err_console.print("[yellow]Not a query:[/yellow] no query form matches this line")
        sys.exit(1)

    serializer = AstSerializer()
    if output_format == "json":
        text = serializer.to_json(statement, indent=2)
    else:
        text = serializer.to_yaml(statement)
    console.print(Syntax(text, output_format, line_numbers=False))


# ---------------------------------------------------------------------------
# shell command
# ---------------------------------------------------------------------------


@cli.command(name="shell")
@click.option("--config", "config_path", default=None, help="YAML configuration file")
@click.option("--host", default=None, help="Query service host")
@click.option("--port", default=None, help="Query service port")
@click.option("--storage", default=None, help="Initial storage selector")
@click.option("--insecure", is_flag=True, default=None, help="Skip server certificate verification")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def shell_command(
    config_path: str | None,
    host: str | None,
    port: str | None,
    storage: str | None,
    insecure: bool | None,
    verbose: bool,
) -> None:
    """Connect to the query service and read commands interactively.

    \b
    Commands:
        <result> = getVertices(expression)
        <result> = getEdges(expression)
        <result> = getPaths(src, dst, maxLength)
        <result> = getLineage(origin, depth, direction[, terminatingExpression])
        <result> = <graph>.getChildren(expression)
        <result> = <graph>.getParents(expression)
        <graph>.print(annotation, ...)
        storage <name>
        export <graph> <path>
        list
        exit
    """
    from provql.config import ConfigError, load_settings
    from provql.dispatcher import Dispatcher
    from provql.protocol import ProtocolError, open_channel
    from provql.session import Session

    _configure_logging(verbose)

    overrides = {"host": host, "port": port, "storage": storage, "insecure": insecure or None}
    try:
        settings = load_settings(config_path, overrides=overrides)
    except ConfigError as exc:
        _session_failure(str(exc))

    try:
        channel = open_channel(settings)
    except OSError as exc:
        _session_failure(str(exc))

    try:
        console.print("\nProvenance Query Client\n")
        try:
            banner = channel.handshake()
        except (OSError, ProtocolError) as exc:
            _session_failure(str(exc))
        console.print(banner + "\n", markup=False, highlight=False)

        dispatcher = Dispatcher(Session(channel=channel, settings=settings), console, err_console)
        dispatcher.run(_read_line)
    finally:
        channel.close()


if __name__ == "__main__":
    cli()
