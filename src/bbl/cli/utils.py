"""
bbl CLI utilities.

Shared helpers used across CLI modules.
"""

from __future__ import annotations

import logging
import platform
from collections.abc import Iterator
from contextlib import contextmanager

import typer
from botocore.exceptions import BotoCoreError, ClientError
from rich.console import Console
from rich.markup import escape

from bbl._version import get_version
from bbl.core.errors import BblError

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"bbl {get_version()}")
        typer.echo(f"Python {platform.python_version()} ({platform.python_implementation()})")
        raise typer.Exit()


def configure_logging(debug: bool = False) -> None:
    """Send step messages to stderr; everything at DEBUG with --debug."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        force=True,
    )
    if not debug:
        # boto's request logging is only useful when debugging
        logging.getLogger("botocore").setLevel(logging.WARNING)
        logging.getLogger("boto3").setLevel(logging.WARNING)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report command failures in red and exit 1."""
    try:
        yield
    except (BblError, OSError, ClientError, BotoCoreError) as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
