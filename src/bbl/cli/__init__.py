"""
bbl CLI Package.

- lbs.py: load balancer commands and their wiring
- utils.py: Shared utilities (version, logging, error reporting)
"""

from __future__ import annotations

from pathlib import Path

import typer

from bbl.cli.lbs import (
    create_lbs_command,
    delete_lbs_command,
    lbs_command,
    update_lbs_command,
    version_command,
)
from bbl.cli.utils import configure_logging, version_callback
from bbl.config import CONFIG_FILE, load_bbl_config

app = typer.Typer(
    help="""bbl - load balancers for BOSH environments on AWS

Commands:
  • create-lbs, update-lbs, delete-lbs
    → Attach, re-certify or detach a concourse or cf load balancer

  • lbs
    → Show the attached load balancers
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    state_dir: str | None = typer.Option(
        None,
        "--state-dir",
        "-s",
        help="Directory containing bbl-state.json",
    ),
    debug: bool = typer.Option(False, "--debug", help="Print debug output"),
) -> None:
    """bbl CLI main callback for global options."""
    config = load_bbl_config(Path.cwd() / CONFIG_FILE)
    if state_dir is not None:
        config.state_dir = state_dir
    if debug:
        config.debug = True

    configure_logging(config.debug)
    ctx.obj = config


app.command(name="create-lbs")(create_lbs_command)
app.command(name="update-lbs")(update_lbs_command)
app.command(name="delete-lbs")(delete_lbs_command)
app.command(name="lbs")(lbs_command)
app.command(name="version")(version_command)


def main() -> None:
    app(standalone_mode=True)


__all__ = ["app", "main"]
