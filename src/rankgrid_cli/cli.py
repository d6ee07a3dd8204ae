from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from rankgrid_core.__version__ import __version__

from .util import set_global_config_file, set_verbose

app = typer.Typer(help="rankgrid: build a ranked list by dragging backlog items into a grid")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"rankgrid {__version__}")
        raise typer.Exit()


@app.callback()
def _init(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config-file",
        help="Config file layered over .rankgrid/config.toml",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    # Store the config file path globally for use by utility functions
    set_global_config_file(config_file)
    set_verbose(verbose)


from .commands import session as session_cmd  # noqa: E402
from .commands import drag as drag_cmd  # noqa: E402
from .commands.check import check as check_fn  # noqa: E402

app.add_typer(session_cmd.app, name="session", help="Session files")
app.add_typer(drag_cmd.app, name="drag", help="Transfers: assign, move, swap, remove, drop, undo")
app.command(name="check")(check_fn)


def main():
    app()
