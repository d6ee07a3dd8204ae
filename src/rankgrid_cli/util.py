from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from rankgrid_core.config import ConfigLoader, EngineConfig
from rankgrid_core.errors import ConfigError, SessionError
from rankgrid_ops.notifications import Notification, ResultReporter, Severity
from rankgrid_ops.results import DragOperationResult
from rankgrid_ops.session import RankingSession

# Global variable to store custom config file path
_global_config_file: Optional[Path] = None
_verbose: bool = False

err_console = Console(stderr=True)


def set_global_config_file(config_file: Optional[Path]) -> None:
    """Set (or clear) the global config file path for use by utility functions."""
    global _global_config_file
    _global_config_file = config_file.resolve() if config_file else None


def get_global_config_file() -> Optional[Path]:
    """Get the global config file path if set."""
    return _global_config_file


def set_verbose(verbose: bool) -> None:
    global _verbose
    _verbose = verbose


def load_config(start: Optional[Path] = None) -> EngineConfig:
    """Effective config for this invocation; exits with code 1 on bad config."""
    try:
        config = ConfigLoader.load(start=start, config_file=get_global_config_file())
        if _verbose:
            config.log.debug = True
        configure_logging(config)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    return config


def configure_logging(config: EngineConfig) -> None:
    """Route library logging through rich on stderr at the configured level."""
    logging.basicConfig(
        level=config.log.level(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def open_session(path: Path, verify: bool = True) -> RankingSession:
    try:
        return RankingSession.load(path, verify=verify)
    except SessionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def save_session(session: RankingSession, path: Path) -> None:
    try:
        session.save(path)
    except SessionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


class CollectingReporter(ResultReporter):
    """Reporter that keeps every notification for the command to print."""

    def __init__(self):
        self.notifications: List[Notification] = []
        super().__init__(on_notification=self.notifications.append, show_success=True)


def echo_result(result: Optional[DragOperationResult], notifications: List[Notification]) -> None:
    """Print a result; exits with code 3 when the transfer was rejected."""
    if result is None:
        typer.echo("Error: drop target not recognised; nothing changed", err=True)
        raise typer.Exit(code=1)

    for notification in notifications:
        if notification.severity == Severity.SUCCESS:
            typer.echo(f"✓ {notification.title}: {notification.description}")
        else:
            typer.echo(f"{notification.title}: {notification.description}", err=True)

    if not result.success:
        code = result.error_code.value if result.error_code else "UNKNOWN_ERROR"
        typer.echo(f"Error: [{code}] {result.error_message}", err=True)
        raise typer.Exit(code=3)
