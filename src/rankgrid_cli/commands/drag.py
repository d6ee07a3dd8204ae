from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from rankgrid_core.errors import UnroutableDragError
from rankgrid_core.models import parse_slot_id
from rankgrid_ops.context import BACKLOG_DROP_ZONE_ID, DragContext
from rankgrid_ops.engine import DragEngine
from rankgrid_ops.results import DragOperationResult, OperationType
from rankgrid_ops.session import RankingSession

from ..util import CollectingReporter, echo_result, load_config, open_session, save_session

app = typer.Typer(help="Apply transfers to a session's grid")

FormatOption = typer.Option("plain", "--format", help="plain|json")


def _engine(session_file: Path) -> tuple[RankingSession, DragEngine, CollectingReporter]:
    config = load_config()
    session = open_session(session_file)
    reporter = CollectingReporter()
    return session, session.engine(config, reporter=reporter), reporter


def _finish(
    session: RankingSession,
    session_file: Path,
    result: Optional[DragOperationResult],
    reporter: CollectingReporter,
    output_format: str,
) -> None:
    if result is not None and result.success:
        save_session(session, session_file)
    if output_format == "json" and result is not None:
        typer.echo(json.dumps(result.model_dump(mode="json"), ensure_ascii=False))
        if not result.success:
            raise typer.Exit(code=3)
        return
    echo_result(result, reporter.notifications)


@app.command("assign")
def assign(
    session_file: Path = typer.Argument(..., help="Session file"),
    item_id: str = typer.Argument(..., help="Backlog item id"),
    position: int = typer.Argument(..., help="Target slot (0-based, as in grid-N)"),
    group_id: Optional[str] = typer.Option(None, "--group", help="Require the item to be in this group"),
    output_format: str = FormatOption,
):
    """Place a backlog item; an occupied slot's item goes back to the backlog."""
    session, engine, reporter = _engine(session_file)
    result = engine.apply(OperationType.ASSIGN, DragContext.assign(item_id, position, group_id=group_id))
    _finish(session, session_file, result, reporter, output_format)


@app.command("move")
def move(
    session_file: Path = typer.Argument(..., help="Session file"),
    from_position: int = typer.Argument(..., help="Occupied source slot"),
    to_position: int = typer.Argument(..., help="Empty target slot"),
    output_format: str = FormatOption,
):
    """Move an item to an empty slot."""
    session, engine, reporter = _engine(session_file)
    result = engine.apply(OperationType.MOVE, DragContext.move(from_position, to_position))
    _finish(session, session_file, result, reporter, output_format)


@app.command("swap")
def swap(
    session_file: Path = typer.Argument(..., help="Session file"),
    from_position: int = typer.Argument(..., help="Occupied slot"),
    to_position: int = typer.Argument(..., help="Other occupied slot"),
    output_format: str = FormatOption,
):
    """Exchange the items of two occupied slots."""
    session, engine, reporter = _engine(session_file)
    result = engine.apply(OperationType.SWAP, DragContext.swap(from_position, to_position))
    _finish(session, session_file, result, reporter, output_format)


@app.command("remove")
def remove(
    session_file: Path = typer.Argument(..., help="Session file"),
    position: int = typer.Argument(..., help="Occupied slot to clear"),
    output_format: str = FormatOption,
):
    """Send a slot's item back to the backlog."""
    session, engine, reporter = _engine(session_file)
    result = engine.apply(OperationType.REMOVE, DragContext.remove(position))
    _finish(session, session_file, result, reporter, output_format)


@app.command("drop")
def drop(
    session_file: Path = typer.Argument(..., help="Session file"),
    active_id: str = typer.Argument(..., help="Dragged element: item id or grid-N"),
    over_id: str = typer.Argument(..., help="Drop target: grid-N or 'backlog'"),
    group_id: Optional[str] = typer.Option(None, "--group", help="Group of a dragged backlog item"),
    output_format: str = FormatOption,
):
    """Route a raw drag/drop the way the grid UI would."""
    if over_id != BACKLOG_DROP_ZONE_ID and parse_slot_id(over_id) is None:
        typer.echo(f"Error: unknown drop target {over_id!r} (expected grid-N or {BACKLOG_DROP_ZONE_ID!r})", err=True)
        raise typer.Exit(code=1)
    session, engine, reporter = _engine(session_file)
    try:
        result = engine.handle_drop(active_id, over_id, group_id=group_id)
    except UnroutableDragError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    if result is None:
        typer.echo("Nothing to do")
        return
    _finish(session, session_file, result, reporter, output_format)


@app.command("undo")
def undo(
    session_file: Path = typer.Argument(..., help="Session file"),
    output_format: str = FormatOption,
):
    """Roll back the most recent transfer."""
    session, engine, reporter = _engine(session_file)
    result = engine.undo()
    if result is None:
        typer.echo("Nothing to undo")
        return
    _finish(session, session_file, result, reporter, output_format)


@app.command("redo")
def redo(
    session_file: Path = typer.Argument(..., help="Session file"),
    output_format: str = FormatOption,
):
    """Re-apply the most recently undone transfer."""
    session, engine, reporter = _engine(session_file)
    result = engine.redo()
    if result is None:
        typer.echo("Nothing to redo")
        return
    _finish(session, session_file, result, reporter, output_format)
