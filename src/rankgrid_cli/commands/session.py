from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from rankgrid_core.backlog import JsonGroupLoader
from rankgrid_core.errors import GroupLoadError, GroupNotFoundError, SessionError
from rankgrid_ops.session import RankingSession, groups_from_records

from ..util import load_config, open_session, save_session

app = typer.Typer(help="Create, inspect and extend ranking sessions")
console = Console()


def _read_groups(path: Path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"Error: failed to read groups from {path}: {e}", err=True)
        raise typer.Exit(code=1)
    if isinstance(data, dict):
        data = data.get("groups", [])
    if not isinstance(data, list):
        typer.echo(f"Error: expected a list of groups in {path}", err=True)
        raise typer.Exit(code=1)
    try:
        return groups_from_records(data)
    except SessionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@app.command("init")
def init(
    out: Path = typer.Option(..., "--out", help="Session file to create"),
    size: Optional[int] = typer.Option(None, "--size", min=1, help="Grid size (default: [grid].default_size)"),
    groups: Optional[Path] = typer.Option(None, "--groups", help="JSON list of backlog groups"),
    category: Optional[str] = typer.Option(None, "--category"),
    subcategory: Optional[str] = typer.Option(None, "--subcategory"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing session file"),
):
    """Create a session with an empty grid."""
    config = load_config()
    if out.exists() and not force:
        typer.echo(f"Error: {out} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(code=1)

    group_list = _read_groups(groups) if groups else []
    try:
        session = RankingSession.create(
            size or config.grid.default_size,
            group_list,
            category=category,
            subcategory=subcategory,
            history_limit=config.engine.history_limit,
        )
    except SessionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    save_session(session, out)
    typer.echo(f"✓ Created {out} ({session.list_size} slots, {len(group_list)} group(s))")


@app.command("show")
def show(
    session_file: Path = typer.Argument(..., help="Session file"),
    output_format: str = typer.Option("table", "--format", help="table|json"),
):
    """Show the grid and backlog groups."""
    load_config()
    session = open_session(session_file)

    if output_format == "json":
        typer.echo(json.dumps(session.to_state().model_dump(mode="json"), ensure_ascii=False, indent=2))
        return
    if output_format != "table":
        typer.echo(f"Error: unknown format {output_format!r} (expected table|json)", err=True)
        raise typer.Exit(code=1)

    title = "Grid"
    if session.category:
        title += f" [{session.category}{' / ' + session.subcategory if session.subcategory else ''}]"
    grid_table = Table(title=title)
    grid_table.add_column("Rank", style="cyan", justify="right")
    grid_table.add_column("Slot", style="dim")
    grid_table.add_column("Item", style="magenta")
    grid_table.add_column("Title", style="white")
    for slot in session.grid.slots:
        grid_table.add_row(
            str(slot.position + 1),
            slot.slot_id,
            slot.item_id or "",
            slot.display.title if slot.display else "[dim]empty[/dim]",
        )
    console.print(grid_table)

    group_table = Table(title="Backlog groups")
    group_table.add_column("Group", style="cyan")
    group_table.add_column("Name")
    group_table.add_column("Loaded")
    group_table.add_column("Items", justify="right")
    group_table.add_column("Available", justify="right", style="green")
    for group in session.backlog.groups:
        available = sum(1 for item in group.items if not item.matched)
        group_table.add_row(
            group.id,
            group.name,
            "yes" if group.loaded else "no",
            str(group.item_count) if group.loaded else "-",
            str(available) if group.loaded else "-",
        )
    console.print(group_table)


@app.command("load-group")
def load_group(
    session_file: Path = typer.Argument(..., help="Session file"),
    group_id: str = typer.Argument(..., help="Backlog group to load"),
    source_dir: Path = typer.Option(..., "--from", help="Directory holding <group_id>.json"),
    force: bool = typer.Option(False, "--force", help="Reload even if already loaded"),
):
    """Load a backlog group's items from a JSON file."""
    load_config()
    session = open_session(session_file)
    try:
        group = session.load_group(group_id, JsonGroupLoader(source_dir), force=force)
    except (GroupNotFoundError, GroupLoadError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    save_session(session, session_file)
    matched = sum(1 for item in group.items if item.matched)
    typer.echo(f"✓ Loaded {group_id}: {group.item_count} item(s), {matched} already on the grid")


@app.command("unload-group")
def unload_group(
    session_file: Path = typer.Argument(..., help="Session file"),
    group_id: str = typer.Argument(..., help="Backlog group to unload"),
):
    """Drop a group's items from the session (slots keep their references)."""
    load_config()
    session = open_session(session_file)
    try:
        session.unload_group(group_id)
    except GroupNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    save_session(session, session_file)
    typer.echo(f"✓ Unloaded {group_id}")
