from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..util import load_config, open_session

console = Console()


def check(
    session_file: Path = typer.Argument(..., help="Session file"),
) -> None:
    """Audit the slot/item invariants of a session file."""
    load_config()
    session = open_session(session_file, verify=False)
    violations = session.check()
    if not violations:
        typer.echo(f"✓ {session_file}: all invariants hold ({len(session.grid.matched_slots())} placed)")
        return

    table = Table(title=f"Invariant violations in {session_file}")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Violation", style="red")
    for i, violation in enumerate(violations, 1):
        table.add_row(str(i), violation)
    console.print(table)
    raise typer.Exit(code=1)
