from __future__ import annotations

from typing import Iterable, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from sqlshift.domain.models import MigrationOutcome


def render_migration_table(
    outcomes: Iterable[MigrationOutcome], console: Optional[Console] = None
) -> Table:
    """
    Print one row per migrated table: final step, status and error, if any.
    """
    console = console or Console()
    table = Table(title="Migration results", box=box.SIMPLE_HEAVY)
    table.add_column("Table", style="bold")
    table.add_column("Last step")
    table.add_column("Status")
    table.add_column("Error", overflow="fold")

    for outcome in outcomes:
        status = "[green]done[/green]" if outcome.succeeded else "[red]failed[/red]"
        table.add_row(outcome.table, outcome.step.name, status, outcome.error or "")

    console.print(table)
    return table


__all__ = ["render_migration_table"]
