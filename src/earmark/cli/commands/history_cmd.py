# ABOUTME: The `earmark history` command showing recorded import outcomes.
# ABOUTME: Reads the SQLite audit log, newest first, optionally filtered by status.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from earmark.cli import runtime
from earmark.cli.options import config_option
from earmark.core.importer import ImportStatus

console = Console()

_STATUS_STYLES = {
    ImportStatus.IMPORTED.value: "green",
    ImportStatus.MANUAL_INTERVENTION.value: "yellow",
    ImportStatus.UNTAGGED.value: "red",
}


@click.command("history")
@click.option(
    "--status",
    type=click.Choice([status.value for status in ImportStatus]),
    default=None,
    help="Only show outcomes with this status.",
)
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True)
@config_option
def history(status: str | None, limit: int, config_path: Path | None) -> None:
    """Show recent import outcomes."""
    config = runtime.load_settings(config_path)
    store = runtime.build_history(config)
    if store is None:
        console.print("[yellow]Import history is disabled (importers.historyPath is empty).[/yellow]")
        return

    try:
        records = store.list_by_status(status, limit) if status else store.list_recent(limit)
    finally:
        store.close()

    if not records:
        console.print("[yellow]No history recorded.[/yellow]")
        return

    table = Table()
    table.add_column("When", style="dim")
    table.add_column("Status")
    table.add_column("Name", style="bold")
    table.add_column("ASIN")
    table.add_column("Detail")
    for record in records:
        style = _STATUS_STYLES.get(record.status, "")
        detail = str(record.destination) if record.destination else (record.reason or "")
        table.add_row(
            record.recorded_at,
            f"[{style}]{record.status}[/{style}]" if style else record.status,
            record.name,
            record.asin or "",
            detail,
        )
    console.print(table)
