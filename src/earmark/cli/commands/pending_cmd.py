# ABOUTME: The `earmark pending` command listing torrents parked for manual intervention.
# ABOUTME: Queries every configured category through the torrent client.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from earmark.cli import runtime
from earmark.cli.options import config_option
from earmark.torrents.gateway import TorrentGatewayError

console = Console()


@click.command("pending")
@config_option
def pending(config_path: Path | None) -> None:
    """List torrents waiting for manual intervention."""
    config = runtime.load_settings(config_path)
    pipeline = runtime.build_pipeline(config)

    table = Table()
    table.add_column("Category", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Hash")

    count = 0
    for import_type in pipeline.import_types:
        try:
            torrents = pipeline.pending(import_type.category)
        except TorrentGatewayError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise SystemExit(1) from exc
        for torrent in torrents:
            table.add_row(import_type.category, torrent.name, torrent.hash)
            count += 1

    if not count:
        console.print("[green]Nothing needs manual intervention.[/green]")
        return

    console.print(table)
    console.print(f"\n[dim]{count} torrent(s) pending[/dim]")
