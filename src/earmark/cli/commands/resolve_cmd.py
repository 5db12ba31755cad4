# ABOUTME: The `earmark resolve` command for importing a torrent under a hand-picked ASIN.
# ABOUTME: Clears the manual-intervention tag once the files are in the library.

from pathlib import Path

import click
from rich.console import Console

from earmark.cli import runtime
from earmark.cli.options import config_option
from earmark.config import ConfigError
from earmark.core.relocator import RelocationError
from earmark.metadata.provider import CatalogError
from earmark.torrents.gateway import TorrentGatewayError

console = Console()


@click.command("resolve")
@click.argument("torrent_hash", metavar="HASH")
@click.argument("asin")
@click.option("--library", "library_name", default=None, help="Target library (default: from the torrent's category).")
@config_option
def resolve(torrent_hash: str, asin: str, library_name: str | None, config_path: Path | None) -> None:
    """Import torrent HASH as the audiobook ASIN."""
    config = runtime.load_settings(config_path)
    pipeline = runtime.build_pipeline(config)

    try:
        outcome = pipeline.import_with_asin(torrent_hash, asin, library_name)
    except (TorrentGatewayError, CatalogError, RelocationError, ConfigError) as exc:
        console.print(f"[red]Import failed:[/red] {exc}")
        raise SystemExit(1) from exc

    console.print(f"[green]Imported[/green] {outcome.torrent.name}")
    if outcome.metadata is not None:
        console.print(f"  {outcome.metadata.summarize()}")
    console.print(f"  [dim]{outcome.destination}[/dim]")
