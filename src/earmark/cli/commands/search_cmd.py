# ABOUTME: The `earmark search` command for finding catalog candidates by title.
# ABOUTME: Shows each match's ASIN, summary line, and library directory name.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from earmark.cli import runtime
from earmark.cli.options import config_option
from earmark.metadata.provider import CatalogError

console = Console()


@click.command("search")
@click.argument("title")
@click.option("--author", default=None, help="Narrow the search to an author.")
@config_option
def search(title: str, author: str | None, config_path: Path | None) -> None:
    """Search the audiobook catalog for TITLE."""
    config = runtime.load_settings(config_path)
    resolver = runtime.build_resolver(config)

    try:
        candidates = resolver.search_candidates(title, author)
    except CatalogError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    if not candidates:
        console.print("[yellow]No results found.[/yellow]")
        return

    table = Table()
    table.add_column("ASIN", style="dim")
    table.add_column("Summary", style="bold")
    table.add_column("Directory")
    for candidate in candidates:
        table.add_row(candidate.metadata.asin, candidate.summary, candidate.directory_name)

    console.print(table)
    console.print(f"\n[dim]{len(candidates)} result(s)[/dim]")
