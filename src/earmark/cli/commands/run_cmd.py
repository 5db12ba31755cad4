# ABOUTME: The `earmark run` command: one import sweep, or a scheduled loop with --watch.
# ABOUTME: Prints a per-category summary of imported, manual, and untagged torrents.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from earmark.cli import runtime
from earmark.cli.options import config_option
from earmark.core.importer import ImportStatus, SweepCancelled, SweepResult
from earmark.core.scheduler import SweepScheduler

console = Console()


def _print_results(results: list[SweepResult]) -> None:
    if not results:
        console.print("[yellow]No categories swept.[/yellow]")
        return

    table = Table()
    table.add_column("Category", style="bold")
    table.add_column("Imported", justify="right", style="green")
    table.add_column("Manual", justify="right", style="yellow")
    table.add_column("Untagged", justify="right", style="red")
    for result in results:
        table.add_row(
            result.category, str(result.imported), str(result.manual), str(result.untagged),
        )
    console.print(table)

    for result in results:
        for outcome in result.outcomes:
            if outcome.status is ImportStatus.IMPORTED:
                console.print(f"  [green]Imported:[/green] {outcome.torrent.name} -> {outcome.destination}")
            else:
                console.print(f"  [yellow]{outcome.torrent.name}:[/yellow] {outcome.reason}")


@click.command("run")
@click.option("--category", default=None, help="Only sweep this torrent category.")
@click.option("--watch", is_flag=True, default=False, help="Keep sweeping on a timer.")
@click.option(
    "--interval",
    type=click.FloatRange(min=1),
    default=None,
    help="Seconds between sweeps with --watch (default: importers.sweepInterval).",
)
@config_option
def run(category: str | None, watch: bool, interval: float | None, config_path: Path | None) -> None:
    """Import finished audiobook torrents into their libraries."""
    config = runtime.load_settings(config_path)

    import_types = config.importers.import_types
    if category is not None:
        import_types = [it for it in import_types if it.category == category]
        if not import_types:
            console.print(f"[red]No import type configured for category {category!r}.[/red]")
            raise SystemExit(1)

    if not import_types:
        console.print("[yellow]No import types configured.[/yellow]")
        return

    pipeline = runtime.build_pipeline(config, import_types=import_types)

    if not watch:
        try:
            results = pipeline.run_all()
        except SweepCancelled:
            console.print("[yellow]Sweep cancelled.[/yellow]")
            return
        _print_results(results)
        return

    scheduler = SweepScheduler(pipeline, interval or config.importers.sweep_interval)
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        console.print("\n[dim]Stopping...[/dim]")
    finally:
        scheduler.stop()
