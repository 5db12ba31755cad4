# ABOUTME: CLI package for earmark, built on Click.
# ABOUTME: Defines the root command group and registers subcommands.

import click

from earmark.cli.commands import history_cmd, pending_cmd, resolve_cmd, run_cmd, search_cmd


@click.group()
@click.version_option(package_name="earmark")
def cli() -> None:
    """earmark - imports finished audiobook torrents into your library."""


cli.add_command(run_cmd.run)
cli.add_command(pending_cmd.pending)
cli.add_command(search_cmd.search)
cli.add_command(resolve_cmd.resolve)
cli.add_command(history_cmd.history)
