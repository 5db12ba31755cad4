# ABOUTME: Shared Click options for earmark CLI commands.
# ABOUTME: Provides the --config decorator every command accepts.

from pathlib import Path

import click

from earmark.config import CONFIG_ENV_VAR

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Path to the YAML config file (default: ${CONFIG_ENV_VAR} or ~/.config/earmark/config.yaml)",
)
