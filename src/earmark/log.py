# ABOUTME: Logging setup for the earmark process: a rich console handler on the package logger.
# ABOUTME: Level names come from the config file; unknown names silence output.

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "earmark"

# "none" and any unrecognized name map to None: no output.
_LEVELS: dict[str, int] = {
    "dbg": logging.DEBUG,
    "debug": logging.DEBUG,
    "": logging.INFO,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(name: str) -> int | None:
    """Map a config level name to a logging level, or None for silence."""
    return _LEVELS.get(name.strip().lower())


def configure_logging(level: str, console: Console | None = None) -> logging.Logger:
    """Install a RichHandler on the earmark logger, replacing any previous one."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    resolved = parse_level(level)
    if resolved is None:
        logger.setLevel(logging.CRITICAL + 1)
        return logger

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        log_time_format="[%X]",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    return logger
