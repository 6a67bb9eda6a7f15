# Logging setup: Rich console handler for the CLI.
# Created: 2026-09-02

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS = ("httpx", "httpcore", "anthropic")


def setup_logging(level: str = "WARNING") -> None:
    """Install a RichHandler on the root logger.

    Logs go to stderr so they never interleave with rendered replies on stdout.
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
