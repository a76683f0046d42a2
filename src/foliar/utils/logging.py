from __future__ import annotations

import logging

from rich.logging import RichHandler


def get_logger(name: str = "foliar", level: int | str = logging.INFO) -> logging.Logger:
    """Return a Rich-configured logger for the project."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    return logging.getLogger(name)


def set_level(level: int | str) -> None:
    """Adjust the root level after :func:`get_logger` has configured handlers."""
    logging.getLogger().setLevel(level)
