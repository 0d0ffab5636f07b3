"""Shared logging helpers for ratingsync."""

from __future__ import annotations

import logging
from typing import Final

LOG_LEVELS: Final[dict[str, int]] = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

log = logging.getLogger(__name__)


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for service output.

    Only the first call takes effect unless ``force`` is set.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )


def resolve_log_level(name: str | None) -> int:
    """Map a ``LOG_LEVEL`` value to a logging level, falling back to INFO."""

    if name is None:
        return logging.INFO
    level = LOG_LEVELS.get(name.strip().lower())
    if level is None:
        log.warning(
            "Ignoring custom log level %r, not in allowed levels: %s",
            name,
            ", ".join(sorted(LOG_LEVELS)),
        )
        return logging.INFO
    return level
