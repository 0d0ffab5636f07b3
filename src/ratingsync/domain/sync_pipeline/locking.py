"""Bounded retry loop for writes against a database held by another process."""

from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING

from ratingsync.domain.errors import CatalogBusyError, DatabaseLockedError

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)


def write_with_lock_retry(
    write: Callable[[], None],
    *,
    max_attempts: int,
    interval_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Run ``write`` until it succeeds, retrying only while the database is busy.

    Returns the number of attempts made. After ``max_attempts`` busy results a
    ``DatabaseLockedError`` is raised without attempting the write again. Errors other
    than ``CatalogBusyError`` propagate immediately.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            write()
        except CatalogBusyError:
            if attempt == max_attempts:
                break
            log.warning(
                "Database is currently locked and can't be accessed. "
                "Waiting for %s second(s) before attempting again. [%s/%s]",
                interval_seconds,
                attempt,
                max_attempts,
            )
            sleep(interval_seconds)
        else:
            return attempt

    raise DatabaseLockedError(
        f"Plex database is currently locked. After {max_attempts} attempt(s) every "
        f"{interval_seconds} second(s) the write was abandoned to prevent endless loops. "
        "Either stop Plex while the tool runs or wait for the next invocation.",
        attempts=max_attempts,
    )
