"""Failure taxonomy shared by the pipeline and its adapters."""

from __future__ import annotations


class RatingSyncError(RuntimeError):
    """Base class for expected synchronization failures."""


class AbortCycleError(RatingSyncError):
    """Recoverable failure: stop the current cycle, keep unfinished jobs for the next one."""


class LookupUnavailableError(AbortCycleError):
    """Raised when an external id lookup fails transiently (network, 5xx, auth)."""

    def __init__(self, message: str, *, service: str | None = None) -> None:
        super().__init__(message)
        self.service = service


class DatabaseLockedError(AbortCycleError):
    """Raised when the catalog database stays locked after every retry attempt."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class DatasetAcquireError(AbortCycleError):
    """Raised when the rating dataset cannot be downloaded or parsed."""


class FileUpdateTimeoutError(AbortCycleError):
    """Raised when file-update workers do not finish within the allotted time."""


class CatalogBusyError(RatingSyncError):
    """Raised by the catalog gateway when a concurrent owner holds the write lock."""
