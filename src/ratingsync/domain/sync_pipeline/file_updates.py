"""Concurrent rewrite of per-item files across a shared worker pool."""

from __future__ import annotations

import threading
from concurrent.futures import wait
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from ratingsync.domain.errors import FileUpdateTimeoutError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from concurrent.futures import Executor, Future
    from pathlib import Path

    from ratingsync.domain.model import CatalogItem, LibraryKind
    from ratingsync.domain.ports import ItemFileWriter

log = getLogger(__name__)


class MissingFileReport:
    """Append-only, lock-protected collector of absent file paths."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[str] = []

    def add(self, entry: str) -> None:
        with self._lock:
            self._entries.append(entry)

    def snapshot(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def partition[T](items: Sequence[T], slices: int) -> list[list[T]]:
    """Split ``items`` into at most ``slices`` contiguous, roughly equal, non-empty lists."""

    if slices < 1:
        raise ValueError("slices must be at least 1")
    if not items:
        return []
    count = min(slices, len(items))
    size, remainder = divmod(len(items), count)
    result: list[list[T]] = []
    start = 0
    for index in range(count):
        end = start + size + (1 if index < remainder else 0)
        result.append(list(items[start:end]))
        start = end
    return result


@dataclass(slots=True)
class FileUpdateWorker:
    """Rewrites the files of one slice, recording progress as it goes.

    ``completed`` and ``missing`` stay valid even if the worker raises part-way, so
    the caller can still account for what was flushed.
    """

    items: Sequence[CatalogItem]
    writer: ItemFileWriter
    kind: LibraryKind
    report: MissingFileReport
    completed: list[CatalogItem] = field(default_factory=list["CatalogItem"])
    missing: list[CatalogItem] = field(default_factory=list["CatalogItem"])

    def __call__(self) -> None:
        for item in self.items:
            try:
                self.writer.update(item, self.kind)
            except FileNotFoundError:
                self.missing.append(item)
                self.report.add(_describe_missing(self.writer.path_for(item, self.kind), item))
                continue
            self.completed.append(item)


def _describe_missing(path: Path | None, item: CatalogItem) -> str:
    location = str(path) if path is not None else "<no metadata hash>"
    return f"{location} (item {item.id}: {item.title})"


@dataclass(slots=True)
class FileUpdateOutcome:
    completed: list[CatalogItem]
    missing: list[CatalogItem]
    report: MissingFileReport
    error: BaseException | None = None

    @property
    def processed(self) -> list[CatalogItem]:
        return [*self.completed, *self.missing]


def run_file_updates(
    items: Sequence[CatalogItem],
    *,
    writer: ItemFileWriter,
    kind: LibraryKind,
    executor: Executor,
    slices: int,
    timeout: float | None,
) -> FileUpdateOutcome:
    """Fan ``items`` out over ``executor`` and merge the per-worker results.

    Progress recorded by every worker is merged before returning, including workers
    still running when ``timeout`` expires. Errors are kept on the outcome rather than
    raised, so callers can shrink their working set and write the missing-file report
    before propagating them. An unexpected worker error takes precedence over a
    ``FileUpdateTimeoutError``.
    """

    report = MissingFileReport()
    workers = [
        FileUpdateWorker(items=chunk, writer=writer, kind=kind, report=report)
        for chunk in partition(items, slices)
    ]
    futures: dict[Future[None], FileUpdateWorker] = {
        executor.submit(worker): worker for worker in workers
    }

    done, pending = wait(futures, timeout=timeout)
    for future in pending:
        future.cancel()

    completed: list[CatalogItem] = []
    missing: list[CatalogItem] = []
    error: BaseException | None = None
    for future, worker in futures.items():
        # Snapshots: a worker that outlived the timeout may still be appending.
        completed.extend(list(worker.completed))
        missing.extend(list(worker.missing))
        if future not in done:
            continue
        exc = future.exception()
        if exc is None:
            continue
        if error is None:
            error = exc
        else:
            log.error("Additional file update worker failure: %r", exc)

    if pending:
        timed_out = FileUpdateTimeoutError(
            f"{len(pending)} of {len(futures)} file update worker(s) did not finish "
            f"within {timeout} second(s)"
        )
        if error is None:
            error = timed_out
        else:
            log.error("%s", timed_out)

    return FileUpdateOutcome(completed=completed, missing=missing, report=report, error=error)
