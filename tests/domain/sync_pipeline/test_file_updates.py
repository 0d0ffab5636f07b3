from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest

from ratingsync.domain.errors import FileUpdateTimeoutError
from ratingsync.domain.model import CatalogItem, LibraryKind
from ratingsync.domain.sync_pipeline import MissingFileReport, partition, run_file_updates
from tests.helpers.catalog import make_item
from tests.helpers.fakes import FakeItemFileWriter

if TYPE_CHECKING:
    from concurrent.futures import ThreadPoolExecutor


def _items(count: int) -> list[CatalogItem]:
    return [make_item(index, f"com.plexapp.agents.imdb://tt{index:07d}") for index in range(count)]


@pytest.mark.parametrize(
    ("count", "slices", "sizes"),
    [
        (10, 4, [3, 3, 2, 2]),
        (16, 16, [1] * 16),
        (3, 16, [1, 1, 1]),
        (0, 4, []),
    ],
)
def test_partition_splits_into_contiguous_slices(count: int, slices: int, sizes: list[int]) -> None:
    values = list(range(count))

    chunks = partition(values, slices)

    assert [len(chunk) for chunk in chunks] == sizes
    assert [value for chunk in chunks for value in chunk] == values


def test_partition_rejects_non_positive_slices() -> None:
    with pytest.raises(ValueError, match="slices"):
        partition([1, 2], 0)


def test_missing_file_report_is_safe_under_concurrency() -> None:
    report = MissingFileReport()

    def add_many(prefix: str) -> None:
        for index in range(200):
            report.add(f"{prefix}-{index}")

    threads = [threading.Thread(target=add_many, args=(str(n),)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(report) == 1600
    assert len(set(report.snapshot())) == 1600


@pytest.mark.parametrize(("count", "slices"), [(1, 4), (37, 4), (100, 16), (5, 5)])
def test_every_item_is_accounted_for_exactly_once(
    executor: ThreadPoolExecutor, count: int, slices: int
) -> None:
    items = _items(count)
    missing = frozenset(item.id for item in items if item.id % 3 == 0)
    writer = FakeItemFileWriter(missing=missing)

    outcome = run_file_updates(
        items, writer=writer, kind=LibraryKind.MOVIE, executor=executor, slices=slices, timeout=5
    )

    completed_ids = [item.id for item in outcome.completed]
    missing_ids = [item.id for item in outcome.missing]
    assert outcome.error is None
    assert sorted(completed_ids + missing_ids) == [item.id for item in items]
    assert set(missing_ids) == missing
    assert sorted(writer.updated) == sorted(completed_ids)
    assert len(outcome.report) == len(missing)


def test_worker_error_is_kept_after_merging_other_results(executor: ThreadPoolExecutor) -> None:
    items = _items(8)
    writer = FakeItemFileWriter(failing={5: PermissionError("read-only file system")})

    outcome = run_file_updates(
        items, writer=writer, kind=LibraryKind.SERIES, executor=executor, slices=4, timeout=5
    )

    assert isinstance(outcome.error, PermissionError)
    processed = {item.id for item in outcome.processed}
    # The failing slice holds items 4 and 5; item 4 was written before the failure.
    assert processed == {0, 1, 2, 3, 4, 6, 7}


def test_timeout_keeps_progress_of_finished_workers(executor: ThreadPoolExecutor) -> None:
    writer = FakeItemFileWriter(missing=frozenset({1}), blocking=frozenset({3}))
    items = _items(4)

    try:
        outcome = run_file_updates(
            items, writer=writer, kind=LibraryKind.MOVIE, executor=executor, slices=2, timeout=0.2
        )
    finally:
        writer.release.set()

    assert isinstance(outcome.error, FileUpdateTimeoutError)
    # Slice [0, 1] finished; slice [2, 3] wrote item 2 and then blocked on item 3.
    assert [item.id for item in outcome.completed] == [0, 2]
    assert [item.id for item in outcome.missing] == [1]
    assert len(outcome.report) == 1


def test_worker_error_outranks_timeout(executor: ThreadPoolExecutor) -> None:
    writer = FakeItemFileWriter(
        failing={0: PermissionError("read-only file system")}, blocking=frozenset({1})
    )

    try:
        outcome = run_file_updates(
            _items(2),
            writer=writer,
            kind=LibraryKind.MOVIE,
            executor=executor,
            slices=2,
            timeout=0.2,
        )
    finally:
        writer.release.set()

    assert isinstance(outcome.error, PermissionError)
    assert outcome.processed == []
