from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from ratingsync.app import Application, Settings, build_application, run_service
from ratingsync.config import ImdbDatasetConfig, PlexConfig, StorageConfig
from ratingsync.domain.batch import CycleOutcome, CycleReport
from ratingsync.domain.model import Rating
from tests.helpers.catalog import FakeCatalog, make_item
from tests.helpers.fakes import FakeDataset

if TYPE_CHECKING:
    from pathlib import Path

    from ratingsync.config import SyncConfig


class ScriptedApp:
    """Stands in for ``Application`` in scheduler tests."""

    def __init__(
        self,
        outcomes: list[CycleOutcome],
        *,
        stop: threading.Event | None = None,
        error: Exception | None = None,
    ) -> None:
        self.outcomes = outcomes
        self.stop = stop
        self.error = error
        self.calls = 0

    def run_cycle(self) -> CycleReport:
        self.calls += 1
        if self.error is not None:
            raise self.error
        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if self.stop is not None and self.calls >= len(self.outcomes):
            self.stop.set()
        return CycleReport(outcome)


class RecordingCache:
    name = "recording"

    def __init__(self) -> None:
        self.flushes = 0

    def flush(self) -> None:
        self.flushes += 1


def test_run_service_repeats_until_stopped() -> None:
    stop = threading.Event()
    app = ScriptedApp([CycleOutcome.COMPLETED, CycleOutcome.ABORTED], stop=stop)

    run_service(app, interval=timedelta(0), stop_event=stop)  # type: ignore[arg-type]

    assert app.calls == 2


def test_run_service_exits_after_fatal_cycle() -> None:
    app = ScriptedApp([CycleOutcome.COMPLETED, CycleOutcome.FATAL])

    with pytest.raises(SystemExit) as excinfo:
        run_service(app, interval=timedelta(0))  # type: ignore[arg-type]

    assert excinfo.value.code == 1
    assert app.calls == 2


def test_run_service_exits_when_cycle_raises() -> None:
    app = ScriptedApp([], error=RuntimeError("boom"))

    with pytest.raises(SystemExit) as excinfo:
        run_service(app, interval=timedelta(hours=1))  # type: ignore[arg-type]

    assert excinfo.value.code == 1
    assert app.calls == 1


def test_close_flushes_caches_once() -> None:
    cache = RecordingCache()
    executor = ThreadPoolExecutor(max_workers=1)
    app = Application(
        cycle=None,  # type: ignore[arg-type]
        caches=(cache,),  # type: ignore[arg-type]
        executor=executor,
    )

    app.close()
    app.close()

    assert cache.flushes == 1
    with pytest.raises(RuntimeError):
        executor.submit(int)


def test_build_application_runs_a_complete_cycle(
    tmp_path: Path, sync_config: SyncConfig
) -> None:
    plex_dir = tmp_path / "plex"
    plex_dir.mkdir()
    data_dir = tmp_path / "data"
    catalog = FakeCatalog()
    catalog.add_library(
        1,
        [
            make_item(1, "com.plexapp.agents.imdb://tt0000001?lang=en", rating=5.0, votes=10),
            make_item(2, "com.plexapp.agents.themoviedb://603?lang=en"),
        ],
    )
    settings = Settings(
        plex=PlexConfig(data_dir=plex_dir),
        storage=StorageConfig(data_dir=data_dir),
        sync=sync_config,
        imdb=ImdbDatasetConfig(),
    )
    loads: list[int] = []

    def load_dataset() -> FakeDataset:
        loads.append(1)
        return FakeDataset({"tt0000001": Rating(7.2, 321)})

    app = build_application(
        settings, catalog=catalog, dataset_loader=load_dataset, verify_credentials=False
    )
    try:
        report = app.run_cycle()
    finally:
        app.close()

    assert report.outcome is CycleOutcome.COMPLETED
    assert loads == [1]
    assert catalog.written_ids == [1]
    assert catalog.writes[0][0].rating == pytest.approx(7.2)
    # No Info.xml exists below the plex directory, so the item lands in the report.
    reports = list(data_dir.glob("missing-files-*-1.log"))
    assert len(reports) == 1
    assert "Item 1" in reports[0].read_text(encoding="utf-8")
    assert (data_dir / "state-imdb.json").exists()
