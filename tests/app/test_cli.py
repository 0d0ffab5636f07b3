from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any

import pytest

from ratingsync.app import Settings
from ratingsync.config import (
    ConfigurationError,
    ImdbDatasetConfig,
    PlexConfig,
    StorageConfig,
    SyncConfig,
)
from ratingsync.domain.batch import CycleOutcome, CycleReport
from ratingsync.ui import cli


def make_settings() -> Settings:
    unused = Path("unused")
    return Settings(
        plex=PlexConfig(data_dir=unused),
        storage=StorageConfig(data_dir=unused),
        sync=SyncConfig(run_every_hours=12),
        imdb=ImdbDatasetConfig(),
    )


class StubApp:
    def __init__(self, outcome: CycleOutcome = CycleOutcome.COMPLETED) -> None:
        self.outcome = outcome
        self.cycles = 0

    def run_cycle(self) -> CycleReport:
        self.cycles += 1
        return CycleReport(self.outcome)

    def close(self) -> None:
        return None


class Wiring:
    """Records what ``main`` builds and runs instead of touching Plex or the network."""

    def __init__(self) -> None:
        self.app = StubApp()
        self.load_error: ConfigurationError | None = None
        self.built: list[Settings] = []
        self.services: list[tuple[StubApp, timedelta]] = []
        self.closers: list[Any] = []

    def load_settings(self) -> Settings:
        if self.load_error is not None:
            raise self.load_error
        return make_settings()

    def build_application(self, settings: Settings) -> StubApp:
        self.built.append(settings)
        return self.app

    def run_service(self, app: StubApp, *, interval: timedelta) -> None:
        self.services.append((app, interval))


@pytest.fixture
def wiring(monkeypatch: pytest.MonkeyPatch) -> Wiring:
    recorded = Wiring()
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    monkeypatch.setattr(cli, "configure_logging", lambda **_kwargs: None)
    monkeypatch.setattr(cli, "signal", lambda *_args: None)
    monkeypatch.setattr(cli.atexit, "register", recorded.closers.append)
    monkeypatch.setattr(cli, "load_settings", recorded.load_settings)
    monkeypatch.setattr(cli, "build_application", recorded.build_application)
    monkeypatch.setattr(cli, "run_service", recorded.run_service)
    return recorded


@pytest.mark.parametrize(
    ("outcome", "code"),
    [
        (CycleOutcome.COMPLETED, 0),
        (CycleOutcome.FATAL, 1),
        (CycleOutcome.ABORTED, 3),
    ],
)
def test_once_exits_with_cycle_outcome(
    wiring: Wiring, outcome: CycleOutcome, code: int
) -> None:
    wiring.app = StubApp(outcome)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["once"])

    assert excinfo.value.code == code
    assert wiring.app.cycles == 1
    assert wiring.closers == [wiring.app.close]
    assert wiring.services == []


def test_configuration_error_exits_with_status_two(wiring: Wiring) -> None:
    wiring.load_error = ConfigurationError("PLEX_DATA_DIR is not set")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["once"])

    assert excinfo.value.code == cli.EXIT_CONFIGURATION_ERROR
    assert wiring.built == []


def test_run_uses_configured_interval(wiring: Wiring) -> None:
    cli.main(["run"])

    assert wiring.services == [(wiring.app, timedelta(hours=12))]
    assert wiring.app.cycles == 0


def test_run_every_overrides_configured_interval(wiring: Wiring) -> None:
    cli.main(["run", "--every", "3"])

    assert wiring.built[0].sync.run_every_hours == 3
    assert wiring.services == [(wiring.app, timedelta(hours=3))]


@pytest.mark.parametrize("argv", [[], ["run", "--every", "0"], ["run", "--every", "soon"]])
def test_invalid_arguments_are_rejected(wiring: Wiring, argv: list[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)

    assert excinfo.value.code == 2
    assert wiring.built == []
