"""Per-job report of metadata files that were absent during the file phase."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from ratingsync.domain.model import Job

log = getLogger(__name__)


def report_filename(job: Job) -> str:
    return f"missing-files-{job.run_token}-{job.library_id}.log"


class MissingFileLogWriter:
    """Writes ``missing-files-<run token>-<library id>.log`` into ``directory``."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def write(self, job: Job, entries: Sequence[str]) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / report_filename(job)
        header = [
            f"# Missing Info.xml files for {job.describe()}",
            f"# Written {datetime.now(UTC).isoformat(timespec='seconds')}",
        ]
        path.write_text("\n".join([*header, *entries]) + "\n", encoding="utf-8")
        log.debug("Wrote %s missing file entries to %s", len(entries), path)
        return path
