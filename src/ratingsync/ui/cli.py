from __future__ import annotations

import argparse
import atexit
import logging
import os
import sys
from dataclasses import replace
from datetime import timedelta
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Final

from dotenv import load_dotenv

from ratingsync import __version__
from ratingsync.app import build_application, load_settings, run_service
from ratingsync.config import ConfigurationError, configure_logging, resolve_log_level
from ratingsync.domain.batch import CycleOutcome

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

EXIT_CONFIGURATION_ERROR: Final[int] = 2
EXIT_CODES: Final[dict[CycleOutcome, int]] = {
    CycleOutcome.COMPLETED: 0,
    CycleOutcome.FATAL: 1,
    CycleOutcome.ABORTED: 3,
}


def _positive_hours(value: str) -> int:
    try:
        hours = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid number of hours: {value}") from exc
    if hours <= 0:
        raise argparse.ArgumentTypeError("Number of hours must be greater than 0")
    return hours


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ratingsync",
        description="Keep Plex audience ratings in sync with the IMDb rating dataset",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run a cycle now and then on a fixed interval")
    run.add_argument(
        "--every",
        type=_positive_hours,
        default=None,
        metavar="HOURS",
        help="Hours between cycles (defaults to RUN_EVERY_N_HOURS or 12)",
    )

    subparsers.add_parser("once", help="Run a single cycle and exit")

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging(level=resolve_log_level(os.getenv("LOG_LEVEL")))
    signal(SIGINT, sigint_handler)
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    try:
        settings = load_settings()
        if getattr(parsed_args, "every", None) is not None:
            settings = replace(
                settings, sync=replace(settings.sync, run_every_hours=parsed_args.every)
            )
        app = build_application(settings)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(EXIT_CONFIGURATION_ERROR)
    atexit.register(app.close)

    if parsed_args.command == "once":
        report = app.run_cycle()
        sys.exit(EXIT_CODES[report.outcome])

    log.info("Running every %s hour(s)", settings.sync.run_every_hours)
    run_service(app, interval=timedelta(hours=settings.sync.run_every_hours))


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    main()
