"""
CLI entry point for TMA Insights.

PURPOSE: Command-line interface for the text report, the dashboard and exports.
AI CONTEXT: Main entry points for package execution.

USAGE:
    # Print the daily report for the default dataset
    python -m tma_insights

    # Or via CLI command (after install)
    tma-insights report tma_dataset.json --show-locked
    tma-insights dashboard --data tma_dataset.json --port 8000
    tma-insights export tma_dataset.json backup.json
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from functools import lru_cache
from typing import TYPE_CHECKING

from .config import Config

if TYPE_CHECKING:
    from .statistics import StatisticsEngine
    from .storage import DatasetStore

# Constants
PROG_NAME = "tma-insights"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DATA_ENV_VAR = "TMA_INSIGHTS_DATA"


@lru_cache(maxsize=1)
def _get_logger() -> logging.Logger:
    """Get module logger (cached for thread safety)."""
    logging.basicConfig(level=logging.INFO)
    return logging.getLogger(__name__)


def _log(message: str, *, emoji: str = "") -> None:
    """Log message with optional emoji prefix for CLI output.

    Args:
        message: The message to log.
        emoji: Optional emoji prefix for visual CLI feedback.
    """
    prefix = f"{emoji} " if emoji else ""
    _get_logger().info(f"{prefix}{message}")


def run_report(
    path: str | None = None,
    show_locked: bool = False,
    store: DatasetStore | None = None,
    engine: StatisticsEngine | None = None,
) -> int:
    """
    Print the daily text report to stdout.

    An explicit file must load; a missing or corrupt file is reported and
    the command fails. Without a path the default dataset is read
    leniently (missing file means an empty day).

    Business context: The quickest way to look at a day of work, or at a
    file someone exported, without opening a browser.

    Args:
        path: Dataset/export file. Default: Config.get_data_file().
        show_locked: Also list locked awards with unlock hints.
        store: Optional DatasetStore for testability.
        engine: Optional StatisticsEngine for testability.

    Returns:
        0 on success, 1 when an explicit file could not be imported.

    Example:
        >>> # tma-insights report TMA_Compensator_2026-10-17.json > report.txt
        >>> run_report("TMA_Compensator_2026-10-17.json")
        ==================================================
        TMA INSIGHTS - DAILY REPORT
        ...
    """
    from .statistics import StatisticsEngine as StatsEngine
    from .storage import DatasetImportError
    from .storage import DatasetStore as Store

    store = store or Store()
    engine = engine or StatsEngine()

    if path:
        try:
            snapshot = store.load_strict(path)
        except DatasetImportError as e:
            _log(str(e), emoji="❌")
            return 1
    else:
        snapshot = store.load()

    # print() on purpose so the report can be piped
    print(engine.generate_summary_report(snapshot, show_locked=show_locked))
    return 0


def run_export(
    source: str,
    destination: str | None = None,
    store: DatasetStore | None = None,
) -> int:
    """
    Re-export a dataset file as a normalized export document.

    Args:
        source: File to import (export document or bare transaction list).
        destination: Output path. Default: TMA_Compensator_<date>.json next
            to the source.
        store: Optional DatasetStore for testability.

    Returns:
        0 on success, 1 when the source cannot be imported or the
        destination cannot be written.
    """
    from .storage import DatasetImportError
    from .storage import DatasetStore as Store

    store = store or Store(data_file=source)
    try:
        snapshot = store.load_strict(source)
    except DatasetImportError as e:
        _log(str(e), emoji="❌")
        return 1

    target = destination or os.path.join(
        os.path.dirname(source) or ".", store.export_filename()
    )
    if not store.save_export(snapshot, target):
        _log(f"Could not write {target}", emoji="❌")
        return 1
    _log(f"Exported {len(snapshot.transactions)} transactions to {target}", emoji="💾")
    return 0


def run_dashboard(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    data_file: str | None = None,
) -> None:
    """
    Launch the web dashboard.

    The dataset path is handed to the server through TMA_INSIGHTS_DATA so
    the uvicorn app factory picks it up.

    Args:
        host: Network interface to bind to.
        port: TCP port for the HTTP server.
        data_file: Dataset to serve. Default: Config.get_data_file().

    Returns:
        None. Blocks until server shutdown (Ctrl+C).

    Raises:
        OSError: If port is already in use.
    """
    from .web import run_dashboard as start_web

    if data_file:
        os.environ[DATA_ENV_VAR] = data_file

    _log(f"Serving {Config.get_data_file()}", emoji="📂")
    _log(f"Starting dashboard at http://{host}:{port}", emoji="🚀")
    _log("Press Ctrl+C to stop")
    start_web(host=host, port=port)


def build_parser() -> argparse.ArgumentParser:
    from .__version__ import __version__

    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="TMA Insights - daily analytics and achievements for TMA-tracked work",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Report command
    report_parser = subparsers.add_parser(
        "report",
        help="Print the daily report to stdout",
    )
    report_parser.add_argument(
        "file",
        nargs="?",
        default=None,
        help="Dataset or export file (default: $TMA_INSIGHTS_DATA or tma_dataset.json)",
    )
    report_parser.add_argument(
        "--show-locked",
        action="store_true",
        help="Also list locked awards with unlock hints",
    )

    # Dashboard command
    dashboard_parser = subparsers.add_parser(
        "dashboard",
        help="Launch web dashboard",
    )
    dashboard_parser.add_argument(
        "--data",
        default=None,
        help="Dataset file to serve",
    )
    dashboard_parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Bind address (default: {DEFAULT_HOST})",
    )
    dashboard_parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port number (default: {DEFAULT_PORT})",
    )

    # Export command
    export_parser = subparsers.add_parser(
        "export",
        help="Normalize a dataset file into an export document",
    )
    export_parser.add_argument("source", help="File to import")
    export_parser.add_argument(
        "destination",
        nargs="?",
        default=None,
        help="Output file (default: TMA_Compensator_<date>.json)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point for TMA Insights.

    Subcommands:
    - report [FILE] [--show-locked]: Print the text report (default)
    - dashboard [--data FILE] [--host HOST] [--port PORT]: Launch web dashboard
    - export SOURCE [DESTINATION]: Write a normalized export document

    Args:
        argv: Arguments without the program name. Default: sys.argv[1:].

    Returns:
        Exit code: 0 for success, 1 when a dataset could not be imported
        or written.

    Raises:
        SystemExit: On --help, --version or argument parsing errors.

    Example:
        >>> sys.exit(main(["report", "tma_dataset.json"]))
    """
    args = build_parser().parse_args(argv)

    if args.command == "dashboard":
        run_dashboard(host=args.host, port=args.port, data_file=args.data)
        return 0
    if args.command == "export":
        return run_export(args.source, args.destination)
    if args.command == "report":
        return run_report(args.file, show_locked=args.show_locked)
    # Default: report on the default dataset
    return run_report()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
