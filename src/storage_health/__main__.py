from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from . import __version__
from .config import load_settings
from .log import setup_logging
from .report import build_report, format_table, write_csv, write_json

logger = logging.getLogger("storage_health")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="storage-health",
        description="Storage Health - one correlated health and performance view per drive",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  storage-health                         # Print a summary table
  storage-health --json report.json      # Write the full report as JSON
  storage-health --samples 10 --csv r.csv
  storage-health --gui                   # Open the viewer window
        """,
    )
    parser.add_argument("--config", help="JSON settings file")
    parser.add_argument("--samples", type=int, help="Performance samples to take (default 5)")
    parser.add_argument("--interval", type=int, help="Seconds between samples (default 1)")
    parser.add_argument("--lookback-hours", type=float, help="Event log window in hours (default 24)")
    parser.add_argument("--json", metavar="PATH", help="Write the report as JSON")
    parser.add_argument("--csv", metavar="PATH", help="Write the report as CSV")
    parser.add_argument("--gui", action="store_true", help="Open the PySide6 viewer")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"storage-health {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    setup_logging(args.debug)

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as exc:
        logger.error("Cannot load config %s: %s", args.config, exc)
        return 2
    overrides = {
        "sample_count": args.samples,
        "sample_interval_sec": args.interval,
        "lookback_hours": args.lookback_hours,
    }
    settings = replace(settings, **{k: v for k, v in overrides.items() if v is not None})

    if args.gui:
        from .ui import main as gui_main

        return gui_main(settings)

    snapshot = build_report(settings)

    status = 0
    for path, writer in ((args.json, write_json), (args.csv, write_csv)):
        if not path:
            continue
        try:
            writer(snapshot, path)
            logger.info("Report written to %s", path)
        except OSError as exc:
            logger.error("Could not write report to %s: %s", path, exc)
            status = 1
    if not args.json and not args.csv:
        print(format_table(snapshot))
    return status


if __name__ == "__main__":
    sys.exit(main())
