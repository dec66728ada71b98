# OnSite FinSight - Financial reporting engine for contractor back-offices
# Copyright (c) 2025 OnSite FinSight contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for OnSite FinSight.

The CLI is intentionally thin: it does not implement any financial logic.
It wires together:

- configuration (config.py),
- the CSV record-fetch boundary (io.py),
- the report assembler (report.py),
- tabular views (views.py),
- logging (log.py).

Pipeline
--------
1) Load the TOML configuration (``onsite_finsight_config.toml`` by default,
   or ``--config PATH``). When the default file does not exist, built-in
   defaults are used and records are read from ``./data``.
2) Resolve the record files, optionally from ``--data-dir`` instead of the
   configured directory (per-collection file names from [data] are kept).
   Collections whose file does not exist are empty.
3) Build the report for ``--timeframe`` (default from config) and ``--now``
   (default: today), optionally restricted to one ``--project`` and to
   ``--from-date`` / ``--to-date``.
4) Render it:
   - ``table``: one console table per section,
   - ``json``:  the report structure as JSON on stdout,
   - ``csv``:   one CSV file per section in ``--output-dir``,
   - ``both``:  table + csv.

Errors in configuration or record files are reported and the process exits
with status 1.
"""

import argparse
import json
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from . import __version__
from .config import (
    DEFAULT_CONFIG_FILE,
    DISPLAY_MODES,
    AppConfig,
    default_app_config,
    load_app_config,
)
from .io import load_snapshot
from .log import configure_logging, get_logger
from .periods import TIMEFRAMES
from .report import build_report
from .views import report_to_dataframes

logger = get_logger(__name__)

SECTION_TITLES: dict[str, str] = {
    "summary": "Summary",
    "periods": "Trend",
    "projects": "Profitability by project",
    "categories": "Expenses by category",
    "alerts": "Budget alerts",
    "budget": "Budget by category",
    "invoices": "Invoices",
}


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="onsite-finsight",
        description=(
            "OnSite FinSight - financial reporting for contractor back-offices. "
            "Reads expenses, payments, recurring costs, budgets and invoices, "
            "and renders trends, project profitability, expense breakdowns, "
            "budget alerts and invoice balances."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of onsite_finsight and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. If omitted, "
            f"'{DEFAULT_CONFIG_FILE}' in the current directory is used when it exists."
        ),
    )
    ap.add_argument(
        "--data-dir",
        dest="data_dir",
        help="Directory holding the record CSV files (overrides [data].dir).",
    )
    ap.add_argument(
        "--timeframe",
        choices=list(TIMEFRAMES),
        help="Report timeframe. Defaults to [report].timeframe from config.",
    )
    ap.add_argument(
        "--now",
        dest="now",
        help="Reporting date (YYYY-MM-DD). Defaults to today.",
    )
    ap.add_argument(
        "--project",
        dest="project_id",
        help="Restrict the report to one project id.",
    )
    ap.add_argument(
        "--from-date",
        dest="from_date",
        help="Ignore expenses and payments before this date (YYYY-MM-DD).",
    )
    ap.add_argument(
        "--to-date",
        dest="to_date",
        help="Ignore expenses and payments after this date (YYYY-MM-DD).",
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=list(DISPLAY_MODES),
        help="Output mode. Defaults to [display].mode from config.",
    )
    ap.add_argument(
        "--output-dir",
        dest="output_dir",
        help="Directory for CSV output (csv/both modes). Default: data/output.",
    )
    return ap


def _parse_date(option: str, value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid {option} date {value!r}, expected YYYY-MM-DD.") from exc


def _parse_now(value: Optional[str]) -> date:
    return _parse_date("--now", value) or datetime.today().date()


def _resolve_config(args: argparse.Namespace) -> AppConfig:
    if args.config_path:
        return load_app_config(args.config_path)
    if Path(DEFAULT_CONFIG_FILE).is_file():
        return load_app_config()
    return default_app_config()


def _render_tables(frames: dict, currency: str) -> None:
    for section, df in frames.items():
        print()
        print(f"=== {SECTION_TITLES[section]} ({currency}) ===")
        if df.empty:
            print("(none)")
        else:
            print(df.to_string(index=False))


def _write_csv(frames: dict, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    for section, df in frames.items():
        path = output_dir / f"{section}_{timestamp}.csv"
        df.to_csv(path, index=False)
        print(f"Wrote {path} ({len(df)} rows)")


def run(args: argparse.Namespace) -> None:
    """Execute the report pipeline for parsed arguments."""
    config = _resolve_config(args)
    configure_logging(config.logging.level, format_json=config.logging.json)

    data = config.data
    if args.data_dir:
        data = data.with_dir(Path(args.data_dir))

    paths = data.existing()
    missing = sorted(set(data.paths) - set(paths))
    if missing:
        logger.info("collections_empty", collections=missing)

    snapshot = load_snapshot(paths)
    timeframe = args.timeframe or config.timeframe
    now = _parse_now(args.now)

    report = build_report(
        snapshot,
        timeframe=timeframe,
        now=now,
        project_id=args.project_id,
        from_date=_parse_date("--from-date", args.from_date),
        to_date=_parse_date("--to-date", args.to_date),
    )

    display_mode = args.display_mode or config.display_mode
    if display_mode == "json":
        print(json.dumps(report.to_dict(), indent=2))
        return

    frames = report_to_dataframes(report, decimals=config.decimals)
    if display_mode in {"table", "both"}:
        print(f"Report '{timeframe}' as of {now.isoformat()}")
        _render_tables(frames, config.currency)
    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else Path("data/output")
        _write_csv(frames, output_dir)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the OnSite FinSight CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"onsite_finsight version {__version__}")
        return

    try:
        run(args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
