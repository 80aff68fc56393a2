"""
run.py

Purpose:
    Command line runner for the Meal Catalog reconciler.

    Loads a raw, hand-curated meals.json, reconciles it into the canonical
    catalog and writes the result (plus an optional audit report).

Usage:
    meal-catalog run meals.json meals.fixed.json
    meal-catalog run meals.json meals.fixed.json --report normalization_report.json
    python -m meal_catalog.etl.run run meals.json meals.fixed.json --layout flat

Exit codes:
    0  success
    1  fatal: unreadable / invalid input, unwritable output
    2  usage error
"""

from __future__ import annotations

import argparse
import dataclasses
import datetime
import sys
from typing import List, Optional

from meal_catalog.config import LAYOUTS, get_reconcile_config
from meal_catalog.etl.pipeline import run_pipeline
from meal_catalog.exceptions import MealCatalogError
from meal_catalog.logging_utils import LOG_RUN_ID, init_logging, log_error, log_info

MODULE_PURPOSE = (
    "Command line runner that reconciles a raw meal catalog into the canonical "
    "region/diet/meal-type catalog."
)


# ---------------------------------------------------------------------------
# RUN BANNER
# ---------------------------------------------------------------------------
def print_run_banner(input_path: str, output_path: str, report_path: Optional[str], layout: str) -> None:
    """
    Print a structured banner for the run to stderr.

    Shows:
      - Run ID
      - UTC Timestamp
      - Input / output / report paths and layout
    """
    now = datetime.datetime.now(datetime.timezone.utc)
    banner = [
        "\n===============================================================",
        "  MEAL-CATALOG RECONCILE RUN",
        f"  Run ID       : {LOG_RUN_ID}",
        f"  UTC Time     : {now.strftime('%Y-%m-%d %H:%M:%S')}",
        f"  Input        : {input_path}",
        f"  Output       : {output_path}",
        f"  Report       : {report_path or '-'}",
        f"  Layout       : {layout}",
        "===============================================================\n",
    ]
    print("\n".join(banner), file=sys.stderr)


# ---------------------------------------------------------------------------
# CLI ENTRYPOINT
# ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="meal-catalog", description="Meal catalog reconciler")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Normalize and reconcile a raw meals catalog")
    run.add_argument("input_path", help="Raw catalog JSON")
    run.add_argument("output_path", help="Where to write the canonical catalog JSON")
    run.add_argument("--report", dest="report_path", default=None, help="Also write the audit report JSON here")
    run.add_argument("--layout", choices=LAYOUTS, default=None, help="Output layout (default from MEAL_CATALOG_LAYOUT)")
    run.add_argument("--log-level", default=None, help="Logging level (default from MEAL_CATALOG_LOG_LEVEL)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_reconcile_config()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if args.layout:
        config = dataclasses.replace(config, layout=args.layout)
    if args.log_level:
        config = dataclasses.replace(config, log_level=args.log_level.upper())
    init_logging(config.log_level)

    print_run_banner(args.input_path, args.output_path, args.report_path, config.layout)

    try:
        run_pipeline(args.input_path, args.output_path, report_path=args.report_path, config=config)
    except MealCatalogError as exc:
        log_error(
            exc.message,
            module_purpose=MODULE_PURPOSE,
            invoking_function="main",
            invoking_purpose="Reconcile run",
            next_step="Exit with status 1",
            resolution="Check the path and that the file is a valid JSON object",
        )
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    log_info(
        "Reconcile run completed",
        module_purpose=MODULE_PURPOSE,
        invoking_function="main",
        invoking_purpose="Reconcile run",
        next_step="Exit with status 0",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
