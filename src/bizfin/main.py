from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import date
from typing import Optional, Sequence

from bizfin.application.container import build_container
from bizfin.config import get_app_paths, get_store_settings
from bizfin.domain.errors import AppError, RolloverPreconditionError
from bizfin.domain.periods import parse_month
from bizfin.logging_config import setup_logging

log = logging.getLogger(__name__)


def _month(value: str) -> date:
    try:
        return parse_month(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}") from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bizfin", description="Monthly financial summary and fixed-expense rollover.")
    sub = parser.add_subparsers(dest="command", required=True)

    summary = sub.add_parser("summary", help="Print the monthly summary as JSON.")
    summary.add_argument("--month", required=True, type=_month, help="YYYY-MM")

    rollover = sub.add_parser("rollover", help="Copy last month's active fixed expenses into MONTH.")
    rollover.add_argument("--month", required=True, type=_month, help="YYYY-MM")

    export = sub.add_parser("export", help="Write the monthly report to an .xlsx file.")
    export.add_argument("--month", required=True, type=_month, help="YYYY-MM")
    export.add_argument("--out", required=True)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)
    month = args.month

    try:
        container = build_container(paths.db_path, get_store_settings())
        if args.command == "summary":
            summary = container.reporting.monthly_summary(month)
            print(json.dumps(asdict(summary), default=str, indent=2))
        elif args.command == "rollover":
            created = container.rollover.rollover(month)
            print(f"Created {len(created)} fixed expenses for {month:%Y-%m}.")
        elif args.command == "export":
            container.reporting.export_monthly_report_excel(args.out, month)
            print(f"Report written to {args.out}")
    except RolloverPreconditionError as e:
        print(str(e), file=sys.stderr)
        return 1
    except AppError as e:
        log.exception("command_failed command=%s", args.command)
        print(f"Error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
