"""Print a bug analytics summary for a CSV export and save the computed data.

Run 'python bug_summary.py bugs.csv' to generate the summary files, then
'python bug_viz.py' to render charts from them.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date

from bug_analytics import (
    DashboardConfig,
    ParseError,
    build_dashboard_payload,
    load_records,
    print_summary_report,
    save_analytics_files,
)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for summarising a bug-tracker CSV export."""
    parser = argparse.ArgumentParser(description="Summarise a bug-tracker CSV export")
    parser.add_argument("csv_file", nargs="?", default="bugs.csv",
                        help="Path to the CSV export (default: bugs.csv)")
    parser.add_argument("--output-dir", "-o", default="bug_analytics",
                        help="Directory for JSON/CSV output (default: bug_analytics)")
    parser.add_argument("--cutoff", "-c", type=date.fromisoformat,
                        help="Incoming/outgoing cutoff date, YYYY-MM-DD")
    parser.add_argument("--customer", action="store_true",
                        help="Only count bugs that name a customer")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    config = DashboardConfig.from_env()
    if args.cutoff:
        config = DashboardConfig(cutoff_date=args.cutoff)

    try:
        records = load_records(args.csv_file)
    except FileNotFoundError:
        print(f"Error: file not found: {args.csv_file}", file=sys.stderr)
        sys.exit(1)
    except ParseError as exc:
        print(f"Error: {args.csv_file}: {exc}", file=sys.stderr)
        sys.exit(1)

    payload = build_dashboard_payload(
        records,
        tab="customer" if args.customer else "all",
        config=config,
    )
    save_analytics_files(payload, args.output_dir)
    print_summary_report(payload, args.output_dir)


if __name__ == "__main__":
    main()
