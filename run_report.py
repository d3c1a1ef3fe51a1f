#!/usr/bin/env python3
"""Command-line wrapper for the agent premiums report.

All heavy lifting is delegated to ``premiums.runner`` so that the core
logic can also be imported and executed from other Python code.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime, time
from pathlib import Path

from premiums.config import load_config
from premiums.filters import (
    ALL_TIME,
    CUSTOM,
    SORT_CHOICES,
    FilterState,
    ReportOptions,
    available_periods,
    parse_period_key,
    unique_agents,
    unique_products,
)
from premiums.formatter import format_display_frame
from premiums.runner import ReportError, ReportSession, run_report
from premiums.teams import team_labels


def _parse_day(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'") from None


def _period(value: str) -> str:
    if value in ("current", ALL_TIME, CUSTOM):
        return value
    try:
        parse_period_key(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate the monthly agent premiums report")
    default_base = Path.cwd()

    parser.add_argument("submissions", help="Submissions export (.csv)")
    parser.add_argument("--teams", help="Optional CSV mapping agent numbers to teams")
    parser.add_argument(
        "--base",
        default=str(default_base),
        help="Directory that contains config/report.yml. Defaults to the current working directory",
    )
    parser.add_argument(
        "--out",
        default=str(default_base / "output"),
        help="Directory where the PDF (and workbook) are written. Defaults to ./output",
    )
    parser.add_argument(
        "--period",
        type=_period,
        default="current",
        help="current, all, custom or a month as YYYY-MM (default: current)",
    )
    parser.add_argument("--from", dest="date_from", type=_parse_day, help="Custom range start (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", type=_parse_day, help="Custom range end, inclusive (YYYY-MM-DD)")
    parser.add_argument("--agent", action="append", default=[], help="Agent name to include (repeatable)")
    parser.add_argument("--product", action="append", default=[], help="Product to include (repeatable)")
    parser.add_argument("--team", help="Only show agents of this team (applied after --max-records)")
    parser.add_argument("--search", default="", help="Case-insensitive agent name search")
    parser.add_argument("--sort", choices=SORT_CHOICES, help="Sort order (default from config)")
    parser.add_argument("--max-records", type=int, help="Keep only the top N agents (0 = all)")
    parser.add_argument("--excel", action="store_true", help="Also write an Excel workbook")
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print available periods, agents, products and teams, then exit",
    )
    return parser


def _print_catalog(session: ReportSession) -> None:
    sections = {
        "Periods": available_periods(session.rows),
        "Agents": unique_agents(session.rows),
        "Products": unique_products(session.rows),
        "Teams": team_labels(session.teams),
    }
    for heading, values in sections.items():
        print(f"{heading} ({len(values)}):")
        for v in values:
            print(f"  {v}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO), format="%(levelname)s: %(message)s")
    log = logging.getLogger("premiums")

    base = Path(args.base).resolve()
    cfg = load_config(base)

    period = args.period
    if args.date_from or args.date_to:
        period = CUSTOM
    filters = FilterState(
        period=period,
        date_from=args.date_from,
        # the whole end day is inside the range
        date_to=datetime.combine(args.date_to.date(), time.max) if args.date_to else None,
        agents=frozenset(args.agent),
        products=frozenset(args.product),
        team=args.team,
        search=args.search,
    )
    options = ReportOptions(
        sort_by=args.sort or cfg.sort_by,
        max_records=cfg.max_records if args.max_records is None else max(args.max_records, 0),
    )

    try:
        if args.list:
            session = ReportSession(config=cfg)
            session.load_submissions_file(Path(args.submissions))
            if args.teams:
                session.load_teams_file(Path(args.teams))
            _print_catalog(session)
            return 0

        result = run_report(
            submissions=Path(args.submissions).resolve(),
            output_dir=Path(args.out).resolve(),
            base=base,
            teams=Path(args.teams).resolve() if args.teams else None,
            filters=filters,
            options=options,
            generate_excel=args.excel,
            log=log,
        )
    except ReportError as exc:
        log.error("%s", exc)
        return 1

    print(format_display_frame(result).to_string(index=False))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
