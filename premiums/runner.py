"""Library entry-point for building agent premium reports.

This module holds **no CLI logic** so it can be imported from notebooks,
scheduled jobs, or unit-tests without depending on argparse or environment
variables.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, List

import pandas as pd

from .config import ReportConfig, load_config
from .filters import DisplayResult, FilterState, ReportOptions, build_report
from .loaders import ParseResult, parse_csv, load_team_map, read_submissions, read_team_map
from .normalizers import normalize
from .teams import build_agent_number_index
from .writers import write_excel, write_pdf


class ReportError(Exception):
    """A submissions file that cannot be used to build a report."""


@dataclass
class ReportSession:
    """In-memory rows and team mapping for one user session.

    Both are replaced wholesale on each load; reports are always rebuilt
    from them from scratch.
    """

    config: ReportConfig = field(default_factory=ReportConfig)
    rows: pd.DataFrame = field(default_factory=lambda: normalize(pd.DataFrame()))
    teams: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    _agent_numbers: Dict[str, str] = field(default_factory=dict, init=False, repr=False)

    def _set_rows(self, parsed: ParseResult) -> None:
        self.rows = normalize(parsed.rows if not parsed.blocking else pd.DataFrame(), self.config)
        self._agent_numbers = build_agent_number_index(self.rows)

    def load_submissions(self, text: str) -> ParseResult:
        """Parse *text* and replace the session rows.

        A blocking problem clears previously loaded rows and raises
        ``ReportError``; row-level defects are kept in ``warnings``.
        """

        return self._accept(parse_csv(text, self.config))

    def load_submissions_file(self, path: Path) -> ParseResult:
        try:
            parsed = read_submissions(path, self.config)
        except (ValueError, OSError) as exc:
            self._set_rows(ParseResult(rows=pd.DataFrame(), unreadable=True))
            raise ReportError(str(exc)) from exc
        return self._accept(parsed)

    def _accept(self, parsed: ParseResult) -> ParseResult:
        self._set_rows(parsed)
        if parsed.blocking:
            self.warnings = []
            raise ReportError("; ".join(parsed.errors))
        self.warnings = list(parsed.errors)
        return parsed

    def load_teams(self, text: str) -> Dict[str, str]:
        self.teams = load_team_map(text, self.config)
        return self.teams

    def load_teams_file(self, path: Path) -> Dict[str, str]:
        self.teams = read_team_map(path, self.config)
        return self.teams

    def build(
        self,
        filters: FilterState | None = None,
        options: ReportOptions | None = None,
        *,
        today: date | None = None,
    ) -> DisplayResult:
        if options is None:
            options = ReportOptions(sort_by=self.config.sort_by, max_records=self.config.max_records)
        return build_report(
            self.rows,
            filters,
            self.teams,
            options,
            today=today,
            agent_numbers=self._agent_numbers,
            no_team_label=self.config.no_team_label,
        )


def run_report(
    *,
    submissions: Path,
    output_dir: Path,
    base: Path | None = None,
    teams: Path | None = None,
    filters: FilterState | None = None,
    options: ReportOptions | None = None,
    generate_excel: bool = False,
    today: date | None = None,
    log: logging.Logger | None = None,
) -> DisplayResult:
    """Run the full report pipeline and write the PDF (and optional workbook).

    Parameters
    ----------
    submissions
        Submissions export (.csv).
    output_dir
        Where the PDF / workbook are written.
    base
        Directory holding ``config/report.yml``; defaults are used without it.
    teams
        Optional agent-number -> team CSV.
    generate_excel
        Also write an .xlsx copy of the table.
    log
        Optional logger instance.  If omitted, a module-level logger is used.

    Raises ``ReportError`` when the submissions file is unusable; nothing is
    written in that case.
    """

    log = log or logging.getLogger(__name__)

    cfg = load_config(base)
    session = ReportSession(config=cfg)
    session.load_submissions_file(submissions)
    log.info("Loaded %d submission rows", len(session.rows))
    for msg in session.warnings:
        log.warning(msg)

    if teams is not None:
        session.load_teams_file(teams)

    result = session.build(filters, options, today=today)
    if result.skipped_rows:
        log.warning("%d rows have an unreadable submit date and were left out", result.skipped_rows)
    log.info(
        "%s: %d of %d agents, annualized total %s",
        result.period_label,
        result.displayed_records,
        result.total_records,
        result.total_annualized,
    )

    write_pdf(result, output_dir, title=cfg.title, timezone=cfg.timezone)
    if generate_excel:
        write_excel(result, output_dir)

    log.info("Export completed – outputs written to %s", output_dir)
    return result
