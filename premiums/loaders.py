"""
Load the submissions export and the optional team mapping from CSV.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import pandas as pd

from .config import ReportConfig


logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    """Rows parsed from one submissions file plus any problems found."""

    rows: pd.DataFrame
    errors: List[str] = field(default_factory=list)
    missing_columns: List[str] = field(default_factory=list)
    unreadable: bool = False

    @property
    def blocking(self) -> bool:
        """True when the file cannot be used at all."""
        return self.unreadable or bool(self.missing_columns)


def _tokenize(text: str) -> List[List[str]]:
    """Split CSV *text* into rows of fields, dropping blank lines."""

    rows = []
    for fields in csv.reader(io.StringIO(text, newline="")):
        if not fields or (len(fields) == 1 and not fields[0].strip()):
            continue
        rows.append(fields)
    return rows


def _unique_headers(header: List[str]) -> List[str]:
    """Suffix repeated column names (``Product_1`` …); the first one keeps its name."""

    seen = set(header)
    out: List[str] = []
    used: set = set()
    for name in header:
        if name not in used:
            used.add(name)
            out.append(name)
            continue
        n = 1
        while f"{name}_{n}" in seen or f"{name}_{n}" in used:
            n += 1
        renamed = f"{name}_{n}"
        logger.warning("Duplicate column '%s' renamed to '%s'", name, renamed)
        used.add(renamed)
        out.append(renamed)
    return out


def _frame(text: str, errors: List[str] | None = None) -> pd.DataFrame:
    """
    Build a frame of string cells from CSV *text*.

    Rows whose width differs from the header are left out; when *errors* is
    given one message per such row is appended to it.
    """
    rows = _tokenize(text)
    if not rows:
        return pd.DataFrame()

    header = _unique_headers([h.strip() for h in rows[0]])
    width = len(header)
    records = []
    for line_no, fields in enumerate(rows[1:], start=2):
        if len(fields) != width:
            if errors is not None:
                kind = "too many" if len(fields) > width else "too few"
                errors.append(
                    f"Row {line_no}: {kind} fields (expected {width}, found {len(fields)})"
                )
            continue
        records.append(fields)
    return pd.DataFrame(records, columns=header, dtype=str)


def parse_csv(text: str, cfg: ReportConfig | None = None) -> ParseResult:
    """
    Parse submissions CSV *text* into a frame of string cells.

    Never raises for content problems.  Missing required columns produce a
    single blocking message and no rows; malformed rows are dropped with one
    warning each while the well-formed rows are kept.
    """
    cfg = cfg or ReportConfig()
    errors: List[str] = []

    try:
        df = _frame(text, errors)
    except csv.Error as exc:
        logger.error("Could not parse CSV: %s", exc)
        return ParseResult(rows=pd.DataFrame(), errors=[f"Could not parse CSV: {exc}"], unreadable=True)

    if df.columns.empty:
        return ParseResult(rows=df, errors=[])

    missing = [c for c in cfg.required_columns if c not in df.columns]
    if missing:
        msg = f"Missing required columns: {', '.join(missing)}"
        logger.error(msg)
        return ParseResult(rows=df.iloc[0:0], errors=[msg], missing_columns=missing)

    if errors:
        logger.warning("CSV contained %d malformed rows; kept %d rows", len(errors), len(df))
    logger.debug("Parsed %d submission rows with columns: %s", len(df), ", ".join(df.columns))

    return ParseResult(rows=df, errors=errors)


def read_submissions(path: Path, cfg: ReportConfig | None = None) -> ParseResult:
    """Read and parse a submissions export from disk."""

    if path.suffix.lower() != ".csv":
        raise ValueError(f"Please provide a .csv file (got {path.name})")
    logger.info("Loading submissions file %s", path.name)
    return parse_csv(path.read_text(encoding="utf-8-sig"), cfg)


def load_team_map(text: str, cfg: ReportConfig | None = None) -> Dict[str, str]:
    """
    Build the agent-number -> team mapping from a team CSV.

    Rows only reach the mapping when both fields are non-empty after
    trimming; later rows win for a repeated agent number.
    """
    cfg = cfg or ReportConfig()
    num_col = cfg.team_columns["agent_number"]
    team_col = cfg.team_columns["team"]

    try:
        df = _frame(text)
    except csv.Error as exc:
        logger.warning("Could not parse team file: %s – continuing without teams", exc)
        return {}

    if num_col not in df.columns or team_col not in df.columns:
        logger.warning(
            "Team file lacks '%s' / '%s' columns – continuing without teams", num_col, team_col
        )
        return {}

    mapping: Dict[str, str] = {}
    for number, team in zip(df[num_col], df[team_col]):
        number = number.strip() if isinstance(number, str) else ""
        team = team.strip() if isinstance(team, str) else ""
        if number and team:
            mapping[number] = team

    logger.info(
        "Loaded %d team assignments across %d teams", len(mapping), len(set(mapping.values()))
    )
    return mapping


def read_team_map(path: Path, cfg: ReportConfig | None = None) -> Dict[str, str]:
    """Read the team CSV from disk; an unreadable file gives an empty mapping."""

    logger.info("Loading team file %s", path.name)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, ValueError) as exc:
        logger.warning("Could not read team file %s: %s – continuing without teams", path.name, exc)
        return {}
    return load_team_map(text, cfg)
