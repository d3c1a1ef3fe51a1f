"""
Normalize submission rows into canonical columns.

The raw export keeps every column as text.  ``normalize`` returns a *new*
frame where the configured source columns are renamed to canonical keys
(``submit_date``, ``first_name`` …) and the derived fields used by the
aggregation and filters are attached:

  - ``agent_name``     title-cased "First Last" used for display
  - ``name_key``       case-folded ``agent_name`` used for grouping
  - ``submit_dt``      parsed submit date (naive datetime) or None
  - ``premium_amount`` parsed premium as Decimal (0 when unparseable)
"""

from __future__ import annotations

import re
import warnings
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import pandas as pd

from .config import ReportConfig, DEFAULT_COLUMNS


_CURRENCY_NOISE = re.compile(r"[$€£¥,\s]")
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

# dateutil resolves these relative to the wall clock
_RELATIVE_WORDS = {"now", "today"}

# A full day/month/year triple or a four-digit year.  Without one pandas
# fills the gaps itself ("12:30" -> today, "Jan 5" -> year 1).
_DATE_TOKEN = re.compile(r"\d{1,4}[/.-]\d{1,2}[/.-]\d{1,4}|(?<!\d)\d{4}(?!\d)")

# Largest premium accepted; beyond this the value is treated as garbage.
_MAX_PREMIUM_EXPONENT = 15


def title_case(value: Any) -> str:
    """Lower-case *value* and capitalise the first letter of each word."""

    if not isinstance(value, str) or not value:
        return ""
    return " ".join(w[:1].upper() + w[1:] for w in value.lower().split(" "))


def full_name(first: Any, last: Any) -> str:
    first = title_case(first.strip() if isinstance(first, str) else "")
    last = title_case(last.strip() if isinstance(last, str) else "")
    return f"{first} {last}".strip()


def name_key(name: str) -> str:
    return name.lower()


def _leading_int(part: str) -> int | None:
    m = _LEADING_INT.match(part)
    return int(m.group(1)) if m else None


def _parse_mdy(cleaned: str) -> datetime | None:
    parts = cleaned.split("/")
    if len(parts) != 3:
        return None
    month, day, year = (_leading_int(p) for p in parts)
    if month is None or day is None or year is None:
        return None
    if not (1 <= month <= 12 and 1 <= day <= 31 and year > 1900):
        return None
    try:
        return datetime(year, month, day)
    except ValueError:
        # e.g. 2/30/2025
        return None


def parse_submit_date(value: Any) -> datetime | None:
    """Return the submit date as a naive datetime, or None if unparseable.

    A general-purpose parse (month-first) is tried first; if it fails the
    value is read strictly as M/D/YYYY.
    """

    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned or cleaned.lower() in _RELATIVE_WORDS:
        return None
    if not _DATE_TOKEN.search(cleaned):
        return None

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        ts = pd.to_datetime(cleaned, errors="coerce")

    if not pd.isna(ts):
        if ts.tzinfo is not None:
            ts = ts.tz_localize(None)
        return ts.to_pydatetime()

    return _parse_mdy(cleaned)


def parse_premium(value: Any) -> Decimal:
    """Parse a currency string such as ``"$1,234.50"``; anything else is 0.

    Out-of-range values (e.g. ``"1e30"``) are also 0.
    """

    if not isinstance(value, str):
        return Decimal(0)
    cleaned = _CURRENCY_NOISE.sub("", value)
    m = _LEADING_NUMBER.match(cleaned)
    if not m:
        return Decimal(0)
    try:
        amount = Decimal(m.group(0))
    except InvalidOperation:
        return Decimal(0)
    if not amount.is_finite() or (amount and amount.adjusted() > _MAX_PREMIUM_EXPONENT):
        return Decimal(0)
    return amount


def normalize(raw: pd.DataFrame, cfg: ReportConfig | None = None) -> pd.DataFrame:
    """Return a canonical copy of *raw* with the derived fields attached."""

    cfg = cfg or ReportConfig()
    cols = {cfg.column(k): k for k in DEFAULT_COLUMNS}

    # Only rename those present; parse_csv already enforced the required set
    present = {src: dst for src, dst in cols.items() if src in raw.columns}
    df = raw.rename(columns=present)

    for key in DEFAULT_COLUMNS:
        if key not in df.columns:
            df[key] = ""

    df["agent_name"] = [full_name(f, l) for f, l in zip(df["first_name"], df["last_name"])]
    df["name_key"] = df["agent_name"].map(name_key)
    df["submit_dt"] = pd.Series(
        [parse_submit_date(v) for v in df["submit_date"]], index=df.index, dtype=object
    )
    df["premium_amount"] = pd.Series(
        [parse_premium(v) for v in df["premium"]], index=df.index, dtype=object
    )
    df["product"] = df["product"].map(lambda p: p.strip() if isinstance(p, str) else "")
    df["agent_number"] = df["agent_number"].map(lambda n: n.strip() if isinstance(n, str) else "")

    return df.reset_index(drop=True)
