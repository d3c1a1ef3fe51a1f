"""
Filter composition and report assembly.

``build_report`` is a pure function of the normalized rows, the filter
selection and the team mapping.  Every call starts again from the full set
of rows, so filters compose independently:

    date -> agents -> products -> search -> aggregate
         -> agent number / team / previous month -> sort
         -> truncate to max_records -> team filter

The team filter runs *after* truncation so a "top N" export always reflects
the ranking before any team is picked.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, FrozenSet, List, Mapping, Tuple

import pandas as pd

from .aggregate import AgentAggregate, aggregate_by_agent
from .config import NO_TEAM
from .teams import build_agent_number_index, resolve_team


logger = logging.getLogger(__name__)

ALL_TIME = "all"
CURRENT = "current"
CUSTOM = "custom"
ALL_TEAMS = "ALL"

SORT_CHOICES = ("annualized", "monthly", "alphabetical", "original")


@dataclass(frozen=True)
class FilterState:
    """Current filter selection."""

    period: str = CURRENT  # current | all | custom | YYYY-MM
    date_from: datetime | None = None
    date_to: datetime | None = None
    agents: FrozenSet[str] = frozenset()
    products: FrozenSet[str] = frozenset()
    team: str | None = None
    search: str = ""


@dataclass(frozen=True)
class ReportOptions:
    sort_by: str = "annualized"
    max_records: int = 0  # 0 = unlimited


@dataclass
class FilterResult:
    rows: pd.DataFrame
    skipped_rows: int = 0


@dataclass
class DisplayRow:
    """An agent aggregate extended with team and previous-month data."""

    agent_name: str
    monthly_premium: Decimal
    annualized_premium: Decimal
    products: List[str]
    product_counts: Dict[str, int]
    agent_number: str = ""
    team: str = NO_TEAM
    annualized_prev: Decimal | None = None

    @classmethod
    def from_aggregate(cls, agg: AgentAggregate, **extra) -> "DisplayRow":
        return cls(
            agent_name=agg.agent_name,
            monthly_premium=agg.monthly_premium,
            annualized_premium=agg.annualized_premium,
            products=list(agg.products),
            product_counts=dict(agg.product_counts),
            **extra,
        )


@dataclass
class DisplayResult:
    rows: List[DisplayRow]
    period_label: str
    year: int
    month: int | None
    skipped_rows: int = 0
    total_monthly: Decimal = Decimal(0)
    total_annualized: Decimal = Decimal(0)
    total_prev: Decimal = Decimal(0)
    total_records: int = 0
    displayed_records: int = 0
    selected_agents: int = 0
    filters: FilterState = field(default_factory=FilterState)


# ---------------------------------------------------------------------------
# Period helpers
# ---------------------------------------------------------------------------


def parse_period_key(key: str) -> Tuple[int, int]:
    """Return (year, month) for a ``YYYY-MM`` key."""

    try:
        year_s, month_s = key.split("-")
        year, month = int(year_s), int(month_s)
    except ValueError:
        raise ValueError(f"Invalid period '{key}' (expected YYYY-MM, current, all or custom)") from None
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month in period '{key}'")
    return year, month


def period_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def previous_period(year: int, month: int) -> Tuple[int, int]:
    """Return the calendar month before (year, month)."""

    if month == 1:
        return year - 1, 12
    return year, month - 1


def _has_range(filters: FilterState) -> bool:
    return filters.date_from is not None and filters.date_to is not None


def reference_period(filters: FilterState, today: date) -> Tuple[int, int] | None:
    """Return the (year, month) the selection is anchored on, if any.

    A custom range is anchored on the month of its start date.
    """

    if filters.period == ALL_TIME:
        return None
    if filters.period == CURRENT:
        return today.year, today.month
    if filters.period == CUSTOM:
        if _has_range(filters):
            return filters.date_from.year, filters.date_from.month
        return None
    return parse_period_key(filters.period)


# ---------------------------------------------------------------------------
# Row filters
# ---------------------------------------------------------------------------


def filter_by_month(rows: pd.DataFrame, year: int | None = None, month: int | None = None) -> FilterResult:
    """Keep rows submitted in *month* (1-12) of *year*.

    Rows with no parseable submit date are counted as skipped.  Without a
    target every row matches and nothing is skipped.
    """

    if year is None or month is None:
        return FilterResult(rows=rows, skipped_rows=0)

    dates = rows["submit_dt"]
    dated = dates.notna()
    in_month = dates.map(lambda d: d is not None and not pd.isna(d) and d.year == year and d.month == month)
    kept = rows[dated & in_month.astype(bool)]
    return FilterResult(rows=kept, skipped_rows=int((~dated).sum()))


def filter_by_range(rows: pd.DataFrame, start: datetime | None, end: datetime | None) -> FilterResult:
    """Keep rows with ``start <= submit_dt <= end``.

    Both bounds and dates are naive local datetimes.  An incomplete range
    leaves the rows untouched.
    """

    if start is None or end is None:
        return FilterResult(rows=rows, skipped_rows=0)

    dates = rows["submit_dt"]
    dated = dates.notna()
    in_range = dates.map(lambda d: d is not None and not pd.isna(d) and start <= d <= end)
    kept = rows[dated & in_range.astype(bool)]
    return FilterResult(rows=kept, skipped_rows=int((~dated).sum()))


def filter_by_period(rows: pd.DataFrame, filters: FilterState, today: date) -> FilterResult:
    if filters.period == ALL_TIME:
        return FilterResult(rows=rows, skipped_rows=0)
    if filters.period == CUSTOM:
        return filter_by_range(rows, filters.date_from, filters.date_to)
    year, month = reference_period(filters, today)
    return filter_by_month(rows, year, month)


def filter_by_agents(rows: pd.DataFrame, agents: FrozenSet[str]) -> pd.DataFrame:
    if not agents:
        return rows
    return rows[rows["agent_name"].isin(agents)]


def filter_by_products(rows: pd.DataFrame, products: FrozenSet[str]) -> FilterResult:
    """Keep rows whose product is selected; rows without a product are skipped."""

    if not products:
        return FilterResult(rows=rows, skipped_rows=0)
    has_product = rows["product"] != ""
    kept = rows[has_product & rows["product"].isin(products)]
    return FilterResult(rows=kept, skipped_rows=int((~has_product).sum()))


def filter_by_search(rows: pd.DataFrame, term: str) -> pd.DataFrame:
    if not term.strip() or rows.empty:
        return rows
    needle = term.lower()
    return rows[rows["agent_name"].str.lower().str.contains(needle, regex=False)]


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def previous_period_lookup(rows: pd.DataFrame, year: int, month: int) -> Dict[str, Decimal]:
    """Annualized premium per name key for the month before (year, month)."""

    prev_year, prev_month = previous_period(year, month)
    prev = filter_by_month(rows, prev_year, prev_month)
    return {agg.name_key: agg.annualized_premium for agg in aggregate_by_agent(prev.rows)}


def available_periods(rows: pd.DataFrame) -> List[str]:
    """Sorted ``YYYY-MM`` keys of months that have dated rows."""

    keys = {period_key(d.year, d.month) for d in rows["submit_dt"] if d is not None and not pd.isna(d)}
    return sorted(keys)


def unique_agents(rows: pd.DataFrame) -> List[str]:
    return sorted({n for n in rows["agent_name"] if n})


def unique_products(rows: pd.DataFrame) -> List[str]:
    return sorted({p for p in rows["product"] if p})


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def _sort_rows(rows: List[DisplayRow], sort_by: str) -> List[DisplayRow]:
    if sort_by == "annualized":
        return sorted(rows, key=lambda r: r.annualized_premium, reverse=True)
    if sort_by == "monthly":
        return sorted(rows, key=lambda r: r.monthly_premium, reverse=True)
    if sort_by == "alphabetical":
        return sorted(rows, key=lambda r: r.agent_name.lower())
    if sort_by == "original":
        return list(rows)
    raise ValueError(f"Unknown sort order '{sort_by}' (choose from {', '.join(SORT_CHOICES)})")


def _filter_team(rows: List[DisplayRow], team: str | None, no_team_label: str) -> List[DisplayRow]:
    if not team or team == ALL_TEAMS:
        return rows
    if team == no_team_label:
        return [r for r in rows if not r.team or r.team == no_team_label]
    return [r for r in rows if r.team == team]


def period_label(filters: FilterState, today: date) -> str:
    if filters.period == CUSTOM and _has_range(filters):
        return f"{filters.date_from:%m/%d/%Y} - {filters.date_to:%m/%d/%Y}"
    ref = reference_period(filters, today)
    if ref is None:
        return "All Time"
    year, month = ref
    return f"{calendar.month_name[month]} {year}"


def build_report(
    rows: pd.DataFrame,
    filters: FilterState | None = None,
    teams: Mapping[str, str] | None = None,
    options: ReportOptions | None = None,
    *,
    today: date | None = None,
    agent_numbers: Mapping[str, str] | None = None,
    no_team_label: str = NO_TEAM,
) -> DisplayResult:
    """Recompute the displayed report from the full normalized *rows*.

    Parameters
    ----------
    rows
        Frame returned by ``normalizers.normalize``; never modified.
    filters
        Current selection; defaults to the current month, no other filter.
    teams
        Optional agent-number -> team mapping.
    options
        Sort order and record cap.
    today
        Anchor for the "current" period; defaults to the wall-clock date.
    agent_numbers
        Precomputed ``teams.build_agent_number_index(rows)``; built here when
        omitted.
    """

    filters = filters or FilterState()
    options = options or ReportOptions()
    today = today or date.today()

    # 1-4. row filters, always from the full set
    by_date = filter_by_period(rows, filters, today)
    if by_date.skipped_rows:
        logger.debug("%d rows skipped: submit date could not be parsed", by_date.skipped_rows)
    subset = filter_by_agents(by_date.rows, filters.agents)
    subset = filter_by_products(subset, filters.products).rows
    subset = filter_by_search(subset, filters.search)

    # 5. aggregate
    aggregates = aggregate_by_agent(subset)

    # 6. previous month and team lookups
    ref = reference_period(filters, today)
    prev_lookup = previous_period_lookup(rows, *ref) if ref else {}
    if agent_numbers is None:
        agent_numbers = build_agent_number_index(rows)

    display = [
        DisplayRow.from_aggregate(
            agg,
            agent_number=agent_numbers.get(agg.name_key, ""),
            team=resolve_team(agg.name_key, agent_numbers, teams, no_team_label=no_team_label),
            annualized_prev=prev_lookup.get(agg.name_key),
        )
        for agg in aggregates
    ]

    # 7-9. sort, cap, then team
    ordered = _sort_rows(display, options.sort_by)
    capped = ordered[: options.max_records] if options.max_records > 0 else ordered
    final = _filter_team(capped, filters.team, no_team_label)

    year = ref[0] if ref else today.year
    month = ref[1] if ref else None

    result = DisplayResult(
        rows=final,
        period_label=period_label(filters, today),
        year=year,
        month=month,
        skipped_rows=by_date.skipped_rows,
        total_monthly=sum((r.monthly_premium for r in final), Decimal(0)),
        total_annualized=sum((r.annualized_premium for r in final), Decimal(0)),
        total_prev=sum((r.annualized_prev for r in final if r.annualized_prev is not None), Decimal(0)),
        total_records=len(ordered),
        displayed_records=len(final),
        selected_agents=len(filters.agents),
        filters=filters,
    )
    logger.debug(
        "Report %s: %d agents (%d before cap/team filter)",
        result.period_label,
        result.displayed_records,
        result.total_records,
    )
    return result
