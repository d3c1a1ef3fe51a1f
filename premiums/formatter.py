"""Presentation formatting shared by the output writers (PDF, Excel, …)."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

import pandas as _pd

from .filters import DisplayResult


COLUMNS = ["Team", "Agent Name", "Previous Month", "Annualized Premium"]
TOTAL_LABEL = "TOTAL"
NO_DATA = "-"

_CENT = Decimal("0.01")


def format_currency(amount: Decimal | float | int) -> str:
    """Format *amount* as US dollars, e.g. ``$1,234.50`` / ``-$5.00``."""

    value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_display_frame(result: DisplayResult, *, include_total: bool = True) -> _pd.DataFrame:
    """Return a *new* DataFrame with one presentation row per agent.

    Agents with no activity in the previous month show ``-`` rather than
    ``$0.00``.  The last row carries the totals when *include_total* is set.
    """

    records = [
        [
            row.team,
            row.agent_name,
            format_currency(row.annualized_prev) if row.annualized_prev is not None else NO_DATA,
            format_currency(row.annualized_premium),
        ]
        for row in result.rows
    ]
    if include_total:
        records.append(
            [
                TOTAL_LABEL,
                "",
                format_currency(result.total_prev),
                format_currency(result.total_annualized),
            ]
        )
    return _pd.DataFrame(records, columns=COLUMNS)


def report_filename(result: DisplayResult, suffix: str = ".pdf") -> str:
    """``agent-premiums-YYYY-MM<suffix>``; month ``00`` for all-time."""

    month = f"{result.month:02d}" if result.month else "00"
    return f"agent-premiums-{result.year}-{month}{suffix}"


def subtitle(result: DisplayResult) -> str:
    text = f"Period: {result.period_label}"
    if result.selected_agents:
        text += f" ({result.selected_agents} selected agents)"
    return text
