"""Per-agent premium aggregation.

Rules implemented
------------------
1. Rows are grouped by the case-folded "First Last" name (title-cased for
   display).  Rows whose name is empty are ignored entirely.

2. Each group accumulates, row by row::

       monthly_premium    += premium
       annualized_premium += premium * 12

   Premiums are Decimals so ``annualized == monthly * 12`` holds exactly.

3. Products are tracked as an insertion-ordered list of distinct names plus a
   count per name.  Matching is exact and case-sensitive; empty product names
   are not recorded.

4. The result is sorted by annualized premium, highest first.  The sort is
   stable so ties keep first-seen order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List

import pandas as pd


ANNUALIZE_FACTOR = 12


@dataclass
class AgentAggregate:
    """Premium totals for one writing agent."""

    agent_name: str
    monthly_premium: Decimal = Decimal(0)
    annualized_premium: Decimal = Decimal(0)
    products: List[str] = field(default_factory=list)
    product_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def name_key(self) -> str:
        return self.agent_name.lower()

    def add(self, premium: Decimal, product: str) -> None:
        self.monthly_premium += premium
        self.annualized_premium += premium * ANNUALIZE_FACTOR
        if not product:
            return
        if product not in self.product_counts:
            self.products.append(product)
            self.product_counts[product] = 0
        self.product_counts[product] += 1


def _records(rows: pd.DataFrame | Iterable[Dict[str, Any]]) -> Iterable[Dict[str, Any]]:
    if isinstance(rows, pd.DataFrame):
        return rows.to_dict(orient="records")
    return rows


def aggregate_by_agent(rows: pd.DataFrame | Iterable[Dict[str, Any]]) -> List[AgentAggregate]:
    """Group normalized rows by agent and return them by annualized premium."""

    by_key: Dict[str, AgentAggregate] = {}
    for row in _records(rows):
        name = row.get("agent_name") or ""
        if not name:
            continue
        agg = by_key.get(row["name_key"])
        if agg is None:
            agg = by_key[row["name_key"]] = AgentAggregate(agent_name=name)
        agg.add(row.get("premium_amount") or Decimal(0), row.get("product") or "")

    # sorted() with reverse=True keeps equal keys in insertion order
    return sorted(by_key.values(), key=lambda a: a.annualized_premium, reverse=True)
