"""Team and agent-number resolution."""

from __future__ import annotations

from typing import Dict, Mapping

import pandas as pd

from .config import NO_TEAM


def build_agent_number_index(rows: pd.DataFrame) -> Dict[str, str]:
    """Map each agent's name key to the agent number on their first row.

    The first row wins even when its agent number is blank.
    """

    index: Dict[str, str] = {}
    if rows.empty:
        return index
    for key, number in zip(rows["name_key"], rows["agent_number"]):
        if key and key not in index:
            index[key] = number or ""
    return index


def resolve_team(
    name_key: str,
    agent_numbers: Mapping[str, str],
    teams: Mapping[str, str] | None,
    *,
    no_team_label: str = NO_TEAM,
) -> str:
    number = agent_numbers.get(name_key, "")
    if not number or not teams:
        return no_team_label
    return teams.get(number) or no_team_label


def team_labels(teams: Mapping[str, str] | None) -> list[str]:
    return sorted(set((teams or {}).values()))
