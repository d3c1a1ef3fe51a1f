"""Report configuration loaded from ``config/report.yml``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any

import yaml


logger = logging.getLogger(__name__)


DEFAULT_COLUMNS: Dict[str, str] = {
    "submit_date": "Submit Date",
    "last_name": "Writing Agent Last Name",
    "first_name": "Writing Agent First Name",
    "product": "Product",
    "premium": "Premium Amount",
    "agent_number": "Writing Agent Number",
}

DEFAULT_TEAM_COLUMNS: Dict[str, str] = {
    "agent_number": "Writing Agent Number",
    "team": "Team ID",
}

NO_TEAM = "NO TEAM"

# Canonical keys that must be present in every submissions export
REQUIRED_KEYS = ("submit_date", "last_name", "first_name", "product", "premium")


@dataclass
class ReportConfig:
    """Column names and presentation settings for one report run."""

    columns: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLUMNS))
    team_columns: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TEAM_COLUMNS))
    no_team_label: str = NO_TEAM
    title: str = "Monthly Agent Premiums Report"
    timezone: str = "America/New_York"
    sort_by: str = "annualized"
    max_records: int = 0

    @property
    def required_columns(self) -> list[str]:
        return [self.columns[k] for k in REQUIRED_KEYS]

    def column(self, key: str) -> str:
        return self.columns[key]


def load_config(base_dir: Path | None = None) -> ReportConfig:
    """Read ``<base_dir>/config/report.yml``; missing file or keys keep defaults."""

    cfg = ReportConfig()
    if base_dir is None:
        return cfg

    cfg_path = base_dir / "config" / "report.yml"
    if not cfg_path.exists():
        logger.debug("No report config at %s – using defaults", cfg_path)
        return cfg

    raw: Dict[str, Any] = yaml.safe_load(cfg_path.read_text()) or {}

    cfg.columns.update(raw.get("columns") or {})
    cfg.team_columns.update(raw.get("team_columns") or {})
    cfg.no_team_label = raw.get("no_team_label", cfg.no_team_label)
    cfg.title = raw.get("title", cfg.title)
    cfg.timezone = raw.get("timezone", cfg.timezone)

    defaults = raw.get("defaults") or {}
    cfg.sort_by = defaults.get("sort_by", cfg.sort_by)
    try:
        cfg.max_records = int(defaults.get("max_records", cfg.max_records) or 0)
    except (TypeError, ValueError):
        logger.warning("Invalid defaults.max_records in %s – using unlimited", cfg_path.name)
        cfg.max_records = 0

    logger.debug("Loaded report config from %s", cfg_path)
    return cfg
