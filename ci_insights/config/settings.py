"""
Application Settings

Environment configuration for the application.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from ci_insights.core.errors import ConfigurationError

DEFAULT_REGISTRY_PATH = os.path.join("config", "service_registry.yaml")


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a {cast.__name__}, got {raw!r}") from e


@dataclass
class Settings:
    """Application settings from environment."""

    # Service registry (dependency graph, coverage map, scoring section)
    registry_path: str = DEFAULT_REGISTRY_PATH

    # Record window and paging budget
    time_range_months: int = 3
    page_size: int = 10000
    max_pages: int = 1000
    fetch_timeout: float = 300.0

    # Scorecard recency window; None keeps the scoring policy value
    recent_window_days: Optional[int] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            registry_path=os.getenv("CI_INSIGHTS_REGISTRY", DEFAULT_REGISTRY_PATH),
            time_range_months=_env_number("CI_INSIGHTS_TIME_RANGE_MONTHS", 3, int),
            page_size=_env_number("CI_INSIGHTS_PAGE_SIZE", 10000, int),
            max_pages=_env_number("CI_INSIGHTS_MAX_PAGES", 1000, int),
            fetch_timeout=_env_number("CI_INSIGHTS_FETCH_TIMEOUT", 300.0, float),
            recent_window_days=_env_number("CI_INSIGHTS_RECENT_WINDOW_DAYS", None, int),
        )

    def window_start(self, now: Optional[datetime] = None) -> datetime:
        """Start of the record window (months approximated as 30 days)."""
        now = now or datetime.now(timezone.utc)
        return now - timedelta(days=30 * self.time_range_months)
