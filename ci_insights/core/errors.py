"""
Exception hierarchy.

Only failures that must abort a computation are raised; malformed record
fields are defaulted by the engines instead.
"""


class InsightsError(Exception):
    """Base class for all ci_insights errors."""


class DataSourceError(InsightsError):
    """Fetching records failed, or the paging budget was exhausted."""

    def __init__(self, message: str, table: str = "", pages_fetched: int = 0):
        super().__init__(message)
        self.table = table
        self.pages_fetched = pages_fetched


class ConfigurationError(InsightsError):
    """A registry or scoring-policy file is unreadable or malformed."""
