"""
Core domain: CI records, label resolution, ports, errors and observers.
"""
from .models import (
    TestRun,
    TestResult,
    TestOutcome,
    TestCategory,
    RiskLevel,
    parse_timestamp,
    UNKNOWN_SERVICE,
)
from .resolver import ServiceResolver, service_slug
from .interfaces import IRecordSource
from .errors import InsightsError, DataSourceError, ConfigurationError
from .observability import AnalysisObserver, NullObserver, LoggingObserver, CollectingObserver

__all__ = [
    "TestRun", "TestResult", "TestOutcome", "TestCategory", "RiskLevel", "parse_timestamp",
    "UNKNOWN_SERVICE", "ServiceResolver", "service_slug", "IRecordSource",
    "InsightsError", "DataSourceError", "ConfigurationError",
    "AnalysisObserver", "NullObserver", "LoggingObserver", "CollectingObserver",
]
