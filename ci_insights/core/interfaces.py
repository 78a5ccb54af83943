"""
Record Source Interface

Defines the IRecordSource Protocol, the contract every data-source adapter
(paginated backend, JSON export, in-memory) satisfies. Services depend on
this Protocol rather than on concrete adapters.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable

from .models import TestResult, TestRun


@runtime_checkable
class IRecordSource(Protocol):
    """
    Port for CI record retrieval.

    Implementations return fully materialized collections and raise
    DataSourceError on any fetch failure; partial results are never returned.
    """

    def fetch_test_runs(self, since: Optional[datetime] = None) -> List[TestRun]:
        """Return all test runs started at or after ``since`` (newest first)."""
        ...

    def fetch_test_results(self, since: Optional[datetime] = None) -> List[TestResult]:
        """Return all test results created at or after ``since`` (newest first)."""
        ...
