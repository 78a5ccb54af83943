"""
File Record Source

Implements IRecordSource for JSON exports of the ``test_run`` and
``test_result`` tables, and an in-memory variant for embedding and tests.

Accepted file layouts:
    [ {...}, {...} ]                 plain list of rows
    { "data": [ ... ] }              wrapped API response
    { "test_run": [ ... ] }          keyed by table name
"""
from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from ci_insights.core.errors import DataSourceError
from ci_insights.core.models import TestResult, TestRun
from .paginated_source import TEST_RESULT_TABLE, TEST_RUN_TABLE

logger = logging.getLogger(__name__)


def _runs_newest_first(runs: Iterable[TestRun]) -> List[TestRun]:
    dated = [r for r in runs if r.started_at is not None]
    undated = [r for r in runs if r.started_at is None]
    return sorted(dated, key=lambda r: r.started_at, reverse=True) + undated


def _since_runs(runs: Iterable[TestRun], since: Optional[datetime]) -> List[TestRun]:
    runs = list(runs)
    if since is not None:
        runs = [r for r in runs if r.started_at is not None and r.started_at >= since]
    return _runs_newest_first(runs)


def _since_results(results: Iterable[TestResult], since: Optional[datetime]) -> List[TestResult]:
    results = list(results)
    if since is not None:
        results = [r for r in results if r.created_at is not None and r.created_at >= since]
    dated = [r for r in results if r.created_at is not None]
    undated = [r for r in results if r.created_at is None]
    return sorted(dated, key=lambda r: r.created_at, reverse=True) + undated


class JsonFileRecordSource:
    """
    Reads exported rows from JSON files.

    Both paths may point at the same file when it is keyed by table name.
    """

    def __init__(self, runs_path: str, results_path: Optional[str] = None):
        self.runs_path = runs_path
        self.results_path = results_path or runs_path

    def fetch_test_runs(self, since: Optional[datetime] = None) -> List[TestRun]:
        rows = self._read_rows(self.runs_path, TEST_RUN_TABLE)
        return _since_runs((TestRun.from_record(r) for r in rows), since)

    def fetch_test_results(self, since: Optional[datetime] = None) -> List[TestResult]:
        rows = self._read_rows(self.results_path, TEST_RESULT_TABLE)
        return _since_results((TestResult.from_record(r) for r in rows), since)

    def _read_rows(self, path: str, table: str) -> List[Dict[str, Any]]:
        if not os.path.exists(path):
            raise DataSourceError(f"Record file not found: {path}", table=table)
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DataSourceError(f"Cannot read {path}: {e}", table=table) from e

        if isinstance(payload, dict):
            if table in payload:
                payload = payload[table]
            elif "data" in payload:
                payload = payload["data"]
        if not isinstance(payload, list):
            raise DataSourceError(f"{path} does not contain a list of {table} rows", table=table)

        logger.debug("Read %d %s rows from %s", len(payload), table, path)
        return [row for row in payload if isinstance(row, dict)]


class InMemoryRecordSource:
    """Serves pre-built records; raw dict rows are converted on construction."""

    def __init__(
        self,
        runs: Iterable[Union[TestRun, Dict[str, Any]]] = (),
        results: Iterable[Union[TestResult, Dict[str, Any]]] = (),
    ):
        self.runs = [r if isinstance(r, TestRun) else TestRun.from_record(r) for r in runs]
        self.results = [r if isinstance(r, TestResult) else TestResult.from_record(r) for r in results]

    def fetch_test_runs(self, since: Optional[datetime] = None) -> List[TestRun]:
        return _since_runs(self.runs, since)

    def fetch_test_results(self, since: Optional[datetime] = None) -> List[TestResult]:
        return _since_results(self.results, since)
