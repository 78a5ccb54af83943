"""
Paginated Record Source

Implements IRecordSource on top of a page-fetching transport (a REST or SQL
backend exposing ``range``-style pagination). The transport is injected as a
callable so that HTTP concerns stay outside the package.

Pages are requested until a short page comes back. The loop is bounded by a
page budget and a wall-clock budget; exceeding either raises
DataSourceError instead of returning a partial collection.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ci_insights.core.errors import DataSourceError
from ci_insights.core.models import TestResult, TestRun

logger = logging.getLogger(__name__)

TEST_RUN_TABLE = "test_run"
TEST_RESULT_TABLE = "test_result"

TEST_RUN_SELECT = "id, status, started_at, finished_at, test_suite(name, project(name))"
TEST_RESULT_SELECT = (
    "id, status, duration_ms, created_at, test_case(name, tags), "
    "test_run(test_suite(name, project(name)))"
)


@dataclass(frozen=True)
class RecordFilter:
    column: str
    operator: str
    value: Any


@dataclass(frozen=True)
class OrderBy:
    column: str
    ascending: bool = True


@dataclass(frozen=True)
class PageRequest:
    """One page worth of query, handed to the transport."""
    table: str
    select: str
    offset: int
    limit: int
    filter: Optional[RecordFilter] = None
    order_by: Optional[OrderBy] = None

    @property
    def range_end(self) -> int:
        """Inclusive end index, as used by ``range(from, to)`` style APIs."""
        return self.offset + self.limit - 1


PageFetcher = Callable[[PageRequest], List[Dict[str, Any]]]


class PaginatedRecordSource:
    """
    IRecordSource over a paging transport.

    Example:
        >>> source = PaginatedRecordSource(fetch_page=client.fetch, page_size=10000)
        >>> runs = source.fetch_test_runs(since=three_months_ago)
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        page_size: int = 10000,
        max_pages: int = 1000,
        max_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.fetch_page = fetch_page
        self.page_size = page_size
        self.max_pages = max_pages
        self.max_seconds = max_seconds
        self.clock = clock

    # =========================================================================
    # IRecordSource
    # =========================================================================

    def fetch_test_runs(self, since: Optional[datetime] = None) -> List[TestRun]:
        rows = self.fetch_all_records(
            TEST_RUN_TABLE,
            select=TEST_RUN_SELECT,
            filter=RecordFilter("started_at", "gte", since.isoformat()) if since else None,
            order_by=OrderBy("started_at", ascending=False),
        )
        return [TestRun.from_record(row) for row in rows]

    def fetch_test_results(self, since: Optional[datetime] = None) -> List[TestResult]:
        rows = self.fetch_all_records(
            TEST_RESULT_TABLE,
            select=TEST_RESULT_SELECT,
            filter=RecordFilter("created_at", "gte", since.isoformat()) if since else None,
            order_by=OrderBy("created_at", ascending=False),
        )
        return [TestResult.from_record(row) for row in rows]

    # =========================================================================
    # Paging
    # =========================================================================

    def fetch_all_records(
        self,
        table: str,
        select: str = "*",
        filter: Optional[RecordFilter] = None,
        order_by: Optional[OrderBy] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch every matching row of ``table``.

        Raises:
            DataSourceError: on transport failure or when the page or time
                budget runs out before a short page is seen.
        """
        records: List[Dict[str, Any]] = []
        started = self.clock()
        offset, pages = 0, 0

        while True:
            if pages >= self.max_pages:
                raise DataSourceError(
                    f"Page budget of {self.max_pages} exhausted while reading {table}",
                    table=table, pages_fetched=pages,
                )
            if self.clock() - started > self.max_seconds:
                raise DataSourceError(
                    f"Time budget of {self.max_seconds}s exhausted while reading {table}",
                    table=table, pages_fetched=pages,
                )

            request = PageRequest(table, select, offset, self.page_size, filter, order_by)
            try:
                page = self.fetch_page(request)
            except DataSourceError:
                raise
            except Exception as e:
                raise DataSourceError(
                    f"Failed to fetch {table} page at offset {offset}: {e}",
                    table=table, pages_fetched=pages,
                ) from e

            page = list(page or [])
            records.extend(page)
            pages += 1
            logger.debug("Fetched %d %s rows at offset %d", len(page), table, offset)

            if len(page) < self.page_size:
                break
            offset += self.page_size

        logger.info("Fetched %d %s records in %d page(s)", len(records), table, pages)
        return records
