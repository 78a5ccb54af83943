"""
Metrics Aggregator

Folds TestRun / TestResult collections into per-service, per-category
counters. Each call works on its own accumulator so concurrent callers never
share state.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, Optional

from ci_insights.core.models import (
    TestOutcome, TestResult, TestRun, UNKNOWN_PROJECT, UNKNOWN_SERVICE,
)
from ci_insights.core.observability import AnalysisObserver, LoggingObserver
from ci_insights.core.resolver import ServiceResolver
from .models import ServiceAggregate

logger = logging.getLogger(__name__)


class MetricsAggregator:
    """
    Groups CI records by resolved service and test category.

    Results only contribute durations to buckets already created by a run;
    categories are never fabricated from result-only data.

    Example:
        >>> aggregator = MetricsAggregator()
        >>> services = aggregator.aggregate(runs, results)
        >>> services["Order Service"].total_runs
    """

    def __init__(
        self,
        resolver: Optional[ServiceResolver] = None,
        recent_window_days: int = 7,
        observer: Optional[AnalysisObserver] = None,
    ):
        self.resolver = resolver or ServiceResolver()
        self.recent_window = timedelta(days=recent_window_days)
        self.observer = observer or LoggingObserver()

    def aggregate(
        self,
        runs: Iterable[TestRun],
        results: Iterable[TestResult],
        now: Optional[datetime] = None,
    ) -> Dict[str, ServiceAggregate]:
        """
        Aggregate runs and results into ServiceAggregate objects.

        Args:
            runs: Test runs (any order)
            results: Test results (any order)
            now: Reference time for the recency window (defaults to UTC now)

        Returns:
            Mapping of canonical service name -> ServiceAggregate
        """
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        window_start = now - self.recent_window

        services: Dict[str, ServiceAggregate] = {}
        run_count = 0
        for run in runs:
            run_count += 1
            self._add_run(services, run, window_start)

        kept, dropped = 0, 0
        for result in results:
            if self._add_result(services, result):
                kept += 1
            else:
                dropped += 1

        unknown = services.get(UNKNOWN_SERVICE)
        self.observer.record(
            "aggregate.completed",
            services=len(services),
            runs=run_count,
            durations_kept=kept,
            results_dropped=dropped,
            unknown_service_runs=unknown.total_runs if unknown else 0,
        )
        return services

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _add_run(
        self, services: Dict[str, ServiceAggregate], run: TestRun, window_start: datetime,
    ) -> None:
        service_name, category = self.resolver.resolve(run.suite_name)
        aggregate = services.get(service_name)
        if aggregate is None:
            aggregate = ServiceAggregate(
                name=service_name,
                project=run.project_name or UNKNOWN_PROJECT,
            )
            services[service_name] = aggregate

        stats = aggregate.bucket(category)
        stats.total += 1
        outcome = run.outcome
        if outcome == TestOutcome.PASSED:
            stats.passed += 1
        elif outcome == TestOutcome.FAILED:
            stats.failed += 1
        stats.runs.append(run)

        if run.started_at is not None:
            if run.started_at >= window_start:
                stats.recent_runs.append(run)
            if aggregate.last_run is None or run.started_at > aggregate.last_run:
                aggregate.last_run = run.started_at

    def _add_result(self, services: Dict[str, ServiceAggregate], result: TestResult) -> bool:
        service_name, category = self.resolver.resolve(result.suite_name)
        aggregate = services.get(service_name)
        if aggregate is None or category not in aggregate.categories:
            return False
        if result.has_duration:
            aggregate.categories[category].durations.append(float(result.duration_ms))
        return True
