"""
Run History Analytics

Two views over raw CI history that sit beside the scorecards:

    RunImpactRanker       - per-project impact score from run volume, success
                            rate, recent failures and recency (0-100), tiered
                            HIGH / MEDIUM / LOW and ranked highest first
    DailyTrendAggregator  - per-service daily passed / failed / skipped counts
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from ci_insights.core.models import (
    RiskLevel, TestOutcome, TestResult, TestRun, UNKNOWN_PROJECT,
)
from ci_insights.core.observability import AnalysisObserver, LoggingObserver
from ci_insights.core.resolver import ServiceResolver
from .models import ProjectImpact, ServiceTrend, TrendPoint
from .policy import round_half_up

logger = logging.getLogger(__name__)

IMPACT_WEIGHTS: Dict[str, float] = {
    "volume": 0.3,
    "success": 0.4,
    "failure": 0.2,
    "recency": 0.1,
}

VOLUME_SATURATION = 10
_SKIP_STATUSES = frozenset({"SKIPPED", "SKIP"})


class RunImpactRanker:
    """
    Ranks projects by how healthy and active their recent CI history is.

    Example:
        >>> ranking = RunImpactRanker().rank(runs, now=now)
        >>> [(p.project, p.impact_score, p.risk_level.value) for p in ranking]
    """

    def __init__(
        self,
        recent_window_days: int = 7,
        observer: Optional[AnalysisObserver] = None,
    ):
        self.recent_window = timedelta(days=recent_window_days)
        self.observer = observer or LoggingObserver()

    def rank(self, runs: Iterable[TestRun], now: Optional[datetime] = None) -> List[ProjectImpact]:
        """Score every project seen in ``runs``; ties keep first-seen order."""
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        window_start = now - self.recent_window

        projects: Dict[str, ProjectImpact] = {}
        for run in runs:
            name = run.project_name or UNKNOWN_PROJECT
            entry = projects.get(name)
            if entry is None:
                entry = projects[name] = ProjectImpact(project=name)

            entry.total_runs += 1
            outcome = run.outcome
            if outcome == TestOutcome.PASSED:
                entry.successful_runs += 1
            elif outcome == TestOutcome.FAILED:
                entry.failed_runs += 1

            if run.started_at is None:
                continue
            if run.started_at >= window_start:
                entry.recent_runs += 1
                if outcome == TestOutcome.FAILED:
                    entry.recent_failures += 1
            if entry.last_run is None or run.started_at > entry.last_run:
                entry.last_run = run.started_at

        for entry in projects.values():
            entry.impact_score = self.impact_score(entry)
            entry.risk_level = self.risk_level(entry.impact_score, entry.recent_failure_rate)

        ranking = sorted(projects.values(), key=lambda p: p.impact_score, reverse=True)
        self.observer.record(
            "run_impact.ranked",
            projects=len(ranking),
            high_risk=sum(1 for p in ranking if p.risk_level == RiskLevel.HIGH),
        )
        return ranking

    @staticmethod
    def impact_score(entry: ProjectImpact) -> int:
        components = {
            "volume": min(entry.total_runs / VOLUME_SATURATION, 1.0),
            "success": entry.success_rate / 100.0,
            "failure": 1.0 - entry.recent_failure_rate / 100.0,
            "recency": 1.0 if entry.recent_runs > 0 else 0.5,
        }
        score = sum(value * IMPACT_WEIGHTS[name] for name, value in components.items())
        return round_half_up(score * 100.0)

    @staticmethod
    def risk_level(impact_score: int, recent_failure_rate: float) -> RiskLevel:
        if recent_failure_rate > 30 or impact_score < 50:
            return RiskLevel.HIGH
        if recent_failure_rate > 15 or impact_score < 70:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW


class DailyTrendAggregator:
    """
    Buckets test results per resolved service and UTC calendar day.

    Results without a timestamp are dropped. Statuses other than
    passed / failed / skipped count toward no series.
    """

    def __init__(
        self,
        resolver: Optional[ServiceResolver] = None,
        observer: Optional[AnalysisObserver] = None,
    ):
        self.resolver = resolver or ServiceResolver()
        self.observer = observer or LoggingObserver()

    def trends(self, results: Iterable[TestResult]) -> List[ServiceTrend]:
        by_service: Dict[str, Dict[str, TrendPoint]] = {}
        dropped = 0
        for result in results:
            if result.created_at is None:
                dropped += 1
                continue
            service = self.resolver.resolve_service(result.suite_name)
            day = result.created_at.date().isoformat()
            days = by_service.setdefault(service, {})
            point = days.get(day)
            if point is None:
                point = days[day] = TrendPoint(date=day)

            outcome = result.outcome
            if outcome == TestOutcome.PASSED:
                point.passed += 1
            elif outcome == TestOutcome.FAILED:
                point.failed += 1
            elif str(result.status or "").strip().upper() in _SKIP_STATUSES:
                point.skipped += 1

        trends = [
            ServiceTrend(service=service, points=[days[d] for d in sorted(days)])
            for service, days in by_service.items()
        ]
        self.observer.record("trends.computed", services=len(trends), undated_results=dropped)
        return trends
