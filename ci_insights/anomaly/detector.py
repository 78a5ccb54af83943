"""
Anomaly Detectors

Two independent heuristics over historical test results. They use
different granularities and thresholds and are never merged.

AnomalyDetector (per test case, canonical):
    - performance: a recent duration at least 2 sigma from the test's mean
    - reliability: at least 2 of the 3 most recent results failed

SuiteAnomalyDetector (suite wide):
    - performance:     results slower than mean + 2 sigma
    - failure_rate:    global failure rate above 20%
    - service_failure: per-service failure rate above 30%
    - volume:          day-over-day result count swing above 50%

Both return anomalies sorted by severity (critical > warning > info) and
truncated to ``max_anomalies``.
"""
from __future__ import annotations

import logging
import math
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from statistics import mean, pstdev
from typing import Dict, Iterable, List, Optional

from ci_insights.core.models import TestOutcome, TestResult, UNKNOWN_TEST
from ci_insights.core.observability import AnalysisObserver, LoggingObserver
from ci_insights.core.resolver import ServiceResolver
from .models import Anomaly, AnomalySeverity, AnomalyType

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def newest_first(results: Iterable[TestResult]) -> List[TestResult]:
    """Sort by ``created_at`` descending; undated results go last."""
    return sorted(results, key=lambda r: r.created_at or _EPOCH, reverse=True)


def rank_anomalies(anomalies: List[Anomaly], limit: int) -> List[Anomaly]:
    ordered = sorted(anomalies, key=lambda a: a.severity.rank, reverse=True)
    return ordered[:limit]


class AnomalyDetector:
    """
    Per-test-case anomaly detection.

    A test case needs at least ``min_samples`` results before anything is
    flagged; the performance check further needs ``min_durations`` known
    durations and a non-zero spread.
    """

    def __init__(
        self,
        min_samples: int = 5,
        min_durations: int = 3,
        recent_window: int = 3,
        sigma: float = 2.0,
        recent_failures: int = 2,
        max_anomalies: int = 10,
        observer: Optional[AnalysisObserver] = None,
    ):
        self.min_samples = min_samples
        self.min_durations = min_durations
        self.recent_window = recent_window
        self.sigma = sigma
        self.recent_failures = recent_failures
        self.max_anomalies = max_anomalies
        self.observer = observer or LoggingObserver()

    def detect(self, results: Iterable[TestResult]) -> List[Anomaly]:
        groups: Dict[str, List[TestResult]] = OrderedDict()
        for result in newest_first(results):
            groups.setdefault(result.test_case_name or UNKNOWN_TEST, []).append(result)

        anomalies: List[Anomaly] = []
        for name, history in groups.items():
            if len(history) < self.min_samples:
                continue
            perf = self._performance(name, history)
            if perf is not None:
                anomalies.append(perf)
            reliability = self._reliability(name, history)
            if reliability is not None:
                anomalies.append(reliability)

        ranked = rank_anomalies(anomalies, self.max_anomalies)
        self.observer.record(
            "anomaly.detected", detector="test_case", test_cases=len(groups),
            found=len(anomalies), returned=len(ranked),
        )
        return ranked

    def _performance(self, name: str, history: List[TestResult]) -> Optional[Anomaly]:
        durations = [r.duration_ms for r in history if r.has_duration]
        if len(durations) < self.min_durations:
            return None
        avg = mean(durations)
        std = pstdev(durations)
        if std <= 0:
            return None

        limit = self.sigma * std
        recent = history[: self.recent_window]
        outliers = [
            r.duration_ms for r in recent
            if r.has_duration and self._beyond(abs(r.duration_ms - avg), limit)
        ]
        if not outliers:
            return None

        latest = recent[0].duration_ms if recent[0].has_duration else 0
        return Anomaly(
            type=AnomalyType.PERFORMANCE,
            severity=AnomalySeverity.from_level("MEDIUM"),
            subject=name,
            title=f"Performance Anomaly: {name}",
            description=f"Performance anomaly detected in {name}",
            details=f"Average duration: {round(avg)}ms, Recent duration: {round(latest or 0)}ms",
            count=len(outliers),
            evidence={
                "avg_duration": round(avg),
                "std_dev": round(std, 2),
                "recent_duration": round(latest or 0),
                "outliers": outliers,
            },
        )

    def _reliability(self, name: str, history: List[TestResult]) -> Optional[Anomaly]:
        recent = history[: self.recent_window]
        failures = sum(1 for r in recent if r.outcome == TestOutcome.FAILED)
        if failures < self.recent_failures:
            return None
        return Anomaly(
            type=AnomalyType.RELIABILITY,
            severity=AnomalySeverity.from_level("HIGH"),
            subject=name,
            title=f"Reliability Anomaly: {name}",
            description=f"Multiple recent failures in {name}",
            details=f"{failures} of the last {len(recent)} runs failed",
            count=failures,
            evidence={"failure_count": failures, "window": len(recent)},
        )

    @staticmethod
    def _beyond(deviation: float, limit: float) -> bool:
        return deviation >= limit or math.isclose(deviation, limit, rel_tol=1e-9)


class SuiteAnomalyDetector:
    """Suite-wide anomaly detection over an entire result window."""

    def __init__(
        self,
        resolver: Optional[ServiceResolver] = None,
        sigma: float = 2.0,
        failure_rate_threshold: float = 20.0,
        service_failure_threshold: float = 30.0,
        volume_change_threshold: float = 50.0,
        max_anomalies: int = 10,
        observer: Optional[AnalysisObserver] = None,
    ):
        self.resolver = resolver or ServiceResolver()
        self.sigma = sigma
        self.failure_rate_threshold = failure_rate_threshold
        self.service_failure_threshold = service_failure_threshold
        self.volume_change_threshold = volume_change_threshold
        self.max_anomalies = max_anomalies
        self.observer = observer or LoggingObserver()

    def detect(self, results: Iterable[TestResult], now: Optional[datetime] = None) -> List[Anomaly]:
        results = list(results)
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        anomalies: List[Anomaly] = []
        for check in (self._performance, self._failure_rate, self._service_failures):
            anomalies.extend(check(results))
        anomalies.extend(self._volume(results, now))

        ranked = rank_anomalies(anomalies, self.max_anomalies)
        self.observer.record(
            "anomaly.detected", detector="suite", results=len(results),
            found=len(anomalies), returned=len(ranked),
        )
        return ranked

    # =========================================================================
    # Checks
    # =========================================================================

    def _performance(self, results: List[TestResult]) -> List[Anomaly]:
        durations = [r.duration_ms for r in results if r.has_duration]
        if not durations:
            return []
        avg = mean(durations)
        threshold = avg + self.sigma * pstdev(durations)
        slow = [d for d in durations if d > threshold]
        if not slow:
            return []
        return [Anomaly(
            type=AnomalyType.PERFORMANCE,
            severity=AnomalySeverity.WARNING,
            subject="suite",
            title="Performance Degradation Detected",
            description=f"{len(slow)} tests are running significantly slower than average",
            details=f"Average duration: {round(avg)}ms, Threshold: {round(threshold)}ms",
            count=len(slow),
            evidence={"avg_duration": round(avg), "threshold": round(threshold)},
        )]

    def _failure_rate(self, results: List[TestResult]) -> List[Anomaly]:
        if not results:
            return []
        failures = sum(1 for r in results if r.outcome == TestOutcome.FAILED)
        rate = failures / len(results) * 100.0
        if rate <= self.failure_rate_threshold:
            return []
        return [Anomaly(
            type=AnomalyType.FAILURE_RATE,
            severity=AnomalySeverity.CRITICAL,
            subject="suite",
            title="High Failure Rate Detected",
            description=f"Failure rate is {rate:.1f}%, significantly above normal",
            details=f"{failures} failures out of {len(results)} tests",
            count=failures,
            evidence={"failure_rate": round(rate, 2), "total": len(results)},
        )]

    def _service_failures(self, results: List[TestResult]) -> List[Anomaly]:
        totals: Dict[str, List[int]] = OrderedDict()
        for r in results:
            counts = totals.setdefault(self.resolver.resolve_service(r.suite_name), [0, 0])
            counts[0] += 1
            if r.outcome == TestOutcome.FAILED:
                counts[1] += 1

        out: List[Anomaly] = []
        for service, (total, failures) in totals.items():
            rate = failures / total * 100.0
            if rate <= self.service_failure_threshold:
                continue
            out.append(Anomaly(
                type=AnomalyType.SERVICE_FAILURE,
                severity=AnomalySeverity.CRITICAL,
                subject=service,
                title=f"Service Failure Anomaly: {service}",
                description=f"{service} has a failure rate of {rate:.1f}%",
                details=f"{failures} failures out of {total} tests",
                count=failures,
                evidence={"failure_rate": round(rate, 2), "total": total},
            ))
        return out

    def _volume(self, results: List[TestResult], now: datetime) -> List[Anomaly]:
        today = now.astimezone(timezone.utc).date()
        yesterday = today - timedelta(days=1)
        today_count = sum(1 for r in results if r.created_at and r.created_at.date() == today)
        yesterday_count = sum(1 for r in results if r.created_at and r.created_at.date() == yesterday)
        if today_count == 0 or yesterday_count == 0:
            return []

        change = (today_count - yesterday_count) / yesterday_count * 100.0
        if abs(change) <= self.volume_change_threshold:
            return []
        return [Anomaly(
            type=AnomalyType.VOLUME,
            severity=AnomalySeverity.INFO,
            subject="suite",
            title="Test Volume Anomaly",
            description=f"Test volume changed by {abs(change):.1f}%",
            details=f"Today: {today_count} tests, Yesterday: {yesterday_count} tests",
            count=abs(today_count - yesterday_count),
            evidence={"today": today_count, "yesterday": yesterday_count},
        )]
