"""
Quality Insights

Suite-wide quality indicators derived from test results alone:

    Pass rate        - share of passing results
    Stability        - penalizes flaky test cases (mixed outcomes)
    Performance      - penalizes slow results (> 5s)
    Security         - pass rate of security-tagged or security-named tests
    Maintainability  - share of descriptively named test cases
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Optional, Set

from ci_insights.core.models import TestOutcome, TestResult
from ci_insights.core.observability import AnalysisObserver, LoggingObserver


@dataclass
class QualityInsights:
    """All scores are percentages in [0, 100]."""
    pass_rate_score: float
    stability_score: float
    performance_score: float
    security_score: float
    maintainability_score: float
    total_tests: int
    flaky_tests: int
    slow_tests: int
    security_tests: int

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class QualityInsightsAnalyzer:
    """Computes QualityInsights from a materialized result collection."""

    def __init__(
        self,
        slow_threshold_ms: float = 5000.0,
        flaky_min_samples: int = 3,
        observer: Optional[AnalysisObserver] = None,
    ):
        self.slow_threshold_ms = slow_threshold_ms
        self.flaky_min_samples = flaky_min_samples
        self.observer = observer or LoggingObserver()

    def analyze(self, results: Iterable[TestResult]) -> QualityInsights:
        results = list(results)
        total = len(results)
        passed = sum(1 for r in results if r.outcome == TestOutcome.PASSED)

        flaky = self.flaky_tests(results)
        durations = [r.duration_ms for r in results if r.has_duration]
        slow = sum(1 for d in durations if d > self.slow_threshold_ms)

        security = [r for r in results if r.is_security_test]
        security_passed = sum(1 for r in security if r.outcome == TestOutcome.PASSED)

        insights = QualityInsights(
            pass_rate_score=(passed / total) * 100.0 if total else 0.0,
            stability_score=max(0.0, 100.0 - (len(flaky) / total) * 100.0) if total else 100.0,
            performance_score=max(0.0, 100.0 - (slow / len(durations)) * 100.0) if durations else 100.0,
            security_score=(security_passed / len(security)) * 100.0 if security else 100.0,
            maintainability_score=self._maintainability(results),
            total_tests=total,
            flaky_tests=len(flaky),
            slow_tests=slow,
            security_tests=len(security),
        )
        self.observer.record(
            "quality.analyzed", total=total, flaky=len(flaky), slow=slow, security=len(security),
        )
        return insights

    def flaky_tests(self, results: List[TestResult]) -> List[str]:
        """Names of test cases with enough samples and more than one outcome."""
        outcomes: Dict[str, List[TestOutcome]] = defaultdict(list)
        for r in results:
            if r.test_case_name:
                outcomes[r.test_case_name].append(r.outcome)
        flaky = []
        for name, seen in outcomes.items():
            distinct: Set[TestOutcome] = set(seen)
            if len(seen) >= self.flaky_min_samples and len(distinct) > 1:
                flaky.append(name)
        return sorted(flaky)

    @staticmethod
    def _maintainability(results: List[TestResult]) -> float:
        if not results:
            return 0.0

        def well_named(name: str) -> bool:
            return len(name) > 10 and "_" in name and "test" not in name

        good = sum(1 for r in results if well_named(r.test_case_name or ""))
        return (good / len(results)) * 100.0
