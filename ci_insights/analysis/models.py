"""
Analysis Domain Models

Data structures for aggregated CI metrics, per-service scorecards and
improvement suggestions.
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ci_insights.core.models import RiskLevel, TestCategory, TestOutcome, TestRun


# ---------------------------------------------------------------------------
# Aggregation Models
# ---------------------------------------------------------------------------

@dataclass
class CategoryStats:
    """Counters for one (service, test category) bucket."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    durations: List[float] = field(default_factory=list)
    runs: List[TestRun] = field(default_factory=list)
    recent_runs: List[TestRun] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Passed / total as a percentage (0 when empty)."""
        return (self.passed / self.total) * 100.0 if self.total > 0 else 0.0

    @property
    def avg_duration(self) -> float:
        return sum(self.durations) / len(self.durations) if self.durations else 0.0

    @property
    def recent_failures(self) -> int:
        return sum(1 for r in self.recent_runs if r.outcome == TestOutcome.FAILED)


@dataclass
class ServiceAggregate:
    """All CI activity attributed to one canonical service."""
    name: str
    project: str
    categories: Dict[TestCategory, CategoryStats] = field(default_factory=dict)
    last_run: Optional[datetime] = None

    def bucket(self, category: TestCategory) -> CategoryStats:
        if category not in self.categories:
            self.categories[category] = CategoryStats()
        return self.categories[category]

    @property
    def total_runs(self) -> int:
        return sum(s.total for s in self.categories.values())

    @property
    def failed_runs(self) -> int:
        return sum(s.failed for s in self.categories.values())

    @property
    def recent_run_count(self) -> int:
        return sum(len(s.recent_runs) for s in self.categories.values())

    @property
    def recent_failures(self) -> int:
        return sum(s.recent_failures for s in self.categories.values())

    @property
    def failure_rate(self) -> float:
        """All-time failure percentage."""
        total = self.total_runs
        return (self.failed_runs / total) * 100.0 if total > 0 else 0.0

    @property
    def recent_failure_rate(self) -> float:
        """Failure percentage within the recency window."""
        recent = self.recent_run_count
        return (self.recent_failures / recent) * 100.0 if recent > 0 else 0.0


# ---------------------------------------------------------------------------
# Suggestion Models
# ---------------------------------------------------------------------------

class SuggestionCategory(Enum):
    CRITICAL = "Critical"
    HIGH_PRIORITY = "High Priority"
    MEDIUM_PRIORITY = "Medium Priority"
    PERFORMANCE = "Performance"
    COVERAGE = "Coverage"
    STABILITY = "Stability"
    VOLUME = "Volume"
    RISK_MANAGEMENT = "Risk Management"

    @property
    def order(self) -> int:
        """Display order (lower first)."""
        return list(SuggestionCategory).index(self) + 1

    @property
    def headline(self) -> str:
        """Short priority label used for a service's headline badge."""
        return {
            "Critical": "Critical",
            "High Priority": "High",
            "Medium Priority": "Medium",
            "Risk Management": "Risk",
        }.get(self.value, self.value)


@dataclass
class Suggestion:
    """One improvement suggestion emitted by the rule engine."""
    category: SuggestionCategory
    title: str
    description: str
    actions: List[str] = field(default_factory=list)
    impact: str = "Medium"
    effort: str = "Medium"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "title": self.title,
            "description": self.description,
            "actions": list(self.actions),
            "impact": self.impact,
            "effort": self.effort,
        }


@dataclass
class SuggestionSummary:
    """Aggregated view of a suggestion list."""
    priority: str
    total_suggestions: int
    critical_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Scorecard Models
# ---------------------------------------------------------------------------

@dataclass
class CategoryScore:
    """Score breakdown for one test category of a service."""
    category: TestCategory
    score: int
    success_rate: float
    adjusted_percentage: float
    total_tests: int
    avg_duration: float
    performance_penalty: float
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "successRate": round(self.success_rate),
            "totalTests": self.total_tests,
            "avgDuration": round(self.avg_duration),
            "performancePenalty": round(self.performance_penalty),
            "weight": self.weight,
        }


@dataclass
class ServiceScorecard:
    """Derived, stateless quality scorecard for one service."""
    service: str
    project: str
    overall_score: int
    overall_percentage: float
    stability_score: int
    coverage_score: int
    risk_level: RiskLevel
    category_scores: Dict[TestCategory, CategoryScore]
    total_tests: int
    total_runs: int
    recent_runs: int
    recent_failure_rate: float
    last_run: Optional[datetime] = None
    suggestions: List[Suggestion] = field(default_factory=list)
    suggestion_summary: Optional[SuggestionSummary] = None

    @property
    def last_run_date(self) -> str:
        return self.last_run.date().isoformat() if self.last_run else "Never"

    def top_suggestions(self, n: int = 3) -> List[Suggestion]:
        return self.suggestions[:n]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.service,
            "project": self.project,
            "overallScore": self.overall_score,
            "overallPercentage": round(self.overall_percentage, 2),
            "stabilityScore": self.stability_score,
            "coverageScore": self.coverage_score,
            "riskLevel": self.risk_level.value,
            "testTypeScores": {c.value: s.to_dict() for c, s in self.category_scores.items()},
            "totalTests": self.total_tests,
            "totalRuns": self.total_runs,
            "recentRuns": self.recent_runs,
            "recentFailureRate": round(self.recent_failure_rate, 2),
            "lastRunDate": self.last_run_date,
            "suggestions": {
                "suggestions": [s.to_dict() for s in self.suggestions],
                **(self.suggestion_summary.to_dict() if self.suggestion_summary else {}),
            },
        }


# ---------------------------------------------------------------------------
# Run History Models
# ---------------------------------------------------------------------------

@dataclass
class ProjectImpact:
    """Run-history impact ranking entry for one project."""
    project: str
    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    recent_runs: int = 0
    recent_failures: int = 0
    last_run: Optional[datetime] = None
    impact_score: int = 0
    risk_level: RiskLevel = RiskLevel.LOW

    @property
    def success_rate(self) -> float:
        return (self.successful_runs / self.total_runs) * 100.0 if self.total_runs > 0 else 0.0

    @property
    def recent_failure_rate(self) -> float:
        return (self.recent_failures / self.recent_runs) * 100.0 if self.recent_runs > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.project,
            "totalRuns": self.total_runs,
            "successfulRuns": self.successful_runs,
            "failedRuns": self.failed_runs,
            "recentRuns": self.recent_runs,
            "recentFailures": self.recent_failures,
            "lastRun": self.last_run.isoformat() if self.last_run else None,
            "successRate": round(self.success_rate, 2),
            "recentFailureRate": round(self.recent_failure_rate, 2),
            "impactScore": self.impact_score,
            "riskLevel": self.risk_level.value,
        }


@dataclass
class TrendPoint:
    """Result counts for one calendar day (UTC)."""
    date: str
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ServiceTrend:
    """Daily result series for one service, oldest day first."""
    service: str
    points: List[TrendPoint] = field(default_factory=list)

    @property
    def dates(self) -> List[str]:
        return [p.date for p in self.points]

    def to_dict(self) -> Dict[str, Any]:
        return {"service": self.service, "trend": [p.to_dict() for p in self.points]}
