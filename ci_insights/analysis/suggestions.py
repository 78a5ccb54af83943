"""
Suggestion Engine

Rule engine that inspects a service's scores and CI activity and emits
prioritized improvement suggestions.

Suggestion Categories (display order):
    Critical          - overall or category score far below acceptable
    High Priority     - overall score below acceptable standards
    Medium Priority   - a test category needs attention
    Performance       - a test category runs slowly
    Coverage          - too few test categories exercised
    Stability         - high recent failure rate
    Volume            - too few tests overall
    Risk Management   - service classified as HIGH risk
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from ci_insights.core.models import RiskLevel, TestCategory
from .models import (
    CategoryScore, ServiceAggregate, Suggestion, SuggestionCategory, SuggestionSummary,
)


# ---------------------------------------------------------------------------
# Action catalogs
# ---------------------------------------------------------------------------

BASE_CATEGORY_ACTIONS = [
    "Review failing test cases",
    "Check test data setup",
    "Verify test environment configuration",
]

CATEGORY_ACTIONS: Dict[TestCategory, List[str]] = {
    TestCategory.UNIT: [
        "Mock external dependencies properly",
        "Test edge cases and boundary conditions",
        "Ensure tests are isolated and repeatable",
        "Add tests for error handling paths",
    ],
    TestCategory.API: [
        "Verify API contract compliance",
        "Test different HTTP status codes",
        "Validate request/response schemas",
        "Test authentication and authorization",
    ],
    TestCategory.INTEGRATION: [
        "Check database connectivity",
        "Verify external service integrations",
        "Test data consistency across services",
        "Validate transaction handling",
    ],
    TestCategory.UI: [
        "Check browser compatibility",
        "Verify element selectors",
        "Test responsive design",
        "Validate user interaction flows",
    ],
    TestCategory.SYSTEM: [
        "Verify end-to-end workflows",
        "Check system resource usage",
        "Test under load conditions",
        "Validate system integration points",
    ],
}

BASE_PERFORMANCE_ACTIONS = [
    "Profile test execution to identify bottlenecks",
    "Optimize test data setup and teardown",
    "Use parallel test execution where possible",
]

PERFORMANCE_ACTIONS: Dict[TestCategory, List[str]] = {
    TestCategory.UNIT: [
        "Reduce database calls in unit tests",
        "Use in-memory databases for testing",
        "Mock slow external services",
    ],
    TestCategory.API: [
        "Use connection pooling",
        "Implement request caching",
        "Optimize API response sizes",
    ],
    TestCategory.INTEGRATION: [
        "Use test containers for faster setup",
        "Implement database seeding strategies",
        "Cache frequently used test data",
    ],
    TestCategory.UI: [
        "Use headless browser mode",
        "Implement page object pattern",
        "Reduce wait times with smart waits",
    ],
}

CATEGORY_EFFORT: Dict[TestCategory, str] = {
    TestCategory.UNIT: "Low",
    TestCategory.API: "Medium",
    TestCategory.INTEGRATION: "High",
    TestCategory.UI: "High",
    TestCategory.SYSTEM: "Very High",
}


@dataclass
class SuggestionThresholds:
    critical_overall_score: int = 4
    low_overall_score: int = 6
    critical_category_score: int = 3
    low_category_score: int = 5
    slow_category_ms: float = 5000.0
    min_categories: int = 3
    unstable_recent_failure_rate: float = 20.0
    min_total_tests: int = 50


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class SuggestionEngine:
    """Produces the full, ordered suggestion list for one service."""

    def __init__(self, thresholds: SuggestionThresholds | None = None):
        self.thresholds = thresholds or SuggestionThresholds()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def suggest(
        self,
        aggregate: ServiceAggregate,
        overall_score: int,
        category_scores: Dict[TestCategory, CategoryScore],
        risk_level: RiskLevel,
    ) -> List[Suggestion]:
        """
        Run every rule and return suggestions sorted by category order.

        The sort is stable, so suggestions of the same category keep the
        order in which their rules fired.
        """
        suggestions: List[Suggestion] = []
        suggestions.extend(self._overall_rules(overall_score))
        for category, score in category_scores.items():
            suggestions.extend(self._category_rules(category, score))
        suggestions.extend(self._coverage_rules(aggregate))
        suggestions.extend(self._stability_rules(aggregate))
        suggestions.extend(self._volume_rules(aggregate))
        suggestions.extend(self._risk_rules(risk_level))
        suggestions.sort(key=lambda s: s.category.order)
        return suggestions

    def summarize(self, suggestions: List[Suggestion]) -> SuggestionSummary:
        return SuggestionSummary(
            priority=suggestions[0].category.headline if suggestions else "Low",
            total_suggestions=len(suggestions),
            critical_count=sum(1 for s in suggestions if s.category == SuggestionCategory.CRITICAL),
        )

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _overall_rules(self, overall_score: int) -> List[Suggestion]:
        t = self.thresholds
        if overall_score <= t.critical_overall_score:
            return [Suggestion(
                category=SuggestionCategory.CRITICAL,
                title="Overall Score Too Low",
                description=f"Current score of {overall_score}/10 indicates significant quality issues.",
                actions=[
                    "Review and fix failing tests immediately",
                    "Investigate root causes of test failures",
                    "Implement comprehensive test coverage",
                    "Consider test automation improvements",
                ],
                impact="High", effort="High",
            )]
        if overall_score <= t.low_overall_score:
            return [Suggestion(
                category=SuggestionCategory.HIGH_PRIORITY,
                title="Score Needs Improvement",
                description=f"Score of {overall_score}/10 is below acceptable standards.",
                actions=[
                    "Focus on improving test success rates",
                    "Optimize test execution performance",
                    "Add missing test types for better coverage",
                ],
                impact="Medium", effort="Medium",
            )]
        return []

    def _category_rules(self, category: TestCategory, score: CategoryScore) -> List[Suggestion]:
        t = self.thresholds
        out: List[Suggestion] = []
        label = category.value.upper()
        actions = BASE_CATEGORY_ACTIONS + CATEGORY_ACTIONS.get(category, [])
        effort = CATEGORY_EFFORT.get(category, "Medium")

        if score.score <= t.critical_category_score:
            out.append(Suggestion(
                category=SuggestionCategory.CRITICAL,
                title=f"{label} Tests Failing",
                description=(
                    f"{category.value} tests scoring only {score.score}/10 with "
                    f"{round(score.success_rate)}% success rate."
                ),
                actions=actions, impact="High", effort=effort,
            ))
        elif score.score <= t.low_category_score:
            out.append(Suggestion(
                category=SuggestionCategory.MEDIUM_PRIORITY,
                title=f"{label} Tests Need Attention",
                description=f"{category.value} tests at {score.score}/10 could be improved.",
                actions=actions, impact="Medium", effort=effort,
            ))

        if score.avg_duration > t.slow_category_ms:
            out.append(Suggestion(
                category=SuggestionCategory.PERFORMANCE,
                title=f"{label} Tests Slow",
                description=(
                    f"Average duration of {round(score.avg_duration)}ms is quite slow. "
                    f"Consider optimization."
                ),
                actions=BASE_PERFORMANCE_ACTIONS + PERFORMANCE_ACTIONS.get(category, []),
                impact="Low", effort="Medium",
            ))
        return out

    def _coverage_rules(self, aggregate: ServiceAggregate) -> List[Suggestion]:
        present = len(aggregate.categories)
        if present >= self.thresholds.min_categories:
            return []
        return [Suggestion(
            category=SuggestionCategory.COVERAGE,
            title="Limited Test Type Coverage",
            description=(
                f"Only {present} test types found. Comprehensive testing requires "
                f"multiple test types."
            ),
            actions=[
                "Add unit tests for business logic",
                "Implement API/integration tests",
                "Consider UI/end-to-end tests",
                "Add contract tests for service boundaries",
            ],
            impact="High", effort="High",
        )]

    def _stability_rules(self, aggregate: ServiceAggregate) -> List[Suggestion]:
        rate = aggregate.recent_failure_rate
        if rate <= self.thresholds.unstable_recent_failure_rate:
            return []
        return [Suggestion(
            category=SuggestionCategory.STABILITY,
            title="High Recent Failure Rate",
            description=f"{rate:.1f}% of recent test runs are failing.",
            actions=[
                "Investigate recent test failures",
                "Check for environment issues",
                "Review test data dependencies",
                "Implement better error handling",
            ],
            impact="High", effort="Medium",
        )]

    def _volume_rules(self, aggregate: ServiceAggregate) -> List[Suggestion]:
        total = aggregate.total_runs
        if total >= self.thresholds.min_total_tests:
            return []
        return [Suggestion(
            category=SuggestionCategory.VOLUME,
            title="Low Test Volume",
            description=f"Only {total} total tests. More comprehensive test coverage needed.",
            actions=[
                "Increase test coverage for critical paths",
                "Add edge case testing",
                "Implement boundary value testing",
                "Add negative test scenarios",
            ],
            impact="Medium", effort="High",
        )]

    def _risk_rules(self, risk_level: RiskLevel) -> List[Suggestion]:
        if risk_level != RiskLevel.HIGH:
            return []
        return [Suggestion(
            category=SuggestionCategory.RISK_MANAGEMENT,
            title="High Risk Service",
            description="This service poses high risk to system stability.",
            actions=[
                "Implement additional monitoring",
                "Add circuit breakers and fallbacks",
                "Increase test frequency",
                "Consider canary deployments",
            ],
            impact="High", effort="Medium",
        )]
