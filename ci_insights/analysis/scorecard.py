"""
Scorecard Engine

Converts a ServiceAggregate into a ServiceScorecard: weighted 1-10 scores,
stability and coverage sub-scores, a three-tier risk level and the ordered
improvement suggestion list.

Score pipeline per service:
    1. Category success rate, minus an optional performance penalty
    2. Weighted mean of adjusted percentages -> overall score
    3. Recent vs all-time failure rates     -> stability score
    4. Category diversity                   -> coverage score
    5. Overall percentage + recent failures -> risk level
"""
from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional

from ci_insights.core.models import TestCategory
from ci_insights.core.observability import AnalysisObserver, LoggingObserver
from .models import CategoryScore, ServiceAggregate, ServiceScorecard
from .policy import ScoringPolicy
from .suggestions import SuggestionEngine

logger = logging.getLogger(__name__)


class ScorecardEngine:
    """
    Stateless scorer; every call derives a fresh scorecard.

    Example:
        >>> engine = ScorecardEngine()
        >>> card = engine.score(aggregates["Order Service"])
        >>> print(card.overall_score, card.risk_level.value)
    """

    def __init__(
        self,
        policy: Optional[ScoringPolicy] = None,
        suggestion_engine: Optional[SuggestionEngine] = None,
        observer: Optional[AnalysisObserver] = None,
    ):
        self.policy = policy or ScoringPolicy()
        self.suggestion_engine = suggestion_engine or SuggestionEngine()
        self.observer = observer or LoggingObserver()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def score(self, aggregate: ServiceAggregate) -> ServiceScorecard:
        """Compute the scorecard for a single service."""
        policy = self.policy
        category_scores = self.score_categories(aggregate)

        weighted, total_weight = 0.0, 0.0
        for cs in category_scores.values():
            weighted += cs.adjusted_percentage * cs.weight
            total_weight += cs.weight
        overall_pct = weighted / total_weight if total_weight > 0 else 0.0
        overall_pct = self._finite(overall_pct, 0.0, aggregate.name, "overall_percentage")

        stability_pct = self.stability_percentage(aggregate)
        coverage_pct = self.coverage_percentage(aggregate)
        recent_failure_rate = aggregate.recent_failure_rate

        overall_score = self._checked_score(overall_pct, aggregate.name, "overall_score")
        stability_score = self._checked_score(stability_pct, aggregate.name, "stability_score")
        coverage_score = self._checked_score(coverage_pct, aggregate.name, "coverage_score")
        risk_level = policy.classify_risk(overall_pct, recent_failure_rate)

        suggestions = self.suggestion_engine.suggest(
            aggregate, overall_score, category_scores, risk_level,
        )

        card = ServiceScorecard(
            service=aggregate.name,
            project=aggregate.project,
            overall_score=overall_score,
            overall_percentage=overall_pct,
            stability_score=stability_score,
            coverage_score=coverage_score,
            risk_level=risk_level,
            category_scores=category_scores,
            total_tests=aggregate.total_runs,
            total_runs=sum(len(s.runs) for s in aggregate.categories.values()),
            recent_runs=aggregate.recent_run_count,
            recent_failure_rate=recent_failure_rate,
            last_run=aggregate.last_run,
            suggestions=suggestions,
            suggestion_summary=self.suggestion_engine.summarize(suggestions),
        )
        self.observer.record(
            "scorecard.computed",
            service=card.service,
            overall=card.overall_score,
            stability=card.stability_score,
            coverage=card.coverage_score,
            risk=card.risk_level.value,
            suggestions=len(suggestions),
        )
        return card

    def score_all(self, aggregates: Dict[str, ServiceAggregate] | Iterable[ServiceAggregate]) -> List[ServiceScorecard]:
        """Score every service; best overall score first, ties by name."""
        items = aggregates.values() if isinstance(aggregates, dict) else aggregates
        cards = [self.score(a) for a in items]
        cards.sort(key=lambda c: (-c.overall_score, c.service))
        return cards

    # ------------------------------------------------------------------
    # Sub-scores
    # ------------------------------------------------------------------

    def score_categories(self, aggregate: ServiceAggregate) -> Dict[TestCategory, CategoryScore]:
        policy = self.policy
        scores: Dict[TestCategory, CategoryScore] = {}
        for category, stats in aggregate.categories.items():
            success_rate = stats.success_rate
            avg_duration = stats.avg_duration
            penalty = policy.performance_penalty(avg_duration, category)
            adjusted = max(0.0, success_rate - penalty)
            scores[category] = CategoryScore(
                category=category,
                score=self._checked_score(adjusted, aggregate.name, f"{category.value}_score"),
                success_rate=success_rate,
                adjusted_percentage=adjusted,
                total_tests=stats.total,
                avg_duration=avg_duration,
                performance_penalty=penalty,
                weight=policy.weight_for(category),
            )
        return scores

    def stability_percentage(self, aggregate: ServiceAggregate) -> float:
        """100 minus the recency-weighted failure rate, floored at 0."""
        policy = self.policy
        weighted = (
            aggregate.recent_failure_rate * policy.recent_failure_weight
            + aggregate.failure_rate * policy.overall_failure_weight
        )
        return max(0.0, 100.0 - weighted)

    def coverage_percentage(self, aggregate: ServiceAggregate) -> float:
        """Reward category diversity: half for breadth, half for weighted presence."""
        policy = self.policy
        expected = len(policy.category_weights)
        if expected == 0:
            return 0.0
        present = [c for c, s in aggregate.categories.items() if s.total > 0]
        ratio = len(present) / expected
        weighted = sum(policy.category_weights.get(c, 0.0) for c in present)
        return min(100.0, ratio * 50.0 + weighted * 50.0)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _checked_score(self, percentage: float, service: str, name: str) -> int:
        if percentage is None or not math.isfinite(percentage):
            self.observer.record("scorecard.non_finite", service=service, field=name)
            return self.policy.min_default_score
        score = self.policy.to_score(percentage)
        if not isinstance(score, int) or not (self.policy.score_floor <= score <= self.policy.score_ceiling):
            self.observer.record("scorecard.invalid_score", service=service, field=name, value=score)
            return self.policy.min_default_score
        return score

    def _finite(self, value: float, default: float, service: str, name: str) -> float:
        if math.isfinite(value):
            return value
        logger.warning("Non-finite %s for %s; substituting %s", name, service, default)
        self.observer.record("scorecard.non_finite", service=service, field=name)
        return default
