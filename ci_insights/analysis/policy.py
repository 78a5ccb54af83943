"""
Scoring Policy

Single canonical scoring convention for scorecards. Every tunable that the
dashboards used to hard-code lives here so that one configuration drives
all scorecard computations.

Conventions:
    - Percentage -> score: linear 1..10 (``score_floor`` = 1 at <= 0%)
    - Performance penalty: enabled, capped at 20 points
    - Risk tiers: overall < 60% or recent failures > 30% -> HIGH,
                  overall < 80% or recent failures > 15% -> MEDIUM
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ci_insights.core.models import RiskLevel, TestCategory


def _default_weights() -> Dict[TestCategory, float]:
    return {
        TestCategory.UNIT: 0.25,         # foundation
        TestCategory.API: 0.30,          # critical for integration
        TestCategory.INTEGRATION: 0.25,  # system coherence
        TestCategory.UI: 0.10,           # user experience
        TestCategory.SYSTEM: 0.10,       # end-to-end validation
    }


def _default_thresholds() -> Dict[TestCategory, float]:
    return {
        TestCategory.UNIT: 100.0,
        TestCategory.API: 500.0,
        TestCategory.INTEGRATION: 2000.0,
        TestCategory.UI: 5000.0,
        TestCategory.SYSTEM: 10000.0,
    }


_TRUE = frozenset({"true", "yes", "on", "1"})
_FALSE = frozenset({"false", "no", "off", "0"})


def _coerce(name: str, current: Any, value: Any) -> Any:
    """Convert a raw config value to the type of the field default."""
    if isinstance(current, bool):
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValueError(f"{name} must be a boolean, got {value!r}")
    if isinstance(current, int):
        number = float(value)
        if not number.is_integer():
            raise ValueError(f"{name} must be a whole number, got {value!r}")
        return int(number)
    return type(current)(value)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (not banker's rounding)."""
    return int(math.floor(value + 0.5))


@dataclass
class ScoringPolicy:
    """
    Configurable weights and thresholds for scorecard computation.

    Category weights need not sum to 1.0; the overall score is a weighted
    mean over the categories actually present.
    """
    category_weights: Dict[TestCategory, float] = field(default_factory=_default_weights)
    default_weight: float = 0.1

    # Performance penalty
    apply_performance_penalty: bool = True
    performance_thresholds_ms: Dict[TestCategory, float] = field(default_factory=_default_thresholds)
    default_threshold_ms: float = 1000.0
    penalty_per_second: float = 10.0
    max_penalty: float = 20.0

    # Percentage -> 1..10 conversion
    score_floor: int = 1
    score_ceiling: int = 10
    min_default_score: int = 1

    # Stability: weighting of recent vs all-time failure rate
    recent_failure_weight: float = 0.7
    overall_failure_weight: float = 0.3
    recent_window_days: int = 7

    # Risk tiers (percentages)
    high_risk_score: float = 60.0
    high_risk_recent_failures: float = 30.0
    medium_risk_score: float = 80.0
    medium_risk_recent_failures: float = 15.0

    def weight_for(self, category: TestCategory) -> float:
        return self.category_weights.get(category, self.default_weight)

    def threshold_for(self, category: TestCategory) -> float:
        return self.performance_thresholds_ms.get(category, self.default_threshold_ms)

    # ------------------------------------------------------------------
    # Conversions
    # ------------------------------------------------------------------

    def to_score(self, percentage: Optional[float]) -> int:
        """
        Convert a 0-100 percentage onto the 1-10 scale.

        Non-finite input yields ``min_default_score``. Monotonically
        non-decreasing in its input.
        """
        if percentage is None or not math.isfinite(percentage):
            return self.min_default_score
        if percentage <= 0:
            return self.score_floor
        if percentage >= 100:
            return self.score_ceiling
        span = self.score_ceiling - self.score_floor
        score = round_half_up(self.score_floor + (percentage / 100.0) * span)
        return max(self.score_floor, min(self.score_ceiling, score))

    def performance_penalty(self, avg_duration_ms: float, category: TestCategory) -> float:
        """Points subtracted from a category's success rate for slow tests."""
        if not self.apply_performance_penalty:
            return 0.0
        if avg_duration_ms is None or not math.isfinite(avg_duration_ms) or avg_duration_ms < 0:
            return 0.0
        threshold = self.threshold_for(category)
        if avg_duration_ms <= threshold:
            return 0.0
        excess = avg_duration_ms - threshold
        return min(self.max_penalty, (excess / 1000.0) * self.penalty_per_second)

    def classify_risk(self, overall_percentage: float, recent_failure_rate: float) -> RiskLevel:
        if overall_percentage < self.high_risk_score or recent_failure_rate > self.high_risk_recent_failures:
            return RiskLevel.HIGH
        if overall_percentage < self.medium_risk_score or recent_failure_rate > self.medium_risk_recent_failures:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoringPolicy":
        """Build a policy from a plain mapping (e.g. the ``scoring`` YAML section)."""
        policy = cls()
        weights = data.get("category_weights")
        if weights:
            policy.category_weights = {
                TestCategory.parse(k): float(v) for k, v in weights.items()
            }
        thresholds = data.get("performance_thresholds_ms")
        if thresholds:
            policy.performance_thresholds_ms = {
                TestCategory.parse(k): float(v) for k, v in thresholds.items()
            }
        scalar_fields = (
            "default_weight", "apply_performance_penalty", "default_threshold_ms",
            "penalty_per_second", "max_penalty", "score_floor", "score_ceiling",
            "min_default_score", "recent_failure_weight", "overall_failure_weight",
            "recent_window_days", "high_risk_score", "high_risk_recent_failures",
            "medium_risk_score", "medium_risk_recent_failures",
        )
        for name in scalar_fields:
            if name in data:
                setattr(policy, name, _coerce(name, getattr(policy, name), data[name]))
        return policy

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category_weights": {k.value: v for k, v in self.category_weights.items()},
            "default_weight": self.default_weight,
            "apply_performance_penalty": self.apply_performance_penalty,
            "performance_thresholds_ms": {k.value: v for k, v in self.performance_thresholds_ms.items()},
            "default_threshold_ms": self.default_threshold_ms,
            "max_penalty": self.max_penalty,
            "score_floor": self.score_floor,
            "recent_window_days": self.recent_window_days,
        }
