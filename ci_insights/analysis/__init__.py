"""
Scorecard analytics: aggregation, scoring, suggestions, quality insights
and run-history views.
"""
from .aggregator import MetricsAggregator
from .models import (
    CategoryStats, ServiceAggregate, CategoryScore, ServiceScorecard,
    Suggestion, SuggestionCategory, SuggestionSummary,
    ProjectImpact, TrendPoint, ServiceTrend,
)
from .policy import ScoringPolicy, round_half_up
from .scorecard import ScorecardEngine
from .suggestions import SuggestionEngine, SuggestionThresholds
from .quality_insights import QualityInsights, QualityInsightsAnalyzer
from .run_history import RunImpactRanker, DailyTrendAggregator

__all__ = [
    "MetricsAggregator", "CategoryStats", "ServiceAggregate", "CategoryScore",
    "ServiceScorecard", "Suggestion", "SuggestionCategory", "SuggestionSummary",
    "ScoringPolicy", "round_half_up", "ScorecardEngine", "SuggestionEngine",
    "SuggestionThresholds", "QualityInsights", "QualityInsightsAnalyzer",
    "ProjectImpact", "TrendPoint", "ServiceTrend", "RunImpactRanker", "DailyTrendAggregator",
]
