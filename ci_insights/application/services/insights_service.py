"""
Insights Service

Orchestrates one analytics pass over a record window:

    fetch (IRecordSource) -> aggregate -> score
                          -> per-test-case and suite anomalies
                          -> quality insights
                          -> run-history impact ranking, daily trends

A data-source failure aborts the pass; the service then returns the
fallback report flagged ``degraded`` instead of a partial result.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ci_insights.analysis.aggregator import MetricsAggregator
from ci_insights.analysis.models import ProjectImpact, ServiceScorecard, ServiceTrend
from ci_insights.analysis.quality_insights import QualityInsights, QualityInsightsAnalyzer
from ci_insights.analysis.run_history import DailyTrendAggregator, RunImpactRanker
from ci_insights.analysis.scorecard import ScorecardEngine
from ci_insights.anomaly.detector import AnomalyDetector, SuiteAnomalyDetector
from ci_insights.anomaly.models import Anomaly
from ci_insights.core.errors import DataSourceError
from ci_insights.core.interfaces import IRecordSource
from ci_insights.core.observability import AnalysisObserver, LoggingObserver
from ci_insights.impact.analyzer import ImpactAnalyzer
from ci_insights.impact.models import ChangeDescriptor, ImpactReport

logger = logging.getLogger(__name__)


@dataclass
class InsightsReport:
    generated_at: datetime
    window_start: Optional[datetime]
    scorecards: List[ServiceScorecard] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)
    suite_anomalies: List[Anomaly] = field(default_factory=list)
    quality: Optional[QualityInsights] = None
    project_impacts: List[ProjectImpact] = field(default_factory=list)
    service_trends: List[ServiceTrend] = field(default_factory=list)
    run_count: int = 0
    result_count: int = 0
    degraded: bool = False
    error: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return bool(self.scorecards)

    @classmethod
    def fallback(cls, now: datetime, window_start: Optional[datetime], error: str) -> "InsightsReport":
        return cls(generated_at=now, window_start=window_start, degraded=True, error=error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "window_start": self.window_start.isoformat() if self.window_start else None,
            "degraded": self.degraded,
            "error": self.error,
            "run_count": self.run_count,
            "result_count": self.result_count,
            "scorecards": [c.to_dict() for c in self.scorecards],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "suite_anomalies": [a.to_dict() for a in self.suite_anomalies],
            "quality": self.quality.to_dict() if self.quality else None,
            "project_impacts": [p.to_dict() for p in self.project_impacts],
            "service_trends": [t.to_dict() for t in self.service_trends],
        }


FallbackFactory = Callable[[datetime, Optional[datetime], str], InsightsReport]


class InsightsService:
    """Use-case facade over the record source and the analytics engines."""

    def __init__(
        self,
        source: IRecordSource,
        aggregator: Optional[MetricsAggregator] = None,
        scorecard_engine: Optional[ScorecardEngine] = None,
        anomaly_detector: Optional[AnomalyDetector] = None,
        suite_detector: Optional[SuiteAnomalyDetector] = None,
        quality_analyzer: Optional[QualityInsightsAnalyzer] = None,
        impact_analyzer: Optional[ImpactAnalyzer] = None,
        run_ranker: Optional[RunImpactRanker] = None,
        trend_aggregator: Optional[DailyTrendAggregator] = None,
        window_start: Optional[Callable[[datetime], datetime]] = None,
        fallback: FallbackFactory = InsightsReport.fallback,
        observer: Optional[AnalysisObserver] = None,
    ):
        self.source = source
        self.observer = observer or LoggingObserver()
        self.aggregator = aggregator or MetricsAggregator(observer=self.observer)
        self.scorecard_engine = scorecard_engine or ScorecardEngine(observer=self.observer)
        self.anomaly_detector = anomaly_detector or AnomalyDetector(observer=self.observer)
        self.suite_detector = suite_detector or SuiteAnomalyDetector(observer=self.observer)
        self.quality_analyzer = quality_analyzer or QualityInsightsAnalyzer(observer=self.observer)
        self.impact_analyzer = impact_analyzer or ImpactAnalyzer(observer=self.observer)
        self.run_ranker = run_ranker or RunImpactRanker(observer=self.observer)
        self.trend_aggregator = trend_aggregator or DailyTrendAggregator(observer=self.observer)
        self.window_start = window_start
        self.fallback = fallback

    def build_report(self, now: Optional[datetime] = None) -> InsightsReport:
        """Run every analysis over the configured window."""
        now = now or datetime.now(timezone.utc)
        since = self.window_start(now) if self.window_start else None

        try:
            runs = self.source.fetch_test_runs(since=since)
            results = self.source.fetch_test_results(since=since)
        except DataSourceError as e:
            logger.error("Data source failure, using fallback report: %s", e)
            self.observer.record("insights.fallback", table=e.table, pages=e.pages_fetched)
            return self.fallback(now, since, str(e))

        aggregates = self.aggregator.aggregate(runs, results, now=now)
        report = InsightsReport(
            generated_at=now,
            window_start=since,
            scorecards=self.scorecard_engine.score_all(aggregates),
            anomalies=self.anomaly_detector.detect(results),
            suite_anomalies=self.suite_detector.detect(results, now=now),
            quality=self.quality_analyzer.analyze(results),
            project_impacts=self.run_ranker.rank(runs, now=now),
            service_trends=self.trend_aggregator.trends(results),
            run_count=len(runs),
            result_count=len(results),
        )
        logger.info(
            "Built insights report: %d services, %d anomalies, %d runs, %d results",
            len(report.scorecards), len(report.anomalies), report.run_count, report.result_count,
        )
        return report

    def scorecards(self, now: Optional[datetime] = None) -> List[ServiceScorecard]:
        return self.build_report(now).scorecards

    def analyze_change(self, change: ChangeDescriptor) -> ImpactReport:
        return self.impact_analyzer.analyze(change)
