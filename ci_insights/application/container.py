"""
Dependency Injection Container

Wires settings, configuration artifacts, the record source and the
analytics engines. Everything is built lazily on first use.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from ci_insights.adapters.outbound import JsonFileRecordSource, PaginatedRecordSource
from ci_insights.adapters.outbound.paginated_source import PageFetcher
from ci_insights.analysis.aggregator import MetricsAggregator
from ci_insights.analysis.policy import ScoringPolicy
from ci_insights.analysis.quality_insights import QualityInsightsAnalyzer
from ci_insights.analysis.run_history import DailyTrendAggregator, RunImpactRanker
from ci_insights.analysis.scorecard import ScorecardEngine
from ci_insights.anomaly.detector import AnomalyDetector, SuiteAnomalyDetector
from ci_insights.config.loader import load_registry, load_scoring_policy
from ci_insights.config.settings import Settings
from ci_insights.core.errors import ConfigurationError
from ci_insights.core.interfaces import IRecordSource
from ci_insights.core.observability import AnalysisObserver, LoggingObserver
from ci_insights.impact.analyzer import ImpactAnalyzer
from ci_insights.impact.registry import ServiceRegistry
from .services.insights_service import InsightsService

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """
    Dependency injection container.

    The record source is chosen in this order: an explicit source, JSON
    export files, a paging transport. Without any of them, asking for the
    source raises ConfigurationError.
    """
    settings: Settings = field(default_factory=Settings)
    runs_path: Optional[str] = None
    results_path: Optional[str] = None
    fetch_page: Optional[PageFetcher] = None
    observer: AnalysisObserver = field(default_factory=LoggingObserver)

    _source: Optional[IRecordSource] = field(default=None, repr=False)
    _registry: Optional[ServiceRegistry] = field(default=None, repr=False)
    _policy: Optional[ScoringPolicy] = field(default=None, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "Container":
        """Create container from settings."""
        return cls(settings=settings, **kwargs)

    @classmethod
    def with_source(cls, source: IRecordSource, settings: Optional[Settings] = None) -> "Container":
        container = cls(settings=settings or Settings())
        container._source = source
        return container

    # =========================================================================
    # Configuration artifacts
    # =========================================================================

    def registry(self) -> ServiceRegistry:
        """Service registry; an empty one when no registry file exists."""
        if self._registry is None:
            path = self.settings.registry_path
            if path and os.path.exists(path):
                self._registry = load_registry(path)
            else:
                logger.warning("Registry %s not found; impact analysis has no graph", path)
                self._registry = ServiceRegistry()
        return self._registry

    def scoring_policy(self) -> ScoringPolicy:
        if self._policy is None:
            path = self.settings.registry_path
            if path and os.path.exists(path):
                self._policy = load_scoring_policy(path)
            else:
                self._policy = ScoringPolicy()
            if self.settings.recent_window_days is not None:
                self._policy.recent_window_days = self.settings.recent_window_days
        return self._policy

    # =========================================================================
    # Ports
    # =========================================================================

    def record_source(self) -> IRecordSource:
        if self._source is None:
            if self.runs_path:
                self._source = JsonFileRecordSource(self.runs_path, self.results_path)
            elif self.fetch_page is not None:
                self._source = PaginatedRecordSource(
                    self.fetch_page,
                    page_size=self.settings.page_size,
                    max_pages=self.settings.max_pages,
                    max_seconds=self.settings.fetch_timeout,
                )
            else:
                raise ConfigurationError("No record source configured")
        return self._source

    # =========================================================================
    # Engines and services
    # =========================================================================

    def aggregator(self) -> MetricsAggregator:
        return MetricsAggregator(
            recent_window_days=self.scoring_policy().recent_window_days,
            observer=self.observer,
        )

    def scorecard_engine(self) -> ScorecardEngine:
        return ScorecardEngine(policy=self.scoring_policy(), observer=self.observer)

    def impact_analyzer(self) -> ImpactAnalyzer:
        return ImpactAnalyzer(registry=self.registry(), observer=self.observer)

    def insights_service(self) -> InsightsService:
        return InsightsService(
            source=self.record_source(),
            aggregator=self.aggregator(),
            scorecard_engine=self.scorecard_engine(),
            anomaly_detector=AnomalyDetector(observer=self.observer),
            suite_detector=SuiteAnomalyDetector(observer=self.observer),
            quality_analyzer=QualityInsightsAnalyzer(observer=self.observer),
            impact_analyzer=self.impact_analyzer(),
            run_ranker=RunImpactRanker(
                recent_window_days=self.scoring_policy().recent_window_days,
                observer=self.observer,
            ),
            trend_aggregator=DailyTrendAggregator(observer=self.observer),
            window_start=self.settings.window_start,
            observer=self.observer,
        )

