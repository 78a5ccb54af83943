"""
Unit Tests for ci_insights.application

Tests for:
    - InsightsService: full report, fallback on data-source failure
    - Container: record source selection, registry and policy loading
"""

from datetime import timedelta

import pytest

from ci_insights.adapters.outbound import (
    InMemoryRecordSource, JsonFileRecordSource, PaginatedRecordSource,
)
from ci_insights.application import Container, InsightsReport, InsightsService
from ci_insights.config.settings import Settings
from ci_insights.core.errors import ConfigurationError, DataSourceError
from ci_insights.impact.models import ChangeDescriptor


class FailingSource:

    def fetch_test_runs(self, since=None):
        raise DataSourceError("Page budget of 1 exhausted while reading test_run", table="test_run", pages_fetched=1)

    def fetch_test_results(self, since=None):
        return []


# =============================================================================
# InsightsService Tests
# =============================================================================

class TestInsightsService:

    def test_build_report(self, order_api_records, now, observer):
        runs, results = order_api_records
        service = InsightsService(
            InMemoryRecordSource(runs, results),
            window_start=Settings().window_start,
            observer=observer,
        )
        report = service.build_report(now=now)

        assert not report.degraded
        assert report.has_data
        assert report.window_start == now - timedelta(days=90)
        assert [c.service for c in report.scorecards] == ["Order Service"]
        assert report.run_count == 10
        assert report.result_count == 3
        assert report.quality.total_tests == 3
        assert report.anomalies == []

        data = report.to_dict()
        assert data["scorecards"][0]["overallScore"] == 8
        assert data["degraded"] is False
        assert [(p.project, p.impact_score) for p in report.project_impacts] == [("Shop", 88)]
        assert data["service_trends"][0]["trend"] == [
            {"date": "2024-06-15", "passed": 3, "failed": 0, "skipped": 0},
        ]

    def test_window_filters_records(self, make_run, now):
        runs = [make_run("OrderApi", days_ago=1), make_run("OrderApi", days_ago=200)]
        service = InsightsService(InMemoryRecordSource(runs), window_start=Settings().window_start)
        assert service.build_report(now=now).run_count == 1

    def test_fallback_on_source_failure(self, now, observer):
        service = InsightsService(FailingSource(), window_start=Settings().window_start, observer=observer)
        report = service.build_report(now=now)

        assert report.degraded
        assert not report.has_data
        assert "Page budget" in report.error
        assert observer.named("insights.fallback") == [{"table": "test_run", "pages": 1}]

    def test_custom_fallback(self, now):
        cached = InsightsReport(generated_at=now, window_start=None, run_count=42, degraded=True)
        service = InsightsService(FailingSource(), fallback=lambda *_: cached)
        assert service.build_report(now=now) is cached

    def test_scorecards_shortcut(self, order_api_records, now):
        runs, results = order_api_records
        service = InsightsService(InMemoryRecordSource(runs, results))
        assert service.scorecards(now=now)[0].overall_score == 8


# =============================================================================
# Container Tests
# =============================================================================

class TestContainer:

    def test_no_source_configured(self, tmp_path):
        container = Container(settings=Settings(registry_path=str(tmp_path / "none.yaml")))
        with pytest.raises(ConfigurationError):
            container.record_source()

    def test_json_source(self, tmp_path):
        container = Container(runs_path=str(tmp_path / "runs.json"))
        assert isinstance(container.record_source(), JsonFileRecordSource)

    def test_paginated_source_uses_settings(self):
        settings = Settings(page_size=50, max_pages=7, fetch_timeout=5.0)
        container = Container.from_settings(settings, fetch_page=lambda request: [])
        source = container.record_source()
        assert isinstance(source, PaginatedRecordSource)
        assert (source.page_size, source.max_pages, source.max_seconds) == (50, 7, 5.0)

    def test_missing_registry_is_empty(self, tmp_path):
        container = Container(settings=Settings(registry_path=str(tmp_path / "none.yaml")))
        assert container.registry().graph.services == []
        assert container.scoring_policy().apply_performance_penalty is True

    def test_registry_and_policy_from_file(self, sample_registry_path):
        settings = Settings(registry_path=str(sample_registry_path), recent_window_days=14)
        container = Container(settings=settings)
        assert "gateway-service" in container.registry().graph
        assert container.registry() is container.registry()
        assert container.scoring_policy().recent_window_days == 14
        assert container.aggregator().recent_window == timedelta(days=14)

    def test_policy_window_kept_without_setting(self, tmp_path):
        path = tmp_path / "registry.yaml"
        path.write_text("services: {}\nscoring:\n  recent_window_days: 14\n")
        container = Container(settings=Settings(registry_path=str(path)))
        assert container.scoring_policy().recent_window_days == 14

    def test_setting_overrides_policy_window(self, tmp_path):
        path = tmp_path / "registry.yaml"
        path.write_text("scoring:\n  recent_window_days: 14\n")
        container = Container(settings=Settings(registry_path=str(path), recent_window_days=3))
        assert container.scoring_policy().recent_window_days == 3

    def test_services_share_observer(self, order_api_records, now, observer, sample_registry_path):
        runs, results = order_api_records
        container = Container.with_source(
            InMemoryRecordSource(runs, results),
            Settings(registry_path=str(sample_registry_path)),
        )
        container.observer = observer
        service = container.insights_service()
        service.build_report(now=now)
        report = service.analyze_change(ChangeDescriptor(["order-service"], lines_added=80, files_changed=4))

        assert [b.service for b in report.blast_radius] == ["notification-service", "payment-service"]
        assert observer.named("aggregate.completed")
        assert observer.named("impact.analyzed")
