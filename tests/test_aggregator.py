"""
Unit Tests for ci_insights.analysis.aggregator

Tests for:
    - Grouping by service and category
    - Status counting (pass / fail / total-only)
    - Recency window and last run tracking
    - Duration attachment and result dropping
"""

from datetime import datetime, timedelta

from ci_insights.analysis.aggregator import MetricsAggregator
from ci_insights.core.models import TestCategory, TestRun, UNKNOWN_SERVICE


class TestMetricsAggregator:

    def test_empty_input(self, now):
        assert MetricsAggregator().aggregate([], [], now=now) == {}

    def test_order_api_scenario(self, order_api_records, now):
        runs, results = order_api_records
        services = MetricsAggregator().aggregate(runs, results, now=now)

        assert list(services) == ["Order Service"]
        order = services["Order Service"]
        stats = order.categories[TestCategory.API]
        assert (stats.total, stats.passed, stats.failed) == (10, 8, 2)
        assert stats.success_rate == 80.0
        assert stats.durations == [400.0, 420.0, 380.0]
        assert order.recent_run_count == 10
        assert order.recent_failure_rate == 20.0
        assert order.project == "Shop"

    def test_totals_match_runs(self, make_run, now):
        runs = [
            make_run("UserServiceUnitTest"),
            make_run("UserServiceApiTest", "FAILED"),
            make_run("UserServiceE2E", "SKIPPED"),
            make_run("UserServiceApiTest"),
        ]
        user = MetricsAggregator().aggregate(runs, [], now=now)["User Service"]
        assert sum(s.total for s in user.categories.values()) == user.total_runs == 4

    def test_other_status_counts_toward_total_only(self, make_run, now):
        runs = [make_run("OrderUnit", "SKIPPED"), make_run("OrderUnit", "PASSED")]
        stats = MetricsAggregator().aggregate(runs, [], now=now)["Order Service"].categories[TestCategory.UNIT]
        assert (stats.total, stats.passed, stats.failed) == (2, 1, 0)
        assert stats.success_rate == 50.0

    def test_unknown_service_is_kept(self, make_run, now):
        services = MetricsAggregator().aggregate([make_run("InventorySync")], [], now=now)
        assert UNKNOWN_SERVICE in services
        assert services[UNKNOWN_SERVICE].total_runs == 1

    def test_recent_window(self, make_run, now):
        runs = [
            make_run("OrderApi", "FAILED", days_ago=1),
            make_run("OrderApi", "FAILED", days_ago=10),
            make_run("OrderApi", "PASSED", days_ago=30),
        ]
        order = MetricsAggregator().aggregate(runs, [], now=now)["Order Service"]
        assert order.recent_run_count == 1
        assert order.recent_failure_rate == 100.0
        assert round(order.failure_rate, 2) == 66.67
        assert order.last_run == now - timedelta(days=1)

    def test_configurable_window(self, make_run, now):
        runs = [make_run("OrderApi", days_ago=10)]
        order = MetricsAggregator(recent_window_days=14).aggregate(runs, [], now=now)["Order Service"]
        assert order.recent_run_count == 1

    def test_result_without_bucket_is_dropped(self, make_run, make_result, now, observer):
        runs = [make_run("OrderServiceApiTest")]
        results = [
            make_result(suite="OrderServiceUiTest", duration_ms=900),
            make_result(suite="UserServiceApiTest", duration_ms=900),
            make_result(suite="OrderServiceApiTest", duration_ms=300),
        ]
        services = MetricsAggregator(observer=observer).aggregate(runs, results, now=now)
        assert list(services["Order Service"].categories) == [TestCategory.API]
        assert services["Order Service"].categories[TestCategory.API].durations == [300.0]
        assert "User Service" not in services

        event = observer.named("aggregate.completed")[0]
        assert event["results_dropped"] == 2

    def test_unknown_durations_excluded(self, make_run, make_result, now):
        runs = [make_run("OrderServiceApiTest")]
        results = [make_result(duration_ms=None), make_result(duration_ms=0), make_result(duration_ms=50)]
        stats = MetricsAggregator().aggregate(runs, results, now=now)["Order Service"].categories[TestCategory.API]
        assert stats.durations == [50.0]
        assert stats.avg_duration == 50.0

    def test_calls_do_not_share_state(self, make_run, now):
        aggregator = MetricsAggregator()
        first = aggregator.aggregate([make_run("OrderApi")], [], now=now)
        second = aggregator.aggregate([make_run("OrderApi")], [], now=now)
        assert first["Order Service"].total_runs == second["Order Service"].total_runs == 1

    def test_naive_run_timestamps(self, now):
        runs = [TestRun(id="1", status="PASSED", started_at=datetime(2024, 6, 14), suite_name="OrderApi")]
        order = MetricsAggregator().aggregate(runs, [], now=now)["Order Service"]
        assert order.recent_run_count == 1
        assert order.last_run.tzinfo is not None
