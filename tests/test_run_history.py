"""
Unit Tests for ci_insights.analysis.run_history

Tests for:
    - RunImpactRanker: per-project counters, weighted impact score,
      HIGH/MEDIUM/LOW tiers, descending ranking
    - DailyTrendAggregator: per-service daily passed/failed/skipped series
"""

from datetime import timedelta

import pytest

from ci_insights.analysis.run_history import DailyTrendAggregator, RunImpactRanker
from ci_insights.core.models import RiskLevel, TestResult, TestRun


# =============================================================================
# RunImpactRanker Tests
# =============================================================================

class TestRunImpactRanker:

    @pytest.fixture
    def runs(self, order_api_records, make_run):
        shop_runs, _ = order_api_records
        legacy = [
            make_run("LegacyUnit", "PASSED", days_ago=30, project="Legacy"),
            make_run("LegacyUnit", "FAILED", days_ago=31, project="Legacy"),
        ]
        payments = [make_run("PaymentsApi", "PASSED", days_ago=1, project="Payments")]
        payments += [make_run("PaymentsApi", "FAILED", days_ago=2, project="Payments") for _ in range(3)]
        return payments + legacy + shop_runs

    def test_ranked_by_impact_score(self, runs, now, observer):
        ranking = RunImpactRanker(observer=observer).rank(runs, now=now)
        assert [(p.project, p.impact_score, p.risk_level) for p in ranking] == [
            ("Shop", 88, RiskLevel.MEDIUM),
            ("Legacy", 51, RiskLevel.MEDIUM),
            ("Payments", 37, RiskLevel.HIGH),
        ]
        assert observer.named("run_impact.ranked") == [{"projects": 3, "high_risk": 1}]

    def test_project_counters(self, runs, now):
        shop, legacy, _ = RunImpactRanker().rank(runs, now=now)
        assert (shop.total_runs, shop.successful_runs, shop.failed_runs) == (10, 8, 2)
        assert shop.recent_runs == 10
        assert shop.recent_failure_rate == pytest.approx(20.0)
        assert shop.last_run == now - timedelta(days=1)
        assert legacy.recent_runs == 0
        assert legacy.recent_failure_rate == 0.0
        assert legacy.last_run.isoformat() == "2024-05-16T12:00:00+00:00"

    def test_undated_and_unnamed_runs(self, now):
        ranking = RunImpactRanker().rank([TestRun("r1", "PASSED")], now=now)
        entry = ranking[0]
        assert entry.project == "Unknown Project"
        assert entry.recent_runs == 0
        assert entry.last_run is None
        # 0.1 * 0.3 + 1.0 * 0.4 + 1.0 * 0.2 + 0.5 * 0.1
        assert entry.impact_score == 68

    def test_ties_keep_first_seen_order(self, make_run, now):
        runs = [make_run("A", project="Beta"), make_run("A", project="Alpha")]
        assert [p.project for p in RunImpactRanker().rank(runs, now=now)] == ["Beta", "Alpha"]

    @pytest.mark.parametrize("score,recent_failure_rate,expected", [
        (90, 31, RiskLevel.HIGH),
        (49, 0, RiskLevel.HIGH),
        (90, 16, RiskLevel.MEDIUM),
        (50, 0, RiskLevel.MEDIUM),
        (69, 15, RiskLevel.MEDIUM),
        (70, 15, RiskLevel.LOW),
    ])
    def test_risk_tiers(self, score, recent_failure_rate, expected):
        assert RunImpactRanker.risk_level(score, recent_failure_rate) == expected

    def test_empty(self, now):
        assert RunImpactRanker().rank([], now=now) == []

    def test_to_dict(self, runs, now):
        data = RunImpactRanker().rank(runs, now=now)[0].to_dict()
        assert data["service"] == "Shop"
        assert data["impactScore"] == 88
        assert data["riskLevel"] == "MEDIUM"
        assert data["successRate"] == 80.0


# =============================================================================
# DailyTrendAggregator Tests
# =============================================================================

class TestDailyTrendAggregator:

    DAY = 24 * 60

    @pytest.fixture
    def results(self, make_result):
        return [
            make_result(status="PASSED", minutes_ago=0),
            make_result(status="FAILED", minutes_ago=5),
            make_result(status="SKIPPED", minutes_ago=self.DAY),
            make_result(status="PASSED", minutes_ago=self.DAY + 5),
            make_result(status="ERROR", minutes_ago=2 * self.DAY),
            make_result(status="PASSED", suite="UserServiceUnitTest"),
            TestResult("undated", "PASSED", suite_name="OrderServiceApiTest"),
        ]

    def test_series_per_service(self, results, observer):
        trends = DailyTrendAggregator(observer=observer).trends(results)
        assert [t.service for t in trends] == ["Order Service", "User Service"]

        order = trends[0]
        assert order.dates == ["2024-06-13", "2024-06-14", "2024-06-15"]
        assert [(p.passed, p.failed, p.skipped) for p in order.points] == [
            (0, 1, 0), (1, 0, 1), (1, 1, 0),
        ]
        assert observer.named("trends.computed") == [{"services": 2, "undated_results": 1}]

    def test_other_statuses_count_nowhere(self, make_result):
        trends = DailyTrendAggregator().trends([make_result(status="BLOCKED")])
        assert trends[0].to_dict() == {
            "service": "Order Service",
            "trend": [{"date": "2024-06-15", "passed": 0, "failed": 0, "skipped": 0}],
        }

    def test_empty(self):
        assert DailyTrendAggregator().trends([]) == []
