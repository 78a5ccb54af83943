"""
Unit Tests for ci_insights.analysis.quality_insights

Tests for:
    - Pass rate, flaky detection and stability
    - Slow tests and performance score
    - Security tests by name and tag
    - Maintainability naming heuristic
    - Empty input guards
"""

import pytest

from ci_insights.analysis.quality_insights import QualityInsightsAnalyzer


class TestQualityInsights:

    def test_empty_input(self):
        q = QualityInsightsAnalyzer().analyze([])
        assert q.total_tests == 0
        assert q.pass_rate_score == 0.0
        assert q.stability_score == 100.0
        assert q.performance_score == 100.0
        assert q.security_score == 100.0
        assert q.maintainability_score == 0.0

    def test_pass_rate(self, make_result):
        results = [make_result(status=s) for s in ("PASSED", "PASS", "FAILED", "SKIPPED")]
        assert QualityInsightsAnalyzer().analyze(results).pass_rate_score == 50.0

    def test_flaky_needs_three_samples_and_mixed_outcomes(self, make_result):
        results = [
            make_result("flaky_checkout", "PASSED"),
            make_result("flaky_checkout", "FAILED"),
            make_result("flaky_checkout", "PASSED"),
            make_result("two_samples", "PASSED"),
            make_result("two_samples", "FAILED"),
            make_result("steady_login", "PASSED"),
            make_result("steady_login", "PASSED"),
            make_result("steady_login", "PASSED"),
        ]
        analyzer = QualityInsightsAnalyzer()
        assert analyzer.flaky_tests(results) == ["flaky_checkout"]
        q = analyzer.analyze(results)
        assert q.flaky_tests == 1
        assert q.stability_score == pytest.approx(100 - 100 / 8)

    def test_slow_tests(self, make_result):
        results = [make_result(duration_ms=d) for d in (100, 6000, None, 5000)]
        q = QualityInsightsAnalyzer().analyze(results)
        assert q.slow_tests == 1
        assert q.performance_score == pytest.approx(100 - 100 / 3)

    def test_security_by_name_and_tag(self, make_result):
        results = [
            make_result("security_headers_present", "PASSED"),
            make_result("login_lockout", "FAILED", tags=["SECURITY"]),
            make_result("plain_case", "FAILED"),
        ]
        q = QualityInsightsAnalyzer().analyze(results)
        assert q.security_tests == 2
        assert q.security_score == 50.0

    def test_maintainability(self, make_result):
        results = [
            make_result("create_order_happy_path"),
            make_result("test_create_order"),
            make_result("short_name"),
            make_result("CreateOrderHappyPath"),
        ]
        assert QualityInsightsAnalyzer().analyze(results).maintainability_score == 25.0

    def test_reports_to_observer(self, make_result, observer):
        QualityInsightsAnalyzer(observer=observer).analyze([make_result()])
        assert observer.named("quality.analyzed")[0]["total"] == 1
