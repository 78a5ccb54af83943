"""
Unit Tests for ci_insights.core

Tests for:
    - ServiceResolver: service keywords, category rules, defaults
    - TestOutcome: status normalization
    - TestRun / TestResult: construction from nested records
    - parse_timestamp: ISO parsing and tolerance of bad values
"""

from datetime import datetime, timezone

import pytest

from ci_insights.core.models import (
    TestCategory, TestOutcome, TestResult, TestRun, UNKNOWN_SERVICE, parse_timestamp,
)
from ci_insights.core.observability import CollectingObserver, LoggingObserver, NullObserver
from ci_insights.core.resolver import ServiceResolver, service_slug


# =============================================================================
# ServiceResolver Tests
# =============================================================================

class TestServiceResolver:

    @pytest.mark.parametrize("label,expected", [
        ("UserServiceUnitTest", "User Service"),
        ("order-api-tests", "Order Service"),
        ("PRODUCT catalog", "Product Service"),
        ("NotificationIntegration", "Notification Service"),
        ("gateway smoke", "Gateway Service"),
    ])
    def test_known_services(self, label, expected):
        assert ServiceResolver().resolve_service(label) == expected

    def test_first_keyword_wins(self):
        # "user" precedes "order" in the keyword table
        assert ServiceResolver().resolve_service("UserOrderHistoryTest") == "User Service"

    def test_unknown_label_and_none(self):
        resolver = ServiceResolver()
        assert resolver.resolve_service("InventorySync") == UNKNOWN_SERVICE
        assert resolver.resolve_service(None) == UNKNOWN_SERVICE
        assert resolver.resolve_service("") == UNKNOWN_SERVICE

    @pytest.mark.parametrize("label,expected", [
        ("UserComponentTest", TestCategory.UNIT),
        ("OrderServiceApiTest", TestCategory.API),
        ("order REST suite", TestCategory.API),
        ("ContractTests", TestCategory.INTEGRATION),
        ("checkout e2e", TestCategory.UI),
        ("nightly regression", TestCategory.SYSTEM),
        ("SomethingElse", TestCategory.UNIT),
        (None, TestCategory.UNIT),
    ])
    def test_categories(self, label, expected):
        assert ServiceResolver().resolve_category(label) == expected

    def test_deterministic(self):
        resolver = ServiceResolver()
        first = [resolver.resolve(label) for label in ("a", "OrderApi", "UserUi", None)]
        second = [resolver.resolve(label) for label in ("a", "OrderApi", "UserUi", None)]
        assert first == second

    def test_injected_keywords(self):
        resolver = ServiceResolver([("billing", "Billing Service")])
        assert resolver.resolve_service("BillingApiTest") == "Billing Service"
        assert resolver.resolve_service("UserServiceTest") == UNKNOWN_SERVICE

    def test_service_slug(self):
        assert service_slug("Order Service") == "order-service"
        assert service_slug("  Gateway  Service ") == "gateway-service"


# =============================================================================
# Record Tests
# =============================================================================

class TestOutcomeNormalization:

    @pytest.mark.parametrize("status", ["PASSED", "pass", " Success "])
    def test_pass_spellings(self, status):
        assert TestOutcome.from_status(status) == TestOutcome.PASSED

    @pytest.mark.parametrize("status", ["FAILED", "fail", "Error"])
    def test_fail_spellings(self, status):
        assert TestOutcome.from_status(status) == TestOutcome.FAILED

    @pytest.mark.parametrize("status", [None, "SKIPPED", "running", ""])
    def test_other(self, status):
        assert TestOutcome.from_status(status) == TestOutcome.OTHER


class TestRecords:

    def test_run_from_nested_record(self):
        run = TestRun.from_record({
            "id": 7,
            "status": "PASS",
            "started_at": "2024-06-14T10:00:00Z",
            "test_suite": {"name": "OrderServiceApiTest", "project": {"name": "Shop"}},
        })
        assert run.id == "7"
        assert run.suite_name == "OrderServiceApiTest"
        assert run.project_name == "Shop"
        assert run.started_at == datetime(2024, 6, 14, 10, tzinfo=timezone.utc)
        assert run.outcome == TestOutcome.PASSED

    def test_result_from_nested_record(self):
        result = TestResult.from_record({
            "id": "r1",
            "status": "FAILED",
            "duration_ms": "250",
            "created_at": "2024-06-14T10:00:00",
            "test_case": {"name": "login_flow", "tags": ["Security", "smoke"]},
            "test_run": {"test_suite": {"name": "UserApi", "project": {"name": "Shop"}}},
        })
        assert result.duration_ms == 250.0
        assert result.suite_name == "UserApi"
        assert result.tags == frozenset({"Security", "smoke"})
        assert result.is_security_test
        assert result.created_at.tzinfo is not None

    def test_missing_fields_default(self):
        result = TestResult.from_record({"id": "r2", "duration_ms": "n/a"})
        assert result.duration_ms is None
        assert not result.has_duration
        assert result.suite_name is None
        assert result.outcome == TestOutcome.OTHER

    def test_zero_duration_is_unknown(self):
        assert not TestResult(id="x", status="PASSED", duration_ms=0).has_duration

    def test_naive_datetimes_become_utc(self):
        run = TestRun(id="1", status="PASSED", started_at=datetime(2024, 6, 14, 9))
        result = TestResult(id="2", status="PASSED", created_at="2024-06-14T09:00:00", tags=["api"])
        assert run.started_at == datetime(2024, 6, 14, 9, tzinfo=timezone.utc)
        assert result.created_at == run.started_at
        assert result.tags == frozenset({"api"})

    def test_to_dict(self):
        run = TestRun(id="1", status="PASSED", started_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert run.to_dict()["started_at"] == "2024-01-01T00:00:00+00:00"


class TestParseTimestamp:

    def test_naive_is_utc(self):
        assert parse_timestamp("2024-06-01T08:30:00").tzinfo == timezone.utc

    def test_offset_converted(self):
        ts = parse_timestamp("2024-06-01T10:30:00+02:00")
        assert ts == datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "yesterday", "2024-13-45"])
    def test_bad_values(self, value):
        assert parse_timestamp(value) is None


# =============================================================================
# Observer Tests
# =============================================================================

class TestObservers:

    def test_collecting_observer(self):
        obs = CollectingObserver()
        obs.record("a", x=1)
        obs.record("b")
        obs.record("a", x=2)
        assert obs.named("a") == [{"x": 1}, {"x": 2}]

    def test_null_and_logging_observers(self, caplog):
        NullObserver().record("ignored", x=1)
        with caplog.at_level("DEBUG", logger="ci_insights.events"):
            LoggingObserver().record("scorecard.computed", service="Order Service")
        assert "scorecard.computed service=Order Service" in caplog.text
