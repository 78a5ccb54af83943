"""
Test Configuration and Fixtures
================================

Shared pytest fixtures for the ci_insights test suite.

Usage:
    pytest tests/                    # Run all tests
    pytest tests/ -v                 # Verbose output
    pytest tests/ -k "impact"        # Run only impact tests
"""

import sys
from datetime import datetime, timedelta, timezone
from itertools import count
from pathlib import Path
from typing import Any, Dict

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from ci_insights.core.models import TestResult, TestRun
from ci_insights.core.observability import CollectingObserver
from ci_insights.impact.registry import ServiceRegistry

PROJECT_ROOT = Path(__file__).parent.parent
SAMPLE_REGISTRY = PROJECT_ROOT / "config" / "service_registry.yaml"

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Custom Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "integration: marks integration tests")


# =============================================================================
# Record Factories
# =============================================================================

@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_run():
    """Factory for TestRun objects; ``days_ago`` is relative to NOW."""
    ids = count(1)

    def _make(suite: str, status: str = "PASSED", days_ago: float = 1, project: str = "Shop"):
        return TestRun(
            id=f"run-{next(ids)}",
            status=status,
            started_at=NOW - timedelta(days=days_ago),
            suite_name=suite,
            project_name=project,
        )

    return _make


@pytest.fixture
def make_result():
    """Factory for TestResult objects; ``minutes_ago`` orders history."""
    ids = count(1)

    def _make(
        name: str = "checkout_flow",
        status: str = "PASSED",
        duration_ms: Any = 100,
        minutes_ago: float = 0,
        suite: str = "OrderServiceApiTest",
        tags=(),
    ):
        return TestResult(
            id=f"res-{next(ids)}",
            status=status,
            duration_ms=duration_ms,
            created_at=NOW - timedelta(minutes=minutes_ago),
            test_case_name=name,
            tags=frozenset(tags),
            suite_name=suite,
            project_name="Shop",
        )

    return _make


@pytest.fixture
def order_api_records(make_run, make_result):
    """OrderServiceApiTest: 8 passed / 2 failed this week, durations 400/420/380."""
    runs = [make_run("OrderServiceApiTest", "PASSED", days_ago=1 + i * 0.1) for i in range(8)]
    runs += [make_run("OrderServiceApiTest", "FAILED", days_ago=2 + i * 0.1) for i in range(2)]
    results = [
        make_result("create_order", "PASSED", d, minutes_ago=i)
        for i, d in enumerate([400, 420, 380])
    ]
    return runs, results


@pytest.fixture
def observer() -> CollectingObserver:
    return CollectingObserver()


# =============================================================================
# Registry Fixtures
# =============================================================================

@pytest.fixture
def registry_data() -> Dict[str, Any]:
    return {
        "services": {
            "user-service": {
                "dependents": ["order-service", "notification-service"],
                "criticality": "HIGH",
            },
            "product-service": {"dependents": ["order-service"], "criticality": "MEDIUM"},
            "order-service": {
                "dependencies": ["user-service", "product-service"],
                "dependents": ["notification-service", "payment-service"],
                "criticality": "HIGH",
            },
            "notification-service": {"dependents": [], "criticality": "MEDIUM"},
            "gateway-service": {
                "dependents": [
                    "user-service", "product-service", "order-service", "notification-service",
                ],
                "criticality": "CRITICAL",
            },
        },
        "coverage": {
            "user-service": {
                "unit": {"coverage": 92}, "api": {"coverage": 88},
                "integration": {"coverage": 85}, "ui": {"coverage": 75},
            },
            "order-service": {
                "unit": {"coverage": 91}, "api": {"coverage": 87},
                "integration": {"coverage": 84}, "contract": {"coverage": 80},
            },
            "gateway-service": {
                "unit": {"coverage": 88}, "api": {"coverage": 85}, "integration": {"coverage": 82},
            },
            "notification-service": {"unit": {"coverage": 94}},
        },
        "historical_failure_rates": {
            "user-service": 0.05,
            "order-service": 0.12,
            "gateway-service": 0.15,
        },
    }


@pytest.fixture
def registry(registry_data) -> ServiceRegistry:
    return ServiceRegistry.from_dict(registry_data)


@pytest.fixture
def sample_registry_path() -> Path:
    return SAMPLE_REGISTRY
