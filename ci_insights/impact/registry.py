"""
Service Registry

Static service metadata consumed by the impact analyzer: the dependency
graph, per-category test coverage and historical failure rates. Loaded from
configuration (see ``ci_insights.config.loader.load_registry``).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .graph import DependencyGraph


@dataclass
class CoverageEntry:
    coverage: float
    tests: int = 0
    avg_duration: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CoverageEntry":
        return cls(
            coverage=float(data.get("coverage", 0.0)),
            tests=int(data.get("tests", 0)),
            avg_duration=float(data.get("avg_duration", data.get("avgDuration", 0.0))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"coverage": self.coverage, "tests": self.tests, "avg_duration": self.avg_duration}


@dataclass
class ServiceRegistry:
    graph: DependencyGraph = field(default_factory=DependencyGraph)
    coverage: Dict[str, Dict[str, CoverageEntry]] = field(default_factory=dict)
    historical_failure_rates: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceRegistry":
        coverage = {
            service: {
                category: CoverageEntry.from_dict(entry or {})
                for category, entry in (categories or {}).items()
            }
            for service, categories in (data.get("coverage") or {}).items()
        }
        rates = {
            service: float(rate)
            for service, rate in (data.get("historical_failure_rates") or {}).items()
        }
        return cls(
            graph=DependencyGraph.from_dict(data.get("services") or {}),
            coverage=coverage,
            historical_failure_rates=rates,
        )

    def service_coverage(self, service: str) -> Optional[float]:
        """Mean coverage across the service's categories; None when unknown."""
        categories = self.coverage.get(service)
        if not categories:
            return None
        return sum(e.coverage for e in categories.values()) / len(categories)

    def historical_failure_rate(self, service: str) -> Optional[float]:
        return self.historical_failure_rates.get(service)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "services": self.graph.to_dict(),
            "coverage": {
                s: {c: e.to_dict() for c, e in cats.items()} for s, cats in self.coverage.items()
            },
            "historical_failure_rates": dict(self.historical_failure_rates),
        }
