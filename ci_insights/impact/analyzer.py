"""
Impact Analyzer

Weighted risk model for a proposed change over the service registry.

Pipeline:
    1. Feature extraction   (lines, services, complexity, coverage, depth, ...)
    2. Impact score         (0-10, additive terms, clamped)
    3. Blast radius         (two-level propagation along dependents)
    4. Risk assessment      (five weighted components -> LOW/MEDIUM/HIGH)
    5. Recommendations, confidence, description, key changes
"""
from __future__ import annotations

import logging
from statistics import mean
from typing import Dict, List, Optional, Set

from ci_insights.core.models import RiskLevel
from ci_insights.core.observability import AnalysisObserver, LoggingObserver
from .models import (
    BlastRadiusEntry, ChangeDescriptor, ChangeFeatures, Criticality, ImpactReport,
    ImpactType, Recommendation, RiskAssessment,
)
from .registry import ServiceRegistry

logger = logging.getLogger(__name__)

RISK_WEIGHTS: Dict[str, float] = {
    "complexity": 0.20,
    "coverage": 0.25,
    "dependency": 0.20,
    "historical": 0.15,
    "critical_path": 0.20,
}

COVERAGE_TARGET = 80.0
DIRECT_THRESHOLD = 0.3
INDIRECT_THRESHOLD = 0.2
HISTORICAL_SIGNAL = 0.1


class ImpactAnalyzer:
    """
    Analyzes a ChangeDescriptor against an injected ServiceRegistry.

    Example:
        >>> analyzer = ImpactAnalyzer(registry)
        >>> report = analyzer.analyze(ChangeDescriptor(["order-service"], 120, 30, 6))
        >>> report.risk_level, [b.service for b in report.blast_radius]
    """

    def __init__(
        self,
        registry: Optional[ServiceRegistry] = None,
        observer: Optional[AnalysisObserver] = None,
    ):
        self.registry = registry or ServiceRegistry()
        self.observer = observer or LoggingObserver()

    @property
    def graph(self):
        return self.registry.graph

    # =========================================================================
    # Public API
    # =========================================================================

    def analyze(self, change: ChangeDescriptor) -> ImpactReport:
        services = _unique(change.services_modified)
        features = self.extract_features(change)
        impact_score = self.impact_score(features)
        blast_radius = self.blast_radius(services, features)
        assessment = self.assess_risk(features)
        recommendations = self.recommendations(assessment, blast_radius, services)

        report = ImpactReport(
            impact_score=impact_score,
            risk_level=assessment.risk_level,
            blast_radius=blast_radius,
            confidence=self.confidence(features),
            impact_description=self.describe(blast_radius, impact_score),
            key_changes=self.key_changes(change),
            risk_assessment=assessment,
            recommendations=recommendations,
            features=features,
            change=change,
        )
        self.observer.record(
            "impact.analyzed",
            services=features.services_modified_count,
            impact_score=round(impact_score, 3),
            risk=assessment.risk_level.value,
            blast_radius=len(blast_radius),
            confidence=report.confidence,
        )
        return report

    # =========================================================================
    # Features
    # =========================================================================

    def extract_features(self, change: ChangeDescriptor) -> ChangeFeatures:
        services = _unique(change.services_modified)
        total_lines = change.total_lines_changed

        if change.files_changed > 0:
            complexity = min(20.0, (total_lines / change.files_changed) / 10.0)
        else:
            complexity = 0.0

        if not services:
            avg_coverage: Optional[float] = 100.0
        else:
            known = [c for c in (self.registry.service_coverage(s) for s in services) if c is not None]
            avg_coverage = mean(known) if known else None

        rates = [
            r for r in (self.registry.historical_failure_rate(s) for s in services) if r is not None
        ]

        return ChangeFeatures(
            total_lines_changed=total_lines,
            services_modified_count=len(services),
            complexity=complexity,
            avg_coverage=avg_coverage,
            dependency_depth=max((self.graph.dependency_depth(s) for s in services), default=0),
            critical_path_changes=len(self._critical_services(services)),
            historical_failure_rate=mean(rates) if rates else None,
            api_endpoints_changed=change.api_endpoints_changed,
            test_files_modified=change.test_files_modified,
        )

    # =========================================================================
    # Scoring
    # =========================================================================

    def impact_score(self, features: ChangeFeatures) -> float:
        score = min(5.0, features.total_lines_changed / 100.0)
        score += min(3.0, features.services_modified_count * 0.5)
        score += min(2.0, features.dependency_depth * 0.4)
        if features.critical_path_changes > 0:
            score += 2.0
        if features.avg_coverage is not None and features.avg_coverage < COVERAGE_TARGET:
            score += (COVERAGE_TARGET - features.avg_coverage) / 40.0
        return min(10.0, max(0.0, score))

    def impact_probability(self, source: str, target: str, features: ChangeFeatures) -> float:
        """Probability that a change in ``source`` affects its dependent ``target``."""
        probability = 0.5
        if self.graph.criticality(source) == Criticality.CRITICAL:
            probability += 0.3
        if self.graph.criticality(target) == Criticality.CRITICAL:
            probability += 0.2
        coverage = self.registry.service_coverage(source)
        if coverage is None or coverage < COVERAGE_TARGET:
            probability += 0.2
        rate = features.historical_failure_rate
        if rate is not None and rate > HISTORICAL_SIGNAL:
            probability += 0.1
        if features.api_endpoints_changed > 0:
            probability += 0.1
        return min(1.0, probability)

    def blast_radius(self, services: List[str], features: ChangeFeatures) -> List[BlastRadiusEntry]:
        """
        Services expected to be affected, most probable first.

        Each service appears once (first occurrence wins) and never in its own
        radius. The sort is
        stable, so ties keep discovery order.
        """
        entries: List[BlastRadiusEntry] = []
        seen: Set[str] = set(services)

        def add(service: str, probability: float, impact_type: ImpactType, relationship: str) -> None:
            seen.add(service)
            entries.append(BlastRadiusEntry(
                service=service,
                probability=probability,
                impact_type=impact_type,
                relationship=relationship,
                criticality=self.graph.criticality(service),
            ))

        for service in services:
            if service not in self.graph:
                continue
            dependents = self.graph.dependents(service)
            for dependent in dependents:
                if dependent in seen:
                    continue
                p = self.impact_probability(service, dependent, features)
                if p > DIRECT_THRESHOLD:
                    add(dependent, p, ImpactType.DIRECT, "depends_on")

            for dependent in dependents:
                for second in self.graph.dependents(dependent):
                    if second in seen:
                        continue
                    p = self.impact_probability(dependent, second, features) * 0.5
                    if p > INDIRECT_THRESHOLD:
                        add(second, p, ImpactType.INDIRECT, "transitive_dependency")

        entries.sort(key=lambda e: e.probability, reverse=True)
        return entries

    def assess_risk(self, features: ChangeFeatures) -> RiskAssessment:
        if features.avg_coverage is None:
            coverage_risk = 1.0
        else:
            coverage_risk = max(0.0, (100.0 - features.avg_coverage) / 100.0)
        components = {
            "complexity": min(1.0, features.complexity / 20.0),
            "coverage": min(1.0, coverage_risk),
            "dependency": min(1.0, features.dependency_depth / 5.0),
            "historical": min(1.0, features.historical_failure_rate or 0.0),
            "critical_path": 1.0 if features.critical_path_changes > 0 else 0.0,
        }
        score = sum(value * RISK_WEIGHTS[name] for name, value in components.items())

        if score >= 0.7:
            level = RiskLevel.HIGH
        elif score >= 0.4:
            level = RiskLevel.MEDIUM
        else:
            level = RiskLevel.LOW
        return RiskAssessment(risk_score=score, risk_level=level, components=components)

    # =========================================================================
    # Reporting
    # =========================================================================

    def recommendations(
        self,
        assessment: RiskAssessment,
        blast_radius: List[BlastRadiusEntry],
        services: List[str],
    ) -> List[Recommendation]:
        out: List[Recommendation] = []
        components = assessment.components

        if components["coverage"] > 0.5:
            out.append(Recommendation(
                type="test_coverage",
                priority="HIGH",
                message="Increase test coverage for modified components",
                action="Add unit and integration tests for changed code paths",
                services=[b.service for b in blast_radius if b.impact_type == ImpactType.DIRECT],
            ))

        if components["dependency"] > 0.6:
            out.append(Recommendation(
                type="dependency_management",
                priority="MEDIUM",
                message="Review dependency changes carefully",
                action="Run comprehensive integration tests on dependent services",
                services=[b.service for b in blast_radius],
            ))

        if components["critical_path"] > 0:
            critical = self._critical_services(services)
            critical += [
                b.service for b in blast_radius
                if b.criticality == Criticality.CRITICAL and b.service not in critical
            ]
            out.append(Recommendation(
                type="critical_path",
                priority="HIGH",
                message="Critical path components modified",
                action="Execute full regression test suite and staging deployment",
                services=critical,
            ))

        if len(blast_radius) > 3:
            out.append(Recommendation(
                type="impact_scope",
                priority="MEDIUM",
                message="Wide impact scope detected",
                action="Coordinate testing across multiple teams and services",
                services=[b.service for b in blast_radius[:3]],
            ))
        return out

    def confidence(self, features: ChangeFeatures) -> float:
        confidence = 0.8
        if features.services_modified_count == 0:
            confidence -= 0.3
        if not features.has_coverage_data:
            confidence -= 0.2
        if not features.has_historical_data:
            confidence -= 0.1
        return round(max(0.1, min(1.0, confidence)), 2)

    @staticmethod
    def describe(blast_radius: List[BlastRadiusEntry], impact_score: float) -> str:
        if not blast_radius:
            return "No significant impact expected on other services."

        direct = [b.service for b in blast_radius if b.impact_type == ImpactType.DIRECT]
        indirect = [b.service for b in blast_radius if b.impact_type == ImpactType.INDIRECT]

        parts = [f"This change is expected to impact {len(blast_radius)} service(s)."]
        if direct:
            parts.append(f"Direct impact on: {', '.join(direct)}.")
        if indirect:
            parts.append(f"Indirect impact on: {', '.join(indirect)}.")

        if impact_score > 7:
            parts.append("High impact change requiring comprehensive testing.")
        elif impact_score > 4:
            parts.append("Medium impact change requiring targeted testing.")
        else:
            parts.append("Low impact change with minimal testing requirements.")
        return " ".join(parts)

    @staticmethod
    def key_changes(change: ChangeDescriptor) -> List[str]:
        changes = []
        if change.lines_added > 100:
            changes.append("Significant code additions")
        if change.lines_deleted > 50:
            changes.append("Code refactoring/removal")
        if change.files_changed > 10:
            changes.append("Multiple file modifications")
        if len(_unique(change.services_modified)) > 1:
            changes.append("Multi-service changes")
        return changes or ["Minor code changes"]

    # =========================================================================
    # Internal
    # =========================================================================

    def _critical_services(self, services: List[str]) -> List[str]:
        out: List[str] = []
        for s in services:
            if s in self.graph and self.graph.criticality(s) == Criticality.CRITICAL and s not in out:
                out.append(s)
        return out


def _unique(services: List[str]) -> List[str]:
    return list(dict.fromkeys(services))
