"""
Change impact analysis over the service dependency registry.
"""
from .models import (
    Criticality, ImpactType, ChangeDescriptor, ChangeFeatures, BlastRadiusEntry,
    RiskAssessment, Recommendation, ImpactReport,
)
from .graph import DependencyGraph
from .registry import CoverageEntry, ServiceRegistry
from .analyzer import ImpactAnalyzer, RISK_WEIGHTS

__all__ = [
    "Criticality", "ImpactType", "ChangeDescriptor", "ChangeFeatures", "BlastRadiusEntry",
    "RiskAssessment", "Recommendation", "ImpactReport", "DependencyGraph",
    "CoverageEntry", "ServiceRegistry", "ImpactAnalyzer", "RISK_WEIGHTS",
]
