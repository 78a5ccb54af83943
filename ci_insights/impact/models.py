"""
Impact Analysis Domain Models

Data classes for change descriptors, extracted features, blast-radius
entries, risk assessments, recommendations and the final impact report.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ci_insights.core.models import RiskLevel


class Criticality(Enum):
    """Static importance tier of a service."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def numeric(self) -> int:
        return {"LOW": 1, "MEDIUM": 2, "HIGH": 3, "CRITICAL": 4}[self.value]

    @classmethod
    def parse(cls, value: Any, default: "Criticality" | None = None) -> "Criticality":
        if isinstance(value, Criticality):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            if default is not None:
                return default
            raise

    def __ge__(self, other: "Criticality") -> bool:
        if isinstance(other, Criticality):
            return self.numeric >= other.numeric
        return NotImplemented

    def __gt__(self, other: "Criticality") -> bool:
        if isinstance(other, Criticality):
            return self.numeric > other.numeric
        return NotImplemented

    def __le__(self, other: "Criticality") -> bool:
        if isinstance(other, Criticality):
            return self.numeric <= other.numeric
        return NotImplemented

    def __lt__(self, other: "Criticality") -> bool:
        if isinstance(other, Criticality):
            return self.numeric < other.numeric
        return NotImplemented


class ImpactType(Enum):
    DIRECT = "direct"
    INDIRECT = "indirect"


# =============================================================================
# Input
# =============================================================================

@dataclass
class ChangeDescriptor:
    """A proposed code change, as reported by source control."""
    services_modified: List[str] = field(default_factory=list)
    lines_added: int = 0
    lines_deleted: int = 0
    files_changed: int = 0
    api_endpoints_changed: int = 0
    test_files_modified: int = 0
    title: Optional[str] = None

    @property
    def total_lines_changed(self) -> int:
        return self.lines_added + self.lines_deleted

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChangeDescriptor":
        services = data.get("services_modified") or []
        if isinstance(services, str):
            services = [services]
        return cls(
            services_modified=[str(s) for s in services],
            lines_added=int(data.get("lines_added") or 0),
            lines_deleted=int(data.get("lines_deleted") or 0),
            files_changed=int(data.get("files_changed") or 0),
            api_endpoints_changed=int(data.get("api_endpoints_changed") or 0),
            test_files_modified=int(data.get("test_files_modified") or 0),
            title=data.get("title"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "services_modified": list(self.services_modified),
            "lines_added": self.lines_added,
            "lines_deleted": self.lines_deleted,
            "files_changed": self.files_changed,
            "api_endpoints_changed": self.api_endpoints_changed,
            "test_files_modified": self.test_files_modified,
        }


@dataclass
class ChangeFeatures:
    """Numeric features extracted from a change against the registry."""
    total_lines_changed: int
    services_modified_count: int
    complexity: float
    avg_coverage: Optional[float]
    dependency_depth: int
    critical_path_changes: int
    historical_failure_rate: Optional[float]
    api_endpoints_changed: int
    test_files_modified: int

    @property
    def has_coverage_data(self) -> bool:
        return self.avg_coverage is not None

    @property
    def has_historical_data(self) -> bool:
        return self.historical_failure_rate is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_lines_changed": self.total_lines_changed,
            "services_modified_count": self.services_modified_count,
            "cyclomatic_complexity": round(self.complexity, 3),
            "test_coverage": round(self.avg_coverage, 2) if self.avg_coverage is not None else None,
            "dependency_depth": self.dependency_depth,
            "critical_path_changes": self.critical_path_changes,
            "historical_failure_rate": (
                round(self.historical_failure_rate, 4)
                if self.historical_failure_rate is not None else None
            ),
            "api_endpoints_changed": self.api_endpoints_changed,
            "test_files_modified": self.test_files_modified,
        }


# =============================================================================
# Output
# =============================================================================

@dataclass
class BlastRadiusEntry:
    service: str
    probability: float
    impact_type: ImpactType
    relationship: str
    criticality: Criticality

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.service,
            "probability": round(self.probability, 4),
            "impact_type": self.impact_type.value,
            "relationship": self.relationship,
            "criticality": self.criticality.value,
        }


@dataclass
class RiskAssessment:
    risk_score: float
    risk_level: RiskLevel
    components: Dict[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_score": round(self.risk_score, 4),
            "risk_level": self.risk_level.value,
            "risk_components": {k: round(v, 4) for k, v in self.components.items()},
        }


@dataclass
class Recommendation:
    type: str
    priority: str
    message: str
    action: str
    services: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "priority": self.priority,
            "message": self.message,
            "action": self.action,
            "services": list(self.services),
        }


@dataclass
class ImpactReport:
    """Complete result of analyzing one change."""
    impact_score: float
    risk_level: RiskLevel
    blast_radius: List[BlastRadiusEntry]
    confidence: float
    impact_description: str
    key_changes: List[str]
    risk_assessment: RiskAssessment
    recommendations: List[Recommendation]
    features: ChangeFeatures
    change: Optional[ChangeDescriptor] = None

    @property
    def direct_impacts(self) -> List[BlastRadiusEntry]:
        return [b for b in self.blast_radius if b.impact_type == ImpactType.DIRECT]

    @property
    def indirect_impacts(self) -> List[BlastRadiusEntry]:
        return [b for b in self.blast_radius if b.impact_type == ImpactType.INDIRECT]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "impact_score": round(self.impact_score, 3),
            "risk_level": self.risk_level.value,
            "blast_radius": [b.to_dict() for b in self.blast_radius],
            "confidence": round(self.confidence, 2),
            "impact_description": self.impact_description,
            "key_changes": list(self.key_changes),
            "risk_assessment": self.risk_assessment.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "features": self.features.to_dict(),
            "change": self.change.to_dict() if self.change else None,
        }
