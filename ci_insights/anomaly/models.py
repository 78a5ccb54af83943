"""
Anomaly Models
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class AnomalyType(Enum):
    PERFORMANCE = "performance"
    RELIABILITY = "reliability"
    FAILURE_RATE = "failure_rate"
    SERVICE_FAILURE = "service_failure"
    VOLUME = "volume"


class AnomalySeverity(Enum):
    """Ordered severity; ``HIGH``/``MEDIUM``/``LOW`` labels map onto it."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return {"critical": 3, "warning": 2, "info": 1}[self.value]

    @classmethod
    def from_level(cls, level: str) -> "AnomalySeverity":
        aliases = {"HIGH": cls.CRITICAL, "MEDIUM": cls.WARNING, "LOW": cls.INFO}
        key = str(level).strip()
        if key.upper() in aliases:
            return aliases[key.upper()]
        return cls(key.lower())


@dataclass
class Anomaly:
    type: AnomalyType
    severity: AnomalySeverity
    subject: str
    title: str
    description: str
    details: str = ""
    count: int = 0
    evidence: Dict[str, Any] = field(default_factory=dict)

    @property
    def test_name(self) -> Optional[str]:
        if self.type in (AnomalyType.PERFORMANCE, AnomalyType.RELIABILITY):
            return self.subject
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "subject": self.subject,
            "title": self.title,
            "description": self.description,
            "details": self.details,
            "count": self.count,
            "evidence": dict(self.evidence),
        }
