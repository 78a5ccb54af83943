"""
Core Value Objects and Entities

Immutable CI records (test runs and test results) as fetched from the
external data source, plus the status and category vocabularies every
engine shares.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

UNKNOWN_SERVICE = "Unknown Service"
UNKNOWN_SUITE = "Unknown Suite"
UNKNOWN_PROJECT = "Unknown Project"
UNKNOWN_TEST = "Unknown"

_PASS_STATUSES = frozenset({"PASSED", "PASS", "SUCCESS"})
_FAIL_STATUSES = frozenset({"FAILED", "FAIL", "ERROR"})


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TestOutcome(Enum):
    """Normalized outcome of a run or result status string."""
    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    OTHER = "other"

    @classmethod
    def from_status(cls, status: Optional[str]) -> "TestOutcome":
        """Map raw status spellings (PASS, Success, error, ...) onto an outcome."""
        if status is None:
            return cls.OTHER
        normalized = str(status).strip().upper()
        if normalized in _PASS_STATUSES:
            return cls.PASSED
        if normalized in _FAIL_STATUSES:
            return cls.FAILED
        return cls.OTHER


class TestCategory(Enum):
    """Test classification inferred from suite naming conventions."""
    __test__ = False

    UNIT = "unit"
    API = "api"
    INTEGRATION = "integration"
    UI = "ui"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: str) -> "TestCategory":
        return cls(str(value).strip().lower())


class RiskLevel(Enum):
    """Three-tier ordinal risk classification shared by scorecards and impact reports."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def numeric(self) -> int:
        return {"HIGH": 3, "MEDIUM": 2, "LOW": 1}[self.value]

    def __ge__(self, other: "RiskLevel") -> bool:
        if isinstance(other, RiskLevel):
            return self.numeric >= other.numeric
        return NotImplemented

    def __gt__(self, other: "RiskLevel") -> bool:
        if isinstance(other, RiskLevel):
            return self.numeric > other.numeric
        return NotImplemented

    def __le__(self, other: "RiskLevel") -> bool:
        if isinstance(other, RiskLevel):
            return self.numeric <= other.numeric
        return NotImplemented

    def __lt__(self, other: "RiskLevel") -> bool:
        if isinstance(other, RiskLevel):
            return self.numeric < other.numeric
        return NotImplemented


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into a timezone-aware UTC datetime.

    Naive values are assumed to be UTC. Unparseable values yield None
    rather than raising, so a single bad row never aborts a computation.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Ignoring unparseable timestamp %r", value)
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _nested(record: Dict[str, Any], *path: str) -> Any:
    current: Any = record
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _tags(value: Any) -> FrozenSet[str]:
    if not value:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value})
    if isinstance(value, Iterable):
        return frozenset(str(tag) for tag in value if tag is not None)
    return frozenset()


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TestRun:
    """One CI execution of a test suite."""
    __test__ = False

    id: str
    status: Optional[str]
    started_at: Optional[datetime] = None
    suite_name: Optional[str] = None
    project_name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "started_at", parse_timestamp(self.started_at))

    @property
    def outcome(self) -> TestOutcome:
        return TestOutcome.from_status(self.status)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "TestRun":
        """Build from a row shaped like ``test_run`` joined to suite/project."""
        return cls(
            id=str(record.get("id", "")),
            status=record.get("status"),
            started_at=parse_timestamp(record.get("started_at")),
            suite_name=_nested(record, "test_suite", "name") or record.get("suite_name"),
            project_name=(
                _nested(record, "test_suite", "project", "name")
                or record.get("project_name")
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "suite_name": self.suite_name,
            "project_name": self.project_name,
        }


@dataclass(frozen=True)
class TestResult:
    """Outcome of a single test case within a run."""
    __test__ = False

    id: str
    status: Optional[str]
    duration_ms: Optional[float] = None
    created_at: Optional[datetime] = None
    test_case_name: Optional[str] = None
    tags: FrozenSet[str] = field(default_factory=frozenset)
    suite_name: Optional[str] = None
    project_name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))
        object.__setattr__(self, "tags", _tags(self.tags))

    @property
    def outcome(self) -> TestOutcome:
        return TestOutcome.from_status(self.status)

    @property
    def has_duration(self) -> bool:
        """A null or non-positive duration means "unknown", not zero latency."""
        return self.duration_ms is not None and self.duration_ms > 0

    @property
    def is_security_test(self) -> bool:
        name = (self.test_case_name or "").lower()
        if "security" in name:
            return True
        return any("security" in tag.lower() for tag in self.tags)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "TestResult":
        """Build from a row shaped like ``test_result`` joined to case and run."""
        duration = record.get("duration_ms")
        try:
            duration = float(duration) if duration is not None else None
        except (TypeError, ValueError):
            duration = None
        return cls(
            id=str(record.get("id", "")),
            status=record.get("status"),
            duration_ms=duration,
            created_at=parse_timestamp(record.get("created_at")),
            test_case_name=_nested(record, "test_case", "name") or record.get("test_case_name"),
            tags=_tags(_nested(record, "test_case", "tags") or record.get("tags")),
            suite_name=(
                _nested(record, "test_run", "test_suite", "name")
                or record.get("suite_name")
            ),
            project_name=(
                _nested(record, "test_run", "test_suite", "project", "name")
                or record.get("project_name")
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "duration_ms": self.duration_ms,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "test_case_name": self.test_case_name,
            "tags": sorted(self.tags),
            "suite_name": self.suite_name,
            "project_name": self.project_name,
        }
