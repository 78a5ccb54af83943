"""
Observability Hook

Engines report structured events through an injected observer instead of
writing to the console. The default observer forwards events to ``logging``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Tuple, runtime_checkable


@runtime_checkable
class AnalysisObserver(Protocol):
    """Receives named events with keyword fields from the engines."""

    def record(self, event: str, **fields: Any) -> None:
        ...


class NullObserver:
    """Discards every event."""

    def record(self, event: str, **fields: Any) -> None:
        return None


class LoggingObserver:
    """Emits each event as a single ``key=value`` log line."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.DEBUG):
        self.logger = logger or logging.getLogger("ci_insights.events")
        self.level = level

    def record(self, event: str, **fields: Any) -> None:
        if not self.logger.isEnabledFor(self.level):
            return
        rendered = " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        self.logger.log(self.level, "%s %s", event, rendered)


@dataclass
class CollectingObserver:
    """Keeps events in memory; handy for tests and batch summaries."""
    events: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)

    def record(self, event: str, **fields: Any) -> None:
        self.events.append((event, dict(fields)))

    def named(self, event: str) -> List[Dict[str, Any]]:
        return [f for name, f in self.events if name == event]
