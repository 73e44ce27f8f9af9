"""Telemetry hooks for the scoring pipeline and assessment engine.

Components emit ``interaction.*`` and ``assessment.*`` events to a sink
passed in at construction; the default sink drops them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class TelemetrySink(Protocol):
    def emit(self, event: TelemetryEvent) -> None: ...


class NoOpTelemetrySink:
    def emit(self, event: TelemetryEvent) -> None:
        pass


class InMemoryTelemetrySink:
    """Collects events in emission order."""

    def __init__(self) -> None:
        self.events: list[TelemetryEvent] = []

    def emit(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [e.name for e in self.events]

    def last(self, name: str) -> TelemetryEvent | None:
        """Most recent event called *name*, or ``None``."""
        for event in reversed(self.events):
            if event.name == name:
                return event
        return None
