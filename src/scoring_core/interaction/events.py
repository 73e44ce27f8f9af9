"""Interaction events and their type-specific payloads.

Payloads form a tagged union keyed by event type: each variant carries
exactly the fields its multiplier logic needs.  Every variant also keeps
the attribution fields (``referrer``, ``member_id``) used by the
conversion model and an ``extra`` mapping for fields the core ignores.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping

from scoring_core.interaction.parsing import (
    as_utc,
    parse_float,
    parse_int,
    parse_text,
    parse_timestamp,
)
from scoring_core.interaction.rules import EventType

_ATTRIBUTION_KEYS = ("referrer", "member_id")


@dataclass(frozen=True)
class EventPayload:
    referrer: str | None = None
    member_id: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def has_referral(self) -> bool:
        return bool(self.referrer or self.member_id)


@dataclass(frozen=True)
class TimeOnPagePayload(EventPayload):
    time_spent_ms: float = 0.0


@dataclass(frozen=True)
class ScrollDepthPayload(EventPayload):
    depth_percentage: float = 0.0


@dataclass(frozen=True)
class ConsecutiveDaysPayload(EventPayload):
    day_count: int | None = None


@dataclass(frozen=True)
class InteractionEvent:
    """One timestamped user action.  Immutable once produced."""

    event_type: str
    timestamp: datetime
    session_id: str
    payload: EventPayload = field(default_factory=EventPayload)
    user_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))

    @property
    def known_type(self) -> EventType | None:
        try:
            return EventType(self.event_type)
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.payload.extra)
        for key in _ATTRIBUTION_KEYS:
            value = getattr(self.payload, key)
            if value is not None:
                data[key] = value
        if isinstance(self.payload, TimeOnPagePayload):
            data["time_spent"] = self.payload.time_spent_ms
        elif isinstance(self.payload, ScrollDepthPayload):
            data["depth_percentage"] = self.payload.depth_percentage
        elif isinstance(self.payload, ConsecutiveDaysPayload) and self.payload.day_count is not None:
            data["day_count"] = self.payload.day_count
        return {
            "event_type": self.event_type,
            "event_data": data,
            "timestamp": self.timestamp.isoformat(),
            "session_id": self.session_id,
            "user_id": self.user_id,
        }


PayloadBuilder = Callable[[dict[str, Any], dict[str, Any]], EventPayload]


def _build_time_on_page(data: dict[str, Any], common: dict[str, Any]) -> EventPayload:
    return TimeOnPagePayload(time_spent_ms=parse_float(data.get("time_spent")) or 0.0, **common)


def _build_scroll_depth(data: dict[str, Any], common: dict[str, Any]) -> EventPayload:
    return ScrollDepthPayload(
        depth_percentage=parse_float(data.get("depth_percentage")) or 0.0, **common,
    )


def _build_consecutive_days(data: dict[str, Any], common: dict[str, Any]) -> EventPayload:
    return ConsecutiveDaysPayload(day_count=parse_int(data.get("day_count")), **common)


_PAYLOAD_BUILDERS: dict[str, PayloadBuilder] = {
    EventType.TIME_ON_PAGE.value: _build_time_on_page,
    EventType.SCROLL_DEPTH.value: _build_scroll_depth,
    EventType.CONSECUTIVE_DAYS.value: _build_consecutive_days,
}

_CONSUMED_KEYS = {
    EventType.TIME_ON_PAGE.value: {"time_spent"},
    EventType.SCROLL_DEPTH.value: {"depth_percentage"},
    EventType.CONSECUTIVE_DAYS.value: {"day_count"},
}


def build_payload(event_type: str, data: Mapping[str, Any] | None) -> EventPayload:
    """Build the payload variant for *event_type* from a loose mapping."""
    raw = dict(data or {})
    consumed = _CONSUMED_KEYS.get(event_type, set()) | set(_ATTRIBUTION_KEYS)
    common: dict[str, Any] = {
        "referrer": parse_text(raw.get("referrer")),
        "member_id": parse_text(raw.get("member_id")),
        "extra": {k: v for k, v in raw.items() if k not in consumed},
    }
    builder = _PAYLOAD_BUILDERS.get(event_type)
    if builder is None:
        return EventPayload(**common)
    return builder(raw, common)


def event_from_dict(raw: Mapping[str, Any]) -> InteractionEvent | None:
    """Parse a producer record.  Returns ``None`` when it has no usable timestamp or type.

    Accepts both ``event_type``/``event_data`` and ``type``/``payload`` keys.
    """
    event_type = parse_text(raw.get("event_type", raw.get("type")))
    timestamp = parse_timestamp(raw.get("timestamp"))
    if event_type is None or timestamp is None:
        return None
    data = raw.get("event_data", raw.get("payload"))
    if not isinstance(data, Mapping):
        data = {}
    return InteractionEvent(
        event_type=event_type,
        timestamp=timestamp,
        session_id=parse_text(raw.get("session_id")) or "",
        payload=build_payload(event_type, data),
        user_id=parse_text(raw.get("user_id")),
    )


def events_from_records(records: list[Mapping[str, Any]]) -> list[InteractionEvent]:
    """Parse a list of records, dropping the unusable ones and keeping order."""
    events: list[InteractionEvent] = []
    for record in records:
        if not isinstance(record, Mapping):
            continue
        event = event_from_dict(record)
        if event is not None:
            events.append(event)
    return events
