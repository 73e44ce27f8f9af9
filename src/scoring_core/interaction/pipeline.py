"""Interaction scoring pipeline: ordered event history -> :class:`LeadScore`.

All functions are pure (no I/O).  The reference time ``now`` is an
explicit argument so identical input always yields identical output.
Events whose type has no rule are skipped everywhere, including the
bonus, recency, and conversion calculations.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from scoring_core.interaction.events import (
    ConsecutiveDaysPayload,
    EventPayload,
    InteractionEvent,
    ScrollDepthPayload,
    TimeOnPagePayload,
)
from scoring_core.interaction.parsing import as_utc
from scoring_core.interaction.rules import (
    BEHAVIORAL_EVENTS,
    DEFAULT_CONFIG,
    ENGAGEMENT_EVENTS,
    READINESS_EVENTS,
    EventType,
    LeadScoringConfig,
    LeadTier,
    next_tier,
    tier_for_score,
)

MultiplierExtractor = Callable[[EventPayload], float]

_MAX_SECONDS_ON_PAGE = 300
_PROBABILITY_FROM_SCORE_MAX = 60
_PROBABILITY_SCORE_SCALE = 200

# (event type, minimum count, probability bonus)
_HIGH_VALUE_BONUSES: tuple[tuple[str, int, float], ...] = (
    (EventType.OFFICE_VISIT_REQUEST.value, 1, 20),
    (EventType.WEBINAR_ATTEND.value, 1, 15),
    (EventType.TOOL_COMPLETE.value, 2, 10),
    (EventType.DIRECT_MESSAGE.value, 1, 15),
    (EventType.PHONE_CAPTURE.value, 1, 10),
)
_ACTIVE_DAYS_THRESHOLD = 5
_ACTIVE_DAYS_BONUS = 10
_RECENT_BURST_THRESHOLD = 3
_RECENT_BURST_BONUS = 5
_REFERRAL_BONUS = 8


def _seconds_on_page(payload: EventPayload) -> float:
    if isinstance(payload, TimeOnPagePayload):
        return min(payload.time_spent_ms / 1000, _MAX_SECONDS_ON_PAGE)
    return 1.0


def _scroll_fraction(payload: EventPayload) -> float:
    if isinstance(payload, ScrollDepthPayload):
        return payload.depth_percentage / 100
    return 1.0


def _day_count(payload: EventPayload) -> float:
    if isinstance(payload, ConsecutiveDaysPayload) and payload.day_count:
        return float(payload.day_count)
    return 1.0


DEFAULT_MULTIPLIER_EXTRACTORS: dict[str, MultiplierExtractor] = {
    EventType.TIME_ON_PAGE.value: _seconds_on_page,
    EventType.SCROLL_DEPTH.value: _scroll_fraction,
    EventType.CONSECUTIVE_DAYS.value: _day_count,
}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class LeadScore:
    """Lead quality snapshot, always derived from the full event history."""

    total: int
    engagement: int
    readiness: int
    behavioral: int
    tier: LeadTier
    conversion_probability: int

    @classmethod
    def baseline(cls) -> LeadScore:
        """Score of a subject with no history."""
        return cls(0, 0, 0, 0, LeadTier.BROWSER, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "engagement": self.engagement,
            "readiness": self.readiness,
            "behavioral": self.behavioral,
            "tier": self.tier.value,
            "conversion_probability": self.conversion_probability,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LeadScore:
        return cls(
            total=int(data["total"]),
            engagement=int(data["engagement"]),
            readiness=int(data["readiness"]),
            behavioral=int(data["behavioral"]),
            tier=LeadTier(data["tier"]),
            conversion_probability=int(data["conversion_probability"]),
        )


@dataclass
class _Tally:
    total: float = 0.0
    engagement: float = 0.0
    readiness: float = 0.0
    behavioral: float = 0.0
    counts: dict[str, int] = field(default_factory=dict)
    attributed: dict[str, float] = field(default_factory=dict)
    scored: list[InteractionEvent] = field(default_factory=list)


def multiplier_value(event: InteractionEvent, config: LeadScoringConfig = DEFAULT_CONFIG) -> float:
    """Type-specific multiplier read from the payload (1.0 when none applies)."""
    extractor = config.multiplier_extractors.get(event.event_type)
    if extractor is None:
        extractor = DEFAULT_MULTIPLIER_EXTRACTORS.get(event.event_type)
    if extractor is None:
        return 1.0
    return extractor(event.payload)


def _tally(events: list[InteractionEvent], config: LeadScoringConfig) -> _Tally:
    tally = _Tally()
    for event in events:
        rule = config.rules.get(event.event_type)
        if rule is None:
            continue
        etype = event.event_type
        tally.counts[etype] = tally.counts.get(etype, 0) + 1
        tally.scored.append(event)

        points = rule.points
        if rule.multiplier is not None:
            points *= rule.multiplier * multiplier_value(event, config)
        if rule.cap is not None:
            already = tally.attributed.get(etype, 0.0)
            points = min(points, max(0.0, rule.cap - already))
        tally.attributed[etype] = tally.attributed.get(etype, 0.0) + points

        tally.total += points
        if etype in ENGAGEMENT_EVENTS:
            tally.engagement += points
        if etype in READINESS_EVENTS:
            tally.readiness += points
        if etype in BEHAVIORAL_EVENTS:
            tally.behavioral += points
    return tally


def behavioral_bonus(
    events: list[InteractionEvent],
    counts: dict[str, int],
    config: LeadScoringConfig = DEFAULT_CONFIG,
) -> float:
    """Pattern bonuses: repeat tool completions, content binges, multi-session, longevity."""
    bonus = 0.0

    completions = counts.get(EventType.TOOL_COMPLETE.value, 0)
    if completions >= 2:
        bonus += (completions - 1) * config.tool_completion_bonus

    if counts.get(EventType.CONTENT_VIEW.value, 0) >= config.content_view_threshold:
        bonus += config.content_view_bonus

    sessions = {e.session_id for e in events}
    if len(sessions) >= config.session_threshold:
        bonus += len(sessions) * config.session_bonus

    if events:
        span = events[-1].timestamp - events[0].timestamp
        if span >= timedelta(days=config.longevity_days):
            bonus += config.longevity_bonus

    return bonus


def _age_days(event: InteractionEvent, now: datetime) -> float:
    return max(0.0, (as_utc(now) - event.timestamp).total_seconds() / 86_400)


def recency_bonus(
    events: list[InteractionEvent],
    now: datetime,
    config: LeadScoringConfig = DEFAULT_CONFIG,
) -> float:
    """Flat bonus per recent event; the most specific band wins, total capped."""
    bonus = 0.0
    for event in events:
        age = _age_days(event, now)
        if age >= config.recency_window_days:
            continue
        for max_age, amount in config.recency_bands:
            if age <= max_age:
                bonus += amount
                break
    return min(bonus, config.recency_cap)


def conversion_probability(
    total: float,
    events: list[InteractionEvent],
    counts: dict[str, int],
    now: datetime,
) -> float:
    """Probability (0-100) that the lead converts, independent of tier."""
    probability = min(
        total / _PROBABILITY_SCORE_SCALE * _PROBABILITY_FROM_SCORE_MAX,
        _PROBABILITY_FROM_SCORE_MAX,
    )

    for event_type, min_count, amount in _HIGH_VALUE_BONUSES:
        if counts.get(event_type, 0) >= min_count:
            probability += amount

    active_days = {e.timestamp.astimezone(timezone.utc).date() for e in events}
    if len(active_days) >= _ACTIVE_DAYS_THRESHOLD:
        probability += _ACTIVE_DAYS_BONUS

    recent = [e for e in events if _age_days(e, now) < 1]
    if len(recent) >= _RECENT_BURST_THRESHOLD:
        probability += _RECENT_BURST_BONUS

    if any(e.payload.has_referral for e in events):
        probability += _REFERRAL_BONUS

    return min(max(probability, 0.0), 100.0)


def calculate_score(
    events: list[InteractionEvent],
    now: datetime | None = None,
    config: LeadScoringConfig = DEFAULT_CONFIG,
) -> LeadScore:
    """Compute the lead score for an ordered event history."""
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    tally = _tally(events, config)

    total = tally.total
    total += behavioral_bonus(tally.scored, tally.counts, config)
    total += recency_bonus(tally.scored, now, config)

    rounded_total = round_half_up(total)
    probability = conversion_probability(total, tally.scored, tally.counts, now)

    return LeadScore(
        total=rounded_total,
        engagement=round_half_up(tally.engagement),
        readiness=round_half_up(tally.readiness),
        behavioral=round_half_up(tally.behavioral),
        tier=tier_for_score(rounded_total, config),
        conversion_probability=round_half_up(probability),
    )


@dataclass(frozen=True)
class TypeBreakdown:
    points: float
    count: int
    description: str


@dataclass(frozen=True)
class ScoringSummary:
    score: LeadScore
    breakdown: dict[str, TypeBreakdown]
    recommendations: list[str]
    next_tier: str
    points_to_next_tier: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score.to_dict(),
            "breakdown": {
                k: {"points": round(v.points, 2), "count": v.count, "description": v.description}
                for k, v in self.breakdown.items()
            },
            "recommendations": list(self.recommendations),
            "next_tier": self.next_tier,
            "points_to_next_tier": self.points_to_next_tier,
        }


_RECOMMENDATIONS: tuple[tuple[float, tuple[str, str]], ...] = (
    (50, (
        "Complete at least 2 assessment tools to increase engagement",
        "Spend more time exploring content to build familiarity",
    )),
    (100, (
        "Attend a webinar to demonstrate serious interest",
        "Provide contact information to unlock premium features",
    )),
    (math.inf, (
        "Request an office visit for personalized guidance",
        "Engage with community members through direct messaging",
    )),
)


def get_scoring_summary(
    events: list[InteractionEvent],
    now: datetime | None = None,
    config: LeadScoringConfig = DEFAULT_CONFIG,
) -> ScoringSummary:
    """Per-type breakdown, recommendations, and distance to the next tier."""
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    score = calculate_score(events, now, config)
    tally = _tally(events, config)

    breakdown = {
        etype: TypeBreakdown(
            points=tally.attributed[etype],
            count=count,
            description=config.rules[etype].description,
        )
        for etype, count in tally.counts.items()
    }

    recommendations: list[str] = []
    for upper, recs in _RECOMMENDATIONS:
        if score.total < upper:
            recommendations = list(recs)
            break

    upcoming = next_tier(score.tier, config)
    if upcoming is None:
        next_name, needed = "max", 0
    else:
        next_name = upcoming.tier.value
        needed = max(0, round_half_up(upcoming.min_score - score.total))

    return ScoringSummary(
        score=score,
        breakdown=breakdown,
        recommendations=recommendations,
        next_tier=next_name,
        points_to_next_tier=needed,
    )
