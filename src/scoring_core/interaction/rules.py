"""Scoring rule table, bucket classification, and tier thresholds.

Everything here is static configuration.  :class:`LeadScoringConfig`
bundles the tables so callers can swap them per deployment.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from scoring_core.errors import ConfigurationError

EVENT_VOCABULARY_VERSION = "1"


class EventType(str, Enum):
    """Closed event vocabulary shared with event producers."""

    PAGE_VISIT = "page_visit"
    TIME_ON_PAGE = "time_on_page"
    SCROLL_DEPTH = "scroll_depth"
    TOOL_CLICK = "tool_click"
    TOOL_START = "tool_start"
    TOOL_COMPLETE = "tool_complete"
    TOOL_SHARE = "tool_share"
    EMAIL_CAPTURE = "email_capture"
    PHONE_CAPTURE = "phone_capture"
    PROFILE_COMPLETE = "profile_complete"
    CONTENT_VIEW = "content_view"
    CONTENT_COMPLETE = "content_complete"
    CONTENT_DOWNLOAD = "content_download"
    SOCIAL_SHARE = "social_share"
    REFERRAL_CLICK = "referral_click"
    TESTIMONIAL_VIEW = "testimonial_view"
    WEBINAR_REGISTER = "webinar_register"
    WEBINAR_ATTEND = "webinar_attend"
    OFFICE_VISIT_REQUEST = "office_visit_request"
    DIRECT_MESSAGE = "direct_message"
    RETURN_VISIT = "return_visit"
    CONSECUTIVE_DAYS = "consecutive_days"
    FEATURE_EXPLORATION = "feature_exploration"
    USER_INACTIVE = "user_inactive"
    BOUNCE = "bounce"


class LeadTier(str, Enum):
    """Ordered lead-quality tiers, lowest first."""

    BROWSER = "browser"
    ENGAGED = "engaged"
    SOFT_MEMBER = "soft-member"
    HOT_LEAD = "hot-lead"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)


_TIER_ORDER = list(LeadTier)


@dataclass(frozen=True)
class ScoringRule:
    """Points for one event type, with an optional payload multiplier and cap."""

    points: float
    description: str = ""
    multiplier: float | None = None
    cap: float | None = None


DEFAULT_SCORING_RULES: dict[str, ScoringRule] = {
    # page interactions
    EventType.PAGE_VISIT.value: ScoringRule(1, "Basic page visit"),
    EventType.TIME_ON_PAGE.value: ScoringRule(
        0.1, "Time spent on page (per second)", multiplier=1, cap=10,
    ),
    EventType.SCROLL_DEPTH.value: ScoringRule(
        0.05, "Page scroll depth percentage", multiplier=1, cap=5,
    ),
    # tools
    EventType.TOOL_CLICK.value: ScoringRule(5, "Clicked on assessment tool"),
    EventType.TOOL_START.value: ScoringRule(10, "Started assessment tool"),
    EventType.TOOL_COMPLETE.value: ScoringRule(25, "Completed assessment tool"),
    EventType.TOOL_SHARE.value: ScoringRule(15, "Shared assessment results"),
    # lead capture
    EventType.EMAIL_CAPTURE.value: ScoringRule(50, "Provided email address"),
    EventType.PHONE_CAPTURE.value: ScoringRule(30, "Provided phone number"),
    EventType.PROFILE_COMPLETE.value: ScoringRule(40, "Completed profile information"),
    # content
    EventType.CONTENT_VIEW.value: ScoringRule(3, "Viewed content piece"),
    EventType.CONTENT_COMPLETE.value: ScoringRule(8, "Completed reading/watching content"),
    EventType.CONTENT_DOWNLOAD.value: ScoringRule(12, "Downloaded content resource"),
    # social proof & referrals
    EventType.SOCIAL_SHARE.value: ScoringRule(20, "Shared content on social media"),
    EventType.REFERRAL_CLICK.value: ScoringRule(5, "Clicked referral link"),
    EventType.TESTIMONIAL_VIEW.value: ScoringRule(2, "Viewed testimonial"),
    # communication
    EventType.WEBINAR_REGISTER.value: ScoringRule(35, "Registered for webinar"),
    EventType.WEBINAR_ATTEND.value: ScoringRule(45, "Attended webinar"),
    EventType.OFFICE_VISIT_REQUEST.value: ScoringRule(75, "Requested office visit"),
    EventType.DIRECT_MESSAGE.value: ScoringRule(25, "Sent direct message"),
    # advanced engagement
    EventType.RETURN_VISIT.value: ScoringRule(8, "Returned to site within 7 days"),
    EventType.CONSECUTIVE_DAYS.value: ScoringRule(
        5, "Consecutive daily visits", multiplier=1, cap=50,
    ),
    EventType.FEATURE_EXPLORATION.value: ScoringRule(6, "Explored multiple features"),
    # negative scoring
    EventType.USER_INACTIVE.value: ScoringRule(-2, "User became inactive"),
    EventType.BOUNCE.value: ScoringRule(-1, "Bounced from page quickly"),
}

ENGAGEMENT_EVENTS = frozenset({
    EventType.TOOL_CLICK.value,
    EventType.TOOL_START.value,
    EventType.TOOL_COMPLETE.value,
    EventType.CONTENT_VIEW.value,
    EventType.CONTENT_COMPLETE.value,
    EventType.WEBINAR_REGISTER.value,
    EventType.WEBINAR_ATTEND.value,
})

READINESS_EVENTS = frozenset({
    EventType.EMAIL_CAPTURE.value,
    EventType.PHONE_CAPTURE.value,
    EventType.OFFICE_VISIT_REQUEST.value,
    EventType.DIRECT_MESSAGE.value,
    EventType.WEBINAR_ATTEND.value,
    EventType.PROFILE_COMPLETE.value,
})

BEHAVIORAL_EVENTS = frozenset({
    EventType.RETURN_VISIT.value,
    EventType.CONSECUTIVE_DAYS.value,
    EventType.FEATURE_EXPLORATION.value,
    EventType.SOCIAL_SHARE.value,
    EventType.TOOL_SHARE.value,
})


@dataclass(frozen=True)
class TierThreshold:
    tier: LeadTier
    min_score: float
    max_score: float = math.inf


DEFAULT_TIER_THRESHOLDS: tuple[TierThreshold, ...] = (
    TierThreshold(LeadTier.BROWSER, 0, 25),
    TierThreshold(LeadTier.ENGAGED, 26, 75),
    TierThreshold(LeadTier.SOFT_MEMBER, 76, 150),
    TierThreshold(LeadTier.HOT_LEAD, 151),
)


def validate_tier_thresholds(thresholds: tuple[TierThreshold, ...]) -> None:
    """Reject tables that leave gaps or overlap.

    Totals are integers once rounded, so consecutive ranges must satisfy
    ``next.min_score == prev.max_score + 1``.  The last range is open-ended.
    """
    if not thresholds:
        raise ConfigurationError("Tier threshold table is empty")
    for prev, nxt in zip(thresholds, thresholds[1:]):
        if prev.max_score < prev.min_score:
            raise ConfigurationError(f"Tier {prev.tier.value!r} has max below min")
        if nxt.tier.rank <= prev.tier.rank:
            raise ConfigurationError("Tier thresholds must be listed in tier order")
        if nxt.min_score != prev.max_score + 1:
            raise ConfigurationError(
                f"Tier thresholds for {prev.tier.value!r} and {nxt.tier.value!r} "
                f"are not contiguous ({prev.max_score} -> {nxt.min_score})"
            )
    if not math.isinf(thresholds[-1].max_score):
        raise ConfigurationError("The highest tier threshold must be open-ended")


@dataclass(frozen=True)
class LeadScoringConfig:
    """Scoring tables and bonus parameters for the interaction pipeline.

    Parameters
    ----------
    rules:
        ``{event_type: ScoringRule}``.  Event types absent here score zero.
    tier_thresholds:
        Contiguous ascending ranges, validated on construction.
    recency_bands:
        ``(max_age_days, bonus)`` pairs checked in order; the first match
        wins, so a same-day event does not also collect the 3-day bonus.
    recency_window_days / recency_cap:
        Only events this recent are considered, and the summed bonus is
        capped.
    multiplier_extractors:
        ``{event_type: fn(payload) -> float}`` overrides merged over the
        pipeline's built-in extractors.
    """

    rules: dict[str, ScoringRule] = field(default_factory=lambda: dict(DEFAULT_SCORING_RULES))
    tier_thresholds: tuple[TierThreshold, ...] = DEFAULT_TIER_THRESHOLDS
    recency_bands: tuple[tuple[float, float], ...] = ((1, 10), (3, 5), (7, 2))
    recency_window_days: float = 7
    recency_cap: float = 50
    tool_completion_bonus: float = 10
    content_view_threshold: int = 5
    content_view_bonus: float = 20
    session_threshold: int = 3
    session_bonus: float = 5
    longevity_days: float = 7
    longevity_bonus: float = 25
    multiplier_extractors: dict[str, Callable[[Any], float]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        validate_tier_thresholds(self.tier_thresholds)


DEFAULT_CONFIG = LeadScoringConfig()


def tier_for_score(score: float, config: LeadScoringConfig = DEFAULT_CONFIG) -> LeadTier:
    """Map a total score to its tier.  Below the first range is the lowest tier."""
    result = config.tier_thresholds[0].tier
    for threshold in config.tier_thresholds:
        if score >= threshold.min_score:
            result = threshold.tier
        else:
            break
    return result


def next_tier(tier: LeadTier, config: LeadScoringConfig = DEFAULT_CONFIG) -> TierThreshold | None:
    """Return the threshold one step above *tier*, or ``None`` at the top."""
    tiers = [t.tier for t in config.tier_thresholds]
    idx = tiers.index(tier)
    if idx + 1 >= len(tiers):
        return None
    return config.tier_thresholds[idx + 1]
