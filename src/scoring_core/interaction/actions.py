"""Tier transitions and automated action tokens.

:func:`actions_for_transition` is pure: it compares a prior score snapshot
with a new one and names the side effects that should follow.  Executing
those side effects is the job of :class:`ActionDispatcher`, which isolates
every token so one failing integration never blocks the others.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from scoring_core.errors import log_and_continue
from scoring_core.interaction.events import InteractionEvent
from scoring_core.interaction.parsing import as_utc
from scoring_core.interaction.pipeline import LeadScore, calculate_score
from scoring_core.interaction.rules import (
    DEFAULT_CONFIG,
    EventType,
    LeadScoringConfig,
    LeadTier,
)
from scoring_core.telemetry import NoOpTelemetrySink, TelemetryEvent, TelemetrySink

logger = logging.getLogger(__name__)

TIER_UPGRADE = "tier_upgrade"
SEND_ACHIEVEMENT_BADGE = "send_achievement_badge"
TRIGGER_CONVERSION_SEQUENCE = "trigger_conversion_sequence"
OFFER_OFFICE_VISIT = "offer_office_visit"
SEND_TOOL_COMPLETION_FOLLOWUP = "send_tool_completion_followup"
UNLOCK_ADVANCED_TOOLS = "unlock_advanced_tools"

TIER_ACTIONS: dict[LeadTier, tuple[str, ...]] = {
    LeadTier.BROWSER: (),
    LeadTier.ENGAGED: ("send_welcome_sequence", "unlock_basic_tools"),
    LeadTier.SOFT_MEMBER: (
        "send_membership_welcome",
        "unlock_premium_content",
        "assign_referrer_connection",
    ),
    LeadTier.HOT_LEAD: (
        "notify_sales_team",
        "enable_direct_messaging",
        "priority_support_access",
    ),
}

SCORE_MILESTONE = 100
CONVERSION_THRESHOLD = 80
UNLOCK_AT_COMPLETION = 2


def tier_upgrade_token(tier: LeadTier) -> str:
    return f"{TIER_UPGRADE}:{tier.value}"


def actions_for_transition(
    prior: LeadScore,
    new: LeadScore,
    *,
    triggering_event_type: str | None = None,
    tool_completions: int = 0,
) -> list[str]:
    """Return the de-duplicated, ordered action tokens for a score change.

    Every comparison is against *prior*, so replaying an unchanged score
    with no triggering event yields ``[]``.
    """
    actions: list[str] = []

    def add(token: str) -> None:
        if token not in actions:
            actions.append(token)

    if new.tier != prior.tier:
        add(tier_upgrade_token(new.tier))
        for token in TIER_ACTIONS[new.tier]:
            add(token)

    if new.total >= SCORE_MILESTONE > prior.total:
        add(SEND_ACHIEVEMENT_BADGE)

    if new.conversion_probability >= CONVERSION_THRESHOLD > prior.conversion_probability:
        add(TRIGGER_CONVERSION_SEQUENCE)
        add(OFFER_OFFICE_VISIT)

    if triggering_event_type == EventType.TOOL_COMPLETE.value:
        add(SEND_TOOL_COMPLETION_FOLLOWUP)
        if tool_completions == UNLOCK_AT_COMPLETION:
            add(UNLOCK_ADVANCED_TOOLS)

    return actions


@dataclass(frozen=True)
class InteractionOutcome:
    new_score: LeadScore
    previous_score: LeadScore
    tier_changed: bool
    actions: list[str]


def process_interaction(
    prior_events: list[InteractionEvent],
    new_event: InteractionEvent,
    now: datetime | None = None,
    config: LeadScoringConfig = DEFAULT_CONFIG,
) -> InteractionOutcome:
    """Score the history with and without *new_event* and derive the actions."""
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    all_events = [*prior_events, new_event]
    previous = calculate_score(prior_events, now, config) if prior_events else LeadScore.baseline()
    new_score = calculate_score(all_events, now, config)

    completions = sum(
        1 for e in all_events if e.event_type == EventType.TOOL_COMPLETE.value
    )
    actions = actions_for_transition(
        previous,
        new_score,
        triggering_event_type=new_event.event_type,
        tool_completions=completions,
    )
    return InteractionOutcome(
        new_score=new_score,
        previous_score=previous,
        tier_changed=previous.tier != new_score.tier,
        actions=actions,
    )


ActionHandler = Callable[[str, str | None], None]
"""``handler(user_id, argument)`` -- *argument* is the part after ``:`` if any."""


@dataclass
class DispatchReport:
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    unhandled: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class ActionDispatcher:
    """Routes action tokens to registered handlers, one token at a time.

    Handlers are keyed by the token prefix (``tier_upgrade`` for
    ``tier_upgrade:hot-lead``).  A handler that raises is logged and
    recorded in the report; the remaining tokens still run.
    """

    def __init__(self, telemetry_sink: TelemetrySink | None = None) -> None:
        self._lock = threading.RLock()
        self._handlers: dict[str, ActionHandler] = {}
        self.telemetry = telemetry_sink or NoOpTelemetrySink()

    def register(self, action_type: str, handler: ActionHandler) -> None:
        with self._lock:
            self._handlers[action_type] = handler

    def unregister(self, action_type: str) -> None:
        with self._lock:
            self._handlers.pop(action_type, None)

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def handles(self, action_type: str) -> bool:
        with self._lock:
            return action_type in self._handlers

    def dispatch(self, user_id: str, actions: list[str]) -> DispatchReport:
        with self._lock:
            handlers = dict(self._handlers)

        report = DispatchReport()
        for token in actions:
            action_type, _, argument = token.partition(":")
            handler = handlers.get(action_type)
            if handler is None:
                logger.info("No handler for action %r (user %s)", token, user_id)
                report.unhandled.append(token)
                continue
            try:
                handler(user_id, argument or None)
            except Exception as exc:
                report.failed[token] = log_and_continue(
                    what=f"Action {token!r}", subject=f"user {user_id}", exc=exc,
                )
                continue
            report.succeeded.append(token)

        self.telemetry.emit(TelemetryEvent(
            name="interaction.dispatch",
            attributes={
                "user_id": user_id,
                "succeeded": len(report.succeeded),
                "failed": len(report.failed),
                "unhandled": len(report.unhandled),
            },
        ))
        return report
