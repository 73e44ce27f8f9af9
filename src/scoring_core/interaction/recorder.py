"""Per-subject write path for interaction events.

Recording an event loads the subject's full history, rescores it, and
persists the event plus the new score snapshot *before* any action is
dispatched.  Writers for the same user are serialized so two callers can
never score against the same stale history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from scoring_core.interaction.actions import (
    ActionDispatcher,
    DispatchReport,
    InteractionOutcome,
    process_interaction,
)
from scoring_core.interaction.events import InteractionEvent
from scoring_core.interaction.rules import DEFAULT_CONFIG, LeadScoringConfig
from scoring_core.interaction.store import InteractionHistory, SubjectLocks
from scoring_core.telemetry import NoOpTelemetrySink, TelemetryEvent, TelemetrySink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordedInteraction:
    outcome: InteractionOutcome
    dispatch: DispatchReport


class InteractionRecorder:
    def __init__(
        self,
        store: InteractionHistory,
        dispatcher: ActionDispatcher | None = None,
        *,
        config: LeadScoringConfig = DEFAULT_CONFIG,
        telemetry_sink: TelemetrySink | None = None,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher or ActionDispatcher()
        self.config = config
        self.telemetry = telemetry_sink or NoOpTelemetrySink()
        self._locks = SubjectLocks()

    def record(
        self,
        user_id: str,
        event: InteractionEvent,
        now: datetime | None = None,
    ) -> RecordedInteraction:
        now = now or datetime.now(timezone.utc)
        with self._locks.hold(user_id):
            history = self.store.events_for(user_id)
            outcome = process_interaction(history, event, now, self.config)
            self.store.append_event(user_id, event)
            self.store.save_score(user_id, outcome.new_score)

        if outcome.tier_changed:
            logger.info(
                "Lead %s moved %s -> %s (score %d)",
                user_id,
                outcome.previous_score.tier.value,
                outcome.new_score.tier.value,
                outcome.new_score.total,
            )
        self.telemetry.emit(TelemetryEvent(
            name="interaction.record",
            attributes={
                "user_id": user_id,
                "event_type": event.event_type,
                "total": outcome.new_score.total,
                "tier": outcome.new_score.tier.value,
                "tier_changed": outcome.tier_changed,
                "actions": list(outcome.actions),
            },
        ))

        report = self.dispatcher.dispatch(user_id, outcome.actions)
        return RecordedInteraction(outcome=outcome, dispatch=report)
