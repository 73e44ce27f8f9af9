"""Interaction scoring -- rule table, pipeline, tier transitions, and recording."""

from scoring_core.interaction.actions import (
    ActionDispatcher,
    DispatchReport,
    InteractionOutcome,
    actions_for_transition,
    process_interaction,
)
from scoring_core.interaction.events import (
    ConsecutiveDaysPayload,
    EventPayload,
    InteractionEvent,
    ScrollDepthPayload,
    TimeOnPagePayload,
    build_payload,
    event_from_dict,
    events_from_records,
)
from scoring_core.interaction.pipeline import (
    LeadScore,
    ScoringSummary,
    calculate_score,
    get_scoring_summary,
)
from scoring_core.interaction.recorder import InteractionRecorder, RecordedInteraction
from scoring_core.interaction.rules import (
    DEFAULT_CONFIG,
    DEFAULT_SCORING_RULES,
    EVENT_VOCABULARY_VERSION,
    EventType,
    LeadScoringConfig,
    LeadTier,
    ScoringRule,
    TierThreshold,
    tier_for_score,
)
from scoring_core.interaction.store import (
    InMemoryInteractionStore,
    InteractionStore,
    SubjectLocks,
)

__all__ = [
    "ActionDispatcher",
    "ConsecutiveDaysPayload",
    "DEFAULT_CONFIG",
    "DEFAULT_SCORING_RULES",
    "DispatchReport",
    "EVENT_VOCABULARY_VERSION",
    "EventPayload",
    "EventType",
    "InMemoryInteractionStore",
    "InteractionEvent",
    "InteractionOutcome",
    "InteractionRecorder",
    "InteractionStore",
    "LeadScore",
    "LeadScoringConfig",
    "LeadTier",
    "RecordedInteraction",
    "ScoringRule",
    "ScoringSummary",
    "ScrollDepthPayload",
    "SubjectLocks",
    "TierThreshold",
    "TimeOnPagePayload",
    "actions_for_transition",
    "build_payload",
    "calculate_score",
    "event_from_dict",
    "events_from_records",
    "get_scoring_summary",
    "process_interaction",
    "tier_for_score",
]
