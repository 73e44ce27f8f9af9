"""Session-id keyed facade over :class:`AssessmentEngine`.

Every call loads the session snapshot from the store, binds an engine
for the session's tool, and runs one engine operation.  Writers to the
same session are serialized with a per-session lock.
"""

from __future__ import annotations

import logging

from scoring_core.assessment.engine import AssessmentEngine, Clock, ProgressSummary
from scoring_core.assessment.models import (
    Answer,
    AssessmentConfig,
    AssessmentResult,
    AssessmentScores,
    AssessmentSession,
    Insight,
    Question,
    QuestionResponse,
)
from scoring_core.assessment.registry import ToolRegistry
from scoring_core.assessment.store import SessionStore
from scoring_core.assessment.strategies import StrategyRegistry
from scoring_core.errors import SessionNotFoundError
from scoring_core.interaction.store import SubjectLocks
from scoring_core.telemetry import NoOpTelemetrySink, TelemetrySink

logger = logging.getLogger(__name__)


class AssessmentService:
    def __init__(
        self,
        registry: ToolRegistry,
        store: SessionStore,
        *,
        strategies: StrategyRegistry | None = None,
        telemetry_sink: TelemetrySink | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.strategies = strategies or registry.strategies
        self.telemetry = telemetry_sink or NoOpTelemetrySink()
        self.clock = clock
        self._locks = SubjectLocks()

    def _engine(self, config: AssessmentConfig) -> AssessmentEngine:
        # Sessions are addressed by id, so they always need a stored snapshot.
        return AssessmentEngine(
            config,
            self.store,
            strategies=self.strategies,
            telemetry_sink=self.telemetry,
            clock=self.clock,
            autosave=True,
        )

    def _bind(self, session_id: str) -> AssessmentEngine:
        session = self.get_session(session_id)
        engine = self._engine(self.registry.require(session.tool_id))
        engine.attach(session)
        return engine

    # -- sessions ----------------------------------------------------------

    def start_session(self, tool_id: str, user_id: str) -> AssessmentSession:
        engine = self._engine(self.registry.require(tool_id))
        return engine.start(user_id)

    def resume_session(self, tool_id: str, user_id: str) -> AssessmentSession | None:
        engine = self._engine(self.registry.require(tool_id))
        return engine.resume(user_id)

    def get_session(self, session_id: str) -> AssessmentSession:
        session = self.store.get_session_by_id(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found: {session_id}", session_id=session_id)
        return session

    def clear_session(self, session_id: str) -> None:
        with self._locks.hold(session_id):
            self._bind(session_id).clear()

    def progress_summary(self, session_id: str) -> ProgressSummary | None:
        return self._bind(session_id).progress_summary()

    # -- responses and navigation -----------------------------------------

    def submit_response(
        self,
        session_id: str,
        question_id: str,
        answer: Answer | None,
        time_spent: float = 0.0,
    ) -> QuestionResponse:
        with self._locks.hold(session_id):
            return self._bind(session_id).submit_response(question_id, answer, time_spent)

    def next_question(self, session_id: str) -> Question | None:
        with self._locks.hold(session_id):
            return self._bind(session_id).next_question()

    def previous_question(self, session_id: str) -> Question | None:
        with self._locks.hold(session_id):
            return self._bind(session_id).previous_question()

    def current_question(self, session_id: str) -> Question | None:
        return self._bind(session_id).current_question()

    def is_complete(self, session_id: str) -> bool:
        return self._bind(session_id).is_complete()

    # -- scoring and results ----------------------------------------------

    def calculate_scores(self, session_id: str) -> AssessmentScores:
        return self._bind(session_id).calculate_scores()

    def generate_insights(self, session_id: str, scores: AssessmentScores) -> list[Insight]:
        return self._bind(session_id).generate_insights(scores)

    def complete_assessment(self, session_id: str) -> AssessmentResult:
        with self._locks.hold(session_id):
            return self._bind(session_id).complete_assessment()

    def get_results(self, tool_id: str, user_id: str) -> list[AssessmentResult]:
        return self.store.results_for(tool_id, user_id)

    def get_result(self, result_id: str) -> AssessmentResult | None:
        return self.store.get_result(result_id)

    # -- catalogue ---------------------------------------------------------

    def list_tools(
        self,
        tag: str | None = None,
        search: str | None = None,
    ) -> list[AssessmentConfig]:
        return self.registry.search(tag=tag, search=search)
