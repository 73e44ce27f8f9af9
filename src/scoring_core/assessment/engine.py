"""Assessment engine -- drives one user's session through one tool.

The engine owns the session state machine (created -> in progress ->
completed, with an explicit clear back to nothing), validates and
records responses, navigates between questions, and turns a completed
session into an archived :class:`AssessmentResult`.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from scoring_core.assessment import insights as insight_rules
from scoring_core.assessment import scoring
from scoring_core.assessment.models import (
    Answer,
    AssessmentConfig,
    AssessmentResult,
    AssessmentScores,
    AssessmentSession,
    Insight,
    Question,
    QuestionResponse,
    VisualizationData,
)
from scoring_core.assessment.store import SessionStore
from scoring_core.assessment.strategies import StrategyRegistry, resolve_config_strategy
from scoring_core.assessment.validation import validate_response
from scoring_core.errors import ProcessingError, ValidationError
from scoring_core.telemetry import NoOpTelemetrySink, TelemetryEvent, TelemetrySink

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ProgressSummary:
    current_question: int
    total_questions: int
    completion_rate: float
    time_spent: float
    can_go_back: bool
    can_go_forward: bool


class AssessmentEngine:
    """Session state machine for a single assessment configuration.

    Parameters
    ----------
    config:
        The tool being taken.
    store:
        Where session snapshots and results are written.
    strategies:
        Registry used to resolve ``custom`` scoring.  Resolution happens
        here, so an engine for an unscorable tool is never constructed.
    autosave:
        Persist a snapshot after every change.  Defaults to the tool's
        ``progress_saving`` flag.
    clock:
        Returns the current time; injectable for deterministic tests.
    """

    def __init__(
        self,
        config: AssessmentConfig,
        store: SessionStore,
        *,
        strategies: StrategyRegistry | None = None,
        telemetry_sink: TelemetrySink | None = None,
        clock: Clock | None = None,
        autosave: bool | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.telemetry = telemetry_sink or NoOpTelemetrySink()
        self.clock = clock or _utcnow
        self.autosave = config.progress_saving if autosave is None else autosave
        self._custom_strategy = resolve_config_strategy(config, strategies)
        self._session: AssessmentSession | None = None

    # -- lifecycle ---------------------------------------------------------

    @property
    def state(self) -> AssessmentSession | None:
        return self._session

    def start(self, user_id: str) -> AssessmentSession:
        """Begin a fresh session, replacing any saved progress for this user."""
        now = self.clock()
        session = AssessmentSession(
            id=f"session-{uuid.uuid4().hex[:12]}",
            tool_id=self.config.id,
            user_id=user_id,
            started_at=now,
            last_updated_at=now,
        )
        self._commit(session)
        self._emit("assessment.start")
        return session

    def resume(self, user_id: str) -> AssessmentSession | None:
        """Load saved progress for *user_id*; ``None`` when nothing is saved."""
        session = self.store.load_session(self.config.id, user_id)
        if session is None:
            return None
        self.attach(session)
        self._emit("assessment.resume")
        return session

    def attach(self, session: AssessmentSession) -> None:
        if session.tool_id != self.config.id:
            raise ProcessingError(
                f"Session {session.id} belongs to tool {session.tool_id!r}, "
                f"not {self.config.id!r}",
                session_id=session.id,
            )
        self._session = session

    def clear(self) -> None:
        """Wipe saved progress and return to the pre-created state."""
        if self._session is None:
            return
        session = self._session
        self.store.delete_session(session.tool_id, session.user_id)
        self._emit("assessment.clear")
        self._session = None

    def save_progress(self) -> None:
        session = self._require_session()
        updated = session.model_copy(update={
            "last_updated_at": self.clock(),
            "completion_rate": self._rate_for(session.responses),
        })
        self.store.save_session(updated)
        self._session = updated

    # -- responses ---------------------------------------------------------

    def submit_response(
        self,
        question_id: str,
        answer: Answer | None,
        time_spent: float = 0.0,
    ) -> QuestionResponse:
        """Validate and record an answer, replacing any earlier one.

        Raises ValidationError when the question is unknown or the answer
        breaks one of its rules; nothing is saved in that case.
        """
        session = self._require_session()
        if session.is_archived:
            raise ProcessingError(
                f"Session {session.id} is already archived", session_id=session.id,
            )
        question = self.config.question(question_id)
        if question is None:
            raise ValidationError(
                f"Unknown question id: {question_id!r}", session_id=session.id,
            )

        response = QuestionResponse(
            question_id=question_id,
            answer=answer,
            time_spent=time_spent,
            timestamp=self.clock(),
        )
        validate_response(question, response, session_id=session.id)

        if session.response_for(question_id) is None:
            responses = [*session.responses, response]
        else:
            responses = [
                response if r.question_id == question_id else r
                for r in session.responses
            ]
        updated = session.model_copy(update={
            "responses": responses,
            "time_spent": session.time_spent + response.time_spent,
            "completion_rate": self._rate_for(responses),
            "is_completed": session.is_completed or self._covers_required(responses),
            "last_updated_at": response.timestamp,
        })

        self._commit(updated)
        self._emit(
            "assessment.response",
            question_id=question_id,
            completion_rate=updated.completion_rate,
            status=updated.status.value,
        )
        return response

    # -- navigation --------------------------------------------------------

    def current_question(self) -> Question | None:
        if self._session is None:
            return None
        idx = self._session.current_index
        if idx < len(self.config.questions):
            return self.config.questions[idx]
        return None

    def next_question(self) -> Question | None:
        """Advance one question; ``None`` at the end (the index stays put)."""
        session = self._session
        if session is None or session.current_index >= len(self.config.questions) - 1:
            return None
        self._commit(session.model_copy(update={"current_index": session.current_index + 1}))
        return self.current_question()

    def previous_question(self) -> Question | None:
        session = self._session
        if session is None or not self.config.allow_back_navigation:
            return None
        if session.current_index <= 0:
            return None
        self._commit(session.model_copy(update={"current_index": session.current_index - 1}))
        return self.current_question()

    # -- progress ----------------------------------------------------------

    def completion_rate(self) -> float:
        """Share of questions answered; exactly 1.0 once every required one is.

        Optional questions count toward partial progress but never hold a
        complete session below 1.0.
        """
        if self._session is None:
            return 0.0
        return self._rate_for(self._session.responses)

    def is_complete(self) -> bool:
        """True once every required question has a response."""
        if self._session is None:
            return False
        return self._covers_required(self._session.responses)

    def progress_summary(self) -> ProgressSummary | None:
        session = self._session
        if session is None:
            return None
        total = len(self.config.questions)
        return ProgressSummary(
            current_question=session.current_index + 1,
            total_questions=total,
            completion_rate=self.completion_rate(),
            time_spent=session.time_spent,
            can_go_back=self.config.allow_back_navigation and session.current_index > 0,
            can_go_forward=session.current_index < total - 1,
        )

    # -- scoring -----------------------------------------------------------

    def calculate_scores(self) -> AssessmentScores:
        session = self._require_session()
        return scoring.calculate_scores(self.config, session.responses, self._custom_strategy)

    def generate_insights(self, scores: AssessmentScores) -> list[Insight]:
        return insight_rules.generate_insights(scores, self.config)

    def generate_visualization(self, scores: AssessmentScores) -> VisualizationData:
        return insight_rules.generate_visualization(scores, self.config)

    def complete_assessment(self) -> AssessmentResult:
        """Score the session, append its result, and archive it.

        Raises ProcessingError when required answers are missing or the
        session already produced a result.
        """
        session = self._require_session()
        if session.is_archived:
            raise ProcessingError(
                f"Session {session.id} is already archived as {session.result_id}",
                session_id=session.id,
            )
        if not self.is_complete():
            raise ProcessingError("Assessment not complete", session_id=session.id)

        scores = self.calculate_scores()
        completed_at = self.clock()
        result = AssessmentResult(
            id=f"result_{self.config.id}_{session.user_id}_{int(completed_at.timestamp() * 1000)}",
            tool_id=self.config.id,
            user_id=session.user_id,
            session_id=session.id,
            version=self.config.version,
            responses=list(session.responses),
            scores=scores,
            insights=self.generate_insights(scores),
            visualization=self.generate_visualization(scores),
            completed_at=completed_at,
            time_spent=session.time_spent,
        )
        self.store.append_result(result)
        self._commit(session.model_copy(update={
            "is_completed": True,
            "completed_at": completed_at,
            "result_id": result.id,
            "last_updated_at": completed_at,
        }))

        logger.info(
            "Assessment %s completed by %s: %.0f%% (%s)",
            self.config.id,
            session.user_id,
            scores.percentage,
            scores.tier.label if scores.tier else "no tier",
        )
        self._emit(
            "assessment.complete",
            result_id=result.id,
            percentage=scores.percentage,
            tier=scores.tier.label if scores.tier else None,
        )
        return result

    # -- internals ---------------------------------------------------------

    def _require_session(self) -> AssessmentSession:
        if self._session is None:
            raise ProcessingError("Assessment not initialized")
        return self._session

    def _commit(self, session: AssessmentSession) -> None:
        # Store first; a failed write leaves the in-memory state untouched.
        if self.autosave:
            self.store.save_session(session)
        self._session = session

    def _covers_required(self, responses: list[QuestionResponse]) -> bool:
        answered = {r.question_id for r in responses}
        return all(qid in answered for qid in self.config.required_ids)

    def _rate_for(self, responses: list[QuestionResponse]) -> float:
        if self._covers_required(responses):
            return 1.0
        answered = {r.question_id for r in responses}
        return len(answered) / len(self.config.questions)

    def _emit(self, name: str, **attributes: object) -> None:
        session = self._session
        base: dict[str, object] = {"tool_id": self.config.id}
        if session is not None:
            base["session_id"] = session.id
            base["user_id"] = session.user_id
        base.update(attributes)
        self.telemetry.emit(TelemetryEvent(name=name, attributes=base))
