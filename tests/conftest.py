"""Test fixtures for scoring core tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from scoring_core.assessment.models import (
    AssessmentConfig,
    CategoryScoring,
    MultipleChoiceQuestion,
    QuestionOption,
    ResultTier,
    ScaleQuestion,
    ScoringCategory,
    SimpleScoring,
)
from scoring_core.interaction.events import InteractionEvent, build_payload

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Deterministic clock that advances by ``step`` on every call."""

    def __init__(self, start: datetime = NOW, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


def make_event(
    event_type: str = "page_visit",
    *,
    days_ago: float = 0,
    at: datetime = NOW,
    session_id: str = "s1",
    data: dict[str, Any] | None = None,
    user_id: str | None = None,
) -> InteractionEvent:
    """Create an event ``days_ago`` days before ``at``."""
    return InteractionEvent(
        event_type=event_type,
        timestamp=at - timedelta(days=days_ago),
        session_id=session_id,
        payload=build_payload(event_type, data),
        user_id=user_id,
    )


def make_scale_question(
    question_id: str = "q1",
    *,
    min_value: float = 1,
    max_value: float = 5,
    required: bool = True,
    weight: float = 1.0,
) -> ScaleQuestion:
    return ScaleQuestion(
        id=question_id,
        text=f"Rate {question_id}",
        min=min_value,
        max=max_value,
        required=required,
        weight=weight,
    )


def make_choice_question(
    question_id: str = "mc1",
    *,
    scores: tuple[float, ...] = (0, 5, 10),
    allow_multiple: bool = False,
    required: bool = True,
) -> MultipleChoiceQuestion:
    options = [
        QuestionOption(id=f"{question_id}-o{i}", text=f"Option {i}", value=f"opt{i}", score=s)
        for i, s in enumerate(scores)
    ]
    return MultipleChoiceQuestion(
        id=question_id,
        text=f"Choose for {question_id}",
        options=options,
        allow_multiple=allow_multiple,
        required=required,
    )


def make_result_tiers() -> list[ResultTier]:
    return [
        ResultTier(
            min=0,
            max=49,
            label="Explorer",
            description="You are just getting started.",
            insights=["Small steps compound."],
            recommendations=["Pick one habit to build this week"],
        ),
        ResultTier(
            min=50,
            max=79,
            label="Builder",
            description="You have solid foundations.",
            recommendations=["Track your progress weekly"],
        ),
        ResultTier(
            min=80,
            max=100,
            label="Leader",
            description="You are operating at a high level.",
            insights=["Consistency is your edge.", "Others learn from you."],
            recommendations=["Mentor someone", "Set a stretch goal"],
        ),
    ]


def make_tool_config(
    tool_id: str = "habits",
    *,
    questions: list | None = None,
    scoring: Any = None,
    tags: list[str] | None = None,
    progress_saving: bool = True,
    allow_back_navigation: bool = True,
) -> AssessmentConfig:
    """Create a small three-question tool with simple scoring and three tiers."""
    return AssessmentConfig(
        id=tool_id,
        title=f"Test: {tool_id}",
        description=f"Test tool {tool_id}",
        questions=questions or [
            make_scale_question("q1"),
            make_scale_question("q2"),
            make_choice_question("q3"),
        ],
        scoring=scoring or SimpleScoring(result_tiers=make_result_tiers()),
        tags=tags or [],
        progress_saving=progress_saving,
        allow_back_navigation=allow_back_navigation,
    )


def make_category_config(tool_id: str = "mindset") -> AssessmentConfig:
    """Two equal-weight categories of two scale questions each."""
    return AssessmentConfig(
        id=tool_id,
        title="Mindset",
        questions=[
            make_scale_question("focus1"),
            make_scale_question("focus2"),
            make_scale_question("drive1", min_value=0),
            make_scale_question("drive2", min_value=0),
        ],
        scoring=CategoryScoring(
            categories=[
                ScoringCategory(id="focus", name="Focus", questions=["focus1", "focus2"]),
                ScoringCategory(id="drive", name="Drive", questions=["drive1", "drive2"]),
            ],
            result_tiers=make_result_tiers(),
        ),
    )
