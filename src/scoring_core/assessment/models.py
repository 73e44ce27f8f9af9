"""Pydantic models for assessment configuration, sessions, and results.

Questions and scoring configurations are discriminated unions keyed by
``type``.  Configuration is plain data: custom scoring refers to a
registered strategy by name instead of embedding code.
"""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _StrictModel(BaseModel):
    """Shared strict model settings for assessment contracts."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)


def _normalize_string_list(values: list[str]) -> list[str]:
    """Trim whitespace and drop empty entries while preserving order."""
    normalized: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        cleaned = value.strip()
        if cleaned:
            normalized.append(cleaned)
    return normalized


Scalar = Union[str, int, float]
Answer = Union[str, int, float, list[Scalar], dict[str, Scalar]]


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------

class _QuestionBase(_StrictModel):
    id: str
    text: str
    description: str = ""
    required: bool = True
    category: str | None = None
    weight: float = Field(default=1.0, ge=0)

    @field_validator("id", "text", "description")
    @classmethod
    def normalize_text(cls, value: str) -> str:
        return value.strip()


class QuestionOption(_StrictModel):
    id: str
    text: str
    value: Scalar
    score: float | None = None


class MultipleChoiceQuestion(_QuestionBase):
    type: Literal["multiple-choice"] = "multiple-choice"
    options: list[QuestionOption] = Field(min_length=1)
    allow_multiple: bool = False

    def option_for(self, value: Scalar) -> QuestionOption | None:
        for option in self.options:
            if option.value == value:
                return option
        return None


class ScaleLabels(_StrictModel):
    min: str
    max: str
    middle: str | None = None


class _RangeMixin(_StrictModel):
    min: float
    max: float
    step: float = 1

    @model_validator(mode="after")
    def check_range(self) -> _RangeMixin:
        if self.max <= self.min:
            raise ValueError(f"max ({self.max}) must be greater than min ({self.min})")
        if self.step <= 0:
            raise ValueError("step must be positive")
        return self


class ScaleQuestion(_QuestionBase, _RangeMixin):
    type: Literal["scale"] = "scale"
    labels: ScaleLabels | None = None


class ResponseValidation(_StrictModel):
    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)
    pattern: str | None = None

    @field_validator("pattern")
    @classmethod
    def compile_pattern(cls, value: str | None) -> str | None:
        if value is not None:
            re.compile(value)
        return value


class TextQuestion(_QuestionBase):
    type: Literal["text"] = "text"
    placeholder: str = ""
    max_length: int | None = Field(default=None, ge=1)
    validation: ResponseValidation | None = None


class RankingItem(_StrictModel):
    id: str
    text: str
    value: str


class RankingQuestion(_QuestionBase):
    type: Literal["ranking"] = "ranking"
    items: list[RankingItem] = Field(min_length=1)
    max_rank: int | None = Field(default=None, ge=1)


class SliderQuestion(_QuestionBase, _RangeMixin):
    type: Literal["slider"] = "slider"
    default_value: float | None = None
    unit: str = ""


class MatrixRow(_StrictModel):
    id: str
    text: str


class MatrixColumn(_StrictModel):
    id: str
    text: str
    value: Scalar
    score: float | None = None


class MatrixQuestion(_QuestionBase):
    type: Literal["matrix"] = "matrix"
    rows: list[MatrixRow] = Field(min_length=1)
    columns: list[MatrixColumn] = Field(min_length=1)


Question = Annotated[
    Union[
        MultipleChoiceQuestion,
        ScaleQuestion,
        TextQuestion,
        RankingQuestion,
        SliderQuestion,
        MatrixQuestion,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Scoring configuration
# ---------------------------------------------------------------------------

class ScoringCategory(_StrictModel):
    id: str
    name: str
    weight: float = Field(default=1.0, ge=0)
    questions: list[str]

    @field_validator("questions")
    @classmethod
    def normalize_questions(cls, values: list[str]) -> list[str]:
        return _normalize_string_list(values)


class ResultTier(_StrictModel):
    """A contiguous percentage range with its label and advice."""

    min: float
    max: float
    label: str
    description: str = ""
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @field_validator("insights", "recommendations")
    @classmethod
    def normalize_lists(cls, values: list[str]) -> list[str]:
        return _normalize_string_list(values)

    def contains(self, percentage: float) -> bool:
        return self.min <= percentage <= self.max


class _ScoringBase(_StrictModel):
    result_tiers: list[ResultTier] = Field(default_factory=list)

    @field_validator("result_tiers")
    @classmethod
    def check_tier_ranges(cls, tiers: list[ResultTier]) -> list[ResultTier]:
        # Percentages are whole numbers, so neighbours may be at most one apart.
        ordered = sorted(tiers, key=lambda t: t.min)
        for tier in ordered:
            if tier.max < tier.min:
                raise ValueError(f"Result tier {tier.label!r} has max below min")
        for prev, nxt in zip(ordered, ordered[1:]):
            if nxt.min <= prev.max:
                raise ValueError(f"Result tiers {prev.label!r} and {nxt.label!r} overlap")
            if nxt.min - prev.max > 1:
                raise ValueError(
                    f"Gap between result tiers {prev.label!r} and {nxt.label!r}"
                )
        return ordered

    def tier_for(self, percentage: float) -> ResultTier | None:
        for tier in self.result_tiers:
            if tier.contains(percentage):
                return tier
        return None


class SimpleScoring(_ScoringBase):
    type: Literal["simple"] = "simple"


class WeightedScoring(_ScoringBase):
    type: Literal["weighted"] = "weighted"


class CategoryScoring(_ScoringBase):
    type: Literal["category-based"] = "category-based"
    categories: list[ScoringCategory] = Field(min_length=1)

    def category(self, category_id: str) -> ScoringCategory | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None


class CustomScoring(_ScoringBase):
    type: Literal["custom"] = "custom"
    strategy: str

    @field_validator("strategy")
    @classmethod
    def normalize_strategy(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("custom scoring requires a strategy name")
        return value


ScoringConfig = Annotated[
    Union[SimpleScoring, WeightedScoring, CategoryScoring, CustomScoring],
    Field(discriminator="type"),
]


class AssessmentConfig(_StrictModel):
    """A complete assessment tool definition."""

    id: str
    title: str
    description: str = ""
    version: str = "1.0"
    questions: list[Question] = Field(min_length=1)
    scoring: ScoringConfig = Field(default_factory=SimpleScoring)
    progress_saving: bool = True
    allow_back_navigation: bool = True
    show_progress: bool = True
    time_limit: int | None = Field(default=None, ge=1)
    tags: list[str] = Field(default_factory=list)

    @field_validator("id", "title", "description", "version")
    @classmethod
    def normalize_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, values: list[str]) -> list[str]:
        return _normalize_string_list(values)

    @model_validator(mode="after")
    def check_references(self) -> AssessmentConfig:
        seen: set[str] = set()
        for question in self.questions:
            if question.id in seen:
                raise ValueError(f"Duplicate question id: {question.id!r}")
            seen.add(question.id)
        if isinstance(self.scoring, CategoryScoring):
            for category in self.scoring.categories:
                unknown = [qid for qid in category.questions if qid not in seen]
                if unknown:
                    raise ValueError(
                        f"Category {category.id!r} references unknown questions: {unknown}"
                    )
        return self

    def question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def index_of(self, question_id: str) -> int:
        for idx, question in enumerate(self.questions):
            if question.id == question_id:
                return idx
        return -1

    @property
    def required_ids(self) -> list[str]:
        return [q.id for q in self.questions if q.required]


# ---------------------------------------------------------------------------
# Runtime state
# ---------------------------------------------------------------------------

class QuestionResponse(_StrictModel):
    question_id: str
    answer: Answer | None = None
    time_spent: float = 0.0
    timestamp: datetime


class SessionStatus(str, Enum):
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class AssessmentSession(_StrictModel):
    """One user's run through one tool.  Owned by a single writer."""

    id: str
    tool_id: str
    user_id: str
    current_index: int = Field(default=0, ge=0)
    responses: list[QuestionResponse] = Field(default_factory=list)
    started_at: datetime
    last_updated_at: datetime
    completion_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    time_spent: float = Field(default=0.0, ge=0.0)
    is_completed: bool = False
    completed_at: datetime | None = None
    result_id: str | None = None

    @property
    def status(self) -> SessionStatus:
        if self.is_completed:
            return SessionStatus.COMPLETED
        if self.responses:
            return SessionStatus.IN_PROGRESS
        return SessionStatus.CREATED

    @property
    def is_archived(self) -> bool:
        return self.result_id is not None

    def response_for(self, question_id: str) -> QuestionResponse | None:
        for response in self.responses:
            if response.question_id == question_id:
                return response
        return None


# ---------------------------------------------------------------------------
# Scores, insights, results
# ---------------------------------------------------------------------------

class CategoryScore(_StrictModel):
    score: float
    percentage: float
    max_possible: float


class AssessmentScores(_StrictModel):
    total: float
    percentage: float
    breakdown: dict[str, float] = Field(default_factory=dict)
    category_scores: dict[str, CategoryScore] | None = None
    tier: ResultTier | None = None


class InsightType(str, Enum):
    STRENGTH = "strength"
    OPPORTUNITY = "opportunity"
    RECOMMENDATION = "recommendation"
    WARNING = "warning"


class InsightPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Insight(_StrictModel):
    category: str
    type: InsightType
    title: str
    message: str
    action_items: list[str] = Field(default_factory=list)
    priority: InsightPriority


class VisualizationDataset(_StrictModel):
    label: str
    data: list[float]
    background_color: list[str] = Field(default_factory=list)
    border_color: list[str] = Field(default_factory=list)


class VisualizationData(_StrictModel):
    chart_type: Literal["radar", "gauge"]
    labels: list[str]
    datasets: list[VisualizationDataset]


class AssessmentResult(BaseModel):
    """Derived once at completion and never rewritten."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    tool_id: str
    user_id: str
    session_id: str
    version: str
    responses: list[QuestionResponse]
    scores: AssessmentScores
    insights: list[Insight]
    visualization: VisualizationData
    completed_at: datetime
    time_spent: float
    is_shared: bool = False
