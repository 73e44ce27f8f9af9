"""Tests for scoring_core.assessment.models."""

from __future__ import annotations

import pydantic
import pytest
from conftest import (
    NOW,
    make_choice_question,
    make_result_tiers,
    make_scale_question,
    make_tool_config,
)

from scoring_core.assessment.models import (
    AssessmentConfig,
    AssessmentSession,
    CategoryScoring,
    CustomScoring,
    MatrixQuestion,
    ResultTier,
    ScaleQuestion,
    ScoringCategory,
    SessionStatus,
    SimpleScoring,
)


class TestQuestionUnion:
    def test_discriminated_by_type(self):
        config = AssessmentConfig.model_validate({
            "id": "t",
            "title": "T",
            "questions": [
                {"id": "a", "type": "scale", "text": "A", "min": 1, "max": 5},
                {"id": "b", "type": "text", "text": "B"},
                {
                    "id": "c",
                    "type": "matrix",
                    "text": "C",
                    "rows": [{"id": "r1", "text": "Row"}],
                    "columns": [{"id": "c1", "text": "Col", "value": 1}],
                },
            ],
        })
        assert [q.type for q in config.questions] == ["scale", "text", "matrix"]
        assert isinstance(config.questions[2], MatrixQuestion)
        assert isinstance(config.scoring, SimpleScoring)

    def test_unknown_type_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            AssessmentConfig.model_validate({
                "id": "t",
                "title": "T",
                "questions": [{"id": "a", "type": "essay", "text": "A"}],
            })

    def test_extra_fields_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            ScaleQuestion.model_validate({
                "id": "a", "type": "scale", "text": "A", "min": 1, "max": 5, "colour": "red",
            })

    def test_scale_range_must_be_increasing(self):
        with pytest.raises(pydantic.ValidationError, match="greater than min"):
            make_scale_question(min_value=5, max_value=5)

    def test_text_is_trimmed(self):
        q = make_scale_question("  q9  ")
        assert q.id == "q9"


class TestAssessmentConfig:
    def test_duplicate_question_ids_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="Duplicate question id"):
            make_tool_config(questions=[make_scale_question("q1"), make_scale_question("q1")])

    def test_category_references_checked(self):
        with pytest.raises(pydantic.ValidationError, match="unknown questions"):
            make_tool_config(
                questions=[make_scale_question("q1")],
                scoring=CategoryScoring(
                    categories=[ScoringCategory(id="c", name="C", questions=["q1", "q2"])],
                ),
            )

    def test_lookup_helpers(self):
        config = make_tool_config()
        assert config.question("q3").type == "multiple-choice"
        assert config.question("missing") is None
        assert config.index_of("q2") == 1
        assert config.index_of("missing") == -1
        assert config.required_ids == ["q1", "q2", "q3"]

    def test_optional_questions_not_required(self):
        config = make_tool_config(
            questions=[make_scale_question("q1"), make_choice_question("q2", required=False)],
        )
        assert config.required_ids == ["q1"]

    def test_custom_scoring_needs_strategy_name(self):
        with pytest.raises(pydantic.ValidationError):
            CustomScoring(strategy="  ")


class TestResultTiers:
    def test_sorted_on_load(self):
        tiers = list(reversed(make_result_tiers()))
        scoring = SimpleScoring(result_tiers=tiers)
        assert [t.label for t in scoring.result_tiers] == ["Explorer", "Builder", "Leader"]

    def test_overlap_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="overlap"):
            SimpleScoring(result_tiers=[
                ResultTier(min=0, max=60, label="Low"),
                ResultTier(min=50, max=100, label="High"),
            ])

    def test_gap_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="Gap"):
            SimpleScoring(result_tiers=[
                ResultTier(min=0, max=40, label="Low"),
                ResultTier(min=60, max=100, label="High"),
            ])

    def test_inverted_tier_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="max below min"):
            SimpleScoring(result_tiers=[ResultTier(min=50, max=10, label="Bad")])

    @pytest.mark.parametrize(
        "percentage, label",
        [(0, "Explorer"), (49, "Explorer"), (50, "Builder"), (79, "Builder"), (100, "Leader")],
    )
    def test_tier_for(self, percentage, label):
        scoring = SimpleScoring(result_tiers=make_result_tiers())
        assert scoring.tier_for(percentage).label == label

    def test_no_matching_tier(self):
        scoring = SimpleScoring(result_tiers=[ResultTier(min=0, max=10, label="Low")])
        assert scoring.tier_for(50) is None


class TestSessionStatus:
    def _session(self, **overrides):
        base = {
            "id": "s",
            "tool_id": "t",
            "user_id": "u",
            "started_at": NOW,
            "last_updated_at": NOW,
        }
        base.update(overrides)
        return AssessmentSession(**base)

    def test_created(self):
        session = self._session()
        assert session.status == SessionStatus.CREATED
        assert not session.is_archived

    def test_completed_and_archived(self):
        session = self._session(is_completed=True, result_id="r1")
        assert session.status == SessionStatus.COMPLETED
        assert session.is_archived

    def test_completion_rate_bounded(self):
        with pytest.raises(pydantic.ValidationError):
            self._session(completion_rate=1.5)
