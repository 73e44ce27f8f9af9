"""Assessment scoring algorithms.

Every function is pure.  Per-question scoring switches exhaustively over
the question type; the overall algorithm is chosen by the scoring
configuration's ``type``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import assert_never

from scoring_core.assessment.models import (
    AssessmentConfig,
    AssessmentScores,
    CategoryScore,
    CategoryScoring,
    CustomScoring,
    MatrixQuestion,
    MultipleChoiceQuestion,
    Question,
    QuestionResponse,
    RankingQuestion,
    ScaleQuestion,
    SimpleScoring,
    SliderQuestion,
    TextQuestion,
    WeightedScoring,
)
from scoring_core.assessment.strategies import ScoringStrategy
from scoring_core.errors import ConfigurationError
from scoring_core.interaction.parsing import parse_float


@dataclass(frozen=True)
class QuestionScore:
    score: float
    max_score: float


_PRESENCE = QuestionScore(1.0, 1.0)


def percentage_of(total: float, max_possible: float) -> float:
    """Whole-number percentage, rounded half up; 0 when nothing is possible."""
    if max_possible <= 0:
        return 0
    return math.floor(total / max_possible * 100 + 0.5)


def _multiple_choice_score(question: MultipleChoiceQuestion, answer: object) -> QuestionScore:
    option_scores = [opt.score or 0.0 for opt in question.options]
    if question.allow_multiple:
        max_score = sum(s for s in option_scores if s > 0)
    else:
        max_score = max(option_scores)

    selections = answer if isinstance(answer, list) else [answer]
    if not question.allow_multiple:
        selections = selections[:1]
    score = 0.0
    for selection in selections:
        option = question.option_for(selection)
        if option is not None and option.score:
            score += option.score
    return QuestionScore(score, max_score)


def _numeric_score(answer: object, max_value: float) -> QuestionScore:
    value = parse_float(answer)
    return QuestionScore(value if value is not None else 0.0, max_value)


def question_score(question: Question, response: QuestionResponse) -> QuestionScore:
    """Raw score and best-case maximum for one answered question."""
    if isinstance(question, MultipleChoiceQuestion):
        return _multiple_choice_score(question, response.answer)
    if isinstance(question, (ScaleQuestion, SliderQuestion)):
        return _numeric_score(response.answer, question.max)
    if isinstance(question, (TextQuestion, RankingQuestion, MatrixQuestion)):
        return _PRESENCE
    assert_never(question)


def _responses_by_question(responses: list[QuestionResponse]) -> dict[str, QuestionResponse]:
    return {r.question_id: r for r in responses}


def _score_questions(
    config: AssessmentConfig,
    responses: list[QuestionResponse],
    *,
    weighted: bool,
) -> AssessmentScores:
    total = 0.0
    max_possible = 0.0
    breakdown: dict[str, float] = {}

    for response in responses:
        question = config.question(response.question_id)
        if question is None:
            continue
        result = question_score(question, response)
        weight = question.weight if weighted else 1.0
        total += result.score * weight
        max_possible += result.max_score * weight
        breakdown[question.id] = result.score * weight

    percentage = percentage_of(total, max_possible)
    return AssessmentScores(
        total=total,
        percentage=percentage,
        breakdown=breakdown,
        tier=config.scoring.tier_for(percentage),
    )


def simple_scores(config: AssessmentConfig, responses: list[QuestionResponse]) -> AssessmentScores:
    return _score_questions(config, responses, weighted=False)


def weighted_scores(config: AssessmentConfig, responses: list[QuestionResponse]) -> AssessmentScores:
    return _score_questions(config, responses, weighted=True)


def category_scores(config: AssessmentConfig, responses: list[QuestionResponse]) -> AssessmentScores:
    """Score each category on its own, then combine by category weight.

    The overall percentage weighs each category's raw total against its
    raw maximum, so a large category counts for more than a small one
    with the same weight.
    """
    scoring = config.scoring
    assert isinstance(scoring, CategoryScoring)
    by_question = _responses_by_question(responses)

    per_category: dict[str, CategoryScore] = {}
    breakdown: dict[str, float] = {}
    weighted_total = 0.0
    weighted_max = 0.0

    for category in scoring.categories:
        cat_total = 0.0
        cat_max = 0.0
        for question_id in category.questions:
            response = by_question.get(question_id)
            question = config.question(question_id)
            if response is None or question is None:
                continue
            result = question_score(question, response)
            cat_total += result.score
            cat_max += result.max_score
            breakdown[question_id] = result.score

        per_category[category.id] = CategoryScore(
            score=cat_total,
            percentage=percentage_of(cat_total, cat_max),
            max_possible=cat_max,
        )
        weighted_total += cat_total * category.weight
        weighted_max += cat_max * category.weight

    percentage = percentage_of(weighted_total, weighted_max)
    return AssessmentScores(
        total=weighted_total,
        percentage=percentage,
        breakdown=breakdown,
        category_scores=per_category,
        tier=scoring.tier_for(percentage),
    )


def calculate_scores(
    config: AssessmentConfig,
    responses: list[QuestionResponse],
    custom_strategy: ScoringStrategy | None = None,
) -> AssessmentScores:
    """Dispatch to the algorithm named by ``config.scoring.type``.

    Custom strategies receive every response and question and their
    result is returned untouched.
    """
    scoring = config.scoring
    if isinstance(scoring, SimpleScoring):
        return simple_scores(config, responses)
    if isinstance(scoring, WeightedScoring):
        return weighted_scores(config, responses)
    if isinstance(scoring, CategoryScoring):
        return category_scores(config, responses)
    if isinstance(scoring, CustomScoring):
        if custom_strategy is None:
            raise ConfigurationError(f"Strategy {scoring.strategy!r} was not resolved")
        return custom_strategy(list(responses), list(config.questions))
    assert_never(scoring)
