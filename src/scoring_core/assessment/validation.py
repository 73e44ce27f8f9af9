"""Response validation against a question's rules."""

from __future__ import annotations

import re
from typing import Any

from scoring_core.assessment.models import (
    MatrixQuestion,
    MultipleChoiceQuestion,
    Question,
    QuestionResponse,
    RankingQuestion,
    ScaleQuestion,
    SliderQuestion,
    TextQuestion,
)
from scoring_core.errors import ValidationError


def _is_blank(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, str):
        return not answer.strip()
    if isinstance(answer, (list, dict)):
        return len(answer) == 0
    return False


def _is_number(value: Any) -> bool:
    # bool is a subclass of int in Python; reject it for numeric answers
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_text(question: TextQuestion, answer: Any) -> list[str]:
    if not isinstance(answer, str):
        return [f"Question '{question.id}' expects text, got {type(answer).__name__}"]
    errors: list[str] = []
    length = len(answer)
    if question.max_length is not None and length > question.max_length:
        errors.append(
            f"Question '{question.id}' allows at most {question.max_length} characters"
        )
    rules = question.validation
    if rules is None:
        return errors
    if rules.min_length is not None and length < rules.min_length:
        errors.append(f"Question '{question.id}' needs at least {rules.min_length} characters")
    if rules.max_length is not None and length > rules.max_length:
        errors.append(f"Question '{question.id}' allows at most {rules.max_length} characters")
    if rules.pattern is not None and not re.fullmatch(rules.pattern, answer):
        errors.append(f"Question '{question.id}' does not match the required format")
    return errors


def _check_multiple_choice(question: MultipleChoiceQuestion, answer: Any) -> list[str]:
    if isinstance(answer, list):
        if not question.allow_multiple:
            return [f"Question '{question.id}' accepts a single option"]
        selections = answer
    elif isinstance(answer, dict):
        return [f"Question '{question.id}' expects an option value"]
    else:
        selections = [answer]

    errors: list[str] = []
    for selection in selections:
        if question.option_for(selection) is None:
            errors.append(f"Question '{question.id}': {selection!r} is not a valid option")
    if len(set(map(str, selections))) != len(selections):
        errors.append(f"Question '{question.id}': options may only be selected once")
    return errors


def _check_range(question: ScaleQuestion | SliderQuestion, answer: Any) -> list[str]:
    if not _is_number(answer):
        return [f"Question '{question.id}' expects a number, got {type(answer).__name__}"]
    if answer < question.min or answer > question.max:
        return [
            f"Question '{question.id}': {answer} is outside "
            f"{question.min:g}..{question.max:g}"
        ]
    return []


def _check_ranking(question: RankingQuestion, answer: Any) -> list[str]:
    if not isinstance(answer, list):
        return [f"Question '{question.id}' expects a ranked list"]
    errors: list[str] = []
    known = {item.value for item in question.items}
    for value in answer:
        if value not in known:
            errors.append(f"Question '{question.id}': {value!r} is not a rankable item")
    if len(set(map(str, answer))) != len(answer):
        errors.append(f"Question '{question.id}': items may only be ranked once")
    limit = question.max_rank if question.max_rank is not None else len(question.items)
    if len(answer) > limit:
        errors.append(f"Question '{question.id}' ranks at most {limit} items")
    return errors


def _check_matrix(question: MatrixQuestion, answer: Any) -> list[str]:
    if not isinstance(answer, dict):
        return [f"Question '{question.id}' expects a row-to-column mapping"]
    errors: list[str] = []
    rows = {row.id for row in question.rows}
    columns = [column.value for column in question.columns]
    for row_id, value in answer.items():
        if row_id not in rows:
            errors.append(f"Question '{question.id}': unknown row {row_id!r}")
        elif value not in columns:
            errors.append(f"Question '{question.id}': {value!r} is not a valid column for {row_id!r}")
    return errors


def check_response(question: Question, response: QuestionResponse) -> list[str]:
    """Return every rule the response breaks; an empty list means valid."""
    errors: list[str] = []
    if response.question_id != question.id:
        errors.append(
            f"Response for '{response.question_id}' checked against question '{question.id}'"
        )
    if response.time_spent < 0:
        errors.append(f"Question '{question.id}': time spent must not be negative")

    answer = response.answer
    if _is_blank(answer):
        if question.required:
            errors.append(f"Question '{question.id}' is required")
        return errors

    if isinstance(question, TextQuestion):
        errors.extend(_check_text(question, answer))
    elif isinstance(question, MultipleChoiceQuestion):
        errors.extend(_check_multiple_choice(question, answer))
    elif isinstance(question, (ScaleQuestion, SliderQuestion)):
        errors.extend(_check_range(question, answer))
    elif isinstance(question, RankingQuestion):
        errors.extend(_check_ranking(question, answer))
    elif isinstance(question, MatrixQuestion):
        errors.extend(_check_matrix(question, answer))
    return errors


def validate_response(
    question: Question,
    response: QuestionResponse,
    session_id: str | None = None,
) -> None:
    """Raise :class:`ValidationError` listing every broken rule."""
    errors = check_response(question, response)
    if errors:
        raise ValidationError("; ".join(errors), session_id=session_id)
