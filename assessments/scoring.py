# examhall/assessments/scoring.py
"""
Auto-grading of a finished attempt.

Everything in here is pure: it takes answer keys and the candidate's answer map and
returns a ScoreSheet. Loading questions and persisting results is the lifecycle's job.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional, Tuple

MCQ = "mcq"
CHECKBOX = "checkbox"
TEXT = "text"

TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class AnswerKey:
    question_id: int
    question_type: str
    marks: int
    correct_answers: frozenset


@dataclass(frozen=True)
class ScoredAnswer:
    question_id: int
    answer: Any
    is_correct: bool
    marks_obtained: int

    @property
    def is_answered(self) -> bool:
        return self.answer is not None


@dataclass(frozen=True)
class ScoreSheet:
    answers: Tuple[ScoredAnswer, ...]
    marks_obtained: int
    percentage: Decimal
    passed: bool

    @property
    def correct_count(self) -> int:
        return sum(1 for a in self.answers if a.is_correct)

    @property
    def incorrect_count(self) -> int:
        return sum(1 for a in self.answers if a.is_answered and not a.is_correct)

    @property
    def unattempted_count(self) -> int:
        return sum(1 for a in self.answers if not a.is_answered)


def _lookup(answers: Mapping, question_id: int) -> Any:
    # JSON bodies key the map by string ids; Python callers may use ints
    if str(question_id) in answers:
        return answers[str(question_id)]
    return answers.get(question_id)


def _as_choice_set(value: Any) -> frozenset:
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(str(v) for v in value)
    return frozenset([str(value)])


def grade_answer(key: AnswerKey, value: Any) -> ScoredAnswer:
    """Grade one answer. Falsy values count as unanswered."""
    if not value:
        return ScoredAnswer(key.question_id, None, False, 0)

    if key.question_type == MCQ:
        is_correct = (
            not isinstance(value, (list, tuple, set, frozenset, dict))
            and str(value) in key.correct_answers
        )
    elif key.question_type == CHECKBOX:
        is_correct = not isinstance(value, dict) and _as_choice_set(value) == key.correct_answers
    else:
        # free text needs a human grader
        is_correct = False

    return ScoredAnswer(key.question_id, value, is_correct, key.marks if is_correct else 0)


def percentage_of(marks_obtained: int, total_marks: int) -> Decimal:
    if not total_marks or total_marks <= 0:
        return Decimal("0.00")
    ratio = Decimal(marks_obtained) * 100 / Decimal(total_marks)
    return ratio.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def score_answers(
    keys: Iterable[AnswerKey],
    answers: Optional[Mapping],
    total_marks: int,
    passing_marks: int,
) -> ScoreSheet:
    answers = answers or {}
    graded = tuple(grade_answer(key, _lookup(answers, key.question_id)) for key in keys)
    obtained = sum(a.marks_obtained for a in graded)
    percentage = percentage_of(obtained, total_marks)
    return ScoreSheet(
        answers=graded,
        marks_obtained=obtained,
        percentage=percentage,
        passed=percentage >= Decimal(passing_marks),
    )
