from decimal import Decimal

import pytest

from assessments.scoring import AnswerKey, grade_answer, percentage_of, score_answers

MCQ_KEY = AnswerKey(question_id=1, question_type='mcq', marks=1, correct_answers=frozenset({'A'}))
CHECKBOX_KEY = AnswerKey(question_id=2, question_type='checkbox', marks=2, correct_answers=frozenset({'A', 'B'}))
TEXT_KEY = AnswerKey(question_id=3, question_type='text', marks=5, correct_answers=frozenset())


def test_full_marks_scenario():
    sheet = score_answers([MCQ_KEY, CHECKBOX_KEY], {'1': 'A', '2': ['B', 'A']}, total_marks=3, passing_marks=50)

    assert sheet.marks_obtained == 3
    assert sheet.percentage == Decimal('100.00')
    assert sheet.passed is True
    assert sheet.correct_count == 2


def test_empty_answers_score_zero():
    sheet = score_answers([MCQ_KEY, CHECKBOX_KEY], {}, total_marks=3, passing_marks=50)

    assert sheet.marks_obtained == 0
    assert sheet.percentage == Decimal('0.00')
    assert sheet.passed is False
    assert sheet.correct_count == 0
    assert sheet.unattempted_count == 2


def test_none_answer_map_is_treated_as_empty():
    sheet = score_answers([MCQ_KEY], None, total_marks=1, passing_marks=0)

    assert sheet.marks_obtained == 0
    # a 0% threshold is met by a 0% score
    assert sheet.passed is True


@pytest.mark.parametrize('submitted', [['A', 'B'], ['B', 'A'], ('B', 'A'), {'A', 'B'}])
def test_checkbox_is_order_independent(submitted):
    assert grade_answer(CHECKBOX_KEY, submitted).is_correct


@pytest.mark.parametrize('submitted', [['A'], ['A', 'B', 'C'], 'A', ['C']])
def test_checkbox_has_no_partial_credit(submitted):
    scored = grade_answer(CHECKBOX_KEY, submitted)

    assert not scored.is_correct
    assert scored.marks_obtained == 0
    assert scored.is_answered


def test_checkbox_duplicates_collapse_to_a_set():
    assert grade_answer(CHECKBOX_KEY, ['A', 'B', 'B']).is_correct


def test_mcq_rejects_list_submissions():
    scored = grade_answer(MCQ_KEY, ['A'])

    assert not scored.is_correct
    assert scored.is_answered


def test_mcq_wrong_answer_is_answered_but_incorrect():
    sheet = score_answers([MCQ_KEY], {'1': 'C'}, total_marks=1, passing_marks=50)

    assert sheet.incorrect_count == 1
    assert sheet.unattempted_count == 0
    assert sheet.answers[0].answer == 'C'


def test_free_text_is_never_auto_scored():
    scored = grade_answer(TEXT_KEY, 'a thoughtful essay')

    assert scored.is_correct is False
    assert scored.marks_obtained == 0
    assert scored.answer == 'a thoughtful essay'


@pytest.mark.parametrize('falsy', [None, '', [], {}])
def test_falsy_values_count_as_unanswered(falsy):
    scored = grade_answer(MCQ_KEY, falsy)

    assert scored.answer is None
    assert not scored.is_answered
    assert scored.marks_obtained == 0


def test_integer_keys_are_accepted():
    sheet = score_answers([MCQ_KEY], {1: 'A'}, total_marks=1, passing_marks=50)

    assert sheet.marks_obtained == 1


def test_zero_total_marks_gives_zero_percentage():
    sheet = score_answers([MCQ_KEY], {'1': 'A'}, total_marks=0, passing_marks=50)

    assert sheet.percentage == Decimal('0.00')
    assert sheet.passed is False


def test_percentage_rounds_to_two_places():
    assert percentage_of(1, 3) == Decimal('33.33')
    assert percentage_of(2, 3) == Decimal('66.67')


def test_passing_threshold_is_inclusive():
    sheet = score_answers([MCQ_KEY, CHECKBOX_KEY], {'2': ['A', 'B']}, total_marks=4, passing_marks=50)

    assert sheet.percentage == Decimal('50.00')
    assert sheet.passed is True
