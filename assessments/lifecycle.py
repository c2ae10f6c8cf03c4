# examhall/assessments/lifecycle.py
"""
Exam attempt lifecycle: start, resume, draft saves, submit and auto-submit.

Every public operation runs as one database transaction and returns an `Outcome`.
Writes lock the candidate row first, so counting completed attempts and creating or
finalizing one happen as a unit; attempt creation also goes through the store's
conditional insert, so there is never more than one open attempt per (user, exam) and
never more completed attempts than the exam allows.
"""
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from exams.catalog import ExamCatalog
from exams.models import Exam, Question
from .errors import ErrorKind, Outcome
from .models import ExamAttempt, StudentAnswer
from .scoring import score_answers
from .store import AttemptStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartedAttempt:
    attempt: ExamAttempt
    created: bool

    @property
    def time_remaining_seconds(self) -> int:
        if self.attempt.time_remaining is not None:
            return self.attempt.time_remaining
        return self.attempt.exam.duration_seconds


@dataclass(frozen=True)
class ExamPaper:
    exam: Exam
    questions: List[Question]
    attempts_used: int
    open_attempt: Optional[ExamAttempt]
    time_remaining: int


@dataclass(frozen=True)
class ScoreSummary:
    attempt_id: Any
    score: Decimal
    total_marks: int
    obtained_marks: int
    passing_marks: int
    passed: bool
    time_taken: int
    submitted_at: datetime
    correct_answers: int


@dataclass(frozen=True)
class AttemptResult:
    attempt: ExamAttempt
    exam: Exam
    answers: List[StudentAnswer]
    statistics: Dict[str, int] = field(default_factory=dict)


def transactional(method: Callable[..., Outcome]) -> Callable[..., Outcome]:
    """Run a lifecycle operation atomically and turn store failures into INTERNAL outcomes."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            with transaction.atomic():
                return method(self, *args, **kwargs)
        except DatabaseError:
            logger.exception("%s failed (args=%s)", method.__name__, args)
            return Outcome.failure(ErrorKind.INTERNAL, "The exam service is temporarily unavailable.")

    return wrapper


def _no_active_attempt() -> Outcome:
    return Outcome.failure(ErrorKind.NO_ACTIVE_ATTEMPT, "No active exam session found.")


def _attempts_exhausted(exam) -> Outcome:
    return Outcome.failure(
        ErrorKind.NOT_ELIGIBLE,
        f"You have reached the maximum number of attempts ({exam.max_attempts}) for this exam.",
    )


class AttemptLifecycle:
    def __init__(self, catalog=None, store=None, clock=None, submit_requires_attempt=None):
        self.catalog = catalog or ExamCatalog()
        self.store = store or AttemptStore()
        self.clock = clock or timezone.now
        if submit_requires_attempt is None:
            submit_requires_attempt = settings.EXAMHALL.get("SUBMIT_REQUIRES_ATTEMPT", False)
        self.submit_requires_attempt = submit_requires_attempt

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    def _eligible_exam(self, user_id, exam_id, now) -> Outcome:
        exam = self.catalog.get_active(exam_id)
        if exam is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Exam not found or not active.")
        if not exam.is_open_at(now):
            return Outcome.failure(ErrorKind.NOT_ELIGIBLE, "Exam is not open at this time.")
        if not self.catalog.is_visible_to(exam, user_id):
            return Outcome.failure(ErrorKind.NOT_ELIGIBLE, "You are not authorized to take this exam.")
        used = self.store.completed_count(user_id, exam.pk)
        if used >= exam.max_attempts:
            return _attempts_exhausted(exam)
        return Outcome.success((exam, used))

    def _ceiling_reached(self, user_id, exam) -> bool:
        return self.store.completed_count(user_id, exam.pk) >= exam.max_attempts

    # ------------------------------------------------------------------
    # Start / resume
    # ------------------------------------------------------------------

    @transactional
    def start(self, user_id, exam_id) -> Outcome:
        now = self.clock()
        self.store.lock_candidate(user_id)
        eligible = self._eligible_exam(user_id, exam_id, now)
        if not eligible.ok:
            return eligible
        exam, _ = eligible.value

        existing = self.store.find_open(user_id, exam.pk, lock=True)
        if existing is not None:
            return Outcome.success(StartedAttempt(existing, created=False))
        # an attempt finalized after the eligibility check still counts
        if self._ceiling_reached(user_id, exam):
            return _attempts_exhausted(exam)

        attempt, created = self.store.create_open(
            user_id,
            exam.pk,
            started_at=now,
            time_remaining=exam.duration_seconds,
        )
        if created:
            logger.info("attempt %s started (user=%s exam=%s)", attempt.pk, user_id, exam.pk)
        return Outcome.success(StartedAttempt(attempt, created=created))

    @transactional
    def get_paper(self, user_id, exam_id) -> Outcome:
        eligible = self._eligible_exam(user_id, exam_id, self.clock())
        if not eligible.ok:
            return eligible
        exam, used = eligible.value

        open_attempt = self.store.find_open(user_id, exam.pk)
        time_remaining = exam.duration_seconds
        if open_attempt is not None and open_attempt.time_remaining is not None:
            time_remaining = open_attempt.time_remaining

        return Outcome.success(ExamPaper(
            exam=exam,
            questions=self.catalog.questions(exam),
            attempts_used=used,
            open_attempt=open_attempt,
            time_remaining=time_remaining,
        ))

    @transactional
    def get_question(self, user_id, exam_id, question_id) -> Outcome:
        exam = self.catalog.get_active(exam_id)
        if exam is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Exam not found or not active.")
        if not self.catalog.is_visible_to(exam, user_id):
            return Outcome.failure(ErrorKind.NOT_ELIGIBLE, "You do not have access to this exam.")
        question = self.catalog.get_question(exam, question_id)
        if question is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Question not found.")
        return Outcome.success(question)

    # ------------------------------------------------------------------
    # Draft snapshot
    # ------------------------------------------------------------------

    @transactional
    def save_progress(self, user_id, exam_id, current_question=None, answers=None, time_remaining=None) -> Outcome:
        attempt = self.store.find_open(user_id, exam_id, lock=True)
        if attempt is None:
            return _no_active_attempt()

        if current_question is not None:
            attempt.current_question = current_question
        if answers is not None:
            attempt.draft_answers = {str(k): v for k, v in answers.items()}
        if time_remaining is not None:
            attempt.time_remaining = time_remaining

        self.store.update(attempt, ['current_question', 'draft_answers', 'time_remaining'])
        return Outcome.success(attempt)

    @transactional
    def save_answer(self, user_id, exam_id, question_id, answer) -> Outcome:
        attempt = self.store.find_open(user_id, exam_id, lock=True)
        if attempt is None:
            return _no_active_attempt()
        if self.catalog.get_question(attempt.exam, question_id) is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Question not found.")

        drafts = dict(attempt.draft_answers or {})
        drafts[str(question_id)] = answer
        attempt.draft_answers = drafts
        self.store.update(attempt, ['draft_answers'])
        return Outcome.success(attempt)

    @transactional
    def toggle_mark(self, user_id, exam_id, question_id) -> Outcome:
        attempt = self.store.find_open(user_id, exam_id, lock=True)
        if attempt is None:
            return _no_active_attempt()
        if self.catalog.get_question(attempt.exam, question_id) is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Question not found.")

        marked = [int(q) for q in (attempt.marked_questions or [])]
        question_id = int(question_id)
        if question_id in marked:
            marked.remove(question_id)
            is_marked = False
        else:
            marked.append(question_id)
            is_marked = True

        attempt.marked_questions = marked
        self.store.update(attempt, ['marked_questions'])
        return Outcome.success(is_marked)

    @transactional
    def clear_answer(self, user_id, exam_id, question_id) -> Outcome:
        attempt = self.store.find_open(user_id, exam_id, lock=True)
        if attempt is None:
            return _no_active_attempt()

        drafts = dict(attempt.draft_answers or {})
        removed = drafts.pop(str(question_id), None) is not None
        if removed:
            attempt.draft_answers = drafts
            self.store.update(attempt, ['draft_answers'])
        return Outcome.success(removed)

    @transactional
    def get_progress(self, user_id, exam_id) -> Outcome:
        attempt = self.store.find_open(user_id, exam_id)
        if attempt is None:
            # no progress is a normal answer, not an error
            return Outcome.success(None)
        snapshot = attempt.progress_snapshot()
        snapshot.update(attempt_id=attempt.pk, status=attempt.status)
        return Outcome.success(snapshot)

    @transactional
    def summary(self, user_id, exam_id) -> Outcome:
        attempt = self.store.find_open(user_id, exam_id)
        if attempt is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "No exam session found.")

        question_count = self.catalog.question_count(attempt.exam)
        answered = len(attempt.draft_answers or {})
        time_used = attempt.time_taken
        if time_used is None:
            time_used = max(0, int((self.clock() - attempt.started_at).total_seconds()))

        return Outcome.success({
            "exam": attempt.exam,
            "question_count": question_count,
            "answered_count": answered,
            "unanswered_count": max(0, question_count - answered),
            "marked_count": len(attempt.marked_questions or []),
            "current_question": attempt.current_question,
            "time_used": time_used,
            "time_remaining": attempt.time_remaining or 0,
            "status": attempt.status,
        })

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def _finalize(self, exam: Exam, attempt: ExamAttempt, answers: Optional[Mapping], time_taken, now) -> ScoreSummary:
        sheet = score_answers(
            self.catalog.answer_keys(exam),
            answers,
            total_marks=exam.total_marks,
            passing_marks=exam.passing_marks,
        )
        self.store.save_answers(attempt, sheet.answers)

        if time_taken is None:
            time_taken = max(0, int((now - attempt.started_at).total_seconds()))

        attempt.marks_obtained = sheet.marks_obtained
        attempt.percentage = sheet.percentage
        attempt.passed = sheet.passed
        attempt.status = ExamAttempt.Status.COMPLETED
        attempt.submitted_at = now
        attempt.time_taken = time_taken
        attempt.clear_draft()
        self.store.update(attempt)

        logger.info(
            "attempt %s completed (user=%s exam=%s marks=%s pct=%s)",
            attempt.pk, attempt.user_id, exam.pk, sheet.marks_obtained, sheet.percentage,
        )
        return ScoreSummary(
            attempt_id=attempt.pk,
            score=sheet.percentage,
            total_marks=exam.total_marks,
            obtained_marks=sheet.marks_obtained,
            passing_marks=exam.passing_marks,
            passed=sheet.passed,
            time_taken=time_taken,
            submitted_at=now,
            correct_answers=sheet.correct_count,
        )

    @transactional
    def submit(self, user_id, exam_id, answers=None, time_taken=None) -> Outcome:
        exam = self.catalog.get(exam_id)
        if exam is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Exam not found.")

        now = self.clock()
        self.store.lock_candidate(user_id)
        attempt = self.store.find_open(user_id, exam.pk, lock=True)
        if attempt is None:
            if self.store.latest_completed(user_id, exam.pk) is not None:
                return Outcome.failure(ErrorKind.ALREADY_FINALIZED, "Exam already submitted.")
            if self.submit_requires_attempt:
                return _no_active_attempt()
            # a recorded submission must be one the candidate could have started
            eligible = self._eligible_exam(user_id, exam.pk, now)
            if not eligible.ok:
                return eligible
            logger.warning("submit without a started attempt, recording one (user=%s exam=%s)", user_id, exam.pk)
            attempt, _ = self.store.create_open(user_id, exam.pk, started_at=now)
        elif self._ceiling_reached(user_id, exam):
            return _attempts_exhausted(exam)

        return Outcome.success(self._finalize(exam, attempt, answers, time_taken, now))

    @transactional
    def auto_submit(self, user_id, exam_id) -> Outcome:
        self.store.lock_candidate(user_id)
        attempt = self.store.find_in_progress(user_id, exam_id, lock=True)
        if attempt is None:
            return _no_active_attempt()
        exam = self.catalog.get(exam_id)
        if exam is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "Exam not found.")
        if self._ceiling_reached(user_id, exam):
            return _attempts_exhausted(exam)

        return Outcome.success(
            self._finalize(exam, attempt, attempt.draft_answers, attempt.time_taken, self.clock())
        )

    # ------------------------------------------------------------------
    # Results and listings
    # ------------------------------------------------------------------

    @transactional
    def get_results(self, user_id, exam_id) -> Outcome:
        attempt = self.store.latest_completed(user_id, exam_id)
        if attempt is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "No results found for this exam.")

        answers = self.store.answers_for(attempt)
        statistics = {
            "total_questions": len(answers),
            "correct_answers": sum(1 for a in answers if a.is_correct),
            "incorrect_answers": sum(1 for a in answers if not a.is_correct and a.answer is not None),
            "unattempted": sum(1 for a in answers if a.answer is None),
        }
        return Outcome.success(AttemptResult(attempt=attempt, exam=attempt.exam, answers=answers, statistics=statistics))

    @transactional
    def active_exams(self, user_id) -> Outcome:
        exams = list(self.catalog.available_for(user_id, self.clock()))
        latest = self.store.latest_by_exam(user_id, [e.pk for e in exams])
        return Outcome.success([(exam, latest.get(exam.pk)) for exam in exams])

    @transactional
    def history(self, user_id, limit=None) -> Outcome:
        if limit is None:
            limit = settings.EXAMHALL.get("HISTORY_LIMIT", 20)
        return Outcome.success(self.store.history(user_id, limit))

    def expire_overdue(self) -> List[Outcome]:
        """Auto-submit every in-progress attempt whose exam duration has elapsed."""
        outcomes = []
        for attempt in self.store.expired_in_progress(self.clock()):
            outcomes.append(self.auto_submit(attempt.user_id, attempt.exam_id))
        return outcomes
