# examhall/assessments/store.py
from __future__ import annotations

from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models.functions import Coalesce

from .models import ExamAttempt, StudentAnswer
from .scoring import ScoredAnswer


class AttemptStore:
    """
    Persistence for exam attempts.

    Callers run inside `transaction.atomic()`. `lock_candidate` and `lock=True` take row
    locks so concurrent requests for the same (user, exam) serialize. Creating an open
    attempt is a conditional insert guarded by the `one_open_attempt_per_user_exam`
    constraint, so a racing start cannot produce a second open attempt.
    """

    def lock_candidate(self, user_id):
        """Row-lock the user so attempt writes for one candidate run one at a time."""
        return get_user_model().objects.select_for_update().filter(pk=user_id).first()

    def _open(self, user_id, exam_id, lock):
        qs = ExamAttempt.objects.filter(user_id=user_id, exam_id=exam_id)
        if lock:
            qs = qs.select_for_update()
        return qs

    def find_open(self, user_id, exam_id, lock=False) -> Optional[ExamAttempt]:
        return (
            self._open(user_id, exam_id, lock)
            .filter(status__in=ExamAttempt.OPEN_STATUSES)
            .order_by('-started_at')
            .first()
        )

    def find_in_progress(self, user_id, exam_id, lock=False) -> Optional[ExamAttempt]:
        return (
            self._open(user_id, exam_id, lock)
            .filter(status=ExamAttempt.Status.IN_PROGRESS)
            .order_by('-started_at')
            .first()
        )

    def completed_count(self, user_id, exam_id) -> int:
        return ExamAttempt.objects.filter(
            user_id=user_id, exam_id=exam_id, status=ExamAttempt.Status.COMPLETED
        ).count()

    def latest_completed(self, user_id, exam_id) -> Optional[ExamAttempt]:
        return (
            ExamAttempt.objects
            .filter(user_id=user_id, exam_id=exam_id, status=ExamAttempt.Status.COMPLETED)
            .select_related('exam')
            .order_by('-submitted_at')
            .first()
        )

    def create(self, attempt: ExamAttempt) -> ExamAttempt:
        attempt.save(force_insert=True)
        return attempt

    def create_open(self, user_id, exam_id, **fields) -> Tuple[ExamAttempt, bool]:
        """Insert an in-progress attempt unless one is already open. Returns (attempt, created)."""
        try:
            # savepoint so the caller's transaction survives a lost race
            with transaction.atomic():
                attempt = self.create(ExamAttempt(
                    user_id=user_id,
                    exam_id=exam_id,
                    status=ExamAttempt.Status.IN_PROGRESS,
                    **fields,
                ))
                return attempt, True
        except IntegrityError:
            existing = self.find_open(user_id, exam_id, lock=True)
            if existing is None:
                raise
            return existing, False

    def update(self, attempt: ExamAttempt, fields: Optional[Iterable[str]] = None) -> ExamAttempt:
        attempt.save(update_fields=list(fields) if fields is not None else None)
        return attempt

    def save_answers(self, attempt: ExamAttempt, scored: Iterable[ScoredAnswer]) -> None:
        for item in scored:
            StudentAnswer.objects.update_or_create(
                attempt=attempt,
                question_id=item.question_id,
                defaults={
                    'answer': item.answer,
                    'is_correct': item.is_correct,
                    'awarded_marks': item.marks_obtained,
                },
            )

    def answers_for(self, attempt: ExamAttempt) -> List[StudentAnswer]:
        return list(
            StudentAnswer.objects
            .filter(attempt=attempt)
            .select_related('question')
            .prefetch_related('question__options')
        )

    def completed_for_exam(self, exam_id, submitted_from=None, submitted_to=None) -> List[ExamAttempt]:
        qs = (
            ExamAttempt.objects
            .filter(exam_id=exam_id, status=ExamAttempt.Status.COMPLETED)
            .select_related('user', 'exam')
        )
        if submitted_from is not None:
            qs = qs.filter(submitted_at__gte=submitted_from)
        if submitted_to is not None:
            qs = qs.filter(submitted_at__lte=submitted_to)
        return list(qs.order_by('-percentage', 'submitted_at'))

    def history(self, user_id, limit=20) -> List[ExamAttempt]:
        return list(
            ExamAttempt.objects
            .filter(user_id=user_id)
            .select_related('exam')
            .annotate(activity_at=Coalesce('submitted_at', 'started_at'))
            .order_by('-activity_at')[:limit]
        )

    def latest_by_exam(self, user_id, exam_ids) -> Dict[int, ExamAttempt]:
        latest = {}
        for attempt in ExamAttempt.objects.filter(user_id=user_id, exam_id__in=list(exam_ids)).order_by('started_at'):
            latest[attempt.exam_id] = attempt
        return latest

    def expired_in_progress(self, now) -> List[ExamAttempt]:
        attempts = ExamAttempt.objects.filter(status=ExamAttempt.Status.IN_PROGRESS).select_related('exam')
        return [
            a for a in attempts
            if a.started_at + timedelta(minutes=a.exam.duration_minutes) <= now
        ]
