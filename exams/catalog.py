# examhall/exams/catalog.py
from __future__ import annotations

from typing import List, Optional

from django.db.models import Prefetch, Q
from django.utils import timezone

from assessments.scoring import AnswerKey
from .models import Exam, Question, Option


class ExamCatalog:
    """
    Read access to exams and their questions.

    Correct answers only leave the catalog through `answer_keys`; everything handed to a
    candidate goes through the taker serializers, which strip them.
    """

    def get(self, exam_id) -> Optional[Exam]:
        return Exam.objects.filter(pk=exam_id).first()

    def get_active(self, exam_id) -> Optional[Exam]:
        return Exam.objects.filter(pk=exam_id, status=Exam.Status.ACTIVE).first()

    def is_visible_to(self, exam: Exam, user_id) -> bool:
        restricted = exam.allowed_users.exists()
        return not restricted or exam.allowed_users.filter(pk=user_id).exists()

    def is_open(self, exam: Exam, now=None) -> bool:
        return exam.status == Exam.Status.ACTIVE and exam.is_open_at(now or timezone.now())

    def available_for(self, user_id, now=None):
        """Active, in-window exams the user may see, soonest first."""
        now = now or timezone.now()
        return (
            Exam.objects
            .filter(status=Exam.Status.ACTIVE, start_date__lte=now, end_date__gte=now)
            .filter(Q(allowed_users__isnull=True) | Q(allowed_users__pk=user_id))
            .distinct()
            .order_by('start_date')
        )

    def questions(self, exam: Exam) -> List[Question]:
        return list(
            Question.objects
            .filter(exam=exam)
            .prefetch_related(Prefetch('options', queryset=Option.objects.order_by('order', 'id')))
            .order_by('order', 'id')
        )

    def question_count(self, exam: Exam) -> int:
        return Question.objects.filter(exam=exam).count()

    def get_question(self, exam: Exam, question_id) -> Optional[Question]:
        return (
            Question.objects
            .filter(exam=exam, pk=question_id)
            .prefetch_related('options')
            .first()
        )

    def answer_keys(self, exam: Exam) -> List[AnswerKey]:
        return [
            AnswerKey(
                question_id=q.pk,
                question_type=q.question_type,
                marks=q.marks,
                correct_answers=frozenset(q.correct_answers),
            )
            for q in self.questions(exam)
        ]
