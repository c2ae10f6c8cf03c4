# examhall/assessments/models.py
import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from exams.models import Exam, Question


class ExamAttempt(models.Model):
    """Tracks one candidate's attempt at an exam, from start to finalization."""

    class Status(models.TextChoices):
        IN_PROGRESS = "in_progress", "In progress"
        SUBMITTED = "submitted", "Submitted"
        COMPLETED = "completed", "Completed"

    # Statuses that still count as the candidate's live attempt
    OPEN_STATUSES = (Status.IN_PROGRESS, Status.SUBMITTED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='exam_attempts')
    # Attempts are audit history; an exam with attempts gets archived, not deleted
    exam = models.ForeignKey(Exam, on_delete=models.PROTECT, related_name='attempts')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.IN_PROGRESS)

    started_at = models.DateTimeField(default=timezone.now)
    submitted_at = models.DateTimeField(null=True, blank=True)
    time_taken = models.PositiveIntegerField(null=True, blank=True)  # seconds

    # Final results, written once at finalization
    marks_obtained = models.PositiveIntegerField(null=True, blank=True)
    percentage = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    passed = models.BooleanField(null=True)

    # Draft snapshot, only meaningful while the attempt is open
    current_question = models.PositiveIntegerField(default=0)
    draft_answers = models.JSONField(default=dict, blank=True)
    marked_questions = models.JSONField(default=list, blank=True)
    time_remaining = models.PositiveIntegerField(null=True, blank=True)  # seconds

    DRAFT_FIELDS = ['current_question', 'draft_answers', 'marked_questions', 'time_remaining']

    class Meta:
        ordering = ['-started_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'exam'],
                condition=Q(status__in=['in_progress', 'submitted']),
                name='one_open_attempt_per_user_exam',
            ),
        ]
        indexes = [models.Index(fields=['user', 'exam', 'status'], name='attempt_user_exam_status_idx')]

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    @property
    def is_completed(self):
        return self.status == self.Status.COMPLETED

    def progress_snapshot(self):
        return {
            "current_question": self.current_question,
            "answers": dict(self.draft_answers or {}),
            "marked_questions": list(self.marked_questions or []),
            "time_remaining": self.time_remaining,
        }

    def clear_draft(self):
        self.current_question = 0
        self.draft_answers = {}
        self.marked_questions = []
        self.time_remaining = None

    def __str__(self):
        return f"{self.user} - {self.exam.title}"


class StudentAnswer(models.Model):
    attempt = models.ForeignKey(ExamAttempt, related_name='answers', on_delete=models.CASCADE)
    question = models.ForeignKey(Question, on_delete=models.PROTECT, related_name='student_answers')

    # None when the question was left unanswered
    answer = models.JSONField(null=True, blank=True)

    is_correct = models.BooleanField(default=False)
    awarded_marks = models.PositiveIntegerField(default=0)

    class Meta:
        unique_together = ('attempt', 'question')
        ordering = ['question__order', 'question_id']
