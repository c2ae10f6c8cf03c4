# examhall/exams/models.py
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone


def default_end_date():
    return timezone.now() + timedelta(days=30)


class Exam(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        ACTIVE = "active", "Active"
        ARCHIVED = "archived", "Archived"

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    instructions = models.TextField(blank=True)

    total_marks = models.PositiveIntegerField(default=100)
    # Compared against the attempt percentage, not against raw marks
    passing_marks = models.PositiveIntegerField(default=40)

    duration_minutes = models.PositiveIntegerField(default=30)
    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField(default=default_end_date)
    max_attempts = models.PositiveIntegerField(default=1)

    # Empty means every authenticated user may sit the exam
    allowed_users = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name='restricted_exams')

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='authored_exams'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    @property
    def duration_seconds(self):
        return self.duration_minutes * 60

    def is_open_at(self, moment):
        return self.start_date <= moment <= self.end_date

    def __str__(self):
        return self.title


class Question(models.Model):
    class QuestionType(models.TextChoices):
        MCQ = "mcq", "Multiple Choice"
        CHECKBOX = "checkbox", "Multiple Select"
        TEXT = "text", "Free Text"

    class Difficulty(models.TextChoices):
        EASY = "easy", "Easy"
        MEDIUM = "medium", "Medium"
        HARD = "hard", "Hard"

    exam = models.ForeignKey(Exam, related_name='questions', on_delete=models.CASCADE)

    text = models.TextField()
    question_type = models.CharField(max_length=20, choices=QuestionType.choices, default=QuestionType.MCQ)
    difficulty = models.CharField(max_length=20, choices=Difficulty.choices, default=Difficulty.MEDIUM)
    marks = models.PositiveIntegerField(default=1)
    explanation = models.TextField(blank=True)
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order', 'id']

    @property
    def correct_answers(self):
        # Free-text questions carry no options, so their correct set is empty
        return [option.text for option in self.options.all() if option.is_correct]

    def __str__(self):
        return f"{self.text[:50]}..."


class Option(models.Model):
    question = models.ForeignKey(Question, related_name='options', on_delete=models.CASCADE)
    text = models.CharField(max_length=255)
    is_correct = models.BooleanField(default=False)
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order', 'id']

    def __str__(self):
        return self.text
