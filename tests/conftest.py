from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from exams.models import Exam, Question, Option

User = get_user_model()


def _user(email, role=User.Role.CANDIDATE, **extra):
    return User.objects.create_user(
        username=email.split('@')[0],
        email=email,
        password='s3cret-Passw0rd',
        role=role,
        **extra,
    )


@pytest.fixture
def candidate(db):
    return _user('ada@example.com')


@pytest.fixture
def other_candidate(db):
    return _user('grace@example.com')


@pytest.fixture
def examiner(db):
    return _user('examiner@example.com', role=User.Role.EXAMINER)


@pytest.fixture
def admin_account(db):
    return _user('root@example.com', role=User.Role.ADMIN, is_staff=True)


def add_question(exam, text, question_type, options=(), correct=(), marks=1, order=0, explanation=''):
    question = Question.objects.create(
        exam=exam,
        text=text,
        question_type=question_type,
        marks=marks,
        order=order,
        explanation=explanation,
    )
    for index, opt in enumerate(options):
        Option.objects.create(question=question, text=opt, is_correct=opt in correct, order=index)
    return question


@pytest.fixture
def make_exam(db):
    def factory(**overrides):
        now = timezone.now()
        fields = dict(
            title='Networks 101',
            total_marks=3,
            passing_marks=50,
            duration_minutes=30,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=1),
            max_attempts=1,
            status=Exam.Status.ACTIVE,
        )
        fields.update(overrides)
        return Exam.objects.create(**fields)
    return factory


@pytest.fixture
def scenario_exam(make_exam):
    """mcq worth 1 (correct 'A') and checkbox worth 2 (correct {'A', 'B'}); 3 marks total, pass at 50%."""
    exam = make_exam()
    exam.q1 = add_question(exam, 'Which layer routes packets?', 'mcq', ['A', 'B', 'C'], ['A'], marks=1, order=0,
                           explanation='The network layer routes.')
    exam.q2 = add_question(exam, 'Pick the transport protocols', 'checkbox', ['A', 'B', 'C'], ['A', 'B'], marks=2, order=1)
    return exam


@pytest.fixture
def api(candidate):
    client = APIClient()
    client.force_authenticate(user=candidate)
    return client
