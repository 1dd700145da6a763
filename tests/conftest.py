from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from assessments.models import Assessment, Question, Option

User = get_user_model()

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=dt_timezone.utc)


def _make_user(username, role, **extra):
    return User.objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="pass-1234-word",
        role=role,
        **extra,
    )


@pytest.fixture
def student(db):
    return _make_user('student', User.Role.STUDENT, first_name='Ada', last_name='Learner')


@pytest.fixture
def other_student(db):
    return _make_user('other', User.Role.STUDENT)


@pytest.fixture
def grader(db):
    return _make_user('grader', User.Role.GRADER)


@pytest.fixture
def instructor(db):
    return _make_user('instructor', User.Role.INSTRUCTOR)


@pytest.fixture
def admin_user(db):
    return _make_user('admin', User.Role.ADMIN, is_staff=True)


@pytest.fixture
def make_assessment(db):
    def factory(**kwargs):
        defaults = {
            'title': 'Unit 1 Quiz',
            'status': Assessment.Status.PUBLISHED,
            'total_marks': Decimal('10'),
            'passing_marks': Decimal('6'),
            'duration_minutes': None,
        }
        defaults.update(kwargs)
        return Assessment.objects.create(**defaults)
    return factory


@pytest.fixture
def add_question(db):
    def factory(assessment, question_type=Question.QuestionType.MCQ, marks=5, options=None, **kwargs):
        question = Question.objects.create(
            assessment=assessment,
            text=kwargs.pop('text', f"{question_type} question"),
            question_type=question_type,
            marks=Decimal(str(marks)),
            sort_order=kwargs.pop('sort_order', assessment.questions.count()),
            **kwargs,
        )
        for order, (text, is_correct) in enumerate(options or []):
            Option.objects.create(question=question, text=text, is_correct=is_correct, sort_order=order)
        return question
    return factory


@pytest.fixture
def mcq_options():
    return [('A', False), ('B', True), ('C', False), ('D', False)]


@pytest.fixture
def mixed_assessment(make_assessment, add_question, mcq_options):
    """total 10 / pass 6: one MCQ (B correct, 5 marks) and one descriptive (5 marks)."""
    assessment = make_assessment()
    mcq = add_question(assessment, Question.QuestionType.MCQ, marks=5, options=mcq_options)
    essay = add_question(assessment, Question.QuestionType.DESCRIPTIVE, marks=5)
    return assessment, mcq, essay


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for(api_client):
    def authenticate(user):
        api_client.force_authenticate(user=user)
        return api_client
    return authenticate
