from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from assessments.models import Question
from attempts.lifecycle import start_attempt
from attempts.models import Submission

pytestmark = pytest.mark.django_db


@pytest.fixture
def stale_attempts(make_assessment, add_question, student, other_student):
    now = timezone.now()
    timed = make_assessment(title='Timed', duration_minutes=15)
    untimed = make_assessment(title='Untimed')
    for assessment in (timed, untimed):
        add_question(assessment, Question.QuestionType.DESCRIPTIVE)
    expired = start_attempt(timed, student, now=now - timedelta(hours=1)).submission
    idle = start_attempt(untimed, other_student, now=now - timedelta(hours=30)).submission
    return expired, idle


def test_expire_attempts_sweeps_deadlines_and_idle_attempts(stale_attempts):
    expired, idle = stale_attempts
    out = StringIO()

    call_command('expire_attempts', stdout=out)

    expired.refresh_from_db()
    idle.refresh_from_db()
    assert expired.submit_trigger == Submission.Trigger.DEADLINE
    assert idle.status == Submission.Status.ABANDONED
    assert 'Auto-submitted 1 expired attempt(s)' in out.getvalue()
    assert 'Flagged 1 idle attempt(s) as abandoned' in out.getvalue()


def test_expire_attempts_can_skip_abandon(stale_attempts):
    _, idle = stale_attempts

    call_command('expire_attempts', '--skip-abandon', stdout=StringIO())

    idle.refresh_from_db()
    assert idle.status == Submission.Status.IN_PROGRESS


def test_expire_attempts_idle_hours_override(stale_attempts):
    _, idle = stale_attempts

    call_command('expire_attempts', '--idle-hours', '48', stdout=StringIO())

    idle.refresh_from_db()
    assert idle.status == Submission.Status.IN_PROGRESS
