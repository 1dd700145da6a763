"""
Submission state machine.

    (absent) -> in_progress -> submitted -> graded
                in_progress -> abandoned

Every transition is a conditional UPDATE on the current status, so two
callers racing on the same attempt (for example the deadline and the
learner's submit button) cannot both perform it.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone

from assessments.question_bank import list_questions, questions_by_id
from cores.models import AuditLog
from .answer_store import write_answer
from .deadline import enforce_deadline, is_expired, time_spent
from .exceptions import AssessmentUnavailable, AttemptLimitExceeded, RetakeNotYetAllowed
from .grading import auto_grade
from .models import Submission
from .randomizer import freeze_order, new_seed
from .scoring import all_answers_graded, recompute_score

logger = logging.getLogger(__name__)


@dataclass
class AttemptHandle:
    submission: Submission
    created: bool


@dataclass
class SubmitResult:
    submission: Submission
    performed: bool


def _check_retake_delay(assessment, user, now):
    if not assessment.retake_delay_hours:
        return
    last = (
        Submission.objects.for_learner(assessment, user)
        .filter(submitted_at__isnull=False)
        .order_by('-submitted_at')
        .first()
    )
    if last and now < last.submitted_at + timedelta(hours=assessment.retake_delay_hours):
        raise RetakeNotYetAllowed()


def start_attempt(assessment, user, now=None):
    """Start a new attempt for ``user`` or resume the one already in progress."""
    now = now or timezone.now()

    superseded = None
    active = Submission.objects.find_active(assessment, user)
    if active is not None:
        active = enforce_deadline(active, now=now)
        if active.is_in_progress:
            if assessment.allow_resume:
                logger.info(f"Resuming submission {active.pk} for user {user.pk}")
                return AttemptHandle(active, created=False)
            # Only abandoned once the replacement is certain to be created
            superseded = active

    if not assessment.is_open(now):
        raise AssessmentUnavailable()

    questions = list_questions(assessment)

    prior = Submission.objects.count_for(assessment, user)
    if superseded is not None:
        prior -= 1
    if assessment.max_attempts and prior >= assessment.max_attempts:
        raise AttemptLimitExceeded()
    _check_retake_delay(assessment, user, now)

    seed = new_seed()
    question_order, option_order = freeze_order(assessment, questions, seed)

    try:
        with transaction.atomic():
            if superseded is not None:
                abandon_attempt(superseded, actor=user, now=now)
            submission = Submission.objects.create_attempt(
                assessment=assessment,
                user=user,
                attempt_number=Submission.objects.next_attempt_number(assessment, user),
                question_order=question_order,
                option_order=option_order,
                shuffle_seed=seed,
                started_at=now,
            )
    except IntegrityError:
        # A concurrent start for the same learner got there first
        existing = Submission.objects.find_active(assessment, user)
        if existing is None:
            raise
        return AttemptHandle(existing, created=False)

    AuditLog.objects.create(
        actor=user,
        action='ATTEMPT_START',
        target_model='Submission',
        target_object_id=str(submission.id),
        details=f"Attempt {submission.attempt_number} of '{assessment.title}'",
    )
    logger.info(f"Started submission {submission.pk} (attempt {submission.attempt_number}) for user {user.pk}")
    return AttemptHandle(submission, created=True)


def load_attempt(submission, actor, now=None):
    """Fetch an attempt for its learner, reconciling the deadline first."""
    submission.ensure_owned_by(actor)
    return enforce_deadline(submission, now=now)


def question_sequence(submission):
    """The attempt's questions with their options, in the order frozen at start."""
    questions = questions_by_id(submission.assessment, submission.question_order)
    sequence = []
    for question_id in submission.question_order:
        question = questions.get(question_id)
        if question is None:
            continue
        options = {option.id: option for option in question.options.all()}
        order = submission.option_order.get(str(question_id), list(options))
        sequence.append((question, [options[i] for i in order if i in options]))
    return sequence


def submit_attempt(submission, actor=None, trigger=Submission.Trigger.LEARNER, answers=None, now=None):
    """Move an attempt from in_progress to submitted, exactly once.

    ``answers`` is an optional final flush of ``{"question_id", ...payload}``
    dicts. The flush, auto-grading and provisional score all happen inside
    the transaction that claims the status, so a failure leaves the attempt
    in progress. A call that finds the attempt already submitted is a no-op.
    """
    if trigger == Submission.Trigger.LEARNER:
        submission.ensure_owned_by(actor)
    now = now or timezone.now()

    if trigger == Submission.Trigger.LEARNER and is_expired(submission, now):
        # Answers sent after the deadline are not accepted
        logger.warning(f"Submit for submission {submission.pk} arrived after the deadline; "
                       f"dropping {len(answers or [])} final answers")
        trigger = Submission.Trigger.DEADLINE
        answers = None

    with transaction.atomic():
        claimed = Submission.objects.filter(pk=submission.pk, status=Submission.Status.IN_PROGRESS).update(
            status=Submission.Status.SUBMITTED,
            submitted_at=now,
            submit_trigger=trigger,
            time_spent_seconds=time_spent(submission, now),
            last_activity_at=now,
        )
        if not claimed:
            submission.refresh_from_db()
            logger.info(f"Submission {submission.pk} already {submission.status}; ignoring {trigger} submit")
            return SubmitResult(submission, performed=False)

        if answers:
            questions = questions_by_id(submission.assessment, [a.get('question_id') for a in answers])
            for data in answers:
                question = questions.get(data.get('question_id'))
                if question is None:
                    continue
                write_answer(submission, question, data)

        auto_grade(submission, now=now)
        recompute_score(submission)

        if all_answers_graded(submission):
            Submission.objects.filter(pk=submission.pk).update(status=Submission.Status.GRADED)

        AuditLog.objects.create(
            actor=actor,
            action='AUTO_SUBMIT' if trigger == Submission.Trigger.DEADLINE else 'SUBMIT',
            target_model='Submission',
            target_object_id=str(submission.pk),
            details=f"Provisional score {submission.total_score}",
        )

    submission.refresh_from_db()
    logger.info(f"Submission {submission.pk} submitted by {trigger}; status={submission.status}")
    return SubmitResult(submission, performed=True)


def abandon_attempt(submission, actor=None, now=None):
    """Flag an in-progress attempt as abandoned. Returns False if it had already moved on."""
    claimed = Submission.objects.filter(pk=submission.pk, status=Submission.Status.IN_PROGRESS).update(
        status=Submission.Status.ABANDONED,
        last_activity_at=now or timezone.now(),
    )
    if claimed:
        AuditLog.objects.create(
            actor=actor,
            action='ABANDON',
            target_model='Submission',
            target_object_id=str(submission.pk),
            details="Superseded by a new attempt",
        )
        logger.info(f"Submission {submission.pk} abandoned")
    submission.refresh_from_db()
    return bool(claimed)
