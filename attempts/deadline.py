"""
Timer / deadline controller.

The only clock that matters is ``started_at + duration`` compared with the
server's now. Remaining time is recomputed on every read; nothing trusts a
countdown kept by the client.
"""
import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from cores.models import AuditLog
from .models import Submission
from .retry import retry_on_transient

logger = logging.getLogger(__name__)


def deadline_for(submission):
    seconds = submission.assessment.duration_seconds
    if seconds is None:
        return None
    return submission.started_at + timedelta(seconds=seconds)


def remaining_seconds(submission, now=None):
    """Seconds left on the attempt, floored at 0; None when the assessment is untimed."""
    deadline = deadline_for(submission)
    if deadline is None:
        return None
    if not submission.is_in_progress:
        return 0
    now = now or timezone.now()
    return max(0, int((deadline - now).total_seconds()))


def time_spent(submission, now=None):
    now = now or timezone.now()
    elapsed = max(0, int((now - submission.started_at).total_seconds()))
    limit = submission.assessment.duration_seconds
    if limit is not None:
        return min(elapsed, limit)
    return elapsed


def is_expired(submission, now=None, grace_seconds=None):
    deadline = deadline_for(submission)
    if deadline is None:
        return False
    now = now or timezone.now()
    if grace_seconds is None:
        grace_seconds = settings.ATTEMPT_DEADLINE_GRACE_SECONDS
    return now >= deadline + timedelta(seconds=grace_seconds)


def enforce_deadline(submission, now=None):
    """Auto-submit ``submission`` if its deadline has passed.

    Safe to call from any number of places: the submit transition it invokes
    is guarded, so only the first caller does any work. Returns the
    (possibly refreshed) submission.
    """
    if not submission.is_in_progress or not is_expired(submission, now):
        return submission

    from .lifecycle import submit_attempt
    result = submit_attempt(submission, trigger=Submission.Trigger.DEADLINE, now=now)
    if result.performed:
        logger.info(f"Deadline reached: auto-submitted submission {submission.pk}")
    return result.submission


def sweep_expired(now=None):
    """Auto-submit every timed in-progress attempt whose deadline has passed."""
    now = now or timezone.now()
    candidates = (
        Submission.objects.filter(status=Submission.Status.IN_PROGRESS, assessment__duration_minutes__isnull=False)
        .select_related('assessment')
    )
    submitted = 0
    for submission in candidates:
        if not is_expired(submission, now):
            continue
        # Losing an auto-submit would let the learner run over time; retry until acknowledged
        result = retry_on_transient(enforce_deadline, submission, now=now)
        if not result.is_in_progress:
            submitted += 1
    return submitted


def sweep_abandoned(now=None, idle_hours=None):
    """Flag untimed in-progress attempts that have been idle too long as abandoned."""
    now = now or timezone.now()
    if idle_hours is None:
        idle_hours = settings.ATTEMPT_ABANDON_AFTER_HOURS
    cutoff = now - timedelta(hours=idle_hours)

    stale_ids = list(
        Submission.objects.filter(
            status=Submission.Status.IN_PROGRESS,
            assessment__duration_minutes__isnull=True,
            last_activity_at__lt=cutoff,
        ).values_list('id', flat=True)
    )
    abandoned = 0
    for submission_id in stale_ids:
        claimed = Submission.objects.filter(pk=submission_id, status=Submission.Status.IN_PROGRESS).update(
            status=Submission.Status.ABANDONED
        )
        if claimed:
            abandoned += 1
            AuditLog.objects.create(
                actor=None,
                action='ABANDON',
                target_model='Submission',
                target_object_id=str(submission_id),
                details=f"Idle for more than {idle_hours}h",
            )
    if abandoned:
        logger.info(f"Flagged {abandoned} idle attempts as abandoned")
    return abandoned
