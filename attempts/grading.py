"""
Auto-grading of objective (choice) answers.
"""
import logging
from decimal import Decimal

from django.utils import timezone

from .models import Submission

logger = logging.getLogger(__name__)


def grade_choice(question, selected_option, assessment):
    """Return ``(is_correct, marks)`` for a choice answer."""
    is_correct = bool(
        selected_option is not None
        and selected_option.question_id == question.id
        and selected_option.is_correct
    )
    if is_correct:
        return True, question.marks
    if selected_option is not None and assessment.negative_marking:
        return False, -assessment.negative_mark_value
    return False, Decimal('0')


def auto_grade(submission, now=None):
    """Grade every not-yet-graded answer to an auto-gradable question.

    Answers to other question types keep null marks for the workbench.
    Only the submit transition calls this, once per submission.
    """
    now = now or timezone.now()
    assessment = submission.assessment
    answers = (
        submission.answers.select_related('question', 'selected_option')
        .filter(auto_graded=False)
    )

    graded = 0
    for answer in answers:
        if not answer.question.auto_gradable:
            continue
        answer.is_correct, answer.marks_obtained = grade_choice(answer.question, answer.selected_option, assessment)
        answer.auto_graded = True
        answer.graded_at = now
        answer.save(update_fields=['is_correct', 'marks_obtained', 'auto_graded', 'graded_at'])
        graded += 1

    Submission.objects.filter(pk=submission.pk).update(auto_graded_at=now)
    submission.auto_graded_at = now
    logger.debug(f"Auto-graded {graded} answers for submission {submission.pk}")
    return graded
