"""
Manual grading workbench.

Graders award marks to answers the auto-grader could not score. Every
grading call recomputes the submission's score from scratch and flips it to
``graded`` once no answer is left without marks.
"""
import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.db.models import Prefetch
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from cores.models import AuditLog
from .exceptions import MarksOutOfRange, SubmissionNotGradable
from .models import Answer, Submission
from .scoring import all_answers_graded, recompute_score

logger = logging.getLogger(__name__)


def submissions_for_grading(assessment, status=None):
    answers = Answer.objects.select_related('question', 'selected_option').order_by('question__sort_order', 'question_id')
    queryset = (
        Submission.objects.filter(assessment=assessment)
        .gradable()
        .select_related('user', 'assessment')
        .prefetch_related(Prefetch('answers', queryset=answers))
        .order_by('-submitted_at')
    )
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def manual_answers(submission):
    """Answers the auto-grader leaves for a human."""
    return [answer for answer in submission.answers.all() if not answer.question.auto_gradable]


def validate_marks(question, marks):
    try:
        value = Decimal(str(marks))
    except (InvalidOperation, TypeError, ValueError):
        raise MarksOutOfRange(f"Marks must be a number between 0 and {question.marks}.")
    if not value.is_finite() or value < 0 or value > question.marks:
        raise MarksOutOfRange(f"Marks must be between 0 and {question.marks}.")
    return value


def _apply_grades(submission, grades, grader, comments=None, now=None):
    now = now or timezone.now()

    with transaction.atomic():
        # Serialises graders working on the same submission so each recompute sees the others' writes
        locked = Submission.objects.select_for_update().select_related('assessment').get(pk=submission.pk)
        if locked.status not in (Submission.Status.SUBMITTED, Submission.Status.GRADED):
            raise SubmissionNotGradable()

        # Validate everything before the first write
        validated = [(answer, validate_marks(answer.question, marks), feedback) for answer, marks, feedback in grades]

        for answer, marks, feedback in validated:
            Answer.objects.filter(pk=answer.pk).update(
                marks_obtained=marks,
                grader_feedback=feedback or '',
                graded_at=now,
                graded_by=grader,
            )

        summary = recompute_score(locked)

        fields = {'graded_by': grader}
        if comments is not None:
            fields['grader_comments'] = comments
        if locked.status == Submission.Status.GRADED or all_answers_graded(locked):
            fields['status'] = Submission.Status.GRADED
            fields['manually_graded_at'] = now
        Submission.objects.filter(pk=locked.pk).update(**fields)

        AuditLog.objects.create(
            actor=grader,
            action='GRADE',
            target_model='Submission',
            target_object_id=str(locked.pk),
            details=f"Graded {len(validated)} answer(s); total {summary.total_score}",
        )

    locked.refresh_from_db()
    logger.info(f"Submission {locked.pk} graded by {getattr(grader, 'pk', None)}: "
                f"total={locked.total_score} status={locked.status}")
    return locked


def grade_answer(answer, marks, feedback='', grader=None, now=None):
    """Award marks to a single answer. Returns the updated submission."""
    return _apply_grades(answer.submission, [(answer, marks, feedback)], grader, now=now)


def grade_submission(submission, grades, grader=None, comments=None, now=None):
    """Apply several ``{"answer_id", "marks", "feedback"}`` grades to one submission.

    Either every grade is written or none is.
    """
    answer_ids = [g['answer_id'] for g in grades]
    answers = submission.answers.select_related('question').in_bulk(answer_ids)
    missing = [answer_id for answer_id in answer_ids if answer_id not in answers]
    if missing:
        raise ValidationError({'answer_id': f"Answers {missing} do not belong to this submission."})

    return _apply_grades(
        submission,
        [(answers[g['answer_id']], g['marks'], g.get('feedback', '')) for g in grades],
        grader,
        comments=comments,
        now=now,
    )
