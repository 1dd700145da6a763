"""
Read access to an assessment's ordered question set.
"""
import logging

from django.db.models import Prefetch

from .exceptions import EmptyQuestionBank
from .models import Option, Question

logger = logging.getLogger(__name__)


def question_queryset(assessment):
    return (
        Question.objects.filter(assessment=assessment)
        .prefetch_related(Prefetch('options', queryset=Option.objects.order_by('sort_order', 'id')))
        .order_by('sort_order', 'id')
    )


def list_questions(assessment):
    """Return the assessment's questions in authoring order with options prefetched.

    Raises EmptyQuestionBank when there is nothing to deliver.
    """
    questions = list(question_queryset(assessment))
    if not questions:
        logger.warning(f"Assessment {assessment.pk} has no questions; refusing to deliver it")
        raise EmptyQuestionBank()
    return questions


def questions_by_id(assessment, question_ids):
    """Fetch the given questions (with options) keyed by id, ignoring ids from other assessments."""
    return {q.id: q for q in question_queryset(assessment).filter(id__in=question_ids)}
