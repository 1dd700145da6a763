"""
Answer store: one row per (submission, question), overwritten on every save.
"""
import logging

from django.core.exceptions import ValidationError
from django.core.validators import URLValidator
from django.db import transaction
from django.utils import timezone

from .deadline import enforce_deadline
from .exceptions import InvalidAnswerPayload, SubmissionLocked
from .models import Answer, Submission

logger = logging.getLogger(__name__)

_url_validator = URLValidator()


def build_payload(question, data):
    """Validate raw answer data against the question type.

    ``data`` may carry ``selected_option_id``, ``text_answer`` or ``file_url``;
    exactly the field matching the question type is accepted.
    """
    kind = question.answer_kind
    option_id = data.get('selected_option_id')
    text = data.get('text_answer')
    file_url = data.get('file_url')

    if kind == 'option':
        if text or file_url:
            raise InvalidAnswerPayload("Choice questions only accept selected_option_id.")
        if option_id in (None, ''):
            # Cleared selection
            return {'selected_option': None}
        try:
            option_id = int(option_id)
        except (TypeError, ValueError):
            raise InvalidAnswerPayload("selected_option_id must be an integer.")
        option = next((o for o in question.options.all() if o.id == option_id), None)
        if option is None:
            raise InvalidAnswerPayload("The selected option does not belong to this question.")
        return {'selected_option': option}

    if kind == 'file':
        if option_id not in (None, '') or text:
            raise InvalidAnswerPayload("File upload questions only accept file_url.")
        if not file_url:
            return {'file_url': None}
        try:
            _url_validator(file_url)
        except ValidationError:
            raise InvalidAnswerPayload("file_url must be a valid URL.")
        return {'file_url': file_url}

    if option_id not in (None, '') or file_url:
        raise InvalidAnswerPayload("Written questions only accept text_answer.")
    if text is not None and not isinstance(text, str):
        raise InvalidAnswerPayload("text_answer must be a string.")
    return {'text_answer': text}


def write_answer(submission, question, data):
    """Upsert without the status check. Only the owner of the transition may call this."""
    if question.id not in submission.question_order:
        raise InvalidAnswerPayload("This question is not part of the attempt.")
    payload = build_payload(question, data)
    return Answer.objects.upsert(submission, question, payload)


def record_answer(submission, question, data, actor, now=None):
    """Autosave one answer for the learner who owns ``submission``.

    Raises SubmissionLocked once the attempt is no longer in progress,
    including when the deadline passed and this call triggered the auto-submit.
    """
    submission.ensure_owned_by(actor)
    now = now or timezone.now()

    submission = enforce_deadline(submission, now=now)
    if not submission.is_in_progress:
        raise SubmissionLocked()

    with transaction.atomic():
        # Locks the submission row against a concurrent submit
        touched = Submission.objects.filter(pk=submission.pk, status=Submission.Status.IN_PROGRESS).update(
            last_activity_at=now
        )
        if not touched:
            raise SubmissionLocked()
        answer = write_answer(submission, question, data)

    logger.debug(f"Saved answer to question {question.id} for submission {submission.pk}")
    return answer
