"""
Score aggregation for a submission.

The score is always recomputed from the current answer rows, never
accumulated, so it is safe to run after every grading edit.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from .models import Submission

TWO_PLACES = Decimal('0.01')


@dataclass(frozen=True)
class ScoreSummary:
    total_score: Decimal
    percentage: Decimal
    passed: bool


def _as_decimal(value):
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def summarize(total_marks, passing_marks, marks):
    """Aggregate awarded marks; ``None`` entries (ungraded) count as zero."""
    total = sum((_as_decimal(m) for m in marks if m is not None), Decimal('0'))
    total_marks = _as_decimal(total_marks)
    if total_marks > 0:
        percentage = (total / total_marks * 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    else:
        percentage = Decimal('0.00')
    return ScoreSummary(
        total_score=total.quantize(TWO_PLACES, rounding=ROUND_HALF_UP),
        percentage=percentage,
        passed=total >= _as_decimal(passing_marks),
    )


def recompute_score(submission):
    """Recompute and persist total_score, percentage and passed for ``submission``."""
    assessment = submission.assessment
    marks = submission.answers.values_list('marks_obtained', flat=True)
    summary = summarize(assessment.total_marks, assessment.passing_marks, marks)

    Submission.objects.filter(pk=submission.pk).update(
        total_score=summary.total_score,
        percentage=summary.percentage,
        passed=summary.passed,
    )
    submission.total_score = summary.total_score
    submission.percentage = summary.percentage
    submission.passed = summary.passed
    return summary


def all_answers_graded(submission):
    return not submission.answers.filter(marks_obtained__isnull=True).exists()
