# attempts/models.py
from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from assessments.models import Assessment, Question, Option
from .exceptions import NotSubmissionOwner


class SubmissionQuerySet(models.QuerySet):
    def for_learner(self, assessment, user):
        return self.filter(assessment=assessment, user=user)

    def find_active(self, assessment, user):
        """The learner's in-progress attempt, if any (at most one exists)."""
        return self.for_learner(assessment, user).filter(status=Submission.Status.IN_PROGRESS).first()

    def count_for(self, assessment, user):
        """Attempts that count toward max_attempts. Abandoned attempts never do."""
        return self.for_learner(assessment, user).exclude(status=Submission.Status.ABANDONED).count()

    def next_attempt_number(self, assessment, user):
        return self.for_learner(assessment, user).count() + 1

    def create_attempt(self, assessment, user, attempt_number, question_order, option_order=None,
                       shuffle_seed=None, started_at=None):
        started_at = started_at or timezone.now()
        return self.create(
            assessment=assessment,
            user=user,
            attempt_number=attempt_number,
            question_order=list(question_order),
            option_order=option_order or {},
            shuffle_seed=shuffle_seed,
            status=Submission.Status.IN_PROGRESS,
            started_at=started_at,
            last_activity_at=started_at,
        )

    def gradable(self):
        return self.filter(status__in=[Submission.Status.SUBMITTED, Submission.Status.GRADED])


class Submission(models.Model):
    """One learner's attempt at one assessment."""

    class Status(models.TextChoices):
        IN_PROGRESS = "in_progress", "In Progress"
        SUBMITTED = "submitted", "Submitted"
        GRADED = "graded", "Graded"
        ABANDONED = "abandoned", "Abandoned"

    class Trigger(models.TextChoices):
        LEARNER = "learner", "Learner"
        DEADLINE = "deadline", "Deadline"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='submissions')
    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name='submissions')
    attempt_number = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.IN_PROGRESS)

    # Frozen at attempt creation; never reshuffled on resume
    question_order = models.JSONField(default=list)
    option_order = models.JSONField(default=dict, blank=True)
    shuffle_seed = models.BigIntegerField(null=True, blank=True)

    started_at = models.DateTimeField(default=timezone.now)
    last_activity_at = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    submit_trigger = models.CharField(max_length=20, choices=Trigger.choices, blank=True)
    time_spent_seconds = models.PositiveIntegerField(default=0)

    total_score = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    percentage = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    passed = models.BooleanField(null=True)

    auto_graded_at = models.DateTimeField(null=True, blank=True)
    manually_graded_at = models.DateTimeField(null=True, blank=True)
    graded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='graded_submissions'
    )
    grader_comments = models.TextField(blank=True)

    objects = SubmissionQuerySet.as_manager()

    class Meta:
        ordering = ['-started_at']
        constraints = [
            models.UniqueConstraint(
                fields=['assessment', 'user', 'attempt_number'],
                name='unique_attempt_number_per_learner',
            ),
            models.UniqueConstraint(
                fields=['assessment', 'user'],
                condition=Q(status='in_progress'),
                name='single_in_progress_attempt',
            ),
        ]

    def __str__(self):
        return f"{self.user} - {self.assessment.title} (attempt {self.attempt_number})"

    @property
    def is_in_progress(self):
        return self.status == self.Status.IN_PROGRESS

    @property
    def is_closed_to_learner(self):
        return self.status in (self.Status.SUBMITTED, self.Status.GRADED)

    def ensure_owned_by(self, user):
        if user is None or self.user_id != user.pk:
            raise NotSubmissionOwner()


class AnswerQuerySet(models.QuerySet):
    def upsert(self, submission, question, payload):
        """Write the single answer row for (submission, question), overwriting any earlier payload."""
        answer, _ = self.update_or_create(
            submission=submission,
            question=question,
            defaults={
                'selected_option': payload.get('selected_option'),
                'text_answer': payload.get('text_answer'),
                'file_url': payload.get('file_url'),
            },
        )
        return answer


class Answer(models.Model):
    submission = models.ForeignKey(Submission, related_name='answers', on_delete=models.CASCADE)
    question = models.ForeignKey(Question, related_name='answers', on_delete=models.CASCADE)

    # Exactly one of these carries the response, depending on the question type
    selected_option = models.ForeignKey(Option, null=True, blank=True, on_delete=models.SET_NULL)
    text_answer = models.TextField(null=True, blank=True)
    file_url = models.URLField(max_length=500, null=True, blank=True)

    # Grading
    is_correct = models.BooleanField(null=True)
    marks_obtained = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    auto_graded = models.BooleanField(default=False)
    grader_feedback = models.TextField(blank=True)
    graded_at = models.DateTimeField(null=True, blank=True)
    graded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='graded_answers'
    )

    answered_at = models.DateTimeField(auto_now=True)

    objects = AnswerQuerySet.as_manager()

    class Meta:
        unique_together = ('submission', 'question')

    def __str__(self):
        return f"Answer to Q{self.question_id} in submission {self.submission_id}"

    @property
    def is_graded(self):
        return self.marks_obtained is not None
