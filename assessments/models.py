# lms_platform/assessments/models.py
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class Assessment(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        PUBLISHED = "published", "Published"
        CLOSED = "closed", "Closed"
        ARCHIVED = "archived", "Archived"

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    instructions = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.DRAFT)

    total_marks = models.DecimalField(max_digits=8, decimal_places=2, validators=[MinValueValidator(0)])
    passing_marks = models.DecimalField(max_digits=8, decimal_places=2, validators=[MinValueValidator(0)])

    # Null means untimed
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    # 0 means unlimited
    max_attempts = models.PositiveIntegerField(default=0)
    retake_delay_hours = models.PositiveIntegerField(default=0)
    available_from = models.DateTimeField(null=True, blank=True)
    available_until = models.DateTimeField(null=True, blank=True)

    randomize_questions = models.BooleanField(default=False)
    randomize_options = models.BooleanField(default=False)
    questions_per_attempt = models.PositiveIntegerField(null=True, blank=True)
    allow_resume = models.BooleanField(default=True)

    show_correct_answers = models.BooleanField(default=False)
    show_score_immediately = models.BooleanField(default=True)

    negative_marking = models.BooleanField(default=False)
    negative_mark_value = models.DecimalField(max_digits=6, decimal_places=2, default=0)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='authored_assessments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    @property
    def duration_seconds(self):
        if self.duration_minutes is None:
            return None
        return self.duration_minutes * 60

    def is_open(self, now=None):
        """Whether learners may start a new attempt right now."""
        now = now or timezone.now()
        if self.status != self.Status.PUBLISHED:
            return False
        if self.available_from and now < self.available_from:
            return False
        if self.available_until and now > self.available_until:
            return False
        return True


class Question(models.Model):
    class QuestionType(models.TextChoices):
        MCQ = "mcq", "Multiple Choice"
        TRUE_FALSE = "true_false", "True / False"
        DESCRIPTIVE = "descriptive", "Descriptive"
        CASE_STUDY = "case_study", "Case Study"
        FILL_BLANK = "fill_blank", "Fill in the Blank"
        FILE_UPLOAD = "file_upload", "File Upload"

    # Capabilities hang off the type so they can never disagree with it
    AUTO_GRADABLE_TYPES = frozenset({QuestionType.MCQ.value, QuestionType.TRUE_FALSE.value})
    CHOICE_TYPES = frozenset({QuestionType.MCQ.value, QuestionType.TRUE_FALSE.value})
    TEXT_TYPES = frozenset({QuestionType.DESCRIPTIVE.value, QuestionType.CASE_STUDY.value, QuestionType.FILL_BLANK.value})
    FILE_TYPES = frozenset({QuestionType.FILE_UPLOAD.value})

    assessment = models.ForeignKey(Assessment, related_name='questions', on_delete=models.CASCADE)

    text = models.TextField()
    question_type = models.CharField(max_length=20, choices=QuestionType.choices, default=QuestionType.MCQ)
    case_study_content = models.TextField(blank=True)
    explanation = models.TextField(blank=True)
    grading_rubric = models.TextField(blank=True)

    marks = models.DecimalField(max_digits=6, decimal_places=2, validators=[MinValueValidator(Decimal("0.01"))])
    sort_order = models.PositiveIntegerField(default=0)
    is_required = models.BooleanField(default=False)

    class Meta:
        ordering = ['sort_order', 'id']

    def __str__(self):
        return f"{self.text[:50]}..."

    @property
    def auto_gradable(self):
        return self.question_type in self.AUTO_GRADABLE_TYPES

    @property
    def answer_kind(self):
        """Which Answer field carries the learner's response: option, text or file."""
        if self.question_type in self.CHOICE_TYPES:
            return 'option'
        if self.question_type in self.FILE_TYPES:
            return 'file'
        return 'text'


class Option(models.Model):
    question = models.ForeignKey(Question, related_name='options', on_delete=models.CASCADE)
    text = models.CharField(max_length=255)
    is_correct = models.BooleanField(default=False)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['sort_order', 'id']

    def __str__(self):
        return self.text
