import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import generics, permissions, status, views
from rest_framework.response import Response

from assessments.models import Assessment, Question
from .answer_store import record_answer
from .lifecycle import load_attempt, start_attempt, submit_attempt
from .models import Answer, Submission
from .permissions import IsGraderOrAdmin
from .retry import retry_on_transient
from .serializers import (
    AnswerSerializer, AnswerWriteSerializer, AttemptSerializer, GradeAnswerSerializer,
    GradeSubmissionSerializer, GradingSubmissionSerializer, SubmissionSerializer, SubmitAttemptSerializer
)
from .workbench import grade_answer, grade_submission, submissions_for_grading

logger = logging.getLogger(__name__)

User = get_user_model()


class AdminStatsView(views.APIView):
    """
    Returns aggregated statistics for the Admin Dashboard.
    """
    permission_classes = [permissions.IsAdminUser]

    def get(self, request):
        return Response({
            "total_assessments": Assessment.objects.count(),
            "published_assessments": Assessment.objects.filter(status=Assessment.Status.PUBLISHED).count(),
            "total_learners": User.objects.filter(role=User.Role.STUDENT).count(),
            "in_progress": Submission.objects.filter(status=Submission.Status.IN_PROGRESS).count(),
            # pending_grading = submitted but some answers still lack marks
            "pending_grading": Submission.objects.filter(status=Submission.Status.SUBMITTED).count(),
            "graded": Submission.objects.filter(status=Submission.Status.GRADED).count(),
            "abandoned": Submission.objects.filter(status=Submission.Status.ABANDONED).count(),
        })


# --- STUDENT VIEWS ---

class StartAttemptView(views.APIView):
    """
    Learner starts an assessment.
    Creates a submission (or resumes the one in progress) and returns it WITH questions.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, assessment_id):
        assessment = get_object_or_404(Assessment, id=assessment_id)
        now = timezone.now()
        handle = start_attempt(assessment, request.user, now=now)

        data = AttemptSerializer(handle.submission, context={'now': now}).data
        data['resumed'] = not handle.created
        return Response(data, status=status.HTTP_201_CREATED if handle.created else status.HTTP_200_OK)


class StudentAttemptsView(generics.ListAPIView):
    """List all attempts for the logged-in learner (Lightweight)."""
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = SubmissionSerializer

    def get_queryset(self):
        queryset = Submission.objects.filter(user=self.request.user).select_related('assessment').order_by('-started_at')
        assessment_id = self.request.query_params.get('assessment_id')
        if assessment_id:
            queryset = queryset.filter(assessment_id=assessment_id)
        return queryset


class AttemptDetailView(views.APIView):
    """Current state of one attempt, with remaining time recomputed from the server clock."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        submission = get_object_or_404(Submission.objects.select_related('assessment'), id=pk, user=request.user)
        now = timezone.now()
        submission = load_attempt(submission, request.user, now=now)
        return Response(AttemptSerializer(submission, context={'now': now}).data)


class SaveAnswerView(views.APIView):
    """Autosave a single answer. Safe to call on every keystroke or selection."""
    permission_classes = [permissions.IsAuthenticated]

    def put(self, request, pk, question_id):
        submission = get_object_or_404(Submission.objects.select_related('assessment'), id=pk, user=request.user)
        question = get_object_or_404(
            Question.objects.prefetch_related('options'), id=question_id, assessment_id=submission.assessment_id
        )
        serializer = AnswerWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        answer = retry_on_transient(record_answer, submission, question, serializer.validated_data, request.user)
        return Response(AnswerSerializer(answer, context={'submission': submission}).data)


class SubmitAttemptView(views.APIView):
    """
    Learner submits the attempt, optionally flushing final answers.
    A second submit (or one racing the deadline) is acknowledged, not rejected.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        submission = get_object_or_404(Submission.objects.select_related('assessment'), id=pk, user=request.user)
        serializer = SubmitAttemptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = submit_attempt(
            submission,
            actor=request.user,
            trigger=Submission.Trigger.LEARNER,
            answers=serializer.validated_data.get('answers'),
        )
        data = AttemptSerializer(result.submission).data
        data['already_submitted'] = not result.performed
        return Response(data)


# --- GRADER VIEWS ---

class GradingSubmissionListView(generics.ListAPIView):
    """List submitted and graded attempts of one assessment for the grading workbench."""
    permission_classes = [IsGraderOrAdmin]
    serializer_class = GradingSubmissionSerializer

    def get_queryset(self):
        assessment = get_object_or_404(Assessment, id=self.kwargs['assessment_id'])
        return submissions_for_grading(assessment, status=self.request.query_params.get('status'))


class GradeAnswerView(views.APIView):
    """Grader awards marks to one answer."""
    permission_classes = [IsGraderOrAdmin]

    def post(self, request, answer_id):
        answer = get_object_or_404(Answer.objects.select_related('question', 'submission'), id=answer_id)
        serializer = GradeAnswerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        submission = grade_answer(
            answer,
            serializer.validated_data['marks'],
            serializer.validated_data.get('feedback', ''),
            grader=request.user,
        )
        return Response({
            "status": submission.status,
            "total_score": submission.total_score,
            "percentage": submission.percentage,
            "passed": submission.passed,
        })


class SubmitGradesView(views.APIView):
    """Grader submits marks for several answers of one submission at once."""
    permission_classes = [IsGraderOrAdmin]

    def post(self, request, submission_id):
        submission = get_object_or_404(Submission, id=submission_id)
        serializer = GradeSubmissionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        submission = grade_submission(
            submission,
            serializer.validated_data['grades'],
            grader=request.user,
            comments=serializer.validated_data.get('comments'),
        )
        return Response(GradingSubmissionSerializer(
            submissions_for_grading(submission.assessment).get(pk=submission.pk)
        ).data)
