import csv
import io
import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework import viewsets, permissions, status, filters
from rest_framework.decorators import action
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response

from attempts.permissions import IsInstructorOrAdmin
from cores.models import AuditLog
from .models import Assessment, Question
from .serializers import (
    AssessmentSerializer, AssessmentDetailSerializer, AssessmentListSerializer,
    QuestionSerializer, create_options
)

logger = logging.getLogger(__name__)


def _is_author(user):
    return user.is_staff or getattr(user, 'role', '') in ['instructor', 'admin']


class AssessmentViewSet(viewsets.ModelViewSet):
    queryset = Assessment.objects.all().order_by('-created_at')

    # Enable search on title
    filter_backends = [filters.SearchFilter]
    search_fields = ['title', 'description']

    def get_queryset(self):
        queryset = super().get_queryset()
        # Learners only ever see published assessments
        if not _is_author(self.request.user):
            queryset = queryset.filter(status=Assessment.Status.PUBLISHED)
        return queryset

    def get_serializer_class(self):
        if not _is_author(self.request.user):
            return AssessmentListSerializer
        if self.action == 'retrieve':
            return AssessmentDetailSerializer
        return AssessmentSerializer

    def get_permissions(self):
        if self.action in ['list', 'retrieve']:
            return [permissions.IsAuthenticated()]
        return [IsInstructorOrAdmin()]

    def perform_create(self, serializer):
        assessment = serializer.save(created_by=self.request.user)
        AuditLog.objects.create(
            actor=self.request.user,
            action='CREATE',
            target_model='Assessment',
            target_object_id=str(assessment.id),
            details=f"Created assessment: {assessment.title}"
        )

    def perform_update(self, serializer):
        assessment = serializer.save()
        AuditLog.objects.create(
            actor=self.request.user,
            action='UPDATE',
            target_model='Assessment',
            target_object_id=str(assessment.id),
            details=f"Updated assessment: {assessment.title}"
        )


class QuestionViewSet(viewsets.ModelViewSet):
    queryset = Question.objects.select_related('assessment').prefetch_related('options').order_by('sort_order', 'id')
    serializer_class = QuestionSerializer
    permission_classes = [IsInstructorOrAdmin]

    # Enable Search and Filtering for the question list
    filter_backends = [filters.SearchFilter]
    search_fields = ['text']

    # Add parsers to handle file uploads
    parser_classes = (JSONParser, MultiPartParser, FormParser)

    def get_queryset(self):
        queryset = super().get_queryset()
        # Filter by Assessment if provided ?assessment_id=1
        assessment_id = self.request.query_params.get('assessment_id')
        if assessment_id:
            queryset = queryset.filter(assessment_id=assessment_id)
        return queryset

    @action(detail=False, methods=['post'], url_path='bulk-upload')
    def bulk_upload(self, request):
        """
        Upload questions for one assessment via CSV.
        Form fields: assessment_id, file
        Expected CSV Header: question_text, question_type, marks, options, correct_answer
        (options are '|' separated)
        """
        assessment = get_object_or_404(Assessment, id=request.data.get('assessment_id'))
        file_obj = request.FILES.get('file')
        if not file_obj:
            return Response({"error": "No file uploaded"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            decoded_file = file_obj.read().decode('utf-8')
        except UnicodeDecodeError:
            return Response({"error": "File must be UTF-8 encoded CSV"}, status=status.HTTP_400_BAD_REQUEST)

        reader = csv.DictReader(io.StringIO(decoded_file))
        valid_types = set(Question.QuestionType.values)
        start_order = assessment.questions.count()
        created_count = 0

        try:
            with transaction.atomic():
                for line, row in enumerate(reader, start=2):
                    q_type = (row.get('question_type') or 'mcq').strip().lower()
                    if q_type not in valid_types:
                        raise ValueError(f"line {line}: unknown question_type '{q_type}'")
                    try:
                        marks = Decimal((row.get('marks') or '1').strip())
                    except InvalidOperation:
                        raise ValueError(f"line {line}: marks must be a number")
                    if marks <= 0:
                        raise ValueError(f"line {line}: marks must be positive")
                    text = (row.get('question_text') or '').strip()
                    if not text:
                        raise ValueError(f"line {line}: question_text is required")

                    question = Question.objects.create(
                        assessment=assessment,
                        text=text,
                        question_type=q_type,
                        marks=marks,
                        sort_order=start_order + created_count,
                    )

                    if question.question_type in Question.CHOICE_TYPES:
                        raw_options = [o for o in (row.get('options') or '').split('|') if o.strip()]
                        if question.question_type == Question.QuestionType.TRUE_FALSE and not raw_options:
                            raw_options = ['True', 'False']
                        create_options(question, raw_options, row.get('correct_answer', ''))

                    created_count += 1
        except (KeyError, ValueError) as e:
            logger.warning(f"Bulk upload for assessment {assessment.id} rejected: {e}")
            return Response({"error": f"Invalid CSV: {e}"}, status=status.HTTP_400_BAD_REQUEST)

        return Response({"status": f"Successfully uploaded {created_count} questions"}, status=status.HTTP_201_CREATED)
