# lms_platform/assessments/serializers.py
from django.db import transaction
from rest_framework import serializers
from .models import Assessment, Question, Option

# --- Helper Serializers ---

class OptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Option
        fields = ['id', 'text', 'is_correct', 'sort_order']

# --- Question Serializers ---

class QuestionSerializer(serializers.ModelSerializer):
    # Map frontend 'question_text' to backend 'text'
    question_text = serializers.CharField(source='text')
    # Map frontend options array (strings) to backend Options models
    options = serializers.ListField(child=serializers.CharField(), required=False, write_only=True)
    correct_answer = serializers.CharField(required=False, allow_blank=True, write_only=True)
    options_data = OptionSerializer(source='options', many=True, read_only=True)
    auto_gradable = serializers.BooleanField(read_only=True)

    # Read-only field to show assessment title
    assessment_title = serializers.CharField(source='assessment.title', read_only=True)

    class Meta:
        model = Question
        fields = [
            'id', 'assessment', 'assessment_title', 'question_text', 'question_type',
            'case_study_content', 'explanation', 'grading_rubric', 'marks', 'sort_order',
            'is_required', 'auto_gradable', 'options', 'correct_answer', 'options_data'
        ]

    def validate(self, attrs):
        q_type = attrs.get('question_type', getattr(self.instance, 'question_type', Question.QuestionType.MCQ))
        options = attrs.get('options')
        if q_type == Question.QuestionType.MCQ and self.instance is None and len(options or []) < 2:
            raise serializers.ValidationError({'options': "Multiple choice questions need at least two options."})
        if q_type not in Question.CHOICE_TYPES and options:
            raise serializers.ValidationError({'options': "Only choice questions take options."})
        if self.instance is not None and self.instance.assessment.submissions.exists():
            # Attempts hold frozen option ids and selected options for this question
            if options is not None:
                raise serializers.ValidationError(
                    {'options': "Options cannot be replaced once learners have attempted this assessment."}
                )
            if q_type != self.instance.question_type:
                raise serializers.ValidationError(
                    {'question_type': "Question type cannot change once learners have attempted this assessment."}
                )
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        options_text = validated_data.pop('options', [])
        correct_ans = validated_data.pop('correct_answer', '')

        question = Question.objects.create(**validated_data)

        if question.question_type == Question.QuestionType.TRUE_FALSE and not options_text:
            options_text = ['True', 'False']
        create_options(question, options_text, correct_ans)
        return question

    @transaction.atomic
    def update(self, instance, validated_data):
        options_text = validated_data.pop('options', None)
        correct_ans = validated_data.pop('correct_answer', '')
        instance = super().update(instance, validated_data)
        if options_text is not None:
            instance.options.all().delete()
            create_options(instance, options_text, correct_ans)
        return instance


def create_options(question, options_text, correct_answer):
    # Simple logic: if option text matches correct_answer, mark it true
    correct = (correct_answer or '').strip().lower()
    for order, opt_text in enumerate(options_text):
        clean_text = opt_text.strip()
        if clean_text:
            Option.objects.create(
                question=question,
                text=clean_text,
                is_correct=(clean_text.lower() == correct),
                sort_order=order,
            )

# --- Assessment Serializers ---

class AssessmentSerializer(serializers.ModelSerializer):
    # Read-only counts
    total_questions = serializers.IntegerField(source='questions.count', read_only=True)
    created_by = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Assessment
        fields = [
            'id', 'title', 'description', 'instructions', 'status',
            'total_marks', 'passing_marks', 'duration_minutes', 'max_attempts',
            'retake_delay_hours', 'available_from', 'available_until',
            'randomize_questions', 'randomize_options', 'questions_per_attempt',
            'allow_resume', 'show_correct_answers', 'show_score_immediately',
            'negative_marking', 'negative_mark_value',
            'created_by', 'created_at', 'updated_at', 'total_questions'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        total = attrs.get('total_marks', getattr(self.instance, 'total_marks', None))
        passing = attrs.get('passing_marks', getattr(self.instance, 'passing_marks', None))
        if total is not None and passing is not None and passing > total:
            raise serializers.ValidationError({'passing_marks': "Passing marks cannot exceed total marks."})
        start = attrs.get('available_from', getattr(self.instance, 'available_from', None))
        end = attrs.get('available_until', getattr(self.instance, 'available_until', None))
        if start and end and end <= start:
            raise serializers.ValidationError({'available_until': "Must be after available_from."})
        return attrs

class AssessmentListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Assessment
        fields = ['id', 'title', 'status', 'total_marks', 'passing_marks', 'duration_minutes', 'max_attempts']

class AssessmentDetailSerializer(AssessmentSerializer):
    """Detailed view for instructors, includes the answer key."""
    questions = QuestionSerializer(many=True, read_only=True)
    class Meta(AssessmentSerializer.Meta):
        fields = AssessmentSerializer.Meta.fields + ['questions']
