from rest_framework import serializers

from assessments.serializers import AssessmentListSerializer
from users.serializers import LearnerSerializer
from .deadline import remaining_seconds
from .lifecycle import question_sequence
from .models import Submission, Answer
from .workbench import manual_answers


def _reveal_score(submission):
    return submission.assessment.show_score_immediately or submission.status == Submission.Status.GRADED


def _reveal_answers(submission):
    return submission.assessment.show_correct_answers and submission.is_closed_to_learner


class AnswerSerializer(serializers.ModelSerializer):
    """A learner's saved answer; grading fields are hidden while results are withheld."""

    class Meta:
        model = Answer
        fields = [
            'id', 'question', 'selected_option', 'text_answer', 'file_url',
            'is_correct', 'marks_obtained', 'grader_feedback', 'graded_at', 'answered_at'
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        submission = self.context.get('submission') or instance.submission
        if not _reveal_score(submission):
            for field in ('marks_obtained', 'grader_feedback', 'graded_at'):
                data.pop(field, None)
        if not _reveal_answers(submission):
            data.pop('is_correct', None)
        return data


class AnswerWriteSerializer(serializers.Serializer):
    selected_option_id = serializers.IntegerField(required=False, allow_null=True)
    text_answer = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)
    file_url = serializers.URLField(required=False, allow_null=True, allow_blank=True, max_length=500)


class FinalAnswerSerializer(AnswerWriteSerializer):
    question_id = serializers.IntegerField()


class SubmitAttemptSerializer(serializers.Serializer):
    answers = FinalAnswerSerializer(many=True, required=False)


class SubmissionSerializer(serializers.ModelSerializer):
    """Lightweight serializer for lists / dashboard history."""
    assessment = AssessmentListSerializer(read_only=True)
    time_remaining_seconds = serializers.SerializerMethodField()

    class Meta:
        model = Submission
        fields = [
            'id', 'assessment', 'attempt_number', 'status', 'started_at', 'submitted_at',
            'submit_trigger', 'time_spent_seconds', 'time_remaining_seconds',
            'total_score', 'percentage', 'passed', 'manually_graded_at'
        ]
        read_only_fields = fields

    def get_time_remaining_seconds(self, obj):
        return remaining_seconds(obj, now=self.context.get('now'))

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not _reveal_score(instance):
            for field in ('total_score', 'percentage', 'passed'):
                data[field] = None
            data['results_pending'] = True
        return data


class AttemptSerializer(SubmissionSerializer):
    """Heavy serializer for taking or reviewing an attempt. Includes QUESTIONS in their frozen order."""
    questions = serializers.SerializerMethodField()
    answers = serializers.SerializerMethodField()

    class Meta(SubmissionSerializer.Meta):
        fields = SubmissionSerializer.Meta.fields + ['questions', 'answers']
        read_only_fields = fields

    def get_questions(self, obj):
        reveal = _reveal_answers(obj)
        questions = []
        for position, (question, options) in enumerate(question_sequence(obj), start=1):
            item = {
                'id': question.id,
                'position': position,
                'question_text': question.text,
                'question_type': question.question_type,
                'case_study_content': question.case_study_content,
                'marks': str(question.marks),
                'is_required': question.is_required,
                'options': [{'id': o.id, 'text': o.text} for o in options],
            }
            if reveal:
                item['explanation'] = question.explanation
                for payload, option in zip(item['options'], options):
                    payload['is_correct'] = option.is_correct
            questions.append(item)
        return questions

    def get_answers(self, obj):
        answers = obj.answers.all()
        return AnswerSerializer(answers, many=True, context={'submission': obj}).data


# --- Grading workbench ---

class GradingAnswerSerializer(serializers.ModelSerializer):
    question_text = serializers.CharField(source='question.text', read_only=True)
    question_type = serializers.CharField(source='question.question_type', read_only=True)
    max_marks = serializers.DecimalField(source='question.marks', max_digits=6, decimal_places=2, read_only=True)
    grading_rubric = serializers.CharField(source='question.grading_rubric', read_only=True)
    auto_gradable = serializers.BooleanField(source='question.auto_gradable', read_only=True)
    selected_option_text = serializers.CharField(source='selected_option.text', read_only=True, default=None)

    class Meta:
        model = Answer
        fields = [
            'id', 'question', 'question_text', 'question_type', 'max_marks', 'grading_rubric',
            'auto_gradable', 'selected_option', 'selected_option_text', 'text_answer', 'file_url',
            'is_correct', 'marks_obtained', 'auto_graded', 'grader_feedback', 'graded_at', 'graded_by'
        ]
        read_only_fields = fields


class GradingSubmissionSerializer(serializers.ModelSerializer):
    user = LearnerSerializer(read_only=True)
    answers = serializers.SerializerMethodField()
    pending_answers = serializers.SerializerMethodField()

    class Meta:
        model = Submission
        fields = [
            'id', 'user', 'attempt_number', 'status', 'submitted_at', 'submit_trigger',
            'time_spent_seconds', 'total_score', 'percentage', 'passed', 'manually_graded_at',
            'graded_by', 'grader_comments', 'pending_answers', 'answers'
        ]
        read_only_fields = fields

    def get_answers(self, obj):
        # Auto-graded answers are final; only the rest need a grader
        return GradingAnswerSerializer(manual_answers(obj), many=True).data

    def get_pending_answers(self, obj):
        return sum(1 for answer in obj.answers.all() if answer.marks_obtained is None)


class GradeAnswerSerializer(serializers.Serializer):
    marks = serializers.DecimalField(max_digits=6, decimal_places=2)
    feedback = serializers.CharField(required=False, allow_blank=True, default='')


class GradeItemSerializer(GradeAnswerSerializer):
    answer_id = serializers.IntegerField()


class GradeSubmissionSerializer(serializers.Serializer):
    # Expects a list of { "answer_id": 1, "marks": 5, "feedback": "..." }
    grades = GradeItemSerializer(many=True)
    comments = serializers.CharField(required=False, allow_blank=True)
