from django.contrib import admin

from .models import Submission, Answer


class AnswerInline(admin.TabularInline):
    model = Answer
    extra = 0
    readonly_fields = ('question', 'selected_option', 'text_answer', 'file_url', 'is_correct', 'auto_graded', 'answered_at')


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'assessment', 'attempt_number', 'status', 'total_score', 'passed', 'submitted_at')
    list_filter = ('status', 'submit_trigger')
    readonly_fields = ('question_order', 'option_order', 'shuffle_seed', 'started_at', 'submitted_at')
    inlines = [AnswerInline]
