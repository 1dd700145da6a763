from django.contrib import admin

# Register your models here.
from .models import Assessment, Question, Option


class OptionInline(admin.TabularInline):
    model = Option
    extra = 0


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ('__str__', 'assessment', 'question_type', 'marks', 'sort_order')
    list_filter = ('question_type',)
    inlines = [OptionInline]


@admin.register(Assessment)
class AssessmentAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'total_marks', 'passing_marks', 'duration_minutes', 'max_attempts')
    list_filter = ('status',)
