from django.urls import path
from .views import (
    AdminStatsView,
    AttemptDetailView,
    GradeAnswerView,
    GradingSubmissionListView,
    SaveAnswerView,
    StartAttemptView,
    StudentAttemptsView,
    SubmitAttemptView,
    SubmitGradesView,
)

urlpatterns = [
    # --- Learner attempt flow ---
    path('assessments/<int:assessment_id>/start/', StartAttemptView.as_view(), name='start-attempt'),
    path('attempts/', StudentAttemptsView.as_view(), name='student-attempts'),
    path('attempts/<int:pk>/', AttemptDetailView.as_view(), name='attempt-detail'),
    path('attempts/<int:pk>/answers/<int:question_id>/', SaveAnswerView.as_view(), name='attempt-save-answer'),
    path('attempts/<int:pk>/submit/', SubmitAttemptView.as_view(), name='attempt-submit'),

    # --- Grading workbench ---
    path('grading/assessments/<int:assessment_id>/submissions/', GradingSubmissionListView.as_view(), name='grading-submissions'),
    path('grading/answers/<int:answer_id>/', GradeAnswerView.as_view(), name='grading-answer'),
    path('grading/submissions/<int:submission_id>/', SubmitGradesView.as_view(), name='grading-submit'),

    # --- Admin dashboard ---
    path('admin/stats/', AdminStatsView.as_view(), name='admin-stats'),
]
