from django.urls import path
from .views import (
    ActiveExamsView, ExamHistoryView, ExamPaperView, StartExamView, ExamProgressView,
    ExamSummaryView, QuestionDetailView, QuestionAnswerView, QuestionMarkView,
    SubmitExamView, AutoSubmitExamView, ExamResultView,
)

urlpatterns = [
    # --- Student Dashboard ---
    path('exams/active/', ActiveExamsView.as_view(), name='active-exams'),
    path('exams/history/', ExamHistoryView.as_view(), name='exam-history'),

    # --- Student Exam Flow ---
    path('exams/<int:exam_id>/paper/', ExamPaperView.as_view(), name='exam-paper'),
    path('exams/<int:exam_id>/start/', StartExamView.as_view(), name='start-exam'),
    path('exams/<int:exam_id>/progress/', ExamProgressView.as_view(), name='exam-progress'),
    path('exams/<int:exam_id>/summary/', ExamSummaryView.as_view(), name='exam-summary'),
    path('exams/<int:exam_id>/submit/', SubmitExamView.as_view(), name='submit-exam'),
    path('exams/<int:exam_id>/auto-submit/', AutoSubmitExamView.as_view(), name='auto-submit-exam'),
    path('exams/<int:exam_id>/results/', ExamResultView.as_view(), name='exam-results'),

    # --- Per-question actions ---
    path('exams/<int:exam_id>/questions/<int:question_id>/', QuestionDetailView.as_view(), name='exam-question'),
    path('exams/<int:exam_id>/questions/<int:question_id>/answer/', QuestionAnswerView.as_view(), name='question-answer'),
    path('exams/<int:exam_id>/questions/<int:question_id>/mark/', QuestionMarkView.as_view(), name='question-mark'),
]
