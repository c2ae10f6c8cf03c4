from django.contrib import admin

from .models import ExamAttempt, StudentAnswer


class StudentAnswerInline(admin.TabularInline):
    model = StudentAnswer
    extra = 0
    readonly_fields = ('question', 'answer', 'is_correct', 'awarded_marks')


@admin.register(ExamAttempt)
class ExamAttemptAdmin(admin.ModelAdmin):
    list_display = ('user', 'exam', 'status', 'started_at', 'submitted_at', 'percentage', 'passed')
    list_filter = ('status', 'passed')
    readonly_fields = ('marks_obtained', 'percentage', 'passed', 'submitted_at', 'time_taken')
    inlines = [StudentAnswerInline]
