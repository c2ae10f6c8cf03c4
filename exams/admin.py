from django.contrib import admin

from .models import Exam, Question, Option


class OptionInline(admin.TabularInline):
    model = Option
    extra = 0


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ('text', 'exam', 'question_type', 'marks', 'order')
    list_filter = ('question_type', 'difficulty')
    inlines = [OptionInline]


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'start_date', 'end_date', 'max_attempts')
    list_filter = ('status',)
    filter_horizontal = ('allowed_users',)
