from rest_framework import serializers

from exams.models import Question
from exams.serializers import TakerExamSerializer, TakerQuestionSerializer
from .models import ExamAttempt, StudentAnswer

# --- Request payloads ---

class ProgressSerializer(serializers.Serializer):
    current_question = serializers.IntegerField(min_value=0, required=False)
    answers = serializers.DictField(child=serializers.JSONField(allow_null=True), required=False)
    time_remaining = serializers.IntegerField(min_value=0, required=False)

class AnswerSerializer(serializers.Serializer):
    answer = serializers.JSONField(allow_null=True)

class ExamSubmitSerializer(serializers.Serializer):
    answers = serializers.DictField(child=serializers.JSONField(allow_null=True), required=False, default=dict)
    time_taken = serializers.IntegerField(min_value=0, required=False, allow_null=True)

# --- Responses ---

class ScoreSummarySerializer(serializers.Serializer):
    attempt_id = serializers.UUIDField()
    score = serializers.DecimalField(max_digits=6, decimal_places=2)
    total_marks = serializers.IntegerField()
    obtained_marks = serializers.IntegerField()
    passing_marks = serializers.IntegerField()
    passed = serializers.BooleanField()
    time_taken = serializers.IntegerField()
    submitted_at = serializers.DateTimeField()
    correct_answers = serializers.IntegerField()

class OpenAttemptSerializer(serializers.ModelSerializer):
    progress = serializers.SerializerMethodField()

    class Meta:
        model = ExamAttempt
        fields = ['id', 'status', 'started_at', 'progress']

    def get_progress(self, obj):
        return obj.progress_snapshot()

class ExamPaperSerializer(serializers.Serializer):
    """Heavy payload for taking the exam: header, stripped questions and any open attempt."""
    exam = serializers.SerializerMethodField()
    questions = TakerQuestionSerializer(many=True)
    existing_attempt = OpenAttemptSerializer(source='open_attempt', allow_null=True)
    time_remaining = serializers.IntegerField()

    def get_exam(self, obj):
        data = TakerExamSerializer(obj.exam).data
        data['attempts_used'] = obj.attempts_used
        return data

class ExamAttemptSerializer(serializers.ModelSerializer):
    """Lightweight serializer for dashboard history."""
    exam_id = serializers.IntegerField(source='exam.id', read_only=True)
    exam_title = serializers.CharField(source='exam.title', read_only=True)
    total_marks = serializers.IntegerField(source='exam.total_marks', read_only=True)
    duration_minutes = serializers.IntegerField(source='exam.duration_minutes', read_only=True)
    date = serializers.SerializerMethodField()

    class Meta:
        model = ExamAttempt
        fields = ['id', 'exam_id', 'exam_title', 'percentage', 'total_marks', 'status', 'date', 'time_taken', 'duration_minutes']

    def get_date(self, obj):
        moment = obj.submitted_at or obj.started_at
        return serializers.DateTimeField().to_representation(moment)

class ReviewQuestionSerializer(TakerQuestionSerializer):
    class Meta(TakerQuestionSerializer.Meta):
        model = Question
        fields = TakerQuestionSerializer.Meta.fields + ['explanation']

class StudentAnswerSerializer(serializers.ModelSerializer):
    question = ReviewQuestionSerializer(read_only=True)
    user_answer = serializers.JSONField(source='answer', read_only=True)
    marks_obtained = serializers.IntegerField(source='awarded_marks', read_only=True)

    class Meta:
        model = StudentAnswer
        fields = ['question', 'user_answer', 'is_correct', 'marks_obtained']

class AttemptResultSerializer(serializers.Serializer):
    exam = serializers.SerializerMethodField()
    score = serializers.SerializerMethodField()
    timing = serializers.SerializerMethodField()
    answers = StudentAnswerSerializer(many=True)
    statistics = serializers.DictField(child=serializers.IntegerField())

    def get_exam(self, obj):
        return {
            "id": obj.exam.id,
            "title": obj.exam.title,
            "description": obj.exam.description,
            "total_marks": obj.exam.total_marks,
            "passing_marks": obj.exam.passing_marks,
            "duration_minutes": obj.exam.duration_minutes,
        }

    def get_score(self, obj):
        return {
            "percentage": serializers.DecimalField(max_digits=6, decimal_places=2).to_representation(obj.attempt.percentage),
            "obtained_marks": obj.attempt.marks_obtained,
            "total_marks": obj.exam.total_marks,
            # stored at submission, never recomputed
            "passed": obj.attempt.passed,
        }

    def get_timing(self, obj):
        to_repr = serializers.DateTimeField().to_representation
        return {
            "started_at": to_repr(obj.attempt.started_at),
            "submitted_at": to_repr(obj.attempt.submitted_at),
            "time_taken": obj.attempt.time_taken,
        }

class ActiveExamSerializer(serializers.Serializer):
    """(exam, latest attempt or None) pairs from the lifecycle."""

    def to_representation(self, instance):
        exam, attempt = instance
        data = TakerExamSerializer(exam).data
        data.update({
            "attempted": attempt is not None,
            "attempt_status": attempt.status if attempt else "not_attempted",
            "score": (
                serializers.DecimalField(max_digits=6, decimal_places=2).to_representation(attempt.percentage)
                if attempt is not None and attempt.percentage is not None else None
            ),
        })
        return data

class CandidateResultSerializer(serializers.ModelSerializer):
    """One completed attempt in an examiner's results listing."""
    user = serializers.SerializerMethodField()
    score = serializers.DecimalField(source='percentage', max_digits=6, decimal_places=2, read_only=True)
    total_marks = serializers.IntegerField(source='exam.total_marks', read_only=True)

    class Meta:
        model = ExamAttempt
        fields = ['id', 'user', 'score', 'marks_obtained', 'total_marks', 'passed', 'time_taken', 'submitted_at']

    def get_user(self, obj):
        return {
            "id": obj.user_id,
            "email": obj.user.email,
            "username": obj.user.username,
            "full_name": obj.user.get_full_name(),
        }
