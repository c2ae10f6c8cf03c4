# examhall/exams/serializers.py
from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from .models import Exam, Question, Option

User = get_user_model()

# --- Helper Serializers ---

class OptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Option
        fields = ['id', 'text', 'is_correct']


def replace_options(question, options_text, correct_answers):
    """Rebuild a question's options; an option is correct when its text is in correct_answers."""
    correct = {c.strip().lower() for c in correct_answers}
    question.options.all().delete()
    for index, opt_text in enumerate(options_text):
        clean_text = opt_text.strip()
        if clean_text:
            Option.objects.create(
                question=question,
                text=clean_text,
                is_correct=clean_text.lower() in correct,
                order=index,
            )

# --- Question Serializers (authoring) ---

class QuestionSerializer(serializers.ModelSerializer):
    # Map frontend 'question_text' to backend 'text'
    question_text = serializers.CharField(source='text')
    # Options and the correct subset arrive as plain strings
    options = serializers.ListField(child=serializers.CharField(), required=False, write_only=True)
    correct_answers = serializers.ListField(child=serializers.CharField(), required=False, write_only=True)
    options_data = OptionSerializer(source='options', many=True, read_only=True)

    exam_title = serializers.CharField(source='exam.title', read_only=True)

    class Meta:
        model = Question
        fields = [
            'id', 'exam', 'exam_title', 'question_text', 'question_type',
            'difficulty', 'marks', 'explanation', 'order',
            'options', 'correct_answers', 'options_data',
        ]
        read_only_fields = ['exam']

    def validate(self, attrs):
        q_type = attrs.get('question_type', getattr(self.instance, 'question_type', Question.QuestionType.MCQ))
        if q_type == Question.QuestionType.TEXT:
            return attrs

        options = attrs.get('options')
        correct = attrs.get('correct_answers')
        if self.instance is None or options is not None or correct is not None:
            if options is None:
                options = [o.text for o in self.instance.options.all()] if self.instance else []
            if correct is None:
                correct = self.instance.correct_answers if self.instance else []
            if not options:
                raise serializers.ValidationError({'options': 'Choice questions need options.'})
            cleaned = [o.strip().lower() for o in options if o.strip()]
            if len(cleaned) != len(set(cleaned)):
                raise serializers.ValidationError({'options': 'Options must differ by more than letter case.'})
            if not correct:
                raise serializers.ValidationError({'correct_answers': 'Choice questions need a correct answer.'})
            lowered = {o.strip().lower() for o in options}
            if any(c.strip().lower() not in lowered for c in correct):
                raise serializers.ValidationError({'correct_answers': 'Every correct answer must be one of the options.'})
            if q_type == Question.QuestionType.MCQ and len(correct) != 1:
                raise serializers.ValidationError({'correct_answers': 'A multiple choice question has exactly one correct answer.'})
            attrs['options'] = options
            attrs['correct_answers'] = correct
        return attrs

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['correct_answers'] = instance.correct_answers
        return data

    def create(self, validated_data):
        options_text = validated_data.pop('options', [])
        correct = validated_data.pop('correct_answers', [])
        question = Question.objects.create(**validated_data)
        if question.question_type != Question.QuestionType.TEXT:
            replace_options(question, options_text, correct)
        return question

    def update(self, instance, validated_data):
        options_text = validated_data.pop('options', None)
        correct = validated_data.pop('correct_answers', None)
        question = super().update(instance, validated_data)
        if question.question_type == Question.QuestionType.TEXT:
            question.options.all().delete()
        elif options_text is not None:
            replace_options(question, options_text, correct)
        return question

# --- Exam Serializers (authoring) ---

class ExamSerializer(serializers.ModelSerializer):
    allowed_users = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), many=True, required=False)
    questions = QuestionSerializer(many=True, required=False, write_only=True)

    # Read-only counts
    total_questions = serializers.IntegerField(source='questions.count', read_only=True)
    created_by = serializers.CharField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'description', 'instructions',
            'total_marks', 'passing_marks', 'duration_minutes',
            'start_date', 'end_date', 'max_attempts', 'allowed_users',
            'status', 'created_by', 'created_at', 'total_questions', 'questions',
        ]
        read_only_fields = ['created_at']

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and start >= end:
            raise serializers.ValidationError({'end_date': 'The exam must end after it starts.'})
        if attrs.get('passing_marks') is not None and attrs['passing_marks'] > 100:
            raise serializers.ValidationError({'passing_marks': 'Passing marks is a percentage (0-100).'})
        if attrs.get('max_attempts') == 0:
            raise serializers.ValidationError({'max_attempts': 'An exam allows at least one attempt.'})
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        questions = validated_data.pop('questions', [])
        allowed = validated_data.pop('allowed_users', [])

        exam = Exam.objects.create(**validated_data)
        exam.allowed_users.set(allowed)

        for index, q_data in enumerate(questions):
            q_data = dict(q_data)
            q_data.setdefault('order', index)
            QuestionSerializer().create({**q_data, 'exam': exam})
        return exam

    def update(self, instance, validated_data):
        # Questions are edited through their own endpoints
        validated_data.pop('questions', None)
        return super().update(instance, validated_data)

class ExamListSerializer(serializers.ModelSerializer):
    total_questions = serializers.IntegerField(source='questions.count', read_only=True)

    class Meta:
        model = Exam
        fields = ['id', 'title', 'status', 'duration_minutes', 'total_marks', 'start_date', 'end_date', 'total_questions']

# --- Taker Serializers (never expose answers) ---

class TakerQuestionSerializer(serializers.ModelSerializer):
    options = serializers.SerializerMethodField()

    class Meta:
        model = Question
        fields = ['id', 'text', 'question_type', 'options', 'marks', 'difficulty', 'order']

    def get_options(self, obj):
        return [option.text for option in obj.options.all()]

class TakerExamSerializer(serializers.ModelSerializer):
    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'description', 'instructions', 'duration_minutes',
            'total_marks', 'passing_marks', 'start_date', 'end_date', 'max_attempts',
        ]
