from datetime import datetime, time

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from rest_framework import viewsets, status, filters
from rest_framework.decorators import action
from rest_framework.response import Response

from assessments.serializers import CandidateResultSerializer
from assessments.store import AttemptStore
from cores.models import AuditLog
from users.permissions import IsExaminerOrAdmin
from .models import Exam, Question
from .serializers import ExamSerializer, ExamListSerializer, QuestionSerializer


def _submission_bound(raw, end_of_day=False):
    """Parse a ?date_from / ?date_to value; a bare date covers the whole day. None when malformed."""
    try:
        moment = parse_datetime(raw)
        if moment is None:
            day = parse_date(raw)
            if day is None:
                return None
            moment = datetime.combine(day, time.max if end_of_day else time.min)
    except ValueError:
        return None
    if timezone.is_naive(moment):
        moment = timezone.make_aware(moment)
    return moment


class ExamViewSet(viewsets.ModelViewSet):
    """Exam authoring for examiners and admins. Candidates use the attempt endpoints."""
    permission_classes = [IsExaminerOrAdmin]

    # Enable search on title
    filter_backends = [filters.SearchFilter]
    search_fields = ['title']

    def get_queryset(self):
        queryset = Exam.objects.all().order_by('-created_at')
        # Examiners only manage their own exams
        if not self.request.user.is_platform_admin:
            queryset = queryset.filter(created_by=self.request.user)
        status_filter = self.request.query_params.get('status')
        if status_filter and status_filter != 'all':
            queryset = queryset.filter(status=status_filter)
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return ExamListSerializer
        return ExamSerializer

    def perform_create(self, serializer):
        exam = serializer.save(created_by=self.request.user)
        AuditLog.record(self.request.user, 'CREATE', 'Exam', exam.pk, f"Created exam: {exam.title}", self.request)

    def perform_update(self, serializer):
        exam = serializer.save()
        AuditLog.record(self.request.user, 'UPDATE', 'Exam', exam.pk, f"Updated exam: {exam.title}", self.request)

    def destroy(self, request, *args, **kwargs):
        exam = self.get_object()
        if exam.attempts.exists():
            return Response(
                {"error": "Cannot delete exam with existing results. Archive it instead."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        AuditLog.record(request.user, 'DELETE', 'Exam', exam.pk, f"Deleted exam: {exam.title}", request)
        exam.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['get', 'post'], url_path='questions')
    def questions(self, request, pk=None):
        """
        GET lists every question of the exam, answers included.
        POST appends a question at the end of the exam.
        """
        exam = self.get_object()

        if request.method == 'GET':
            queryset = exam.questions.prefetch_related('options').order_by('order', 'id')
            return Response(QuestionSerializer(queryset, many=True).data)

        serializer = QuestionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        question = serializer.save(exam=exam, order=serializer.validated_data.get('order', exam.questions.count()))
        AuditLog.record(request.user, 'CREATE', 'Question', question.pk, f"Added question to {exam.title}", request)
        return Response(QuestionSerializer(question).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'], url_path='results')
    def results(self, request, pk=None):
        """Completed attempts for the exam, best score first."""
        exam = self.get_object()

        bounds = {}
        for param, key, end_of_day in (('date_from', 'submitted_from', False), ('date_to', 'submitted_to', True)):
            raw = request.query_params.get(param)
            if not raw:
                continue
            bounds[key] = _submission_bound(raw, end_of_day)
            if bounds[key] is None:
                return Response({"error": f"Invalid {param}, expected YYYY-MM-DD or an ISO datetime."}, status=status.HTTP_400_BAD_REQUEST)

        attempts = AttemptStore().completed_for_exam(exam.pk, **bounds)
        data = CandidateResultSerializer(attempts, many=True).data
        return Response({"exam": {"id": exam.id, "title": exam.title}, "results": data, "count": len(data)})


class QuestionViewSet(viewsets.ModelViewSet):
    serializer_class = QuestionSerializer
    permission_classes = [IsExaminerOrAdmin]
    http_method_names = ['get', 'put', 'patch', 'delete', 'head', 'options']

    # Enable Search and Filtering for the Question Bank
    filter_backends = [filters.SearchFilter]
    search_fields = ['text']

    def get_queryset(self):
        queryset = Question.objects.select_related('exam').prefetch_related('options').order_by('exam_id', 'order', 'id')
        if not self.request.user.is_platform_admin:
            queryset = queryset.filter(exam__created_by=self.request.user)
        # Filter by Exam if provided ?exam_id=1
        exam_id = self.request.query_params.get('exam_id')
        if exam_id:
            queryset = queryset.filter(exam_id=exam_id)
        return queryset

    def perform_update(self, serializer):
        question = serializer.save()
        AuditLog.record(self.request.user, 'UPDATE', 'Question', question.pk, f"Updated question in {question.exam.title}", self.request)

    def destroy(self, request, *args, **kwargs):
        question = self.get_object()
        if question.student_answers.exists():
            return Response(
                {"error": "Question has recorded answers and cannot be deleted."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        AuditLog.record(request.user, 'DELETE', 'Question', question.pk, f"Deleted question from {question.exam.title}", request)
        question.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
