from rest_framework import permissions, status, views
from rest_framework.response import Response

from cores.models import AuditLog
from exams.serializers import TakerQuestionSerializer
from .errors import ErrorKind
from .lifecycle import AttemptLifecycle
from .serializers import (
    ProgressSerializer, AnswerSerializer, ExamSubmitSerializer, ScoreSummarySerializer,
    ExamPaperSerializer, ExamAttemptSerializer, AttemptResultSerializer, ActiveExamSerializer,
)

ERROR_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NOT_ELIGIBLE: status.HTTP_403_FORBIDDEN,
    ErrorKind.NO_ACTIVE_ATTEMPT: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_FINALIZED: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(outcome):
    error = outcome.error
    return Response({"error": error.message, "code": error.kind.value}, status=ERROR_STATUS[error.kind])


class AttemptView(views.APIView):
    """Base for candidate endpoints; each request gets a lifecycle bound to the database."""
    permission_classes = [permissions.IsAuthenticated]

    def get_lifecycle(self):
        return AttemptLifecycle()


# --- STUDENT VIEWS ---

class ActiveExamsView(AttemptView):
    def get(self, request):
        outcome = self.get_lifecycle().active_exams(request.user.id)
        if not outcome.ok:
            return error_response(outcome)
        data = ActiveExamSerializer(outcome.value, many=True).data
        return Response({"exams": data, "count": len(data)})


class ExamHistoryView(AttemptView):
    def get(self, request):
        outcome = self.get_lifecycle().history(request.user.id)
        if not outcome.ok:
            return error_response(outcome)
        data = ExamAttemptSerializer(outcome.value, many=True).data
        return Response({"history": data, "count": len(data)})


class ExamPaperView(AttemptView):
    """Exam header and questions for a candidate, without answers."""

    def get(self, request, exam_id):
        outcome = self.get_lifecycle().get_paper(request.user.id, exam_id)
        if not outcome.ok:
            return error_response(outcome)
        return Response(ExamPaperSerializer(outcome.value).data)


class StartExamView(AttemptView):
    """
    Student starts an exam.
    Resumes the open attempt when there is one.
    """

    def post(self, request, exam_id):
        outcome = self.get_lifecycle().start(request.user.id, exam_id)
        if not outcome.ok:
            return error_response(outcome)

        started = outcome.value
        attempt = started.attempt
        if started.created:
            AuditLog.record(request.user, 'START', 'ExamAttempt', attempt.pk, f"Started exam {exam_id}", request)

        return Response(
            {
                "attempt_id": str(attempt.pk),
                "status": attempt.status,
                "time_remaining_seconds": started.time_remaining_seconds,
                "resumed": not started.created,
                "progress": attempt.progress_snapshot(),
            },
            status=status.HTTP_201_CREATED if started.created else status.HTTP_200_OK,
        )


class ExamProgressView(AttemptView):
    def get(self, request, exam_id):
        outcome = self.get_lifecycle().get_progress(request.user.id, exam_id)
        if not outcome.ok:
            return error_response(outcome)
        progress = outcome.value
        if progress is not None:
            progress['attempt_id'] = str(progress['attempt_id'])
        return Response({"progress": progress})

    def post(self, request, exam_id):
        serializer = ProgressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        outcome = self.get_lifecycle().save_progress(request.user.id, exam_id, **serializer.validated_data)
        if not outcome.ok:
            return error_response(outcome)
        return Response({"status": "Progress saved successfully"})


class ExamSummaryView(AttemptView):
    def get(self, request, exam_id):
        outcome = self.get_lifecycle().summary(request.user.id, exam_id)
        if not outcome.ok:
            return error_response(outcome)
        summary = dict(outcome.value)
        exam = summary.pop('exam')
        summary['exam'] = {
            "id": exam.id,
            "title": exam.title,
            "total_marks": exam.total_marks,
            "duration_minutes": exam.duration_minutes,
        }
        return Response({"summary": summary})


class QuestionDetailView(AttemptView):
    def get(self, request, exam_id, question_id):
        outcome = self.get_lifecycle().get_question(request.user.id, exam_id, question_id)
        if not outcome.ok:
            return error_response(outcome)
        return Response(TakerQuestionSerializer(outcome.value).data)


class QuestionAnswerView(AttemptView):
    def post(self, request, exam_id, question_id):
        serializer = AnswerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        outcome = self.get_lifecycle().save_answer(
            request.user.id, exam_id, question_id, serializer.validated_data['answer']
        )
        if not outcome.ok:
            return error_response(outcome)
        return Response({"status": "Answer saved successfully"})

    def delete(self, request, exam_id, question_id):
        outcome = self.get_lifecycle().clear_answer(request.user.id, exam_id, question_id)
        if not outcome.ok:
            return error_response(outcome)
        return Response({"status": "Answer cleared successfully", "cleared": outcome.value})


class QuestionMarkView(AttemptView):
    def post(self, request, exam_id, question_id):
        outcome = self.get_lifecycle().toggle_mark(request.user.id, exam_id, question_id)
        if not outcome.ok:
            return error_response(outcome)
        return Response({"status": "Question mark status updated", "marked": outcome.value})


class SubmitExamView(AttemptView):
    """
    Student submits answers.
    Scores choice questions immediately.
    """

    def post(self, request, exam_id):
        serializer = ExamSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        outcome = self.get_lifecycle().submit(
            request.user.id,
            exam_id,
            answers=serializer.validated_data['answers'],
            time_taken=serializer.validated_data.get('time_taken'),
        )
        if not outcome.ok:
            return error_response(outcome)

        summary = outcome.value
        AuditLog.record(request.user, 'SUBMIT', 'ExamAttempt', summary.attempt_id, f"Submitted attempt {summary.attempt_id}", request)
        return Response({"status": "Exam submitted successfully", "results": ScoreSummarySerializer(summary).data})


class AutoSubmitExamView(AttemptView):
    def post(self, request, exam_id):
        outcome = self.get_lifecycle().auto_submit(request.user.id, exam_id)
        if not outcome.ok:
            return error_response(outcome)

        summary = outcome.value
        AuditLog.record(request.user, 'AUTO_SUBMIT', 'ExamAttempt', summary.attempt_id, f"Auto-submitted attempt {summary.attempt_id}", request)
        return Response({
            "status": "Exam auto-submitted due to time expiration",
            "results": ScoreSummarySerializer(summary).data,
        })


class ExamResultView(AttemptView):
    def get(self, request, exam_id):
        outcome = self.get_lifecycle().get_results(request.user.id, exam_id)
        if not outcome.ok:
            return error_response(outcome)
        return Response({"results": AttemptResultSerializer(outcome.value).data})
