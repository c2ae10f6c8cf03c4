from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ExamViewSet, QuestionViewSet

router = DefaultRouter()
router.register(r'manage/exams', ExamViewSet, basename='manage-exams')
router.register(r'manage/questions', QuestionViewSet, basename='manage-questions')

urlpatterns = [
    path('', include(router.urls)),
]
