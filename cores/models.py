from django.db import models
from django.conf import settings


class AuditLog(models.Model):
    ACTION_CHOICES = [
        ('CREATE', 'Create'),
        ('UPDATE', 'Update'),
        ('DELETE', 'Delete'),
        ('START', 'Attempt Started'),
        ('SUBMIT', 'Attempt Submitted'),
        ('AUTO_SUBMIT', 'Attempt Auto-Submitted'),
    ]

    actor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    target_model = models.CharField(max_length=50, help_text="e.g., Exam, Question, ExamAttempt")
    target_object_id = models.CharField(max_length=100, blank=True, null=True)
    details = models.TextField(blank=True, help_text="Description of changes")
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']

    @classmethod
    def record(cls, actor, action, target_model, target_id, details='', request=None):
        return cls.objects.create(
            actor=actor if getattr(actor, 'is_authenticated', False) else None,
            action=action,
            target_model=target_model,
            target_object_id=str(target_id),
            details=details,
            ip_address=request.META.get('REMOTE_ADDR') if request is not None else None,
        )

    def __str__(self):
        return f"{self.actor} - {self.action} - {self.timestamp}"
