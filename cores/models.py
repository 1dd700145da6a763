from django.db import models
from django.conf import settings


class AuditLog(models.Model):
    ACTION_CHOICES = [
        ('CREATE', 'Create'),
        ('UPDATE', 'Update'),
        ('DELETE', 'Delete'),
        ('ATTEMPT_START', 'Attempt Started'),
        ('SUBMIT', 'Attempt Submitted'),
        ('AUTO_SUBMIT', 'Attempt Auto-Submitted'),
        ('ABANDON', 'Attempt Abandoned'),
        ('GRADE', 'Grade Submitted'),
    ]

    # Null actor means the system (deadline sweeper, timers)
    actor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='audit_logs')
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    target_model = models.CharField(max_length=50, help_text="e.g., Assessment, Submission")
    target_object_id = models.CharField(max_length=100, blank=True, null=True)
    details = models.TextField(blank=True, help_text="Description of changes")
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.actor or 'system'} - {self.action} - {self.timestamp}"
