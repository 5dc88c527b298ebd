from django.db import models
from django.conf import settings


class Notification(models.Model):
    """Message delivered to a user by the notification sink."""
    KIND_CHOICES = [
        ('system', 'System'),
        ('move_completed', 'Move Completed'),
        ('review', 'Review'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    kind = models.CharField(max_length=20, choices=KIND_CHOICES, default='system')
    title = models.CharField(max_length=120)
    body = models.TextField(blank=True)
    data = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']

    def __str__(self):
        return f"Notification #{self.id} -> {self.user_id}: {self.title}"
