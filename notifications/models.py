from django.contrib.auth.models import User
from django.db import models


class Notification(models.Model):
    """In-app notification about sol activity"""

    NOTIFICATION_TYPE_CHOICES = [
        ('sol_created', 'Sol Created'),
        ('participant_joined', 'Participant Joined'),
        ('sol_started', 'Sol Started'),
        ('payment_received', 'Payment Received'),
        ('round_completed', 'Round Completed'),
        ('payout_distributed', 'Payout Distributed'),
        ('payment_due', 'Payment Due'),
        ('payment_overdue', 'Payment Overdue'),
        ('participant_left', 'Participant Left'),
        ('sol_completed', 'Sol Completed'),
        ('sol_cancelled', 'Sol Cancelled'),
        ('sol_paused', 'Sol Paused'),
        ('sol_resumed', 'Sol Resumed'),
        ('system', 'System'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('urgent', 'Urgent'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    sol = models.ForeignKey('sols.Sol', on_delete=models.CASCADE, related_name='notifications', null=True, blank=True)

    notification_type = models.CharField(max_length=30, choices=NOTIFICATION_TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    data = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notif_user_read_idx'),
            models.Index(fields=['created_at'], name='notif_created_idx'),
        ]

    def __str__(self):
        return f"{self.user.username} - {self.title}"
