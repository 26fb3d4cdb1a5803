from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone
import uuid


class UserSession(models.Model):
    """
    One signed-in device. The refresh token currently valid for the session is
    identified by `refresh_jti`; rotating the token replaces the jti.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='device_sessions')

    device_id = models.CharField(max_length=32, db_index=True)
    user_agent = models.CharField(max_length=255, blank=True)
    ip_address = models.CharField(max_length=64, blank=True)

    refresh_jti = models.CharField(max_length=64, unique=True)
    refresh_expires_at = models.DateTimeField()
    token_version = models.PositiveIntegerField(default=1)

    is_active = models.BooleanField(default=True)
    revoked_at = models.DateTimeField(null=True, blank=True)
    revoke_reason = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    last_activity = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-last_activity']
        indexes = [
            models.Index(fields=['user', 'is_active'], name='auth_session_user_active_idx'),
            models.Index(fields=['refresh_expires_at'], name='auth_session_expiry_idx'),
        ]

    def __str__(self):
        return f"{self.user.username} - {self.device_id} ({'active' if self.is_active else 'revoked'})"

    @property
    def is_expired(self):
        return self.refresh_expires_at <= timezone.now()

    def revoke(self, reason='logout'):
        self.is_active = False
        self.revoked_at = timezone.now()
        self.revoke_reason = reason
        self.save(update_fields=['is_active', 'revoked_at', 'revoke_reason'])
