from datetime import timedelta

from django.db import transaction
from django.utils import timezone
import logging

from .models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates and manages in-app notifications"""

    @staticmethod
    def notify(user, notification_type, title, message, sol=None, priority='medium', data=None):
        """
        Create a notification for a user.

        Delivery never interrupts the calling operation: a failure is logged
        and None returned. The insert runs in its own savepoint so a failure
        leaves an enclosing transaction usable.
        """
        try:
            with transaction.atomic():
                return Notification.objects.create(
                    user=user,
                    sol=sol,
                    notification_type=notification_type,
                    title=title,
                    message=message,
                    priority=priority,
                    data=data or {},
                )
        except Exception as e:
            logger.error(f"Failed to create {notification_type} notification for {user}: {str(e)}")
            return None

    @staticmethod
    def notify_many(users, notification_type, title, message, sol=None, priority='medium', data=None, exclude=None):
        exclude_id = exclude.pk if exclude is not None else None
        created = 0
        for user in users:
            if user.pk == exclude_id:
                continue
            if NotificationService.notify(user, notification_type, title, message, sol=sol,
                                          priority=priority, data=data):
                created += 1
        return created

    @staticmethod
    def mark_as_read(user, notification_id):
        """Returns True when the notification exists and belongs to `user`"""
        updated = Notification.objects.filter(pk=notification_id, user=user, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )
        return updated > 0 or Notification.objects.filter(pk=notification_id, user=user).exists()

    @staticmethod
    def mark_all_as_read(user):
        return Notification.objects.filter(user=user, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )

    @staticmethod
    def cleanup(retention_days):
        """Delete read notifications older than `retention_days`"""
        cutoff = timezone.now() - timedelta(days=retention_days)
        deleted, _ = Notification.objects.filter(is_read=True, created_at__lt=cutoff).delete()
        return deleted


def notification_to_dict(notification):
    return {
        'id': notification.pk,
        'type': notification.notification_type,
        'title': notification.title,
        'message': notification.message,
        'priority': notification.priority,
        'sol_id': notification.sol_id,
        'data': notification.data,
        'is_read': notification.is_read,
        'read_at': notification.read_at.isoformat() if notification.read_at else None,
        'created_at': notification.created_at.isoformat(),
    }
