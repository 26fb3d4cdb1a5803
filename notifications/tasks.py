"""
Celery tasks for notification housekeeping.
"""

from celery import shared_task
from constance import config
import logging

from .services import NotificationService

logger = logging.getLogger(__name__)


@shared_task(name='notifications.cleanup_notifications')
def cleanup_notifications():
    """
    Delete read notifications past the retention window.
    Runs weekly via Celery Beat.
    """
    try:
        deleted = NotificationService.cleanup(config.NOTIFICATION_RETENTION_DAYS)
        logger.info(f'Cleaned up {deleted} read notifications')
        return {'deleted': deleted}

    except Exception as e:
        logger.error(f'Error cleaning up notifications: {str(e)}')
        raise
