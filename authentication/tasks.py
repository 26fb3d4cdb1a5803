# authentication/tasks.py - device session housekeeping

from celery import shared_task
import logging

from authentication.utils.session_utils import purge_stale_sessions

logger = logging.getLogger(__name__)


@shared_task(name='authentication.purge_stale_sessions')
def purge_sessions_task():
    """
    Schedule: Daily at 3:00 AM
    """
    counts = purge_stale_sessions()
    logger.info(
        f"TASK: purge_stale_sessions - {counts['expired']} expired and "
        f"{counts['revoked']} revoked sessions deleted"
    )
    return counts
