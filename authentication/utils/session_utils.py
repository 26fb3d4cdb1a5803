"""
Session utility functions for SolSpace.
Handles device session listing, invalidation and cleanup.
"""

from datetime import timedelta
from django.utils import timezone

from authentication.models import UserSession


def invalidate_all_user_sessions(user, exclude_current=None, reason='logout_all'):
    """
    Revoke all active sessions of a user.

    Args:
        user: User object
        exclude_current: Session id to keep (current device)

    Usage:
        # Logout user from all devices
        invalidate_all_user_sessions(request.user)

        # Logout from all other devices (keep current)
        invalidate_all_user_sessions(request.user, request.auth_session.pk)
    """
    sessions = UserSession.objects.filter(user=user, is_active=True)
    if exclude_current:
        sessions = sessions.exclude(pk=exclude_current)

    return sessions.update(
        is_active=False,
        revoked_at=timezone.now(),
        revoke_reason=reason,
    )


def get_user_active_sessions(user, current_session_id=None):
    """
    Active sessions of a user with device metadata, most recent first.
    Useful for "Active Sessions" UI feature.
    """
    sessions = UserSession.objects.filter(
        user=user,
        is_active=True,
        refresh_expires_at__gt=timezone.now(),
    ).order_by('-last_activity')

    return [
        {
            'session_id': str(session.pk),
            'device_id': session.device_id,
            'user_agent': session.user_agent or 'Unknown',
            'ip_address': session.ip_address or 'Unknown',
            'login_time': session.created_at.isoformat(),
            'last_activity': session.last_activity.isoformat(),
            'expires_at': session.refresh_expires_at.isoformat(),
            'is_current': current_session_id is not None and str(session.pk) == str(current_session_id),
        }
        for session in sessions
    ]


def purge_stale_sessions(keep_revoked_days=30, dry_run=False):
    """
    Delete sessions whose refresh token expired, and sessions revoked more
    than `keep_revoked_days` ago. Recently revoked rows are kept so token
    reuse can still be traced to a device.

    Returns:
        {'expired': n, 'revoked': m} counts (that would be) deleted
    """
    now = timezone.now()
    expired = UserSession.objects.filter(refresh_expires_at__lt=now)
    revoked = UserSession.objects.filter(
        is_active=False,
        revoked_at__lt=now - timedelta(days=keep_revoked_days),
        refresh_expires_at__gte=now,
    )
    counts = {'expired': expired.count(), 'revoked': revoked.count()}
    if not dry_run:
        expired.delete()
        revoked.delete()
    return counts


def get_device_info(request):
    """User agent and client IP (considering proxy) of a request"""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR', '')

    return {
        'user_agent': request.META.get('HTTP_USER_AGENT', ''),
        'ip_address': ip or '',
    }
