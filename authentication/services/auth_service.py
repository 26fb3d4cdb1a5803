import logging

from constance import config
from django.contrib.auth import authenticate
from django.contrib.auth.models import User
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from authentication.exceptions import InvalidCredentials, UserAlreadyExists, SessionRevoked, TokenError
from authentication.models import UserSession
from .token_service import TokenService, generate_device_id

logger = logging.getLogger(__name__)


class AuthManager:
    """Registration, login and multi-device session handling"""

    def __init__(self, token_service=None):
        self.tokens = token_service or TokenService()

    @transaction.atomic
    def register(self, username, password, email='', first_name='', last_name='', device_info=None):
        if User.objects.filter(Q(username__iexact=username) | Q(email__iexact=email) & ~Q(email='')).exists():
            raise UserAlreadyExists()

        user = User.objects.create_user(
            username=username,
            password=password,
            email=email,
            first_name=first_name,
            last_name=last_name,
        )
        logger.info(f"Registered user {user.username}")
        return user, self.start_session(user, device_info or {})

    def login(self, username, password, device_info=None):
        user = authenticate(username=username, password=password)
        if user is None or not user.is_active:
            logger.warning(f"Failed login attempt for {username}")
            raise InvalidCredentials()
        return user, self.start_session(user, device_info or {})

    @transaction.atomic
    def start_session(self, user, device_info):
        """Open a device session, evicting the oldest beyond the per-user limit"""
        max_sessions = config.AUTH_MAX_SESSIONS
        active = list(
            UserSession.objects.select_for_update()
            .filter(user=user, is_active=True)
            .order_by('last_activity', 'created_at')
        )
        while len(active) >= max_sessions:
            oldest = active.pop(0)
            oldest.revoke('session_limit')
            logger.info(f"Evicted oldest session {oldest.pk} of {user.username}")

        session = UserSession.objects.create(
            user=user,
            device_id=generate_device_id(device_info),
            user_agent=device_info.get('user_agent', '')[:255],
            ip_address=device_info.get('ip_address', '')[:64],
            refresh_jti=self.tokens.new_refresh_jti(),
            refresh_expires_at=self.tokens.refresh_expiry(),
        )

        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])

        return self.tokens.generate_token_pair(user, session)

    def refresh(self, refresh_token):
        """
        Exchange a refresh token for a new pair.

        The presented token must carry the session's current jti; replaying an
        already rotated token revokes the whole session. Revocations commit
        before the error is raised.
        """
        payload = self.tokens.verify_refresh_token(refresh_token)

        failure = None
        with transaction.atomic():
            try:
                session = UserSession.objects.select_for_update().select_related('user').get(
                    pk=payload.get('session_id')
                )
            except (UserSession.DoesNotExist, ValueError):
                raise TokenError("Unknown session")

            if not session.is_active:
                raise SessionRevoked()

            if session.refresh_jti != payload.get('jti'):
                session.revoke('refresh_token_reuse')
                logger.warning(f"Refresh token reuse detected on session {session.pk}; session revoked")
                failure = SessionRevoked()
            elif session.is_expired:
                session.revoke('expired')
                failure = TokenError("Refresh token expired", expired=True)
            else:
                session.refresh_jti = self.tokens.new_refresh_jti()
                session.refresh_expires_at = self.tokens.refresh_expiry()
                session.token_version += 1
                session.last_activity = timezone.now()
                session.save(update_fields=['refresh_jti', 'refresh_expires_at', 'token_version', 'last_activity'])

        if failure is not None:
            raise failure
        return self.tokens.generate_token_pair(session.user, session)

    def logout(self, user, session_id):
        updated = UserSession.objects.filter(user=user, pk=session_id, is_active=True).update(
            is_active=False, revoked_at=timezone.now(), revoke_reason='logout'
        )
        return updated

    def logout_all(self, user, exclude_session_id=None):
        from authentication.utils.session_utils import invalidate_all_user_sessions
        return invalidate_all_user_sessions(user, exclude_current=exclude_session_id)

    def authenticate_access_token(self, token):
        """
        Resolve an access token to (user, session).

        Raises:
            TokenError / SessionRevoked
        """
        payload = self.tokens.verify_access_token(token)
        try:
            session = UserSession.objects.select_related('user').get(pk=payload.get('session_id'))
        except (UserSession.DoesNotExist, ValueError):
            raise TokenError("Unknown session")

        if not session.is_active or not session.user.is_active:
            raise SessionRevoked()
        if str(session.user.pk) != str(payload.get('user_id')):
            raise TokenError("Token does not match session")

        return session.user, session
