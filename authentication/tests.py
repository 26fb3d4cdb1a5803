import pytest
from datetime import timedelta
from django.contrib.auth.models import User
from django.urls import reverse
from django.utils import timezone
from freezegun import freeze_time

from authentication.exceptions import InvalidCredentials, SessionRevoked, TokenError, UserAlreadyExists
from authentication.models import UserSession
from authentication.services.auth_service import AuthManager
from authentication.services.token_service import JWTConfig, TokenService, extract_bearer_token
from authentication.tasks import purge_sessions_task
from authentication.utils.session_utils import purge_stale_sessions

PASSWORD = 'Lakay-Sol-2024!'
DEVICE = {'user_agent': 'pytest', 'ip_address': '10.0.0.1'}


def bearer(tokens):
    return {'HTTP_AUTHORIZATION': f"Bearer {tokens['access_token']}"}


@pytest.fixture
def manager():
    return AuthManager()


@pytest.fixture
def member(db):
    return User.objects.create_user(username='jean', password=PASSWORD, email='jean@example.com')


@pytest.mark.django_db
class TestAuthManager:
    def test_register_creates_user_and_session(self, manager):
        user, tokens = manager.register('marie', PASSWORD, email='marie@example.com', device_info=DEVICE)
        assert user.check_password(PASSWORD)
        assert tokens['token_type'] == 'Bearer'
        assert UserSession.objects.filter(user=user, is_active=True).count() == 1

    def test_register_duplicate_username(self, manager, member):
        with pytest.raises(UserAlreadyExists):
            manager.register('JEAN', PASSWORD)

    def test_register_duplicate_email(self, manager, member):
        with pytest.raises(UserAlreadyExists):
            manager.register('other', PASSWORD, email='Jean@Example.com')

    def test_login_wrong_password(self, manager, member):
        with pytest.raises(InvalidCredentials):
            manager.login('jean', 'wrong-password')

    def test_login_evicts_oldest_session_beyond_limit(self, manager, member):
        first = None
        for i in range(6):
            _, tokens = manager.login('jean', PASSWORD, device_info={'user_agent': f'device-{i}'})
            first = first or tokens['session_id']
        active = UserSession.objects.filter(user=member, is_active=True)
        assert active.count() == 5
        evicted = UserSession.objects.get(pk=first)
        assert not evicted.is_active
        assert evicted.revoke_reason == 'session_limit'

    def test_refresh_rotates_jti(self, manager, member):
        _, tokens = manager.login('jean', PASSWORD, device_info=DEVICE)
        session = UserSession.objects.get(pk=tokens['session_id'])
        old_jti = session.refresh_jti

        new_tokens = manager.refresh(tokens['refresh_token'])

        session.refresh_from_db()
        assert session.refresh_jti != old_jti
        assert session.token_version == 2
        assert new_tokens['session_id'] == tokens['session_id']

    def test_refresh_token_reuse_revokes_session(self, manager, member):
        _, tokens = manager.login('jean', PASSWORD, device_info=DEVICE)
        manager.refresh(tokens['refresh_token'])

        with pytest.raises(SessionRevoked):
            manager.refresh(tokens['refresh_token'])

        session = UserSession.objects.get(pk=tokens['session_id'])
        assert not session.is_active
        assert session.revoke_reason == 'refresh_token_reuse'

        with pytest.raises(SessionRevoked):
            manager.authenticate_access_token(tokens['access_token'])

    def test_refresh_on_expired_session_revokes_it(self, manager, member):
        _, tokens = manager.login('jean', PASSWORD, device_info=DEVICE)
        UserSession.objects.filter(pk=tokens['session_id']).update(
            refresh_expires_at=timezone.now() - timedelta(seconds=1)
        )

        with pytest.raises(TokenError) as excinfo:
            manager.refresh(tokens['refresh_token'])
        assert excinfo.value.kind == 'token_expired'

        session = UserSession.objects.get(pk=tokens['session_id'])
        assert not session.is_active
        assert session.revoke_reason == 'expired'

    def test_access_token_rejected_as_refresh(self, manager, member):
        _, tokens = manager.login('jean', PASSWORD)
        with pytest.raises(TokenError):
            manager.refresh(tokens['access_token'])

    def test_expired_access_token(self, manager, member):
        with freeze_time('2025-01-10 12:00:00'):
            _, tokens = manager.login('jean', PASSWORD)
        with freeze_time('2025-01-10 12:30:00'):
            with pytest.raises(TokenError) as excinfo:
                manager.authenticate_access_token(tokens['access_token'])
        assert excinfo.value.kind == 'token_expired'

    def test_logout_revokes_access(self, manager, member):
        _, tokens = manager.login('jean', PASSWORD)
        manager.logout(member, tokens['session_id'])
        with pytest.raises(SessionRevoked):
            manager.authenticate_access_token(tokens['access_token'])


@pytest.mark.django_db
class TestPurgeSessions:
    def test_purge_keeps_recent_revocations(self, manager, member):
        with freeze_time('2025-01-01 12:00:00'):
            manager.login('jean', PASSWORD)
            _, revoked_long_ago = manager.login('jean', PASSWORD)
        with freeze_time('2025-01-02 12:00:00'):
            manager.logout(member, revoked_long_ago['session_id'])

        with freeze_time('2025-02-05 12:00:00'):
            _, current = manager.login('jean', PASSWORD)
            _, just_revoked = manager.login('jean', PASSWORD)
            manager.logout(member, just_revoked['session_id'])

            counts = purge_sessions_task()

        assert counts == {'expired': 2, 'revoked': 0}
        remaining = set(str(pk) for pk in UserSession.objects.values_list('pk', flat=True))
        assert remaining == {str(current['session_id']), str(just_revoked['session_id'])}

    def test_revoked_sessions_past_retention(self, manager, member):
        with freeze_time('2025-01-01 12:00:00'):
            _, kept = manager.login('jean', PASSWORD)
            _, revoked = manager.login('jean', PASSWORD)
        with freeze_time('2025-01-02 12:00:00'):
            manager.logout(member, revoked['session_id'])

        with freeze_time('2025-01-04 12:00:00'):
            assert purge_stale_sessions(keep_revoked_days=1, dry_run=True) == {'expired': 0, 'revoked': 1}
            assert UserSession.objects.count() == 2

            purge_stale_sessions(keep_revoked_days=1)

        assert [str(pk) for pk in UserSession.objects.values_list('pk', flat=True)] == [str(kept['session_id'])]


class TestTokenService:
    def test_config_is_explicit(self):
        config = JWTConfig('a-secret', 'r-secret', access_lifetime=timedelta(minutes=1))
        service = TokenService(config)
        assert service.config.access_lifetime == timedelta(minutes=1)

    def test_extract_bearer_token(self):
        assert extract_bearer_token('Bearer abc') == 'abc'
        assert extract_bearer_token('Token abc') is None
        assert extract_bearer_token(None) is None


@pytest.mark.django_db
class TestAuthViews:
    def test_register_view(self, client):
        response = client.post(
            reverse('auth_register'),
            {'username': 'paul', 'password': PASSWORD},
            content_type='application/json',
        )
        assert response.status_code == 201
        body = response.json()
        assert body['success'] is True
        assert body['data']['user']['username'] == 'paul'

    def test_register_view_weak_password(self, client):
        response = client.post(
            reverse('auth_register'),
            {'username': 'paul', 'password': '12345678'},
            content_type='application/json',
        )
        assert response.status_code == 400
        assert response.json()['error'] == 'validation_error'

    def test_login_and_list_sessions(self, client, member):
        response = client.post(
            reverse('auth_login'),
            {'username': 'jean', 'password': PASSWORD},
            content_type='application/json',
        )
        assert response.status_code == 200
        tokens = response.json()['data']['tokens']

        response = client.get(reverse('auth_sessions'), **bearer(tokens))
        assert response.status_code == 200
        sessions = response.json()['data']
        assert len(sessions) == 1
        assert sessions[0]['is_current'] is True

    def test_login_view_invalid(self, client, member):
        response = client.post(
            reverse('auth_login'),
            {'username': 'jean', 'password': 'nope'},
            content_type='application/json',
        )
        assert response.status_code == 401
        assert response.json()['error'] == 'invalid_credentials'

    def test_sessions_requires_token(self, client):
        response = client.get(reverse('auth_sessions'))
        assert response.status_code == 401
        assert response.json()['success'] is False

    def test_refresh_view(self, client, member):
        _, tokens = AuthManager().login('jean', PASSWORD)
        response = client.post(
            reverse('auth_refresh'),
            {'refresh_token': tokens['refresh_token']},
            content_type='application/json',
        )
        assert response.status_code == 200
        assert response.json()['data']['tokens']['refresh_token'] != tokens['refresh_token']

    def test_logout_all(self, client, member):
        manager = AuthManager()
        _, tokens = manager.login('jean', PASSWORD)
        manager.login('jean', PASSWORD)

        response = client.post(reverse('auth_logout_all'), **bearer(tokens))
        assert response.status_code == 200
        assert response.json()['data']['revoked_sessions'] == 2
        assert not UserSession.objects.filter(user=member, is_active=True).exists()
