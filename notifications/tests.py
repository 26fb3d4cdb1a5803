import pytest
from django.contrib.auth.models import User
from django.urls import reverse
from freezegun import freeze_time

from authentication.services.auth_service import AuthManager
from notifications.models import Notification
from notifications.services import NotificationService
from notifications.tasks import cleanup_notifications


@pytest.fixture
def reader(db):
    return User.objects.create_user(username='claude', password='Lakay-Sol-2024!')


@pytest.mark.django_db
class TestNotificationService:
    def test_notify_persists(self, reader):
        notification = NotificationService.notify(
            reader, 'payment_due', 'Payment due', 'Your contribution is due tomorrow',
            priority='high', data={'round_number': 2},
        )
        assert notification.pk is not None
        assert notification.data == {'round_number': 2}
        assert not notification.is_read

    def test_notify_never_raises(self, reader, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError('database unavailable')
        monkeypatch.setattr(Notification.objects, 'create', boom)

        assert NotificationService.notify(reader, 'system', 'Hello', 'World') is None

    def test_notify_many_skips_excluded(self, reader):
        other = User.objects.create_user(username='other', password='x')
        created = NotificationService.notify_many([reader, other], 'system', 'Hi', 'All', exclude=other)
        assert created == 1
        assert not Notification.objects.filter(user=other).exists()

    def test_mark_as_read_other_user(self, reader):
        other = User.objects.create_user(username='other', password='x')
        notification = NotificationService.notify(other, 'system', 'Private', 'Not yours')
        assert NotificationService.mark_as_read(reader, notification.pk) is False
        notification.refresh_from_db()
        assert not notification.is_read

    def test_cleanup_removes_only_old_read(self, reader):
        with freeze_time('2025-01-01'):
            old_read = NotificationService.notify(reader, 'system', 'Old', 'read')
            old_unread = NotificationService.notify(reader, 'system', 'Old', 'unread')
            NotificationService.mark_as_read(reader, old_read.pk)
        recent = NotificationService.notify(reader, 'system', 'New', 'read')
        NotificationService.mark_as_read(reader, recent.pk)

        with freeze_time('2025-06-01'):
            result = cleanup_notifications()

        assert result == {'deleted': 1}
        remaining = set(Notification.objects.values_list('pk', flat=True))
        assert remaining == {old_unread.pk, recent.pk}


@pytest.mark.django_db
class TestNotificationViews:
    @pytest.fixture
    def auth(self, reader):
        _, tokens = AuthManager().login('claude', 'Lakay-Sol-2024!')
        return {'HTTP_AUTHORIZATION': f"Bearer {tokens['access_token']}"}

    def test_list_and_read_all(self, client, auth, reader):
        NotificationService.notify(reader, 'system', 'One', 'first')
        NotificationService.notify(reader, 'system', 'Two', 'second')

        response = client.get(reverse('notifications:list'), **auth)
        body = response.json()
        assert response.status_code == 200
        assert body['unread_count'] == 2
        assert len(body['data']) == 2

        response = client.post(reverse('notifications:mark_all_read'), **auth)
        assert response.json()['data']['updated'] == 2
        assert not Notification.objects.filter(user=reader, is_read=False).exists()

    def test_mark_unknown_notification(self, client, auth):
        response = client.post(reverse('notifications:mark_read', args=[999]), **auth)
        assert response.status_code == 404
        assert response.json()['error'] == 'not_found'
