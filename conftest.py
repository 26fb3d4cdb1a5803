import pytest
from datetime import timedelta
from decimal import Decimal
from django.contrib.auth.models import User
from django.utils import timezone

from authentication.services.auth_service import AuthManager
from wallet.services import LedgerService

PASSWORD = 'Lakay-Sol-2024!'


@pytest.fixture
def make_user(db):
    """User with a funded HTG account"""
    def _make(username, balance=Decimal('10000.00'), currency='HTG'):
        user = User.objects.create_user(username=username, password=PASSWORD, first_name=username.title())
        account = LedgerService.open_account(user, f'{username} {currency}', currency=currency)
        if balance:
            LedgerService.credit(account, balance, description='Initial funding')
        user.account = account
        return user
    return _make


@pytest.fixture
def creator(make_user):
    return make_user('creator')


@pytest.fixture
def sol_data():
    def _data(**overrides):
        data = {
            'name': 'Sol Fanmi',
            'description': 'Monthly family sol',
            'sol_type': 'classic',
            'contribution_amount': Decimal('1000.00'),
            'currency': 'HTG',
            'frequency': 'monthly',
            'max_participants': 3,
            'start_date': timezone.now() + timedelta(days=3),
        }
        data.update(overrides)
        return data
    return _data


@pytest.fixture
def bearer(db):
    def _bearer(user):
        _, tokens = AuthManager().login(user.username, PASSWORD)
        return {'HTTP_AUTHORIZATION': f"Bearer {tokens['access_token']}"}
    return _bearer
