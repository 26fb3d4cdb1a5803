import pytest
from decimal import Decimal
from django.contrib.auth.models import User
from django.db import IntegrityError, transaction
from django.urls import reverse

from authentication.services.auth_service import AuthManager
from wallet.exceptions import AccountNotFound, InsufficientFunds, InsufficientSetup
from wallet.models import Account, Transaction
from wallet.services import LedgerService


@pytest.fixture
def owner(db):
    return User.objects.create_user(username='rose', password='Lakay-Sol-2024!')


@pytest.fixture
def account(owner):
    return LedgerService.open_account(owner, 'Sogebank', currency='HTG')


@pytest.mark.django_db
class TestLedgerService:
    def test_first_account_becomes_default(self, owner):
        first = LedgerService.open_account(owner, 'Unibank')
        second = LedgerService.open_account(owner, 'MonCash', account_type='mobile_money')
        assert first.is_default
        assert not second.is_default

    def test_credit_updates_balance_and_records_transaction(self, account):
        txn = LedgerService.credit(account, Decimal('2500.00'), description='Depot')
        account.refresh_from_db()
        assert account.balance == Decimal('2500.00')
        assert txn.balance_before == Decimal('0.00')
        assert txn.balance_after == Decimal('2500.00')
        assert txn.status == 'completed'
        assert txn.reference_number.startswith('SSTXN-')

    def test_debit_insufficient_funds(self, account):
        LedgerService.credit(account, Decimal('100.00'))
        with pytest.raises(InsufficientFunds):
            LedgerService.debit(account, Decimal('100.01'))
        account.refresh_from_db()
        assert account.balance == Decimal('100.00')

    def test_idempotency_key_prevents_double_credit(self, account):
        first = LedgerService.credit(account, Decimal('500.00'), idempotency_key='sol-1-round-1-payout')
        second = LedgerService.credit(account, Decimal('500.00'), idempotency_key='sol-1-round-1-payout')
        account.refresh_from_db()
        assert first.pk == second.pk
        assert account.balance == Decimal('500.00')
        assert Transaction.objects.filter(account=account).count() == 1

    def test_currency_mismatch(self, account):
        with pytest.raises(InsufficientSetup):
            LedgerService.credit(account, Decimal('10.00'), currency='USD')

    def test_archived_account_unusable(self, account):
        account.is_active = False
        account.save()
        with pytest.raises(InsufficientSetup):
            LedgerService.credit(account, Decimal('10.00'))

    def test_non_positive_amount(self, account):
        with pytest.raises(InsufficientSetup):
            LedgerService.debit(account, Decimal('0'))

    def test_get_account_of_other_user(self, account):
        stranger = User.objects.create_user(username='stranger', password='x')
        with pytest.raises(AccountNotFound):
            LedgerService.get_account(stranger, account.pk)

    def test_get_or_create_default_account(self, owner):
        created = LedgerService.get_or_create_default_account(owner, 'USD')
        again = LedgerService.get_or_create_default_account(owner, 'USD')
        assert created.pk == again.pk
        assert created.currency == 'USD'
        assert Account.objects.filter(user=owner).count() == 1

    def test_balance_cannot_go_negative_in_database(self, account):
        with pytest.raises(IntegrityError), transaction.atomic():
            Account.objects.filter(pk=account.pk).update(balance=Decimal('-0.01'))


@pytest.mark.django_db
class TestAccountViews:
    @pytest.fixture
    def auth(self, owner):
        _, tokens = AuthManager().login('rose', 'Lakay-Sol-2024!')
        return {'HTTP_AUTHORIZATION': f"Bearer {tokens['access_token']}"}

    def test_open_and_list_accounts(self, client, auth):
        response = client.post(
            reverse('wallet:accounts'),
            {'name': 'Capital Bank', 'currency': 'USD'},
            content_type='application/json',
            **auth,
        )
        assert response.status_code == 201
        assert response.json()['data']['currency'] == 'USD'

        response = client.get(reverse('wallet:accounts'), **auth)
        assert [a['name'] for a in response.json()['data']] == ['Capital Bank']

    def test_deposit_and_history(self, client, auth, account):
        response = client.post(
            reverse('wallet:deposit', args=[account.pk]),
            {'amount': '1500.00'},
            content_type='application/json',
            **auth,
        )
        assert response.status_code == 200
        assert response.json()['data']['account']['balance'] == '1500.00'

        response = client.get(reverse('wallet:transactions', args=[account.pk]), **auth)
        history = response.json()['data']
        assert len(history) == 1
        assert history[0]['transaction_type'] == 'deposit'

    def test_deposit_rejects_negative_amount(self, client, auth, account):
        response = client.post(
            reverse('wallet:deposit', args=[account.pk]),
            {'amount': '-5'},
            content_type='application/json',
            **auth,
        )
        assert response.status_code == 400
        assert response.json()['error'] == 'validation_error'

    def test_unknown_account(self, client, auth):
        response = client.get(reverse('wallet:transactions', args=[9999]), **auth)
        assert response.status_code == 404
        assert response.json()['error'] == 'account_not_found'
