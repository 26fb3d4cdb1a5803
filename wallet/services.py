from django.db import transaction
from django.db.models import F
from django.utils import timezone
from decimal import Decimal
import logging

from .models import Account, Transaction
from .exceptions import AccountNotFound, InsufficientFunds, InsufficientSetup

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Core service for account balance operations.
    All methods run in atomic transactions, lock the account row and use
    F-expressions so concurrent movements cannot lose an update.
    """

    @staticmethod
    def get_account(user, account_id):
        """
        Get an active account owned by `user`

        Raises:
            AccountNotFound: unknown id, another user's account or archived account
        """
        try:
            return Account.objects.get(pk=account_id, user=user, is_active=True)
        except (Account.DoesNotExist, ValueError, TypeError):
            raise AccountNotFound()

    @staticmethod
    def get_or_create_default_account(user, currency='HTG'):
        """
        Get the user's default account in `currency`, creating one if needed

        Args:
            user: User object
            currency: 'HTG' or 'USD'

        Returns:
            Account object
        """
        account = Account.objects.filter(
            user=user, currency=currency, is_active=True
        ).order_by('-is_default', 'created_at').first()

        if account is None:
            account = Account.objects.create(
                user=user,
                name=f'Compte principal {currency}',
                account_type='checking',
                currency=currency,
                is_default=True,
            )
            logger.info(f"Created default {currency} account for user {user.username}")

        return account

    @staticmethod
    def _existing(idempotency_key):
        if not idempotency_key:
            return None
        existing_txn = Transaction.objects.filter(idempotency_key=idempotency_key).first()
        if existing_txn:
            logger.warning(
                f"Duplicate transaction detected: {idempotency_key}. "
                f"Returning existing transaction {existing_txn.reference_number}"
            )
        return existing_txn

    @staticmethod
    def _check_usable(account, currency):
        if not account.is_active:
            raise InsufficientSetup(f"Account {account.pk} is archived. Cannot process transaction.")
        if currency and account.currency != currency:
            raise InsufficientSetup(
                f"Account currency is {account.currency}, transaction requires {currency}"
            )

    @staticmethod
    @transaction.atomic
    def credit(account, amount, currency=None, transaction_type='deposit', description='',
               idempotency_key=None, metadata=None):
        """
        Add funds to an account

        Args:
            account: Account object (or primary key)
            amount: Decimal amount to add
            currency: expected account currency (optional)
            transaction_type: Type of transaction (e.g., 'sol_payout')
            description: Transaction description
            idempotency_key: Unique key to prevent duplicate processing
            metadata: Additional data (optional)

        Returns:
            Transaction object

        Raises:
            AccountNotFound, InsufficientSetup
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise InsufficientSetup("Amount must be greater than zero")

        existing_txn = LedgerService._existing(idempotency_key)
        if existing_txn:
            return existing_txn

        account_id = account.pk if isinstance(account, Account) else account
        try:
            account = Account.objects.select_for_update().get(pk=account_id)
        except Account.DoesNotExist:
            raise AccountNotFound()

        LedgerService._check_usable(account, currency)

        balance_before = account.balance

        Account.objects.filter(pk=account.pk).update(
            balance=F('balance') + amount,
            last_transaction_date=timezone.now(),
            updated_at=timezone.now()
        )
        account.refresh_from_db()

        txn = Transaction.objects.create(
            account=account,
            user=account.user,
            transaction_type=transaction_type,
            direction='credit',
            amount=amount,
            currency=account.currency,
            balance_before=balance_before,
            balance_after=account.balance,
            status='completed',
            description=description,
            idempotency_key=idempotency_key,
            metadata=metadata or {},
        )

        logger.info(
            f"Credited {account.currency} {amount} to account {account.pk} "
            f"({account.user.username}). Transaction: {txn.reference_number}"
        )

        return txn

    @staticmethod
    @transaction.atomic
    def debit(account, amount, currency=None, transaction_type='withdrawal', description='',
              idempotency_key=None, metadata=None):
        """
        Deduct funds from an account

        Raises:
            AccountNotFound, InsufficientSetup, InsufficientFunds
        """
        amount = Decimal(str(amount))
        if amount <= 0:
            raise InsufficientSetup("Amount must be greater than zero")

        existing_txn = LedgerService._existing(idempotency_key)
        if existing_txn:
            return existing_txn

        account_id = account.pk if isinstance(account, Account) else account
        try:
            account = Account.objects.select_for_update().get(pk=account_id)
        except Account.DoesNotExist:
            raise AccountNotFound()

        LedgerService._check_usable(account, currency)

        if account.balance < amount:
            raise InsufficientFunds(
                f"Insufficient balance. Available: {account.currency} {account.balance}, "
                f"Required: {account.currency} {amount}"
            )

        balance_before = account.balance

        Account.objects.filter(pk=account.pk).update(
            balance=F('balance') - amount,
            last_transaction_date=timezone.now(),
            updated_at=timezone.now()
        )
        account.refresh_from_db()

        txn = Transaction.objects.create(
            account=account,
            user=account.user,
            transaction_type=transaction_type,
            direction='debit',
            amount=amount,
            currency=account.currency,
            balance_before=balance_before,
            balance_after=account.balance,
            status='completed',
            description=description,
            idempotency_key=idempotency_key,
            metadata=metadata or {},
        )

        logger.info(
            f"Debited {account.currency} {amount} from account {account.pk} "
            f"({account.user.username}). Transaction: {txn.reference_number}"
        )

        return txn

    @staticmethod
    def get_transaction_history(account, limit=50, transaction_type=None):
        """Most recent transactions of an account"""
        queryset = Transaction.objects.filter(account=account)
        if transaction_type:
            queryset = queryset.filter(transaction_type=transaction_type)
        return queryset.order_by('-created_at')[:limit]

    @staticmethod
    @transaction.atomic
    def open_account(user, name, currency='HTG', account_type='checking', bank_name='', is_default=False):
        """Open a new account; the first account in a currency becomes its default"""
        has_default = Account.objects.filter(user=user, currency=currency, is_active=True, is_default=True)
        if is_default:
            has_default.update(is_default=False)
        elif not has_default.exists():
            is_default = True

        account = Account.objects.create(
            user=user,
            name=name,
            account_type=account_type,
            bank_name=bank_name,
            currency=currency,
            is_default=is_default,
        )
        logger.info(f"Opened {currency} account {account.pk} for user {user.username}")
        return account


def account_to_dict(account):
    return {
        'id': account.pk,
        'name': account.name,
        'account_type': account.account_type,
        'bank_name': account.bank_name,
        'currency': account.currency,
        'balance': str(account.balance),
        'is_default': account.is_default,
        'last_transaction_date': account.last_transaction_date.isoformat() if account.last_transaction_date else None,
    }


def transaction_to_dict(txn):
    return {
        'reference_number': txn.reference_number,
        'transaction_type': txn.transaction_type,
        'direction': txn.direction,
        'amount': str(txn.amount),
        'currency': txn.currency,
        'balance_after': str(txn.balance_after),
        'status': txn.status,
        'description': txn.description,
        'metadata': txn.metadata,
        'created_at': txn.created_at.isoformat(),
    }
