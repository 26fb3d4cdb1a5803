from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone
from django.core.validators import MinValueValidator
from django.core.exceptions import ValidationError
from decimal import Decimal
import uuid


CURRENCY_CHOICES = (
    ('HTG', 'Gourde haïtienne'),
    ('USD', 'US Dollar'),
)


class Account(models.Model):
    """
    A user's bank / mobile-money / cash account.
    Sol contributions are debited from an account and payouts credited to one.
    """

    ACCOUNT_TYPES = (
        ('checking', 'Checking'),
        ('savings', 'Savings'),
        ('mobile_money', 'Mobile Money'),
        ('cash', 'Cash'),
    )

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='accounts'
    )
    name = models.CharField(max_length=100)
    account_type = models.CharField(max_length=20, choices=ACCOUNT_TYPES, default='checking')
    bank_name = models.CharField(max_length=100, blank=True)

    currency = models.CharField(
        max_length=3,
        choices=CURRENCY_CHOICES,
        default='HTG',
        help_text="ISO 4217 currency code"
    )
    balance = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
    )

    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_transaction_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-is_default', '-created_at']
        indexes = [
            models.Index(fields=['user', 'currency'], name='wallet_acct_user_currency_idx'),
            models.Index(fields=['user', 'is_active'], name='wallet_acct_user_active_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(balance__gte=0),
                name='account_balance_non_negative'
            ),
        ]

    def __str__(self):
        return f"{self.user.username} - {self.name} ({self.currency} {self.balance})"

    def can_process(self, amount):
        """Check if the account is active and holds at least `amount`"""
        return self.is_active and self.balance >= amount


class Transaction(models.Model):
    """
    Records every balance movement for audit trail and history
    """
    TRANSACTION_TYPES = (
        ('deposit', 'Deposit'),
        ('withdrawal', 'Withdrawal'),
        ('sol_contribution', 'Sol Contribution'),
        ('sol_payout', 'Sol Payout'),
        ('sol_refund', 'Sol Refund'),
        ('adjustment', 'Admin Adjustment'),
    )

    DIRECTION_CHOICES = (
        ('credit', 'Credit'),
        ('debit', 'Debit'),
    )

    STATUS_CHOICES = (
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
        ('reversed', 'Reversed'),
    )

    reference_number = models.CharField(
        max_length=100,
        unique=True,
        db_index=True,
        help_text="Unique transaction reference"
    )

    # Idempotency key (prevents duplicate processing)
    idempotency_key = models.CharField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        help_text="Caller-provided key for idempotent operations"
    )

    account = models.ForeignKey(
        Account,
        on_delete=models.CASCADE,
        related_name='transactions'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='ledger_transactions'
    )

    transaction_type = models.CharField(max_length=30, choices=TRANSACTION_TYPES)
    direction = models.CharField(max_length=6, choices=DIRECTION_CHOICES)
    amount = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='HTG')

    # Balance tracking
    balance_before = models.DecimalField(max_digits=15, decimal_places=2)
    balance_after = models.DecimalField(max_digits=15, decimal_places=2)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    description = models.TextField(blank=True)
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Additional transaction data (sol id, round number, etc.)"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['account', '-created_at'], name='wallet_txn_acct_created_idx'),
            models.Index(fields=['user', 'transaction_type'], name='wallet_txn_user_type_idx'),
            models.Index(fields=['status'], name='wallet_txn_status_idx'),
        ]

    def __str__(self):
        return f"{self.reference_number} - {self.get_transaction_type_display()} - {self.currency} {self.amount}"

    def clean(self):
        super().clean()
        if self.amount is not None and self.amount <= 0:
            raise ValidationError("Transaction amount must be greater than zero")

    def save(self, *args, **kwargs):
        if not self.reference_number:
            self.reference_number = self.generate_reference_number()

        if self.status == 'completed' and not self.completed_at:
            self.completed_at = timezone.now()

        self.full_clean()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_reference_number():
        """Generate unique transaction reference"""
        timestamp = timezone.now().strftime('%Y%m%d%H%M%S')
        unique_id = str(uuid.uuid4().hex)[:8].upper()
        return f"SSTXN-{timestamp}-{unique_id}"
