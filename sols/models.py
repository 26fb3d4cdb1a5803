from django.db import models
from django.db.models import Q, Sum
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils import timezone
from decimal import Decimal
import uuid

from wallet.models import CURRENCY_CHOICES
from .constants import FREQUENCY_DAYS, MIN_PARTICIPANTS, MAX_PARTICIPANTS
from .utils import same_id


class Sol(models.Model):
    """A rotating savings group: members contribute every cycle and take turns receiving the pot"""

    SOL_TYPE_CHOICES = [
        ('classic', 'Classic'),
        ('investment', 'Investment'),
        ('emergency', 'Emergency'),
        ('project', 'Project'),
        ('business', 'Business'),
    ]

    FREQUENCY_CHOICES = [
        ('weekly', 'Weekly'),
        ('biweekly', 'Bi-weekly'),
        ('monthly', 'Monthly'),
        ('quarterly', 'Quarterly'),
    ]

    STATUS_CHOICES = [
        ('recruiting', 'Recruiting'),
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('paused', 'Paused'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    creator = models.ForeignKey(User, on_delete=models.CASCADE, related_name='created_sols')
    name = models.CharField(max_length=100)
    description = models.CharField(max_length=500, blank=True)
    sol_type = models.CharField(max_length=15, choices=SOL_TYPE_CHOICES, default='classic')

    contribution_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Amount each participant contributes per round"
    )
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='HTG')
    frequency = models.CharField(max_length=10, choices=FREQUENCY_CHOICES, default='monthly')
    interest_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    service_fee = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal('0.00'))
    late_fee = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal('5.00'))

    max_participants = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(MIN_PARTICIPANTS), MaxValueValidator(MAX_PARTICIPANTS)]
    )

    access_code = models.CharField(max_length=6, unique=True)
    is_private = models.BooleanField(default=False)

    start_date = models.DateTimeField()
    actual_start_date = models.DateTimeField(null=True, blank=True)
    next_payment_date = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=15, choices=STATUS_CHOICES, default='recruiting')
    is_active = models.BooleanField(default=True)
    completed_date = models.DateTimeField(null=True, blank=True)
    cancelled_date = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=500, blank=True)
    last_activity_date = models.DateTimeField(default=timezone.now)

    # Derived from rounds, see refresh_metrics()
    completed_rounds = models.PositiveSmallIntegerField(default=0)
    success_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    total_collected = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_distributed = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))

    tags = models.JSONField(default=list, blank=True)
    rules = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'is_active'], name='sol_status_active_idx'),
            models.Index(fields=['creator', 'status'], name='sol_creator_status_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.access_code}) - {self.get_status_display()}"

    def active_participants(self):
        return self.participants.filter(is_active=True).order_by('position')

    @property
    def participant_count(self):
        return self.participants.filter(is_active=True).count()

    @property
    def available_spots(self):
        return max(self.max_participants - self.participant_count, 0)

    def is_full(self):
        return self.participant_count >= self.max_participants

    def get_cycle_duration_days(self):
        return FREQUENCY_DAYS[self.frequency]

    def get_participant(self, user):
        """Active participant record of `user`, compared on normalised ids"""
        for participant in self.active_participants():
            if same_id(participant.user_id, user):
                return participant
        return None

    def is_creator(self, user):
        return same_id(self.creator_id, user)

    def current_round(self):
        return self.rounds.filter(status='active').first()

    def refresh_metrics(self):
        rounds = self.rounds.exclude(status='cancelled')
        total_rounds = rounds.count()
        completed = rounds.filter(status='completed')

        self.completed_rounds = completed.count()
        self.success_rate = (
            (Decimal(self.completed_rounds) / Decimal(total_rounds) * 100).quantize(Decimal('0.01'))
            if total_rounds else Decimal('0.00')
        )
        self.total_collected = completed.aggregate(total=Sum('actual_amount'))['total'] or Decimal('0.00')
        self.total_distributed = completed.filter(is_distributed=True).aggregate(
            total=Sum('actual_amount'))['total'] or Decimal('0.00')
        self.last_activity_date = timezone.now()


class Participant(models.Model):
    """A user's position in a sol"""

    ROLE_CHOICES = [
        ('creator', 'Creator'),
        ('participant', 'Participant'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('current', 'Current'),
        ('overdue', 'Overdue'),
    ]

    sol = models.ForeignKey(Sol, on_delete=models.CASCADE, related_name='participants')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sol_participations')
    position = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(MAX_PARTICIPANTS)]
    )
    role = models.CharField(max_length=12, choices=ROLE_CHOICES, default='participant')

    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default='pending')
    total_paid = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    last_payment_date = models.DateTimeField(null=True, blank=True)

    has_received = models.BooleanField(default=False)
    received_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    received_date = models.DateTimeField(null=True, blank=True)
    payout_account = models.ForeignKey(
        'wallet.Account',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sol_payout_positions',
        help_text="Account credited when this participant's round pays out"
    )

    is_active = models.BooleanField(default=True)
    joined_at = models.DateTimeField(default=timezone.now)
    left_at = models.DateTimeField(null=True, blank=True)
    leave_reason = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering = ['sol', 'position']
        constraints = [
            models.UniqueConstraint(
                fields=['sol', 'position'],
                condition=Q(is_active=True),
                name='unique_active_sol_position'
            ),
            models.UniqueConstraint(
                fields=['sol', 'user'],
                condition=Q(is_active=True),
                name='unique_active_sol_participant'
            ),
        ]

    def __str__(self):
        return f"{self.user.username} - {self.sol.name} (#{self.position})"

    def paid_in_round(self, round_obj):
        return round_obj.payments.filter(participant=self, status='completed').aggregate(
            total=Sum('amount'))['total'] or Decimal('0.00')


class Round(models.Model):
    """One payout cycle of a sol"""

    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('pending', 'Pending'),
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    sol = models.ForeignKey(Sol, on_delete=models.CASCADE, related_name='rounds')
    round_number = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(MAX_PARTICIPANTS)]
    )
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    due_date = models.DateTimeField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='scheduled')

    recipient = models.ForeignKey(
        Participant,
        on_delete=models.PROTECT,
        related_name='recipient_rounds'
    )
    expected_amount = models.DecimalField(max_digits=14, decimal_places=2)
    actual_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    completed_date = models.DateTimeField(null=True, blank=True)

    is_distributed = models.BooleanField(default=False)
    distribution_date = models.DateTimeField(null=True, blank=True)
    payout_transaction = models.ForeignKey(
        'wallet.Transaction',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sol_payout_rounds'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['sol', 'round_number']
        constraints = [
            models.UniqueConstraint(fields=['sol', 'round_number'], name='unique_sol_round_number'),
            models.UniqueConstraint(
                fields=['sol'],
                condition=Q(status='active'),
                name='single_active_round_per_sol'
            ),
        ]

    def __str__(self):
        return f"{self.sol.name} - Round {self.round_number} ({self.get_status_display()})"

    def recompute_actual_amount(self):
        """actual_amount is always the sum of completed payments"""
        self.actual_amount = self.payments.filter(status='completed').aggregate(
            total=Sum('amount'))['total'] or Decimal('0.00')
        return self.actual_amount

    @property
    def is_funded(self):
        return self.actual_amount >= self.expected_amount


class Payment(models.Model):
    """A contribution to a round"""

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('wallet', 'Account'),
        ('bank_transfer', 'Bank Transfer'),
        ('mobile_money', 'Mobile Money'),
        ('cash', 'Cash'),
    ]

    round = models.ForeignKey(Round, on_delete=models.CASCADE, related_name='payments')
    participant = models.ForeignKey(Participant, on_delete=models.PROTECT, related_name='payments')
    payer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='sol_payments')

    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    payment_method = models.CharField(max_length=15, choices=PAYMENT_METHOD_CHOICES, default='wallet')

    account = models.ForeignKey(
        'wallet.Account',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sol_payments'
    )
    transaction = models.ForeignKey(
        'wallet.Transaction',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sol_payments'
    )
    refund_transaction = models.ForeignKey(
        'wallet.Transaction',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sol_refunds'
    )
    notes = models.CharField(max_length=200, blank=True)

    class Meta:
        ordering = ['-date']
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name='sol_payment_amount_positive'),
        ]

    def __str__(self):
        return f"{self.payer.username} - {self.amount} ({self.get_status_display()})"


class SolStatusHistory(models.Model):
    """Audit entry written on every sol status change"""

    sol = models.ForeignKey(Sol, on_delete=models.CASCADE, related_name='status_history')
    from_status = models.CharField(max_length=15, blank=True)
    status = models.CharField(max_length=15, choices=Sol.STATUS_CHOICES)
    reason = models.CharField(max_length=500, blank=True)
    changed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['created_at', 'pk']
        verbose_name_plural = 'Sol status history'

    def __str__(self):
        return f"{self.sol.name}: {self.from_status or '-'} -> {self.status}"
