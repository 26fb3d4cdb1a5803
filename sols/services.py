from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.paginator import Paginator
from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from constance import config
import logging

from notifications.services import NotificationService
from wallet.exceptions import AccountNotFound, InsufficientSetup
from wallet.services import LedgerService
from .constants import (
    ACCESS_CODE_MAX_ATTEMPTS, CURRENCY_LIMITS, FREQUENCY_DAYS, MAX_INTEREST_RATE, MAX_LATE_FEE,
    MAX_PARTICIPANTS, MAX_SERVICE_FEE, MIN_PARTICIPANTS, OPEN_ROUND_STATUSES, RUNNING_STATUSES,
    SOL_TRANSITIONS, TERMINAL_STATUSES,
)
from .exceptions import (
    AlreadyParticipant, Forbidden, NoActiveRound, NotFound, NotParticipant, SolFull,
    SolValidationError, StateError,
)
from .models import Participant, Payment, Round, Sol, SolStatusHistory
from .utils import generate_access_code, normalize_id

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


class SolService:
    """
    Owns every sol status transition.

    Mutating operations run in one database transaction and start by locking
    the sol row, so concurrent joins, payments and exits on the same sol are
    applied one after the other.
    """

    @staticmethod
    def _lock(sol):
        """Re-read the sol under a row lock; call inside transaction.atomic"""
        sol_id = sol.pk if isinstance(sol, Sol) else normalize_id(sol)
        try:
            return Sol.objects.select_for_update().get(pk=sol_id)
        except (Sol.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound()

    @staticmethod
    def _transition(sol, new_status, actor=None, reason=''):
        if new_status not in SOL_TRANSITIONS[sol.status]:
            raise StateError(f"A {sol.status} sol cannot become {new_status}")

        SolStatusHistory.objects.create(
            sol=sol,
            from_status=sol.status,
            status=new_status,
            reason=reason,
            changed_by=actor,
        )
        logger.info(f"Sol {sol.pk} '{sol.name}': {sol.status} -> {new_status} ({reason or 'no reason'})")
        sol.status = new_status
        sol.last_activity_date = timezone.now()

    @staticmethod
    def _notify_members(sol, notification_type, title, message, exclude=None, priority='medium', data=None):
        users = [p.user for p in sol.active_participants().select_related('user')]
        NotificationService.notify_many(
            users, notification_type, title, message, sol=sol, priority=priority, data=data, exclude=exclude
        )

    @staticmethod
    def validate_config(data):
        """
        Check the financial and scheduling config of a new sol

        Raises:
            SolValidationError naming the offending field
        """
        currency = data.get('currency') or 'HTG'
        if currency not in CURRENCY_LIMITS:
            raise SolValidationError(f"Unsupported currency {currency}", kind='invalid_currency')

        try:
            amount = Decimal(str(data.get('contribution_amount')))
        except (InvalidOperation, TypeError):
            raise SolValidationError("Contribution amount must be a number")
        low, high = CURRENCY_LIMITS[currency]
        if not low <= amount <= high:
            raise SolValidationError(
                f"Contribution amount must be between {low} and {high} {currency}",
                kind='invalid_contribution_amount'
            )

        max_participants = data.get('max_participants')
        if not isinstance(max_participants, int) or not MIN_PARTICIPANTS <= max_participants <= MAX_PARTICIPANTS:
            raise SolValidationError(
                f"A sol needs between {MIN_PARTICIPANTS} and {MAX_PARTICIPANTS} participants",
                kind='invalid_max_participants'
            )

        if data.get('frequency') not in FREQUENCY_DAYS:
            raise SolValidationError("Frequency must be weekly, biweekly, monthly or quarterly",
                                     kind='invalid_frequency')

        start_date = data.get('start_date')
        if start_date is None or start_date <= timezone.now() + timedelta(days=1):
            raise SolValidationError("Start date must be after tomorrow", kind='invalid_start_date')

        for field, upper in (('interest_rate', MAX_INTEREST_RATE), ('service_fee', MAX_SERVICE_FEE),
                             ('late_fee', MAX_LATE_FEE)):
            value = data.get(field)
            if value is not None and not Decimal('0') <= Decimal(str(value)) <= upper:
                raise SolValidationError(f"{field} must be between 0 and {upper}", kind=f'invalid_{field}')

    @staticmethod
    def _unique_access_code():
        for _ in range(ACCESS_CODE_MAX_ATTEMPTS):
            code = generate_access_code()
            if not Sol.objects.filter(access_code=code).exists():
                return code
            logger.warning(f"Access code collision on {code}, retrying")
        raise StateError("Could not allocate an access code, please retry", kind='access_code_exhausted')

    @staticmethod
    def _resolve_payout_account(user, account_id, currency):
        if account_id in (None, ''):
            return None
        try:
            account = LedgerService.get_account(user, account_id)
        except AccountNotFound:
            raise NotFound("Payout account not found", kind='account_not_found')
        if account.currency != currency:
            raise SolValidationError(
                f"Payout account must be in {currency}", kind='currency_mismatch'
            )
        return account

    @staticmethod
    @transaction.atomic
    def create_sol(creator, data):
        """
        Create a recruiting sol with its creator at position 1

        Args:
            creator: User object
            data: cleaned SolCreateForm data

        Returns:
            Sol object
        """
        SolService.validate_config(data)

        open_sols = Sol.objects.filter(
            creator=creator, is_active=True, status__in=['recruiting', 'active']
        ).count()
        if open_sols >= config.SOL_MAX_ACTIVE_PER_CREATOR:
            raise SolValidationError(
                f"You can run at most {config.SOL_MAX_ACTIVE_PER_CREATOR} sols at the same time",
                kind='sol_limit_reached'
            )

        currency = data.get('currency') or 'HTG'
        payout_account = SolService._resolve_payout_account(creator, data.get('payout_account_id'), currency)

        sol = Sol.objects.create(
            creator=creator,
            name=data['name'],
            description=data.get('description') or '',
            sol_type=data.get('sol_type') or 'classic',
            contribution_amount=Decimal(str(data['contribution_amount'])),
            currency=currency,
            frequency=data['frequency'],
            interest_rate=data.get('interest_rate') or Decimal('0.00'),
            service_fee=data.get('service_fee') or Decimal('0.00'),
            late_fee=data['late_fee'] if data.get('late_fee') is not None else Decimal('5.00'),
            max_participants=data['max_participants'],
            access_code=SolService._unique_access_code(),
            is_private=bool(data.get('is_private')),
            start_date=data['start_date'],
            tags=data.get('tags') or [],
            rules=data.get('rules') or [],
        )

        Participant.objects.create(
            sol=sol,
            user=creator,
            position=1,
            role='creator',
            payout_account=payout_account,
        )

        SolStatusHistory.objects.create(sol=sol, status='recruiting', reason='Sol created', changed_by=creator)

        logger.info(f"Sol {sol.pk} '{sol.name}' created by {creator.username} (code {sol.access_code})")

        NotificationService.notify(
            creator,
            'sol_created',
            f'{sol.name} created',
            f'Share the access code {sol.access_code} so {sol.max_participants - 1} more people can join.',
            sol=sol,
            data={'access_code': sol.access_code},
        )

        return sol

    @staticmethod
    def join_sol(user, access_code, payout_account_id=None):
        """
        Join a recruiting sol. The join that fills the group starts the sol.

        Raises:
            NotFound, AlreadyParticipant, SolFull
        """
        code = (access_code or '').strip().upper()

        with transaction.atomic():
            sol = Sol.objects.select_for_update().filter(
                access_code=code, is_active=True, status__in=('recruiting',) + RUNNING_STATUSES
            ).first()
            if sol is None:
                raise NotFound("No sol matches this access code")

            if sol.get_participant(user) is not None:
                raise AlreadyParticipant()

            taken = set(sol.active_participants().values_list('position', flat=True))
            if sol.status != 'recruiting' or len(taken) >= sol.max_participants:
                logger.warning(f"{user.username} tried to join full sol {sol.pk}")
                raise SolFull()

            payout_account = SolService._resolve_payout_account(user, payout_account_id, sol.currency)
            position = min(p for p in range(1, sol.max_participants + 1) if p not in taken)

            participant = Participant.objects.create(
                sol=sol,
                user=user,
                position=position,
                role='participant',
                payout_account=payout_account,
            )
            logger.info(f"{user.username} joined sol {sol.pk} at position {position}")

            if len(taken) + 1 == sol.max_participants:
                SolService._start(sol, user)
            else:
                sol.last_activity_date = timezone.now()
                sol.save()
                NotificationService.notify(
                    sol.creator,
                    'participant_joined',
                    f'New participant in {sol.name}',
                    f'{user.get_full_name() or user.username} joined at position {position}. '
                    f'{sol.max_participants - len(taken) - 1} spot(s) left.',
                    sol=sol,
                )

        return participant

    @staticmethod
    def _start(sol, actor):
        """Group is full: activate the sol and lay out its rounds, exactly once"""
        SolService._transition(sol, 'active', actor, 'All positions filled')
        RoundScheduler.generate_rounds(sol)
        first_round = RoundScheduler.activate_next_round(sol)
        sol.save()

        SolService._notify_members(
            sol,
            'sol_started',
            f'{sol.name} has started',
            f'Round 1 is open. Contribute {sol.contribution_amount} {sol.currency} '
            f'before {first_round.due_date:%d/%m/%Y}.',
            priority='high',
        )

    @staticmethod
    def leave_sol(user, sol, reason=''):
        """
        Leave a sol, freeing the participant's position

        Raises:
            NotParticipant, Forbidden, StateError
        """
        with transaction.atomic():
            sol = SolService._lock(sol)

            participant = sol.get_participant(user)
            if participant is None:
                raise NotParticipant()
            if sol.status in TERMINAL_STATUSES:
                raise StateError(f"This sol is already {sol.status}")

            if participant.role == 'creator':
                if sol.status in RUNNING_STATUSES:
                    raise Forbidden("The creator cannot leave a running sol", kind='creator_cannot_leave')
                return SolService._cancel(sol, user, reason or 'Creator left the sol')

            if participant.has_received:
                raise StateError("You already received your payout and cannot leave", kind='payout_received')

            participant.is_active = False
            participant.left_at = timezone.now()
            participant.leave_reason = reason or ''
            participant.save()

            if sol.status in RUNNING_STATUSES:
                SolService._release_running_position(sol, participant)

            sol.last_activity_date = timezone.now()
            sol.save()

            logger.info(f"{user.username} left sol {sol.pk} (position {participant.position}): {reason}")

            NotificationService.notify(
                user, 'participant_left', f'You left {sol.name}', 'Your position has been released.', sol=sol,
            )
            SolService._notify_members(
                sol,
                'participant_left',
                f'A participant left {sol.name}',
                f'{user.get_full_name() or user.username} left position {participant.position}.',
            )

        return sol

    @staticmethod
    def _release_running_position(sol, participant):
        """
        Drop a leaver from the round calendar of a running sol.

        The leaver's own payout round is cancelled with its contributions
        refunded, their contributions to the current round are refunded and
        the target of every open round shrinks to the remaining group.
        """
        for round_obj in sol.rounds.filter(recipient=participant, status__in=OPEN_ROUND_STATUSES):
            RoundScheduler.cancel_round(round_obj, reason=f'Recipient left {sol.name}')

        current = sol.current_round()
        if current is not None:
            for payment in current.payments.filter(participant=participant, status='completed'):
                PaymentService.refund(payment, reason=f'Left {sol.name}')

        remaining = sol.active_participants().count()
        sol.rounds.filter(status__in=OPEN_ROUND_STATUSES).update(
            expected_amount=sol.contribution_amount * remaining
        )

        current = sol.current_round()
        if current is not None:
            current.recompute_actual_amount()
            current.save()
        if sol.status == 'active':
            SolService._progress(sol)
        sol.refresh_metrics()

    @staticmethod
    def _progress(sol):
        """Settle the current round if it is funded, otherwise make sure one is open"""
        current = sol.current_round()
        if current is None:
            SolService._advance(sol)
        elif current.is_funded:
            SolService._settle_round(sol, current)

    @staticmethod
    def _settle_round(sol, round_obj):
        """Complete a funded round, pay its recipient and move the sol forward"""
        if round_obj.status != 'active':
            raise StateError(f"Round {round_obj.round_number} is not active")

        round_obj.status = 'completed'
        round_obj.completed_date = timezone.now()
        round_obj.save()
        logger.info(f"Sol {sol.pk} round {round_obj.round_number} completed with {round_obj.actual_amount}")

        PayoutService.distribute(sol, round_obj)
        SolService._advance(sol)

    @staticmethod
    def _advance(sol):
        """Activate the next round, or complete the sol when none is left"""
        if sol.current_round() is not None:
            return
        next_round = RoundScheduler.activate_next_round(sol)
        if next_round is None:
            SolService._complete(sol)
            return

        SolService._notify_members(
            sol,
            'payment_due',
            f'Round {next_round.round_number} of {sol.name} is open',
            f'Contribute {sol.contribution_amount} {sol.currency} before {next_round.due_date:%d/%m/%Y}. '
            f'This round pays {next_round.recipient.user.username}.',
            data={'round_number': next_round.round_number},
        )

    @staticmethod
    def _complete(sol):
        SolService._transition(sol, 'completed', None, 'All rounds completed')
        sol.completed_date = timezone.now()
        sol.next_payment_date = None
        sol.refresh_metrics()
        sol.save()

        SolService._notify_members(
            sol,
            'sol_completed',
            f'{sol.name} is complete',
            f'Every round has paid out. {sol.total_distributed} {sol.currency} distributed in total.',
        )

    @staticmethod
    def _require_creator(sol, user, action):
        if not sol.is_creator(user):
            raise Forbidden(f"Only the creator can {action} this sol")

    @staticmethod
    def _cancel(sol, actor, reason):
        SolService._transition(sol, 'cancelled', actor, reason)

        current = sol.current_round()
        if current is not None:
            RoundScheduler.cancel_round(current, reason=f'{sol.name} cancelled')
        sol.rounds.filter(status__in=('scheduled', 'pending')).update(status='cancelled')

        sol.is_active = False
        sol.cancelled_date = timezone.now()
        sol.cancellation_reason = reason or ''
        sol.next_payment_date = None
        sol.refresh_metrics()
        sol.save()

        SolService._notify_members(
            sol,
            'sol_cancelled',
            f'{sol.name} was cancelled',
            f'Reason: {reason}. Contributions to the open round were refunded.' if reason
            else 'Contributions to the open round were refunded.',
            priority='high',
        )
        return sol

    @staticmethod
    def cancel_sol(sol, actor, reason=''):
        with transaction.atomic():
            sol = SolService._lock(sol)
            SolService._require_creator(sol, actor, 'cancel')
            return SolService._cancel(sol, actor, reason)

    @staticmethod
    def pause_sol(sol, actor, reason=''):
        with transaction.atomic():
            sol = SolService._lock(sol)
            SolService._require_creator(sol, actor, 'pause')
            SolService._transition(sol, 'paused', actor, reason)
            sol.save()
            SolService._notify_members(sol, 'sol_paused', f'{sol.name} is paused',
                                       'Payments are suspended until the creator resumes the sol.', exclude=actor)
        return sol

    @staticmethod
    def resume_sol(sol, actor, reason=''):
        with transaction.atomic():
            sol = SolService._lock(sol)
            SolService._require_creator(sol, actor, 'resume')
            SolService._transition(sol, 'active', actor, reason)
            SolService._progress(sol)
            sol.refresh_metrics()
            sol.save()
            if sol.status == 'active':
                SolService._notify_members(sol, 'sol_resumed', f'{sol.name} resumed',
                                           'Payments are open again.', exclude=actor)
        return sol

    # ---- read side ----

    @staticmethod
    def get_sol_for_user(user, sol_id):
        """
        Raises:
            NotFound, NotParticipant
        """
        try:
            sol = Sol.objects.select_related('creator').get(pk=normalize_id(sol_id))
        except (Sol.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFound()

        if not sol.is_creator(user) and sol.get_participant(user) is None:
            raise NotParticipant()
        return sol

    @staticmethod
    def get_user_sols(user, status=None, sol_type=None, page=1, page_size=10):
        sols = Sol.objects.filter(
            participants__user=user, participants__is_active=True
        ).select_related('creator').distinct()
        if status:
            sols = sols.filter(status=status)
        if sol_type:
            sols = sols.filter(sol_type=sol_type)
        return Paginator(sols.order_by('-created_at'), page_size).get_page(page)

    @staticmethod
    def discover_sols(user, currency=None, sol_type=None, page=1, page_size=10):
        """Public recruiting sols with open spots that `user` has not joined"""
        sols = Sol.objects.filter(
            is_private=False, is_active=True, status='recruiting'
        ).annotate(
            active_count=Count('participants', filter=Q(participants__is_active=True))
        ).filter(
            active_count__lt=F('max_participants')
        ).exclude(
            pk__in=Participant.objects.filter(user=user, is_active=True).values('sol_id')
        ).select_related('creator')
        if currency:
            sols = sols.filter(currency=currency)
        if sol_type:
            sols = sols.filter(sol_type=sol_type)
        return Paginator(sols.order_by('-created_at'), page_size).get_page(page)

    @staticmethod
    def get_personal_analytics(user):
        """Read-only summary of a user's sols, amounts grouped by currency"""
        participations = Participant.objects.filter(user=user, is_active=True).select_related('sol')

        by_status = {status: 0 for status, _ in Sol.STATUS_CHOICES}
        monthly_commitment = {}
        upcoming_payouts = []
        for participant in participations:
            sol = participant.sol
            by_status[sol.status] += 1
            if sol.status != 'active':
                continue

            per_month = (sol.contribution_amount * 30 / FREQUENCY_DAYS[sol.frequency]).quantize(CENT)
            monthly_commitment[sol.currency] = monthly_commitment.get(sol.currency, Decimal('0.00')) + per_month

            if not participant.has_received:
                payout_round = sol.rounds.filter(recipient=participant, status__in=OPEN_ROUND_STATUSES).first()
                if payout_round is not None:
                    upcoming_payouts.append({
                        'sol_id': str(sol.pk),
                        'sol_name': sol.name,
                        'round_number': payout_round.round_number,
                        'expected_amount': str(payout_round.expected_amount),
                        'currency': sol.currency,
                        'estimated_date': payout_round.due_date.isoformat(),
                    })

        contributed = Payment.objects.filter(payer=user, status='completed').values(
            'round__sol__currency').annotate(total=Sum('amount'))
        received = Participant.objects.filter(user=user, has_received=True).values(
            'sol__currency').annotate(total=Sum('received_amount'))

        return {
            'total_sols': sum(by_status.values()),
            'by_status': by_status,
            'created': Sol.objects.filter(creator=user).count(),
            'total_contributed': {
                row['round__sol__currency']: str(row['total'].quantize(CENT)) for row in contributed
            },
            'total_received': {row['sol__currency']: str(row['total'].quantize(CENT)) for row in received},
            'monthly_commitment': {currency: str(total) for currency, total in monthly_commitment.items()},
            'upcoming_payouts': sorted(upcoming_payouts, key=lambda p: p['estimated_date']),
        }


class RoundScheduler:
    """Lays out and advances the round calendar of a sol"""

    @staticmethod
    def generate_rounds(sol):
        """
        Build the full calendar once, starting now.

        Each round lasts one frequency interval (7/14/30/90 days, no calendar
        month arithmetic), is due a grace period after it starts and pays the
        participant whose position equals its number.
        """
        if sol.rounds.exists():
            raise StateError("Rounds were already generated for this sol", kind='rounds_already_generated')

        recipients = {p.position: p for p in sol.active_participants()}
        if len(recipients) != sol.max_participants:
            raise StateError("Rounds can only be generated once every position is filled")

        now = timezone.now()
        interval = timedelta(days=FREQUENCY_DAYS[sol.frequency])
        grace = timedelta(days=config.SOL_PAYMENT_GRACE_DAYS)
        expected = sol.contribution_amount * sol.max_participants

        rounds = []
        cursor = now
        for i in range(sol.max_participants):
            rounds.append(Round(
                sol=sol,
                round_number=i + 1,
                start_date=cursor,
                end_date=cursor + interval,
                due_date=cursor + grace,
                status='pending' if i == 0 else 'scheduled',
                recipient=recipients[i + 1],
                expected_amount=expected,
            ))
            cursor = cursor + interval

        Round.objects.bulk_create(rounds)
        sol.actual_start_date = now

        logger.info(f"Generated {len(rounds)} {sol.frequency} rounds for sol {sol.pk}")
        return rounds

    @staticmethod
    def activate_next_round(sol):
        """
        Make the lowest waiting round active and queue the one after it.

        Returns:
            the activated Round, or None when no round is left
        """
        if sol.current_round() is not None:
            raise StateError("Another round is still active")

        next_round = sol.rounds.filter(status__in=('pending', 'scheduled')).order_by('round_number').first()
        if next_round is None:
            return None

        next_round.status = 'active'
        next_round.save()

        following = sol.rounds.filter(
            status='scheduled', round_number__gt=next_round.round_number
        ).order_by('round_number').first()
        if following is not None:
            following.status = 'pending'
            following.save()

        sol.next_payment_date = next_round.due_date
        sol.participants.filter(is_active=True).update(payment_status='pending')

        logger.info(f"Sol {sol.pk}: round {next_round.round_number} active, due {next_round.due_date}")
        return next_round

    @staticmethod
    def cancel_round(round_obj, reason=''):
        """Cancel an open round, refunding its completed contributions"""
        if round_obj.status not in OPEN_ROUND_STATUSES:
            raise StateError(f"Round {round_obj.round_number} is already {round_obj.status}")

        for payment in round_obj.payments.filter(status='completed'):
            PaymentService.refund(payment, reason=reason)

        round_obj.status = 'cancelled'
        round_obj.recompute_actual_amount()
        round_obj.save()
        logger.info(f"Sol {round_obj.sol_id} round {round_obj.round_number} cancelled: {reason}")


class PaymentService:
    """Records contributions against a sol's active round"""

    @staticmethod
    def record_payment(user, sol, account_id, amount, payment_method='wallet', notes=''):
        """
        Debit the payer's account and apply the contribution to the active round.

        Debit, payment, round completion and payout commit together: if any
        ledger step fails nothing is kept.

        Raises:
            SolValidationError, NoActiveRound, NotParticipant, NotFound, LedgerError
        """
        try:
            amount = Decimal(str(amount))
        except (InvalidOperation, TypeError):
            raise SolValidationError("Payment amount must be a number")
        if not amount.is_finite() or amount <= 0:
            raise SolValidationError("Payment amount must be greater than zero")

        with transaction.atomic():
            sol = SolService._lock(sol)

            if sol.status != 'active':
                raise NoActiveRound(f"Payments are not accepted while the sol is {sol.status}")
            active_round = sol.current_round()
            if active_round is None:
                raise NoActiveRound()

            participant = sol.get_participant(user)
            if participant is None:
                logger.warning(f"Non-participant {user.username} tried to pay into sol {sol.pk}")
                raise NotParticipant()

            try:
                account = LedgerService.get_account(user, account_id)
            except AccountNotFound:
                raise NotFound("Account not found", kind='account_not_found')
            if account.currency != sol.currency:
                raise SolValidationError(
                    f"This sol collects {sol.currency}, the account holds {account.currency}",
                    kind='currency_mismatch'
                )

            already_paid = participant.paid_in_round(active_round)
            if already_paid + amount > sol.contribution_amount:
                raise SolValidationError(
                    f"Payment exceeds your contribution for this round "
                    f"({already_paid} of {sol.contribution_amount} {sol.currency} already paid)",
                    kind='payment_exceeds_contribution'
                )

            try:
                txn = LedgerService.debit(
                    account,
                    amount,
                    currency=sol.currency,
                    transaction_type='sol_contribution',
                    description=f'{sol.name} - round {active_round.round_number}',
                    metadata={'sol_id': str(sol.pk), 'round_number': active_round.round_number},
                )
            except InsufficientSetup as e:
                raise SolValidationError(e.message, kind=e.kind)

            now = timezone.now()
            payment = Payment.objects.create(
                round=active_round,
                participant=participant,
                payer=user,
                amount=amount,
                date=now,
                status='completed',
                payment_method=payment_method or 'wallet',
                account=account,
                transaction=txn,
                notes=notes or '',
            )

            participant.total_paid = F('total_paid') + amount
            participant.last_payment_date = now
            if already_paid + amount >= sol.contribution_amount:
                participant.payment_status = 'current'
            participant.save()
            participant.refresh_from_db(fields=['total_paid'])

            active_round.recompute_actual_amount()
            active_round.save()

            logger.info(
                f"{user.username} paid {amount} {sol.currency} into sol {sol.pk} round "
                f"{active_round.round_number} ({active_round.actual_amount}/{active_round.expected_amount})"
            )

            NotificationService.notify(
                active_round.recipient.user,
                'payment_received',
                f'Payment received in {sol.name}',
                f'{user.get_full_name() or user.username} paid {amount} {sol.currency} '
                f'toward your round ({active_round.actual_amount}/{active_round.expected_amount}).',
                sol=sol,
                data={'round_number': active_round.round_number},
            )

            if active_round.is_funded:
                SolService._settle_round(sol, active_round)

            sol.refresh_metrics()
            sol.save()

        return payment

    @staticmethod
    def refund(payment, reason=''):
        """Credit a completed contribution back to the account it came from"""
        if payment.status != 'completed':
            raise StateError("Only completed payments can be refunded")

        round_obj = payment.round
        account = payment.account
        if account is None or not account.is_active:
            account = LedgerService.get_or_create_default_account(payment.payer, round_obj.sol.currency)
        txn = LedgerService.credit(
            account,
            payment.amount,
            currency=round_obj.sol.currency,
            transaction_type='sol_refund',
            description=reason or f'Refund - {round_obj.sol.name} round {round_obj.round_number}',
            idempotency_key=f'sol-payment-{payment.pk}-refund',
            metadata={'sol_id': str(round_obj.sol_id), 'round_number': round_obj.round_number},
        )

        payment.status = 'refunded'
        payment.refund_transaction = txn
        payment.save()

        Participant.objects.filter(pk=payment.participant_id).update(total_paid=F('total_paid') - payment.amount)
        logger.info(f"Refunded payment {payment.pk} ({payment.amount}) to {payment.payer.username}")
        return txn


class PayoutService:
    """Pays a completed round's pot to its recipient"""

    @staticmethod
    def payout_idempotency_key(sol, round_obj):
        return f'sol-{sol.pk}-round-{round_obj.round_number}-payout'

    @staticmethod
    def distribute(sol, round_obj):
        """
        Credit the round's recipient with the collected amount

        Raises:
            StateError: round not fully funded
        """
        if round_obj.is_distributed:
            return round_obj.payout_transaction

        round_obj.recompute_actual_amount()
        if not round_obj.is_funded:
            raise StateError(
                f"Round {round_obj.round_number} is not fully funded "
                f"({round_obj.actual_amount}/{round_obj.expected_amount})",
                kind='round_not_funded'
            )

        recipient = round_obj.recipient
        account = recipient.payout_account
        if account is None or not account.is_active or account.currency != sol.currency:
            account = LedgerService.get_or_create_default_account(recipient.user, sol.currency)

        txn = LedgerService.credit(
            account,
            round_obj.actual_amount,
            currency=sol.currency,
            transaction_type='sol_payout',
            description=f'{sol.name} - payout round {round_obj.round_number}',
            idempotency_key=PayoutService.payout_idempotency_key(sol, round_obj),
            metadata={'sol_id': str(sol.pk), 'round_number': round_obj.round_number},
        )

        now = timezone.now()
        recipient.has_received = True
        recipient.received_amount = round_obj.actual_amount
        recipient.received_date = now
        recipient.save()

        round_obj.is_distributed = True
        round_obj.distribution_date = now
        round_obj.payout_transaction = txn
        round_obj.save()

        logger.info(
            f"Paid out {round_obj.actual_amount} {sol.currency} to {recipient.user.username} "
            f"for sol {sol.pk} round {round_obj.round_number} ({txn.reference_number})"
        )

        NotificationService.notify(
            recipient.user,
            'payout_distributed',
            f'You received the {sol.name} pot',
            f'{round_obj.actual_amount} {sol.currency} was credited to {account.name}.',
            sol=sol,
            priority='high',
            data={'round_number': round_obj.round_number, 'reference': txn.reference_number},
        )
        SolService._notify_members(
            sol,
            'round_completed',
            f'Round {round_obj.round_number} of {sol.name} completed',
            f'{recipient.user.get_full_name() or recipient.user.username} received '
            f'{round_obj.actual_amount} {sol.currency}.',
            exclude=recipient.user,
        )
        return txn
