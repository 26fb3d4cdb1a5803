# sols/tasks.py - periodic payment follow-up

from celery import shared_task
from constance import config
from django.utils import timezone
import logging

from notifications.services import NotificationService
from .models import Round, Sol

logger = logging.getLogger(__name__)


def _reminder_days():
    days = set()
    for part in str(config.SOL_REMINDER_DAYS).split(','):
        part = part.strip()
        if part.isdigit():
            days.add(int(part))
    return days


def _unpaid_participants(sol, round_obj):
    for participant in sol.active_participants().select_related('user'):
        if participant.paid_in_round(round_obj) < sol.contribution_amount:
            yield participant


# ========================================
# PAYMENT REMINDERS
# ========================================

@shared_task(name='sols.send_payment_reminders')
def send_payment_reminders():
    """
    Remind participants who have not paid their share of the active round

    Schedule: Daily at 9:00 AM
    Sends on each day listed in SOL_REMINDER_DAYS before the due date.
    """
    logger.info("=" * 80)
    logger.info("TASK: send_payment_reminders - STARTED")
    logger.info("=" * 80)

    today = timezone.localdate()
    reminder_days = _reminder_days()
    sols_checked = 0
    reminders_sent = 0

    sols = Sol.objects.filter(status='active', is_active=True, next_payment_date__isnull=False)
    for sol in sols:
        sols_checked += 1
        days_left = (timezone.localtime(sol.next_payment_date).date() - today).days
        if days_left not in reminder_days:
            continue

        active_round = sol.current_round()
        if active_round is None:
            continue

        if days_left == 0:
            title = f'{sol.name}: payment due today'
        else:
            title = f'{sol.name}: payment due in {days_left} day(s)'

        for participant in _unpaid_participants(sol, active_round):
            remaining = sol.contribution_amount - participant.paid_in_round(active_round)
            notification = NotificationService.notify(
                participant.user,
                'payment_due',
                title,
                f'Please contribute {remaining} {sol.currency} for round {active_round.round_number} '
                f'before {timezone.localtime(active_round.due_date):%d/%m/%Y}.',
                sol=sol,
                priority='high' if days_left == 0 else 'medium',
                data={'round_number': active_round.round_number, 'days_left': days_left},
            )
            if notification:
                reminders_sent += 1

    logger.info(f"TASK: send_payment_reminders - {reminders_sent} reminders for {sols_checked} sols")
    return {'sols_checked': sols_checked, 'reminders_sent': reminders_sent}


# ========================================
# OVERDUE TRACKING
# ========================================

@shared_task(name='sols.mark_overdue_payments')
def mark_overdue_payments():
    """
    Flag participants who missed the due date of the active round

    Schedule: Daily at 7:00 AM
    Each participant is flagged and notified once per round; the flag resets
    when the next round activates.
    """
    logger.info("=" * 80)
    logger.info("TASK: mark_overdue_payments - STARTED")
    logger.info("=" * 80)

    now = timezone.now()
    rounds = Round.objects.filter(
        status='active', due_date__lt=now, sol__status='active', sol__is_active=True
    ).select_related('sol').order_by('due_date')

    marked = 0
    for round_obj in rounds:
        sol = round_obj.sol
        round_marked = 0
        for participant in _unpaid_participants(sol, round_obj):
            if participant.payment_status == 'overdue':
                continue
            participant.payment_status = 'overdue'
            participant.save(update_fields=['payment_status'])
            round_marked += 1

            NotificationService.notify(
                participant.user,
                'payment_overdue',
                f'{sol.name}: payment overdue',
                f'Your contribution for round {round_obj.round_number} was due on '
                f'{timezone.localtime(round_obj.due_date):%d/%m/%Y}. '
                f'A late fee of {sol.late_fee}% may apply.',
                sol=sol,
                priority='urgent',
                data={'round_number': round_obj.round_number},
            )
        if round_marked:
            logger.warning(
                f"Sol {sol.pk} round {round_obj.round_number}: {round_marked} participants marked overdue"
            )
        marked += round_marked

    logger.info(f"TASK: mark_overdue_payments - {marked} participants marked overdue")
    return {'rounds_checked': rounds.count(), 'participants_marked': marked}
