import logging
import pytest
from datetime import timedelta
from decimal import Decimal
from django.db import IntegrityError, transaction
from django.urls import reverse
from django.utils import timezone
from freezegun import freeze_time

from notifications.models import Notification
from sols.exceptions import (
    AlreadyParticipant, Conflict, Forbidden, NoActiveRound, NotFound, NotParticipant, SolFull,
    SolValidationError, StateError,
)
from sols.models import Participant, Payment, Round, Sol
from sols.services import PaymentService, PayoutService, RoundScheduler, SolService
from sols.tasks import mark_overdue_payments, send_payment_reminders
from sols.utils import normalize_id, same_id
from wallet.exceptions import InsufficientFunds
from wallet.models import Transaction
from wallet.services import LedgerService


def balance(user):
    user.account.refresh_from_db()
    return user.account.balance


def pay(user, sol, amount='1000.00'):
    return PaymentService.record_payment(user, sol, user.account.pk, Decimal(amount))


@pytest.fixture
def full_sol(creator, make_user, sol_data):
    """3-person monthly HTG sol of 1000, started by the third join"""
    def _build(**overrides):
        sol = SolService.create_sol(creator, sol_data(**overrides))
        second = make_user(f'second{Sol.objects.count()}')
        third = make_user(f'third{Sol.objects.count()}')
        SolService.join_sol(second, sol.access_code)
        SolService.join_sol(third, sol.access_code)
        sol.refresh_from_db()
        return sol, [creator, second, third]
    return _build


@pytest.mark.django_db
class TestCreateSol:
    def test_creates_recruiting_sol_with_creator_first(self, creator, sol_data):
        sol = SolService.create_sol(creator, sol_data())

        assert sol.status == 'recruiting'
        assert len(sol.access_code) == 6
        assert sol.access_code.isalnum() and sol.access_code == sol.access_code.upper()
        assert not sol.rounds.exists()

        participant = sol.participants.get()
        assert participant.user == creator
        assert participant.position == 1
        assert participant.role == 'creator'
        assert list(sol.status_history.values_list('status', flat=True)) == ['recruiting']
        assert Notification.objects.filter(user=creator, notification_type='sol_created').exists()

    @pytest.mark.parametrize('overrides,kind', [
        ({'max_participants': 2}, 'invalid_max_participants'),
        ({'max_participants': 21}, 'invalid_max_participants'),
        ({'contribution_amount': Decimal('499.99')}, 'invalid_contribution_amount'),
        ({'contribution_amount': Decimal('100001')}, 'invalid_contribution_amount'),
        ({'currency': 'USD', 'contribution_amount': Decimal('1001')}, 'invalid_contribution_amount'),
        ({'frequency': 'daily'}, 'invalid_frequency'),
        ({'late_fee': Decimal('25')}, 'invalid_late_fee'),
    ])
    def test_rejects_invalid_config(self, creator, sol_data, overrides, kind):
        with pytest.raises(SolValidationError) as excinfo:
            SolService.create_sol(creator, sol_data(**overrides))
        assert excinfo.value.kind == kind
        assert not Sol.objects.exists()

    def test_usd_bounds(self, creator, sol_data):
        sol = SolService.create_sol(creator, sol_data(currency='USD', contribution_amount=Decimal('5')))
        assert sol.currency == 'USD'

    def test_start_date_must_be_after_tomorrow(self, creator, sol_data):
        with freeze_time('2025-03-01 12:00:00'):
            with pytest.raises(SolValidationError) as excinfo:
                SolService.create_sol(creator, sol_data(start_date=timezone.now() + timedelta(days=1)))
            assert excinfo.value.kind == 'invalid_start_date'

            sol = SolService.create_sol(
                creator, sol_data(start_date=timezone.now() + timedelta(days=1, minutes=1))
            )
            assert sol.pk

    def test_limit_of_open_sols_per_creator(self, creator, sol_data):
        for i in range(5):
            SolService.create_sol(creator, sol_data(name=f'Sol {i}'))
        with pytest.raises(SolValidationError) as excinfo:
            SolService.create_sol(creator, sol_data(name='One too many'))
        assert excinfo.value.kind == 'sol_limit_reached'


@pytest.mark.django_db
class TestJoinSol:
    def test_filling_join_starts_sol_and_generates_rounds(self, creator, make_user, sol_data):
        with freeze_time('2025-03-01 12:00:00'):
            sol = SolService.create_sol(creator, sol_data())
            SolService.join_sol(make_user('marie'), sol.access_code)
            sol.refresh_from_db()
            assert sol.status == 'recruiting'

            SolService.join_sol(make_user('paul'), sol.access_code.lower())
            now = timezone.now()

        sol.refresh_from_db()
        assert sol.status == 'active'
        assert sol.actual_start_date == now

        rounds = list(sol.rounds.order_by('round_number'))
        assert [r.status for r in rounds] == ['active', 'pending', 'scheduled']
        assert [r.recipient.position for r in rounds] == [1, 2, 3]
        for i, r in enumerate(rounds):
            assert r.start_date == now + timedelta(days=30 * i)
            assert r.end_date == now + timedelta(days=30 * (i + 1))
            assert r.due_date == r.start_date + timedelta(days=7)
            assert r.expected_amount == Decimal('3000.00')
        assert sol.next_payment_date == rounds[0].due_date
        assert list(sol.status_history.values_list('status', flat=True)) == ['recruiting', 'active']

    def test_weekly_interval(self, full_sol):
        sol, _ = full_sol(frequency='weekly')
        first, second, _ = sol.rounds.order_by('round_number')
        assert second.start_date - first.start_date == timedelta(days=7)

    def test_unknown_code(self, make_user):
        with pytest.raises(NotFound):
            SolService.join_sol(make_user('marie'), 'ZZZZZZ')

    def test_already_participant(self, creator, make_user, sol_data):
        sol = SolService.create_sol(creator, sol_data())
        marie = make_user('marie')
        SolService.join_sol(marie, sol.access_code)
        with pytest.raises(AlreadyParticipant):
            SolService.join_sol(marie, sol.access_code)
        with pytest.raises(AlreadyParticipant):
            SolService.join_sol(creator, sol.access_code)

    def test_second_join_for_last_slot_is_rejected(self, creator, make_user, sol_data):
        sol = SolService.create_sol(creator, sol_data())
        SolService.join_sol(make_user('marie'), sol.access_code)

        SolService.join_sol(make_user('paul'), sol.access_code)
        with pytest.raises(SolFull):
            SolService.join_sol(make_user('late'), sol.access_code)

        assert Round.objects.filter(sol=sol).count() == 3
        assert sol.participants.filter(is_active=True).count() == 3

    def test_rounds_generated_only_once(self, full_sol):
        sol, _ = full_sol()
        with pytest.raises(StateError):
            RoundScheduler.generate_rounds(sol)
        assert sol.rounds.count() == 3

    def test_lowest_free_position_after_leave(self, creator, make_user, sol_data):
        sol = SolService.create_sol(creator, sol_data(max_participants=4))
        marie, paul = make_user('marie'), make_user('paul')
        SolService.join_sol(marie, sol.access_code)
        SolService.join_sol(paul, sol.access_code)
        SolService.leave_sol(marie, sol, 'Changed my mind')

        joined = SolService.join_sol(make_user('rose'), sol.access_code)
        assert joined.position == 2
        positions = list(sol.participants.filter(is_active=True).values_list('position', flat=True))
        assert sorted(positions) == [1, 2, 3]


@pytest.mark.django_db
class TestPayments:
    def test_three_payments_complete_round_and_pay_recipient(self, full_sol):
        sol, (creator, second, third) = full_sol()

        pay(creator, sol)
        pay(second, sol)
        round_one = sol.rounds.get(round_number=1)
        assert round_one.status == 'active'
        assert round_one.actual_amount == Decimal('2000.00')

        pay(third, sol)

        round_one.refresh_from_db()
        assert round_one.status == 'completed'
        assert round_one.actual_amount == Decimal('3000.00')
        assert round_one.is_distributed
        assert round_one.payout_transaction.idempotency_key == f'sol-{sol.pk}-round-1-payout'

        recipient = Participant.objects.get(sol=sol, position=1)
        assert recipient.has_received
        assert recipient.received_amount == Decimal('3000.00')
        assert balance(creator) == Decimal('12000.00')
        assert balance(second) == Decimal('9000.00')

        statuses = dict(sol.rounds.values_list('round_number', 'status'))
        assert statuses == {1: 'completed', 2: 'active', 3: 'pending'}

        sol.refresh_from_db()
        assert sol.completed_rounds == 1
        assert sol.total_collected == Decimal('3000.00')
        assert sol.next_payment_date == sol.rounds.get(round_number=2).due_date
        assert set(sol.participants.values_list('payment_status', flat=True)) == {'pending'}

    def test_full_cycle_completes_sol(self, full_sol):
        sol, members = full_sol()
        for _ in range(3):
            for member in members:
                pay(member, sol)

        sol.refresh_from_db()
        assert sol.status == 'completed'
        assert sol.completed_date is not None
        assert sol.completed_rounds == 3
        assert sol.success_rate == Decimal('100.00')
        assert sol.total_distributed == Decimal('9000.00')
        assert all(p.has_received for p in sol.participants.all())
        assert [balance(m) for m in members] == [Decimal('10000.00')] * 3
        assert list(sol.status_history.values_list('status', flat=True)) == ['recruiting', 'active', 'completed']

        with pytest.raises(NoActiveRound):
            pay(members[0], sol)

    def test_single_active_round_and_ordering(self, full_sol):
        sol, members = full_sol()
        for member in members:
            pay(member, sol)
        assert sol.rounds.filter(status='active').count() == 1
        completed = list(sol.rounds.filter(status='completed').values_list('round_number', flat=True))
        active = sol.rounds.get(status='active').round_number
        assert completed == [1]
        assert active == 2

    def test_actual_amount_matches_completed_payments(self, full_sol):
        sol, (creator, second, _) = full_sol()
        pay(creator, sol, '400.00')
        pay(second, sol, '250.00')
        round_one = sol.rounds.get(round_number=1)
        total = sum(p.amount for p in round_one.payments.filter(status='completed'))
        assert round_one.actual_amount == total == Decimal('650.00')

    def test_non_participant_is_forbidden(self, full_sol, make_user):
        sol, _ = full_sol()
        outsider = make_user('outsider')
        with pytest.raises(NotParticipant):
            pay(outsider, sol)
        assert balance(outsider) == Decimal('10000.00')
        assert not Payment.objects.exists()

    def test_amount_must_be_positive(self, full_sol):
        sol, (creator, _, _) = full_sol()
        with pytest.raises(SolValidationError):
            pay(creator, sol, '0')
        with pytest.raises(SolValidationError):
            pay(creator, sol, '-10')

    def test_over_contribution_is_rejected(self, full_sol):
        sol, (creator, _, _) = full_sol()
        with pytest.raises(SolValidationError) as excinfo:
            pay(creator, sol, '1500.00')
        assert excinfo.value.kind == 'payment_exceeds_contribution'
        assert balance(creator) == Decimal('10000.00')

    def test_partial_payments_accumulate(self, full_sol):
        sol, (creator, _, _) = full_sol()
        pay(creator, sol, '400.00')
        participant = Participant.objects.get(sol=sol, user=creator)
        assert participant.payment_status == 'pending'

        pay(creator, sol, '600.00')
        participant.refresh_from_db()
        assert participant.payment_status == 'current'
        assert participant.total_paid == Decimal('1000.00')

        with pytest.raises(SolValidationError):
            pay(creator, sol, '0.01')

    def test_no_active_round_while_recruiting(self, creator, sol_data):
        sol = SolService.create_sol(creator, sol_data())
        with pytest.raises(NoActiveRound):
            pay(creator, sol)

    def test_ledger_failure_keeps_nothing(self, creator, make_user, sol_data):
        sol = SolService.create_sol(creator, sol_data())
        SolService.join_sol(make_user('marie'), sol.access_code)
        poor = make_user('poor', balance=Decimal('500.00'))
        SolService.join_sol(poor, sol.access_code)

        with pytest.raises(InsufficientFunds):
            pay(poor, sol)
        assert balance(poor) == Decimal('500.00')
        assert not Payment.objects.filter(payer=poor).exists()
        assert sol.rounds.get(round_number=1).actual_amount == Decimal('0.00')

    def test_account_of_someone_else(self, full_sol):
        sol, (creator, second, _) = full_sol()
        with pytest.raises(NotFound) as excinfo:
            PaymentService.record_payment(creator, sol, second.account.pk, Decimal('1000'))
        assert excinfo.value.kind == 'account_not_found'

    def test_currency_mismatch(self, full_sol):
        sol, (creator, _, _) = full_sol()
        usd =LedgerService.open_account(creator, 'Dollars', currency='USD')
        LedgerService.credit(usd, Decimal('100'))
        with pytest.raises(SolValidationError) as excinfo:
            PaymentService.record_payment(creator, sol, usd.pk, Decimal('10'))
        assert excinfo.value.kind == 'currency_mismatch'

    def test_payer_identity_is_normalised(self, full_sol):
        sol, (creator, _, _) = full_sol()
        payment = PaymentService.record_payment(creator, str(sol.pk), str(creator.account.pk), '1000')
        assert payment.status == 'completed'


@pytest.mark.django_db
class TestPayout:
    def test_payout_is_idempotent(self, full_sol):
        sol, members = full_sol()
        for member in members:
            pay(member, sol)
        round_one = sol.rounds.get(round_number=1)

        again = PayoutService.distribute(sol, round_one)

        assert again == round_one.payout_transaction
        assert Transaction.objects.filter(transaction_type='sol_payout').count() == 1

    def test_unfunded_round_cannot_pay_out(self, full_sol):
        sol, (creator, _, _) = full_sol()
        pay(creator, sol)
        with pytest.raises(StateError) as excinfo:
            PayoutService.distribute(sol, sol.rounds.get(round_number=1))
        assert excinfo.value.kind == 'round_not_funded'

    def test_payout_goes_to_chosen_account(self, creator, make_user, sol_data):
        sol = SolService.create_sol(creator, sol_data())
        marie = make_user('marie')
        savings = LedgerService.open_account(marie, 'Epargne', account_type='savings')
        SolService.join_sol(marie, sol.access_code, payout_account_id=savings.pk)
        paul = make_user('paul')
        SolService.join_sol(paul, sol.access_code)

        for _ in range(2):
            for member in (creator, marie, paul):
                pay(member, sol)

        savings.refresh_from_db()
        assert savings.balance == Decimal('3000.00')


@pytest.mark.django_db
class TestLeaveSol:
    def test_creator_cannot_leave_active_sol(self, full_sol):
        sol, (creator, _, _) = full_sol()
        with pytest.raises(Forbidden):
            SolService.leave_sol(creator, sol, 'bye')

    def test_creator_leaving_recruiting_sol_cancels_it(self, creator, sol_data):
        sol = SolService.create_sol(creator, sol_data())
        SolService.leave_sol(creator, sol, 'Not enough interest')
        sol.refresh_from_db()
        assert sol.status == 'cancelled'
        assert not sol.is_active

    def test_non_participant_cannot_leave(self, full_sol, make_user):
        sol, _ = full_sol()
        with pytest.raises(NotParticipant):
            SolService.leave_sol(make_user('outsider'), sol)

    def test_cannot_leave_after_receiving(self, full_sol):
        sol, members = full_sol()
        for member in members:
            pay(member, sol)
        for member in members:
            pay(member, sol)
        with pytest.raises(StateError) as excinfo:
            SolService.leave_sol(members[1], sol)
        assert excinfo.value.kind == 'payout_received'

    def test_leaving_running_sol_refunds_and_shrinks_rounds(self, full_sol):
        sol, (creator, second, third) = full_sol()
        pay(creator, sol)
        pay(third, sol)

        SolService.leave_sol(third, sol, 'Moving abroad')

        assert balance(third) == Decimal('10000.00')
        assert Payment.objects.get(payer=third).status == 'refunded'
        statuses = dict(sol.rounds.values_list('round_number', 'status'))
        assert statuses[3] == 'cancelled'
        round_one = sol.rounds.get(round_number=1)
        assert round_one.expected_amount == Decimal('2000.00')
        assert round_one.actual_amount == Decimal('1000.00')

        pay(second, sol)
        round_one.refresh_from_db()
        assert round_one.status == 'completed'
        assert balance(creator) == Decimal('11000.00')

        pay(creator, sol)
        pay(second, sol)
        sol.refresh_from_db()
        assert sol.status == 'completed'
        assert balance(second) == Decimal('10000.00')

    def test_recipient_of_active_round_leaving(self, full_sol):
        sol, (creator, second, third) = full_sol()
        for member in (creator, second, third):
            pay(member, sol)
        pay(creator, sol)

        SolService.leave_sol(second, sol)

        assert balance(creator) == Decimal('12000.00')
        statuses = dict(sol.rounds.values_list('round_number', 'status'))
        assert statuses == {1: 'completed', 2: 'cancelled', 3: 'active'}
        assert sol.rounds.get(round_number=3).expected_amount == Decimal('2000.00')


@pytest.mark.django_db
class TestLifecycleSideExits:
    def test_only_creator_can_cancel(self, full_sol):
        sol, (_, second, _) = full_sol()
        with pytest.raises(Forbidden):
            SolService.cancel_sol(sol, second, 'no')

    def test_cancel_refunds_open_round(self, full_sol):
        sol, (creator, second, _) = full_sol()
        pay(second, sol)

        SolService.cancel_sol(sol, creator, 'Group dissolved')

        sol.refresh_from_db()
        assert sol.status == 'cancelled'
        assert not sol.is_active
        assert sol.cancellation_reason == 'Group dissolved'
        assert set(sol.rounds.values_list('status', flat=True)) == {'cancelled'}
        assert balance(second) == Decimal('10000.00')
        history = sol.status_history.last()
        assert (history.from_status, history.status, history.changed_by) == ('active', 'cancelled', creator)

        with pytest.raises(StateError):
            SolService.cancel_sol(sol, creator, 'again')

    def test_pause_blocks_payments_until_resume(self, full_sol):
        sol, (creator, second, _) = full_sol()
        SolService.pause_sol(sol, creator, 'Holidays')
        with pytest.raises(NoActiveRound):
            pay(second, sol)

        SolService.resume_sol(sol, creator)
        pay(second, sol)
        sol.refresh_from_db()
        assert sol.status == 'active'

    def test_pause_requires_active_sol(self, creator, sol_data):
        sol = SolService.create_sol(creator, sol_data())
        with pytest.raises(StateError):
            SolService.pause_sol(sol, creator)

    def test_creator_cannot_leave_paused_sol(self, full_sol):
        sol, (creator, _, _) = full_sol()
        SolService.pause_sol(sol, creator)
        with pytest.raises(Forbidden):
            SolService.leave_sol(creator, sol)


@pytest.mark.django_db
class TestReadSide:
    def test_get_sol_for_user(self, full_sol, make_user):
        sol, (_, second, _) = full_sol()
        assert SolService.get_sol_for_user(second, str(sol.pk)) == sol
        with pytest.raises(NotParticipant):
            SolService.get_sol_for_user(make_user('outsider'), sol.pk)
        with pytest.raises(NotFound):
            SolService.get_sol_for_user(second, 'not-a-uuid')

    def test_get_user_sols_filters(self, full_sol, creator, sol_data):
        active, _ = full_sol()
        SolService.create_sol(creator, sol_data(name='Recruiting one'))
        assert SolService.get_user_sols(creator).paginator.count == 2
        page = SolService.get_user_sols(creator, status='active')
        assert [s.pk for s in page] == [active.pk]

    def test_discover_sols(self, creator, make_user, sol_data):
        public = SolService.create_sol(creator, sol_data(name='Public'))
        SolService.create_sol(creator, sol_data(name='Private', is_private=True))
        marie = make_user('marie')

        assert [s.pk for s in SolService.discover_sols(marie)] == [public.pk]
        assert list(SolService.discover_sols(creator)) == []

    def test_personal_analytics(self, full_sol):
        sol, (creator, second, third) = full_sol()
        for member in (creator, second, third):
            pay(member, sol)

        stats = SolService.get_personal_analytics(second)
        assert stats['by_status']['active'] == 1
        assert stats['total_contributed'] == {'HTG': '1000.00'}
        assert stats['monthly_commitment'] == {'HTG': '1000.00'}
        assert stats['upcoming_payouts'][0]['round_number'] == 2

        creator_stats = SolService.get_personal_analytics(creator)
        assert creator_stats['total_received'] == {'HTG': '3000.00'}

    def test_analytics_amounts_have_two_decimals(self, full_sol):
        sol, (creator, _, _) = full_sol()
        pay(creator, sol, '400')
        pay(creator, sol, '250.5')

        stats = SolService.get_personal_analytics(creator)
        assert stats['total_contributed'] == {'HTG': '650.50'}
        assert stats['total_received'] == {}


class TestIdentifiers:
    def test_normalize_id(self):
        sol_id = 'C0A8E7A2-1B3D-4E5F-8A9B-0C1D2E3F4A5B'
        assert normalize_id(sol_id) == sol_id.lower()
        assert normalize_id(7) == '7'
        assert same_id(7, ' 7 ')
        assert not same_id(None, None)

    def test_conflict_has_default_message(self):
        error = Conflict()
        assert error.message == str(error)
        assert error.message
        assert error.kind == 'conflict'
        assert error.status_code == 409


@pytest.mark.django_db
class TestConstraints:
    def test_payment_amount_must_be_positive_in_database(self, full_sol):
        sol, (creator, _, _) = full_sol()
        payment = pay(creator, sol)
        with pytest.raises(IntegrityError), transaction.atomic():
            Payment.objects.filter(pk=payment.pk).update(amount=Decimal('0'))


@pytest.mark.django_db
class TestScheduledTasks:
    def test_reminders_skip_paid_participants(self, creator, make_user, sol_data):
        with freeze_time('2025-03-01 15:00:00'):
            sol = SolService.create_sol(creator, sol_data())
            marie, paul = make_user('marie'), make_user('paul')
            SolService.join_sol(marie, sol.access_code)
            SolService.join_sol(paul, sol.access_code)
            pay(marie, sol)

        with freeze_time('2025-03-05 15:00:00'):
            result = send_payment_reminders()
        assert result['reminders_sent'] == 2
        reminded = set(Notification.objects.filter(
            notification_type='payment_due', data__days_left=3).values_list('user__username', flat=True))
        assert reminded == {'creator', 'paul'}

        with freeze_time('2025-03-06 15:00:00'):
            assert send_payment_reminders()['reminders_sent'] == 0

    def test_overdue_marked_once(self, creator, make_user, sol_data):
        with freeze_time('2025-03-01 15:00:00'):
            sol = SolService.create_sol(creator, sol_data())
            marie, paul = make_user('marie'), make_user('paul')
            SolService.join_sol(marie, sol.access_code)
            SolService.join_sol(paul, sol.access_code)
            pay(marie, sol)

        with freeze_time('2025-03-09 15:00:00'):
            assert mark_overdue_payments()['participants_marked'] == 2
            assert mark_overdue_payments()['participants_marked'] == 0

        overdue = set(Participant.objects.filter(sol=sol, payment_status='overdue').values_list(
            'user__username', flat=True))
        assert overdue == {'creator', 'paul'}
        assert Notification.objects.filter(notification_type='payment_overdue').count() == 2

    def test_overdue_warning_only_for_rounds_with_new_marks(self, creator, make_user, sol_data, caplog):
        with freeze_time('2025-03-01 15:00:00'):
            first = SolService.create_sol(creator, sol_data(name='First'))
            SolService.join_sol(make_user('marie'), first.access_code)
            SolService.join_sol(make_user('paul'), first.access_code)
        with freeze_time('2025-03-02 15:00:00'):
            rose = make_user('rose')
            second = SolService.create_sol(rose, sol_data(name='Second'))
            SolService.join_sol(make_user('jacques'), second.access_code)
            SolService.join_sol(make_user('nadia'), second.access_code)
        Participant.objects.filter(sol=second).update(payment_status='overdue')

        caplog.set_level(logging.WARNING, logger='sols.tasks')
        with freeze_time('2025-03-09 18:00:00'):
            result = mark_overdue_payments()

        assert result == {'rounds_checked': 2, 'participants_marked': 3}
        warnings = [r.getMessage() for r in caplog.records if r.name == 'sols.tasks' and r.levelno == logging.WARNING]
        assert warnings == [f'Sol {first.pk} round 1: 3 participants marked overdue']


@pytest.mark.django_db
class TestSolViews:
    def test_requires_authentication(self, client):
        response = client.get(reverse('sols:list'))
        assert response.status_code == 401
        assert response.json()['success'] is False

    def test_create_and_join_over_http(self, client, creator, make_user, bearer):
        payload = {
            'name': 'Sol Lakou',
            'contribution_amount': '1000',
            'currency': 'HTG',
            'frequency': 'monthly',
            'max_participants': 3,
            'start_date': (timezone.now() + timedelta(days=5)).isoformat(),
            'tags': ['fanmi'],
        }
        response = client.post(reverse('sols:list'), payload, content_type='application/json', **bearer(creator))
        assert response.status_code == 201
        created = response.json()['data']
        assert created['status'] == 'recruiting'
        assert created['participants'][0]['role'] == 'creator'

        marie = make_user('marie')
        response = client.post(
            reverse('sols:join'), {'access_code': created['access_code'].lower()},
            content_type='application/json', **bearer(marie),
        )
        assert response.status_code == 200
        assert response.json()['data']['participant_count'] == 2

        response = client.get(reverse('sols:list'), **bearer(marie))
        assert [s['id'] for s in response.json()['data']] == [created['id']]

    def test_validation_error_shape(self, client, creator, bearer):
        response = client.post(
            reverse('sols:list'),
            {'name': 'Too small', 'contribution_amount': '100', 'frequency': 'monthly',
             'max_participants': 3, 'start_date': (timezone.now() + timedelta(days=5)).isoformat()},
            content_type='application/json',
            **bearer(creator),
        )
        assert response.status_code == 400
        body = response.json()
        assert body['success'] is False
        assert body['error'] == 'invalid_contribution_amount'
        assert body['message']

    def test_payment_endpoint(self, client, full_sol, make_user, bearer):
        sol, (creator, _, _) = full_sol()
        url = reverse('sols:payment', args=[sol.pk])

        response = client.post(url, {'account_id': creator.account.pk, 'amount': '1000'},
                               content_type='application/json', **bearer(creator))
        assert response.status_code == 201
        assert response.json()['data']['payment']['status'] == 'completed'

        outsider = make_user('outsider')
        response = client.post(url, {'account_id': outsider.account.pk, 'amount': '1000'},
                               content_type='application/json', **bearer(outsider))
        assert response.status_code == 403
        assert response.json()['error'] == 'not_participant'

    def test_detail_hidden_from_outsiders(self, client, full_sol, make_user, bearer):
        sol, (creator, _, _) = full_sol()
        response = client.get(reverse('sols:detail', args=[sol.pk]), **bearer(creator))
        assert response.status_code == 200
        assert len(response.json()['data']['rounds']) == 3

        response = client.get(reverse('sols:detail', args=[sol.pk]), **bearer(make_user('outsider')))
        assert response.status_code == 403

    def test_creator_leave_is_forbidden(self, client, full_sol, bearer):
        sol, (creator, _, _) = full_sol()
        response = client.post(reverse('sols:leave', args=[sol.pk]), {'reason': 'tired'},
                               content_type='application/json', **bearer(creator))
        assert response.status_code == 403
        assert response.json()['error'] == 'creator_cannot_leave'

    def test_lifecycle_endpoints(self, client, full_sol, bearer):
        sol, (creator, _, _) = full_sol()
        auth = bearer(creator)
        response = client.post(reverse('sols:pause', args=[sol.pk]), **auth)
        assert response.json()['data']['status'] == 'paused'
        response = client.post(reverse('sols:resume', args=[sol.pk]), **auth)
        assert response.json()['data']['status'] == 'active'
        response = client.post(reverse('sols:cancel', args=[sol.pk]), {'reason': 'done'},
                               content_type='application/json', **auth)
        assert response.json()['data']['status'] == 'cancelled'

    def test_discover_and_analytics(self, client, creator, make_user, sol_data, bearer):
        SolService.create_sol(creator, sol_data())
        marie = make_user('marie')

        response = client.get(reverse('sols:discover'), **bearer(marie))
        assert len(response.json()['data']) == 1
        assert 'access_code' in response.json()['data'][0]

        response = client.get(reverse('sols:personal_analytics'), **bearer(creator))
        assert response.json()['data']['by_status']['recruiting'] == 1
