from django.core.management.base import BaseCommand
from django.db.models import Count, Q

from sols.models import Sol


class Command(BaseCommand):
    help = 'List sols with their access codes, participants and round progress'

    def add_arguments(self, parser):
        parser.add_argument(
            '--status',
            type=str,
            help='Filter by status (recruiting, active, paused, completed, cancelled)',
        )

    def handle(self, *args, **options):
        status = options.get('status')

        self.stdout.write(self.style.SUCCESS('\n' + '=' * 80))
        self.stdout.write(self.style.SUCCESS('  SOLS'))
        self.stdout.write(self.style.SUCCESS('=' * 80 + '\n'))

        sols = Sol.objects.select_related('creator')
        if status:
            sols = sols.filter(status=status)

        sols = sols.annotate(
            member_count=Count('participants', filter=Q(participants__is_active=True), distinct=True)
        ).order_by('-created_at')

        if not sols.exists():
            self.stdout.write(self.style.WARNING('No sols found.'))
            return

        for sol in sols:
            if sol.status == 'active':
                status_style = self.style.SUCCESS
            elif sol.status == 'completed':
                status_style = self.style.HTTP_INFO
            elif sol.status in ('recruiting', 'paused'):
                status_style = self.style.WARNING
            else:
                status_style = self.style.ERROR

            self.stdout.write('\n' + '-' * 80)
            self.stdout.write(self.style.HTTP_SUCCESS(f'NAME: {sol.name}'))
            self.stdout.write(f'ID: {sol.id}')
            self.stdout.write(f'ACCESS CODE: {sol.access_code}')
            self.stdout.write(status_style(f'STATUS: {sol.status.upper()}'))
            self.stdout.write(f'CREATOR: {sol.creator.username}')
            self.stdout.write(f'PARTICIPANTS: {sol.member_count}/{sol.max_participants}')
            self.stdout.write(f'CONTRIBUTION: {sol.currency} {sol.contribution_amount} ({sol.get_frequency_display()})')
            if sol.next_payment_date:
                self.stdout.write(f'NEXT PAYMENT: {sol.next_payment_date:%Y-%m-%d}')
            self.stdout.write(f'COLLECTED: {sol.currency} {sol.total_collected}')

            rounds = sol.rounds.select_related('recipient__user').order_by('round_number')
            if rounds.exists():
                self.stdout.write('\nROUNDS:')
                for round_obj in rounds:
                    self.stdout.write(
                        f'  {round_obj.round_number:>2}. {round_obj.status:<10} '
                        f'{round_obj.actual_amount}/{round_obj.expected_amount} '
                        f'-> {round_obj.recipient.user.username}'
                    )

        self.stdout.write('\n' + '=' * 80)
        self.stdout.write(self.style.SUCCESS(f'Total sols: {sols.count()}\n'))
