from django.core.management.base import BaseCommand

from authentication.utils.session_utils import purge_stale_sessions


class Command(BaseCommand):
    help = 'Delete device sessions with an expired refresh token, and sessions revoked long ago'

    def add_arguments(self, parser):
        parser.add_argument(
            '--keep-revoked-days',
            type=int,
            default=30,
            help='Keep revoked sessions younger than this many days (default 30)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only count the sessions that would be deleted',
        )

    def handle(self, *args, **options):
        counts = purge_stale_sessions(
            keep_revoked_days=options['keep_revoked_days'],
            dry_run=options['dry_run'],
        )
        summary = f"{counts['expired']} expired, {counts['revoked']} revoked"

        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f'Dry run: would delete {summary} sessions'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Deleted {summary} sessions'))
