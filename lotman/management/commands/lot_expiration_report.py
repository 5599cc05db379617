"""
Management command to report expired and expiring lots.

Usage:
    python manage.py lot_expiration_report
    python manage.py lot_expiration_report --days 15
    python manage.py lot_expiration_report --check-alerts
"""

from django.core.management.base import BaseCommand

from lotman import lots
from lotman.services.alerts import check_alerts


class Command(BaseCommand):
    """Expiration report command."""

    help = 'Lists expired lots and lots close to expiration that still hold stock'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help="Near-expiration window in days (default: each article category's window)",
        )
        parser.add_argument(
            '--check-alerts',
            action='store_true',
            help='Also record low-stock alerts for stocks newly at or below their threshold',
        )

    def handle(self, *args, **options):
        expired = list(lots.expired_lots())
        near = lots.near_expiration_lots(days=options['days'])

        self.stdout.write(f'{len(expired)} expired lot(s)')
        for lot in expired:
            self.stdout.write(
                f'  {lot.code}  {lot.stock.code}  exp {lot.date_expiration}  '
                f'remaining {lot.quantity_remaining}'
            )

        self.stdout.write(f'{len(near)} lot(s) near expiration')
        for lot in near:
            self.stdout.write(
                f'  {lot.code}  {lot.stock.code}  exp {lot.date_expiration}  '
                f'{lot.days_until_expiration} day(s) [{lot.urgency}]  '
                f'remaining {lot.quantity_remaining}'
            )

        if options['check_alerts']:
            triggered = check_alerts()
            self.stdout.write(
                self.style.WARNING(f'{len(triggered)} low-stock alert(s) recorded')
                if triggered else
                self.style.SUCCESS('No new low-stock alert')
            )
