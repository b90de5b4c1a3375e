"""
Retry the fund entry for loans stuck in pending_fund_link

Usage:
    python manage.py link_pending_loans
    python manage.py link_pending_loans --dry-run
"""

import logging

from django.core.management.base import BaseCommand
from django.db import DatabaseError

from core.models import Loan

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Write missing loan_disbursement fund entries and activate the loans'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List pending loans without writing anything',
        )

    def handle(self, *args, **options):
        pending = Loan.objects.pending_fund_link().select_related('customer')

        if not pending.exists():
            self.stdout.write(self.style.SUCCESS('No loans waiting for a fund entry.'))
            return

        linked = failed = 0
        for loan in pending:
            self.stdout.write(f'  {loan.id}  {loan.customer.name}  disbursal={loan.disbursal_amount}')
            if options['dry_run']:
                continue
            try:
                loan.link_fund_disbursement()
                linked += 1
            except DatabaseError as e:
                failed += 1
                logger.error(f"Fund link retry failed for loan {loan.id}: {e}")
                self.stdout.write(self.style.ERROR(f'    failed: {e}'))

        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f'\n{pending.count()} loan(s) pending (dry run)\n'))
        else:
            self.stdout.write(self.style.SUCCESS(f'\n{linked} linked, {failed} failed\n'))
