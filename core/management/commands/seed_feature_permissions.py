"""
Management command to load the default feature permission table

Usage:
    python manage.py seed_feature_permissions
    python manage.py seed_feature_permissions --reset  # Overwrite existing flags with defaults
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from core.permissions import DEFAULT_FEATURES, seed_default_features


class Command(BaseCommand):
    help = 'Create the default per-role feature permissions'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Overwrite existing feature flags with the defaults',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        reset = options['reset']

        if reset:
            self.stdout.write(self.style.WARNING('Resetting feature flags to defaults...'))

        created, updated = seed_default_features(overwrite=reset)

        self.stdout.write(f'  {len(DEFAULT_FEATURES)} features known')
        self.stdout.write(f'  {created} created, {updated} reset')
        self.stdout.write(self.style.SUCCESS('\n[SUCCESS] Feature permissions ready\n'))
