from django.core.management.base import BaseCommand
from django.db import DatabaseError

from assessments.lifecycle import AttemptLifecycle


class Command(BaseCommand):
    help = 'Auto-submits every in-progress attempt whose exam duration has elapsed'

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help='List overdue attempts without submitting')

    def handle(self, *args, **options):
        lifecycle = AttemptLifecycle()

        if options['dry_run']:
            overdue = lifecycle.store.expired_in_progress(lifecycle.clock())
            for attempt in overdue:
                self.stdout.write(f"{attempt.pk} user={attempt.user_id} exam={attempt.exam_id}")
            self.stdout.write(self.style.SUCCESS(f"{len(overdue)} overdue attempt(s)"))
            return

        try:
            outcomes = lifecycle.expire_overdue()
        except DatabaseError as e:
            self.stdout.write(self.style.ERROR(f"Auto-submit sweep failed: {e}"))
            raise

        submitted = [o for o in outcomes if o.ok]
        for outcome in outcomes:
            if not outcome.ok:
                self.stdout.write(self.style.WARNING(f"Skipped: {outcome.error.message}"))
        self.stdout.write(self.style.SUCCESS(f"Auto-submitted {len(submitted)} attempt(s)"))
