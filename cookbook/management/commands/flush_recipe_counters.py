from django.core.management.base import BaseCommand
from cookbook.errors import FlushInProgress
from cookbook.services.counters import get_counter_service


class Command(BaseCommand):
    """
    Fold pending view/like counters from Redis into the recipe table.

    Meant to be run on a schedule (cron, systemd timer or similar). Running
    it while another flush holds the lock is a no-op.
    """

    help = 'Flushes buffered recipe view and like counters into the database'

    def handle(self, *args, **options):
        try:
            result = get_counter_service().flush()
        except FlushInProgress:
            self.stdout.write(self.style.WARNING("Another flush is in progress; skipped."))
            return

        self.stdout.write(self.style.SUCCESS(
            f"Flushed {result.updated['views']} view and {result.updated['likes']} like counters "
            f"({result.skipped} skipped)."
        ))
