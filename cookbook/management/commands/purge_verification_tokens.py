from django.core.management.base import BaseCommand
from cookbook.services.tokens import VerificationTokenService


class Command(BaseCommand):
    """Delete verification tokens whose expiry has passed."""

    help = 'Deletes expired password reset and set-password tokens'

    def handle(self, *args, **options):
        deleted = VerificationTokenService().purge_expired()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} expired token(s)."))
