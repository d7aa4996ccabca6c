from django.core.management.base import BaseCommand
from django.db import transaction
from cookbook.models import Recipe, User, VerificationToken


class Command(BaseCommand):
    """
    Management command to remove (unseed) sample data from the database.

    Deletes recipes written by non-staff users, then the non-staff users
    themselves along with their likes, subscriptions and tokens. Staff
    accounts and their recipes are kept.
    """

    help = 'Removes seeded sample data'

    def handle(self, *args, **options):
        non_staff_users = User.objects.filter(is_staff=False)

        with transaction.atomic():
            # Recipe.author is SET_NULL, so seeded recipes would otherwise survive
            recipe_count, _ = Recipe.objects.filter(author__in=non_staff_users).delete()
            emails = list(non_staff_users.values_list('email', flat=True))
            deleted_count, _ = non_staff_users.delete()
            VerificationToken.objects.filter(identifier__in=emails).delete()

        self.stdout.write(self.style.SUCCESS(
            f"Deleted {recipe_count} recipe rows and {deleted_count} non-staff user rows with related data."
        ))
