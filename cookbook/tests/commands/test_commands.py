from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase

from cookbook.counter_store import METRIC_LIKES, METRIC_VIEWS
from cookbook.models import Comment, Recipe, Subscription, User, UserLike, VerificationToken
from cookbook.services.counters import CounterService
from cookbook.services.tokens import VerificationTokenService
from cookbook.tests.helpers import FakeCounterStore, make_recipe, make_user


class FlushRecipeCountersCommandTests(TestCase):
    def setUp(self):
        self.store = FakeCounterStore()
        patcher = patch(
            "cookbook.management.commands.flush_recipe_counters.get_counter_service",
            side_effect=lambda: CounterService(self.store),
        )
        patcher.start()
        self.addCleanup(patcher.stop)
        self.recipe = make_recipe(author=make_user())

    def test_flush_applies_pending_counts(self):
        self.store.increment(METRIC_LIKES, self.recipe.pk, 3)
        self.store.increment(METRIC_VIEWS, self.recipe.pk, 8)
        out = StringIO()

        call_command("flush_recipe_counters", stdout=out)

        self.recipe.refresh_from_db()
        self.assertEqual(self.recipe.like_count, 3)
        self.assertEqual(self.recipe.view_count, 8)
        self.assertIn("Flushed 1 view and 1 like counters", out.getvalue())

    def test_flush_skips_when_locked(self):
        self.store.increment(METRIC_LIKES, self.recipe.pk)
        self.store.locked = True
        out = StringIO()

        call_command("flush_recipe_counters", stdout=out)

        self.assertIn("skipped", out.getvalue())
        self.recipe.refresh_from_db()
        self.assertEqual(self.recipe.like_count, 0)


class PurgeVerificationTokensCommandTests(TestCase):
    def test_purges_only_expired(self):
        tokens = VerificationTokenService()
        tokens.issue("old@example.org", ttl=timedelta(minutes=-1))
        tokens.issue("new@example.org")
        out = StringIO()

        call_command("purge_verification_tokens", stdout=out)

        self.assertIn("Deleted 1 expired token", out.getvalue())
        self.assertEqual(list(VerificationToken.objects.values_list("identifier", flat=True)), ["new@example.org"])


class SeedCommandTests(TestCase):
    def test_seed_then_unseed(self):
        staff = make_user(username="admin", is_staff=True)
        staff_recipe = make_recipe(author=staff, title="Staff pick")

        call_command("seed", users=8, recipes_per_user=2, subscriber_ratio=1.0, stdout=StringIO())

        self.assertEqual(User.objects.count(), 8)
        self.assertEqual(Recipe.objects.exclude(pk=staff_recipe.pk).count(), 7 * 2)
        for recipe in Recipe.objects.all():
            self.assertEqual(recipe.like_count, UserLike.objects.filter(recipe=recipe).count())
        self.assertEqual(Subscription.objects.count(), 7)

        call_command("unseed", stdout=StringIO())

        self.assertEqual(list(User.objects.all()), [staff])
        self.assertEqual(list(Recipe.objects.all()), [staff_recipe])
        self.assertFalse(Subscription.objects.exists())

    def test_reseeding_keeps_like_count_in_step_with_likes(self):
        call_command("seed", users=6, recipes_per_user=1, subscriber_ratio=0.0, stdout=StringIO())
        first_run_likes = UserLike.objects.count()

        with patch("cookbook.management.commands.seed.randint", return_value=5):
            call_command("seed", users=6, recipes_per_user=1, subscriber_ratio=0.0, stdout=StringIO())

        self.assertGreaterEqual(UserLike.objects.count(), first_run_likes)
        for recipe in Recipe.objects.all():
            self.assertEqual(recipe.like_count, UserLike.objects.filter(recipe=recipe).count())

    def test_seeded_replies_come_from_recipe_author(self):
        call_command("seed", users=6, recipes_per_user=2, subscriber_ratio=0.0, stdout=StringIO())

        for reply in Comment.objects.filter(parent__isnull=False).select_related("parent", "recipe"):
            self.assertEqual(reply.recipe_id, reply.parent.recipe_id)
            self.assertEqual(reply.user_id, reply.recipe.author_id)
            self.assertEqual(reply.parent.status, Comment.STATUS_APPROVED)
