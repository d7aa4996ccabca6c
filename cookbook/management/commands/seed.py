"""Management command to seed the database with sample users, recipes, likes, comments and subscriptions."""

import uuid
from datetime import timedelta
from random import choice, randint, random, sample
from typing import List

from faker import Faker
from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Count
from django.utils import timezone
from django.utils.text import slugify

from cookbook.adapters import unique_username
from cookbook.models import Comment, Recipe, Subscription, User, UserLike
from .seed_data import categories, comment_phrases, reply_phrases, tags_pool, user_fixtures


class Command(BaseCommand):
    """Management command to seed the database with sample data."""
    USER_COUNT = 50
    DEFAULT_PASSWORD = 'Password123'
    help = 'Seeds the database with sample data'

    def add_arguments(self, parser):
        parser.add_argument("--users", type=int, default=self.USER_COUNT, help="Total users to reach.")
        parser.add_argument("--recipes-per-user", type=int, default=2)
        parser.add_argument(
            "--subscriber-ratio",
            type=float,
            default=0.3,
            help="Share of users given a local (unbilled) subscription.",
        )

    def __init__(self, *args, **kwargs):
        """Set up faker instance for generating seed content."""
        super().__init__(*args, **kwargs)
        self.faker = Faker('en_GB')

    def handle(self, *args, **options):
        """Run the full seeding sequence."""
        self.create_users(options["users"])
        self.seed_recipes(per_user=options["recipes_per_user"])
        self.seed_likes(max_likes_per_recipe=15)
        self.seed_comments(max_comments_per_recipe=4)
        self.seed_subscriptions(ratio=options["subscriber_ratio"])
        self.stdout.write(self.style.SUCCESS("Seeding complete"))

    def create_users(self, target):
        for data in user_fixtures:
            if not User.objects.filter(email=data["email"]).exists():
                self.create_user(data)
        while User.objects.count() < target:
            first_name = self.faker.first_name()
            last_name = self.faker.last_name()
            self.create_user({
                "username": f"{first_name}.{last_name}",
                "email": f"{first_name}.{last_name}.{uuid.uuid4().hex[:6]}@example.org".lower(),
                "first_name": first_name,
                "last_name": last_name,
            })
        self.stdout.write(f"users: {User.objects.count()}")

    def create_user(self, data):
        return User.objects.create_user(
            username=unique_username(data["username"], User),
            email=data["email"],
            password=self.DEFAULT_PASSWORD,
            first_name=data["first_name"],
            last_name=data["last_name"],
            email_verified_at=timezone.now(),
        )

    def _build_recipe(self, author_id) -> Recipe:
        """Construct an unsaved Recipe; bulk_create skips save(), so the slug is set here."""
        title = self.faker.sentence(nb_words=5).rstrip(".")[:200]
        return Recipe(
            author_id=author_id,
            title=title,
            slug=f"{slugify(title)[:200]}-{uuid.uuid4().hex[:8]}",
            description=self.faker.paragraph(nb_sentences=4)[:4000],
            category=choice(categories),
            tags=sample(tags_pool, randint(0, 4)),
            prep_time_min=randint(0, 60),
            cook_time_min=randint(0, 90),
            serves=choice([2, 4, 6, 8]),
            is_premium=randint(1, 4) == 1,
            published_at=timezone.now() - timedelta(days=randint(0, 365)),
        )

    def seed_recipes(self, *, per_user: int = 2) -> None:
        user_ids = list(User.objects.filter(is_staff=False).values_list("id", flat=True))
        rows: List[Recipe] = [
            self._build_recipe(author_id) for author_id in user_ids for _ in range(per_user)
        ]
        with transaction.atomic():
            Recipe.objects.bulk_create(rows, batch_size=500)
        self.stdout.write(f"recipes created: {len(rows)}")

    def seed_likes(self, max_likes_per_recipe: int = 15) -> None:
        """
        Create random likes and set like_count to match.

        Seeding writes the durable count directly; nothing is left pending in Redis.
        Counts are taken from the stored rows, since likes kept from an earlier
        run make `ignore_conflicts` skip some of the new ones.
        """
        users = list(User.objects.values_list("id", flat=True))
        recipes = list(Recipe.objects.values_list("id", flat=True))
        if not users or not recipes:
            return

        rows = []
        with transaction.atomic():
            for recipe_id in recipes:
                likers = sample(users, min(len(users), randint(0, max_likes_per_recipe)))
                rows.extend(UserLike(user_id=u, recipe_id=recipe_id) for u in likers)
            UserLike.objects.bulk_create(rows, ignore_conflicts=True, batch_size=1000)
            for recipe_id, like_count in Recipe.objects.annotate(n=Count("likes")).values_list("id", "n"):
                Recipe.objects.filter(pk=recipe_id).update(
                    like_count=like_count,
                    view_count=like_count * randint(3, 20),
                )
        self.stdout.write(f"likes created: {len(rows)}")

    def seed_comments(self, max_comments_per_recipe: int = 4) -> None:
        """Random comments per recipe, mostly approved, some with a reply from the author."""
        users = list(User.objects.values_list("id", flat=True))
        recipes = list(Recipe.objects.values_list("id", "author_id"))
        if not users or not recipes:
            return

        rows = []
        replies = []
        for recipe_id, author_id in recipes:
            commenters = sample(users, min(len(users), randint(0, max_comments_per_recipe)))
            for user_id in commenters:
                comment = Comment(
                    recipe_id=recipe_id,
                    user_id=user_id,
                    text=choice(comment_phrases),
                    status=Comment.STATUS_PENDING if randint(1, 5) == 1 else Comment.STATUS_APPROVED,
                )
                rows.append(comment)
                author_replies = author_id and author_id != user_id and randint(1, 3) == 1
                if author_replies and comment.status == Comment.STATUS_APPROVED:
                    replies.append(Comment(
                        recipe_id=recipe_id,
                        user_id=author_id,
                        parent=comment,
                        text=choice(reply_phrases),
                        status=Comment.STATUS_APPROVED,
                    ))
        with transaction.atomic():
            # uuid primary keys are set on construction, so replies can point at unsaved parents
            Comment.objects.bulk_create(rows, batch_size=500)
            Comment.objects.bulk_create(replies, batch_size=500)
        self.stdout.write(f"comments created: {len(rows) + len(replies)}")

    def seed_subscriptions(self, ratio: float = 0.3) -> None:
        """Give a share of users an open subscription without a Stripe reference."""
        now = timezone.now()
        users = User.objects.filter(is_staff=False).exclude(
            subscriptions__status=Subscription.STATUS_ACTIVE
        )
        rows = []
        for user_id in users.values_list("id", flat=True):
            if random() >= ratio:
                continue
            rows.append(Subscription(
                user_id=user_id,
                plan=choice([code for code, _ in Subscription.PLAN_CHOICES]),
                status=Subscription.STATUS_ACTIVE,
                cancel_at_period_end=randint(1, 5) == 1,
                start_date=now - timedelta(days=randint(1, 300)),
                current_period_end=now + timedelta(days=randint(1, 30)),
            ))
        with transaction.atomic():
            Subscription.objects.bulk_create(rows, batch_size=500)
        self.stdout.write(f"subscriptions created: {len(rows)}")
