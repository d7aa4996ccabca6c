import uuid
from contextlib import contextmanager
from datetime import timedelta
from unittest.mock import MagicMock

from django.utils import timezone

from cookbook.errors import FlushInProgress
from cookbook.models import Comment, Recipe, Subscription, User


def make_user(**kwargs):
    username = kwargs.pop("username", "johndoe")
    email = kwargs.pop(
        "email",
        f"{username}_{uuid.uuid4().hex[:6]}@example.org"
    )
    password = kwargs.pop("password", "Password123")

    return User.objects.create_user(
        username=username,
        email=email,
        password=password,
        first_name=kwargs.pop("first_name", "John"),
        last_name=kwargs.pop("last_name", "Doe"),
        **kwargs,
    )


def make_recipe(*, author=None, title="test recipe", description="desc", published=True, **extra):
    """
    creates and returns a recipe. published=True sets published_at.
    """
    if author is None:
        author = make_user(username=f"author_{uuid.uuid4().hex[:6]}")

    extra.setdefault("published_at", timezone.now() - timedelta(minutes=1) if published else None)
    return Recipe.objects.create(
        author=author,
        title=title,
        description=description,
        **extra,
    )


def make_comment(*, recipe, user, text="Looks delicious!", status=Comment.STATUS_APPROVED, **extra):
    return Comment.objects.create(recipe=recipe, user=user, text=text, status=status, **extra)


def make_subscription(user, **extra):
    extra.setdefault("status", Subscription.STATUS_ACTIVE)
    extra.setdefault("plan", Subscription.PLAN_BASIC)
    extra.setdefault("start_date", timezone.now())
    return Subscription.objects.create(user=user, **extra)


def make_billing_client(**overrides):
    """A MagicMock standing in for StripeBillingClient."""
    billing = MagicMock()
    billing.price_for_plan.side_effect = lambda plan: f"price_{plan.lower()}"
    billing.plan_for_price.return_value = None
    billing.create_checkout_session.return_value = {"id": "cs_test_1", "url": "https://checkout.test/cs_test_1"}
    for name, value in overrides.items():
        setattr(billing, name, value)
    return billing


class FakeCounterStore:
    """In-memory stand-in for RedisCounterStore; hashes map str(id) -> str(count)."""

    def __init__(self):
        self.hashes = {}
        self.locked = False

    def increment(self, metric, entity_id, amount=1):
        bucket = self.hashes.setdefault(metric, {})
        value = int(bucket.get(str(entity_id), 0)) + amount
        bucket[str(entity_id)] = str(value)
        return value

    def pending(self, metric, entity_id):
        return int(self.hashes.get(metric, {}).get(str(entity_id), 0))

    def drain(self, metric):
        return self.hashes.pop(metric, {})

    @contextmanager
    def flush_lock(self):
        if self.locked:
            raise FlushInProgress()
        self.locked = True
        try:
            yield
        finally:
            self.locked = False
