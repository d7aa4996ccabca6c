"""Service helpers for recipe likes."""

from django.db import IntegrityError, transaction

from cookbook.counter_store import METRIC_LIKES
from cookbook.errors import AlreadyLiked
from cookbook.models import UserLike


class LikeService:
    """
    Record likes with one row per (user, recipe).

    The UserLike table is the source of truth; the counter service only
    buffers the durable `like_count` increment.
    """

    def __init__(self, counters, like_model=UserLike):
        self.counters = counters
        self.like_model = like_model

    def has_liked(self, user, recipe):
        if not user or not getattr(user, "is_authenticated", False):
            return False
        return self.like_model.objects.filter(user=user, recipe=recipe).exists()

    def like(self, user, recipe):
        """Like a recipe once; a repeat like raises AlreadyLiked and counts nothing."""
        try:
            with transaction.atomic():
                like = self.like_model.objects.create(user=user, recipe=recipe)
        except IntegrityError:
            raise AlreadyLiked()
        self.counters.record_like(recipe.pk)
        return like

    def combined_count(self, recipe):
        return self.counters.read_combined_count(recipe.pk, METRIC_LIKES)

    def summary(self, user, recipe):
        return {
            "likeCount": self.combined_count(recipe),
            "alreadyLiked": self.has_liked(user, recipe),
        }
