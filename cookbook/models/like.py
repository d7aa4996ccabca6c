"""Model representing a user's like on a recipe."""

from django.db import models
from .user import User
from .recipe import Recipe

class UserLike(models.Model):
    """User like on a recipe; the source of truth for like totals."""
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        db_column='user_id',
        related_name='likes'
    )

    recipe = models.ForeignKey(
        Recipe,
        on_delete=models.CASCADE,
        db_column='recipe_id',
        related_name='likes'
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Enforce one like per user/recipe pair."""
        constraints = [
            models.UniqueConstraint(fields=['user', 'recipe'], name='uq_user_like_user_recipe'),
        ]

        db_table = "user_like"

    def __str__(self):
        """Readable representation for admin/debugging."""
        return f"{self.user_id} → {self.recipe_id}"
