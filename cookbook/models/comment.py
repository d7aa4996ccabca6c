"""Model for user comments and replies on recipes."""

import uuid
from django.db import models
from .user import User
from .recipe import Recipe

class Comment(models.Model):
    """User-authored comment on a recipe, shown publicly once approved."""
    STATUS_PENDING = "PENDING"
    STATUS_APPROVED = "APPROVED"
    STATUS_REJECTED = "REJECTED"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]
    STATUSES = [code for code, _ in STATUS_CHOICES]

    # PK: uuid
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    recipe = models.ForeignKey(
        Recipe,
        on_delete=models.CASCADE,
        db_column='recipe_id',
        related_name='comments'
    )

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        db_column='user_id',
        related_name='comments'
    )

    # null for top-level comments
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        db_column='parent_id',
        related_name='replies'
    )

    # text (1–1000)
    text = models.TextField(max_length=1000)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """DB table name and moderation queue index."""
        db_table = "comment"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['recipe', 'status'], name='idx_comment_recipe_status'),
        ]

    def __str__(self):
        """Readable identifier for admin/debugging."""
        return f"Comment by {self.user_id} on {self.recipe_id}"

    @property
    def is_approved(self):
        return self.status == self.STATUS_APPROVED

    @property
    def is_reply(self):
        return self.parent_id is not None
