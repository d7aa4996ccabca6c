"""
Recipe model.

A published recipe plus the two durable counters fed by the counter flush:
- `view_count` is the cumulative number of page views.
- `like_count` is the cumulative number of likes already folded in from the
  ephemeral store. Pending likes still in Redis are added on read.

`is_premium` recipes are behind the subscription paywall; `is_hidden` lets
admins pull content without deleting it.
"""

from django.db import models
from django.utils import timezone
from django.utils.text import slugify
from .user import User


class Recipe(models.Model):
    author = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recipes',
    )

    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(max_length=4000, blank=True)
    category = models.CharField(max_length=100, blank=True)
    tags = models.JSONField(default=list, blank=True)

    prep_time_min = models.PositiveIntegerField(default=0)
    cook_time_min = models.PositiveIntegerField(default=0)
    serves = models.PositiveIntegerField(default=0)

    is_premium = models.BooleanField(default=False, help_text="Only visible to subscribers")
    is_hidden = models.BooleanField(default=False, help_text="Hidden by admin")

    # Durable counters, only ever incremented by the counter flush
    view_count = models.PositiveBigIntegerField(default=0)
    like_count = models.PositiveBigIntegerField(default=0)

    published_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'recipe'
        ordering = ['-published_at', '-id']

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = self._unique_slug()
        super().save(*args, **kwargs)

    def _unique_slug(self):
        base = slugify(self.title)[:240] or "recipe"
        slug = base
        counter = 1
        while Recipe.objects.filter(slug=slug).exclude(pk=self.pk).exists():
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    @property
    def is_published(self):
        return self.published_at is not None and self.published_at <= timezone.now()

    @property
    def total_time_min(self):
        return self.prep_time_min + self.cook_time_min
