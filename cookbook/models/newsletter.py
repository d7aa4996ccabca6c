"""Newsletter subscribers; no account is needed to subscribe."""

from django.db import models


class NewsletterSubscriber(models.Model):
    email = models.EmailField(unique=True)
    is_verified = models.BooleanField(default=False)
    # cleared once the address is verified
    verification_token = models.CharField(max_length=128, unique=True, null=True, blank=True)
    verified_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'newsletter_subscriber'
        ordering = ['-created_at']

    def __str__(self):
        return self.email
