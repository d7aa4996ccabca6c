"""Single-use tokens backing the password reset and password creation flows."""

from django.db import models
from django.utils import timezone


class VerificationToken(models.Model):
    identifier = models.EmailField()
    token = models.CharField(max_length=128, unique=True)
    expires = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'verification_token'
        indexes = [
            models.Index(fields=['identifier'], name='idx_verif_token_identifier'),
        ]

    def __str__(self):
        return f"Token for {self.identifier}"

    def is_expired(self, now=None):
        return self.expires <= (now or timezone.now())
