"""Custom user model with the account metadata the paywall flows rely on."""

from django.core.validators import RegexValidator
from django.contrib.auth.models import AbstractUser
from django.db import models

class User(AbstractUser):
    """Model for user auth and subscriber profile info"""

    username = models.CharField(
        max_length=150,
        unique=True,
        validators=[RegexValidator(
            regex=r'^[\w.]{3,}$',
            message='Username must consist of at least three letters, digits, underscores or dots'
        )]
    )
    email = models.EmailField(unique=True, blank=False)
    email_verified_at = models.DateTimeField(null=True, blank=True)
    notify_comment_replies = models.BooleanField(
        default=True,
        help_text="Email the user when someone replies to their comment"
    )

    class Meta:
        """Default ordering for users."""
        ordering = ['email']

    def full_name(self):
        """Return full name string."""
        return f'{self.first_name} {self.last_name}'.strip()

    @property
    def has_verified_email(self):
        return self.email_verified_at is not None

    @property
    def is_suspended(self):
        """Suspension is the stock `is_active` flag turned off by staff."""
        return not self.is_active
