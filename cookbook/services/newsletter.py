"""Newsletter sign-up with double opt-in, plus campaign sends to verified subscribers."""

import logging
import secrets

from django.utils import timezone
from rest_framework.exceptions import ValidationError

from cookbook.errors import InvalidToken, NoNewsletterRecipients
from cookbook.models import NewsletterSubscriber
from cookbook.services import mailer

logger = logging.getLogger(__name__)


class NewsletterService:
    def __init__(self, subscriber_model=NewsletterSubscriber, clock=timezone.now):
        self.subscriber_model = subscriber_model
        self.clock = clock

    def subscribe(self, email):
        """
        Register `email` and send a verification link.

        Returns (subscriber, verification_sent). An already verified address
        is left alone; an unverified one gets a fresh token.
        """
        email = email.strip().lower()
        subscriber, _ = self.subscriber_model.objects.get_or_create(email=email)
        if subscriber.is_verified:
            return subscriber, False
        subscriber.verification_token = secrets.token_hex(32)
        subscriber.save(update_fields=['verification_token', 'updated_at'])
        mailer.send_newsletter_verification_email(subscriber.email, subscriber.verification_token)
        logger.info("Newsletter verification sent to subscriber %s", subscriber.pk)
        return subscriber, True

    def verify(self, token):
        if not token:
            raise InvalidToken("Verification token is required.")
        subscriber = self.subscriber_model.objects.filter(verification_token=token).first()
        if subscriber is None:
            raise InvalidToken("Invalid verification token.")
        subscriber.is_verified = True
        subscriber.verification_token = None
        subscriber.verified_at = self.clock()
        subscriber.save(update_fields=['is_verified', 'verification_token', 'verified_at', 'updated_at'])
        return subscriber

    def update(self, subscriber, email, is_verified=None):
        """Staff edit; toggling verification stamps or clears `verified_at`."""
        email = email.strip().lower()
        if self.subscriber_model.objects.filter(email=email).exclude(pk=subscriber.pk).exists():
            raise ValidationError({"email": ["A subscriber with this email already exists."]})
        subscriber.email = email
        if is_verified is not None and is_verified != subscriber.is_verified:
            subscriber.is_verified = is_verified
            subscriber.verified_at = self.clock() if is_verified else None
            if is_verified:
                subscriber.verification_token = None
        subscriber.save()
        return subscriber

    def send_campaign(self, subject, content, test_email=None):
        """Send to `test_email` only, or to every verified subscriber."""
        if test_email:
            recipients = [test_email]
        else:
            recipients = list(
                self.subscriber_model.objects.filter(is_verified=True).values_list('email', flat=True)
            )
        if not recipients:
            raise NoNewsletterRecipients()
        sent = mailer.send_newsletter_campaign(recipients, subject, content)
        logger.info("Newsletter campaign %r sent to %d recipients", subject, sent)
        return sent
