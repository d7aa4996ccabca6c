"""Transactional emails: accounts, subscriptions, comment replies and the newsletter."""

import logging

from django.conf import settings
from django.core.mail import send_mail, send_mass_mail

logger = logging.getLogger(__name__)


def _send(subject, message, recipient):
    send_mail(
        subject=subject,
        message=message,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[recipient],
        fail_silently=False,
    )


def send_reset_password_email(email, reset_link):
    _send(
        "Reset your password",
        f"Click the following link to reset your password: {reset_link}\n\n"
        "The link expires in one hour.",
        email,
    )


def send_set_password_email(email, token):
    link = f"{settings.APP_BASE_URL}/auth/create-password?token={token}"
    _send(
        "Set up your password",
        f"Thanks for subscribing! Finish setting up your account here: {link}",
        email,
    )


def send_payment_confirmation_email(email):
    _send(
        "Payment received",
        "Your payment was successful and your subscription is now active.",
        email,
    )


def send_cancel_scheduled_email(email):
    _send(
        "Your subscription will end",
        "Your subscription is scheduled to cancel at the end of the current billing period. "
        "You keep full access until then and can resume at any time.",
        email,
    )


def send_uncancel_confirmation_email(email):
    _send(
        "Your subscription has been resumed",
        "Good news: your subscription will continue renewing as normal.",
        email,
    )


def send_resubscribe_started_email(email):
    _send(
        "Complete your subscription",
        "You started a new subscription. Finish checkout to unlock premium recipes.",
        email,
    )


def send_comment_reply_email(email, recipe_title, reply_text):
    _send(
        "Someone replied to your comment",
        f"Your comment on \"{recipe_title}\" received a reply:\n\n{reply_text}",
        email,
    )


def send_newsletter_verification_email(email, token):
    link = f"{settings.APP_BASE_URL}/api/newsletter/verify?token={token}"
    _send(
        "Confirm your newsletter subscription",
        f"Please confirm your subscription by visiting: {link}",
        email,
    )


def send_newsletter_campaign(recipients, subject, content):
    """One message per recipient so addresses are not disclosed to each other."""
    messages = [
        (subject, content, settings.DEFAULT_FROM_EMAIL, [recipient])
        for recipient in recipients
    ]
    return send_mass_mail(messages, fail_silently=False)


def send_quietly(sender, email, *args):
    """
    Send a non-critical notification, logging instead of raising on failure.

    Used after the core operation has already succeeded.
    """
    if not email:
        return False
    try:
        sender(email, *args)
    except Exception:
        logger.exception("Failed to send %s to %s", sender.__name__, email)
        return False
    return True
