"""Apply verified Stripe webhook events to local subscription state."""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from cookbook.adapters import username_from_email
from cookbook.billing_client import subscription_snapshot
from cookbook.models import ProcessedBillingEvent
from cookbook.services import mailer
from cookbook.services.tokens import SET_PASSWORD_TTL, VerificationTokenService

logger = logging.getLogger(__name__)

RESULT_PROCESSED = "processed"
RESULT_DUPLICATE = "duplicate"
RESULT_IGNORED = "ignored"

ACTIVATING_REMOTE_STATUSES = ("active", "trialing")


def _reference(value):
    """Stripe may send an id string or an expanded object."""
    if isinstance(value, dict):
        return value.get("id")
    return str(value) if value else None


def _invoice_subscription(invoice):
    reference = _reference(invoice.get("subscription"))
    if reference:
        return reference
    details = (invoice.get("parent") or {}).get("subscription_details") or {}
    return _reference(details.get("subscription"))


class BillingWebhookHandler:
    """
    Dispatch Stripe events by type.

    Every handler writes absolute state keyed by the Stripe subscription id,
    and processed event ids are recorded, so re-deliveries are harmless.
    """

    def __init__(self, subscriptions, tokens=None, user_model=None, event_model=ProcessedBillingEvent):
        self.subscriptions = subscriptions
        self.tokens = tokens or VerificationTokenService()
        self.user_model = user_model or get_user_model()
        self.event_model = event_model
        self.handlers = {
            "checkout.session.completed": self.checkout_completed,
            "customer.subscription.created": self.subscription_created,
            "invoice.payment_succeeded": self.invoice_paid,
            "invoice.payment_failed": self.invoice_payment_failed,
            "customer.subscription.updated": self.subscription_updated,
            "customer.subscription.deleted": self.subscription_deleted,
        }

    def handle(self, event):
        event_id = event.get("id")
        event_type = event.get("type")
        handler = self.handlers.get(event_type)
        if handler is None:
            logger.info("Unhandled Stripe event type %s (%s)", event_type, event_id)
            return RESULT_IGNORED
        if event_id and self.event_model.objects.filter(event_id=event_id).exists():
            logger.info("Stripe event %s already processed", event_id)
            return RESULT_DUPLICATE

        data_object = (event.get("data") or {}).get("object") or {}
        logger.info("Handling Stripe event %s (%s)", event_type, event_id)
        with transaction.atomic():
            handler(data_object)
            if event_id:
                self.event_model.objects.create(event_id=event_id, event_type=event_type)
        return RESULT_PROCESSED

    # ---------- handlers ----------

    def checkout_completed(self, session):
        metadata = session.get("metadata") or {}
        email = (
            metadata.get("email")
            or (session.get("customer_details") or {}).get("email")
            or session.get("customer_email")
        )
        user, is_new_user = self._resolve_user(metadata.get("user_id"), email)
        if user is None:
            logger.warning("Checkout session %s has no user id or email; skipping", session.get("id"))
            return

        reference = _reference(session.get("subscription"))
        if not reference:
            logger.warning("Checkout session %s has no subscription (one-time payment?)", session.get("id"))
            return

        self.subscriptions.activate_from_billing(user, reference, plan=metadata.get("plan"))

        to_email = user.email or email
        transaction.on_commit(
            lambda: mailer.send_quietly(mailer.send_payment_confirmation_email, to_email)
        )
        if is_new_user:
            token = self.tokens.issue(user.email, SET_PASSWORD_TTL)
            transaction.on_commit(
                lambda: mailer.send_quietly(mailer.send_set_password_email, user.email, token.token)
            )

    def subscription_created(self, stripe_subscription):
        snapshot = subscription_snapshot(stripe_subscription)
        if snapshot["status"] not in ACTIVATING_REMOTE_STATUSES:
            logger.info("Subscription %s created with status %s; waiting for payment", snapshot["id"], snapshot["status"])
            return
        user, _ = self._resolve_user(snapshot["metadata"].get("user_id"), None)
        if user is None:
            logger.warning("Subscription %s has no known user in metadata", snapshot["id"])
            return
        plan = snapshot["metadata"].get("plan") or self.subscriptions.billing.plan_for_price(snapshot["price_id"])
        self.subscriptions.activate_from_billing(
            user, snapshot["id"], plan=plan, period_end=snapshot["current_period_end"]
        )

    def invoice_paid(self, invoice):
        reference = _invoice_subscription(invoice)
        if not reference:
            logger.warning("Invoice %s has no subscription id", invoice.get("id"))
            return
        snapshot = self.subscriptions.billing.retrieve_subscription(reference)
        self.subscriptions.reconcile_from_billing(snapshot)

    def invoice_payment_failed(self, invoice):
        logger.warning(
            "Payment failed for invoice %s (subscription %s)",
            invoice.get("id"),
            _invoice_subscription(invoice),
        )

    def subscription_updated(self, stripe_subscription):
        # Deliveries are unordered; reconcile from Stripe's current copy
        reference = subscription_snapshot(stripe_subscription)["id"]
        if not reference:
            logger.warning("Subscription update event without a subscription id")
            return
        snapshot = self.subscriptions.billing.retrieve_subscription(reference)
        self.subscriptions.reconcile_from_billing(snapshot)

    def subscription_deleted(self, stripe_subscription):
        snapshot = subscription_snapshot(stripe_subscription)
        self.subscriptions.mark_cancelled_from_billing(snapshot["id"], snapshot["canceled_at"])

    # ---------- users ----------

    def _resolve_user(self, user_id, email):
        """Return (user, created) from a metadata id, falling back to email."""
        if user_id:
            user = self.user_model.objects.filter(pk=user_id).first() if str(user_id).isdigit() else None
            if user is not None:
                return user, False
            logger.warning("No user with id %s from billing metadata", user_id)
        if not email:
            return None, False
        user = self.user_model.objects.filter(email__iexact=email).first()
        if user is not None:
            return user, False
        user = self.user_model.objects.create_user(
            username=username_from_email(email, self.user_model),
            email=email,
        )
        logger.info("Created user %s for checkout email %s", user.pk, email)
        return user, True
