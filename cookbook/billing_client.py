"""Thin wrapper around the Stripe SDK used by the subscription flows."""

import json
import logging
from datetime import datetime, timezone as dt_timezone

import stripe
from django.conf import settings

from cookbook.errors import BillingUnavailable

logger = logging.getLogger(__name__)


class WebhookSignatureError(Exception):
    """The webhook payload could not be authenticated or parsed."""


def _field(obj, name, default=None):
    """Read a key from a Stripe object or a plain dict."""
    if obj is None:
        return default
    try:
        value = obj[name]
    except (KeyError, TypeError, IndexError):
        return default
    return default if value is None else value


def timestamp_to_datetime(value):
    """Convert a Stripe epoch timestamp to an aware datetime (or None)."""
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=dt_timezone.utc)


def subscription_snapshot(sub) -> dict:
    """
    Flatten a Stripe subscription into the handful of fields we reconcile.

    Newer API versions moved `current_period_end` onto subscription items, so
    the first item is used as a fallback.
    """
    items = _field(_field(sub, "items"), "data", [])
    first_item = items[0] if items else None
    period_end = _field(sub, "current_period_end") or _field(first_item, "current_period_end")
    metadata = _field(sub, "metadata", {})
    return {
        "id": _field(sub, "id"),
        "status": _field(sub, "status"),
        "cancel_at_period_end": bool(_field(sub, "cancel_at_period_end", False)),
        "current_period_end": timestamp_to_datetime(period_end),
        "canceled_at": timestamp_to_datetime(_field(sub, "canceled_at")),
        "price_id": _field(_field(first_item, "price"), "id"),
        "metadata": dict(metadata) if isinstance(metadata, dict) else {},
    }


class StripeBillingClient:
    """
    Billing operations against Stripe.

    All Stripe failures surface as BillingUnavailable so callers can leave
    local state untouched.
    """

    def __init__(self, api_key, webhook_secret, price_ids=None):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.price_ids = dict(price_ids or {})

    def price_for_plan(self, plan):
        return self.price_ids.get(plan) or None

    def plan_for_price(self, price_id):
        for plan, configured in self.price_ids.items():
            if configured and configured == price_id:
                return plan
        return None

    def create_checkout_session(self, *, price_id, customer_email, metadata, success_url, cancel_url):
        """Open a subscription-mode Checkout session; returns {"id", "url"}."""
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="subscription",
                payment_method_types=["card"],
                line_items=[{"price": price_id, "quantity": 1}],
                customer_email=customer_email or None,
                metadata=metadata,
                subscription_data={"metadata": metadata},
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout session creation failed: %s", e)
            raise BillingUnavailable("Could not start checkout with the billing provider.") from e
        return {"id": _field(session, "id"), "url": _field(session, "url")}

    def set_cancel_at_period_end(self, reference, cancel, *, idempotency_key=None):
        try:
            stripe.Subscription.modify(
                reference,
                api_key=self.api_key,
                cancel_at_period_end=cancel,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as e:
            logger.error("Stripe cancel_at_period_end=%s failed for %s: %s", cancel, reference, e)
            raise BillingUnavailable() from e

    def cancel_now(self, reference, *, idempotency_key=None):
        try:
            stripe.Subscription.cancel(
                reference,
                api_key=self.api_key,
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as e:
            logger.error("Stripe immediate cancel failed for %s: %s", reference, e)
            raise BillingUnavailable() from e

    def retrieve_subscription(self, reference) -> dict:
        try:
            sub = stripe.Subscription.retrieve(reference, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error("Stripe subscription lookup failed for %s: %s", reference, e)
            raise BillingUnavailable() from e
        return subscription_snapshot(sub)

    def construct_event(self, payload: bytes, signature: str) -> dict:
        """Verify the Stripe-Signature header and return the event as a plain dict."""
        if not signature:
            raise WebhookSignatureError("Missing stripe-signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError("Invalid signature") from e
        except ValueError as e:
            raise WebhookSignatureError("Invalid payload") from e
        return json.loads(payload)


def get_billing_client():
    """Build a billing client from settings."""
    return StripeBillingClient(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        price_ids=settings.STRIPE_PRICE_IDS,
    )
