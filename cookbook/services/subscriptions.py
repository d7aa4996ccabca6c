"""
Subscription lifecycle against Stripe.

Local rows are a cache of the billing system's truth. User and admin actions
call Stripe first and only touch the local row once the remote call
succeeds; webhooks then reconcile the row again by Stripe subscription id,
so they may arrive before, after or instead of the user-facing call.
"""

import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from cookbook.billing_client import get_billing_client
from cookbook.errors import (
    BillingUnavailable,
    InvalidPlan,
    InvalidTransition,
    SubscriptionConflict,
    SubscriptionNotFound,
)
from cookbook.models import Subscription
from cookbook.services import mailer

logger = logging.getLogger(__name__)

VALID_PLANS = tuple(code for code, _ in Subscription.PLAN_CHOICES)

# Stripe subscription status -> local status; unlisted statuses leave the row alone
REMOTE_STATUS_MAP = {
    "active": Subscription.STATUS_ACTIVE,
    "trialing": Subscription.STATUS_ACTIVE,
    "past_due": Subscription.STATUS_ACTIVE,
    "canceled": Subscription.STATUS_CANCELLED,
    "unpaid": Subscription.STATUS_EXPIRED,
    "incomplete_expired": Subscription.STATUS_EXPIRED,
}


def has_active_subscription(user_id, subscription_model=Subscription):
    """The paywall predicate: does the user hold any non-terminal subscription?"""
    if not user_id:
        return False
    return (
        subscription_model.objects.filter(user_id=user_id)
        .exclude(status__in=Subscription.TERMINAL_STATUSES)
        .exists()
    )


class SubscriptionService:
    """Encapsulate subscription transitions for users, admins and webhooks."""

    def __init__(self, billing, subscription_model=Subscription, clock=timezone.now):
        self.billing = billing
        self.subscription_model = subscription_model
        self.clock = clock

    # ---------- queries ----------

    def has_active_subscription(self, user_id):
        return has_active_subscription(user_id, self.subscription_model)

    def open_subscriptions(self, user):
        return self.subscription_model.objects.filter(user=user).exclude(
            status__in=Subscription.TERMINAL_STATUSES
        )

    def current_subscription(self, user):
        return self.open_subscriptions(user).first()

    def current_or_404(self, user):
        subscription = self.current_subscription(user)
        if subscription is None:
            raise SubscriptionNotFound("No active subscription.")
        return subscription

    def get_or_404(self, subscription_id):
        try:
            return self.subscription_model.objects.select_related("user").get(pk=subscription_id)
        except (self.subscription_model.DoesNotExist, ValueError):
            raise SubscriptionNotFound("Subscription not found.")

    # ---------- helpers ----------

    def idempotency_key(self, action, subscription):
        """Stable per (action, row version) so a retried request reuses the key."""
        version = int(subscription.updated_at.timestamp() * 1000) if subscription.updated_at else 0
        return f"{action}-{subscription.pk}-{version}"

    def _apply_local(self, subscription, **changes):
        """Write changes with a single UPDATE, then refresh the instance."""
        changes["updated_at"] = self.clock()
        self.subscription_model.objects.filter(pk=subscription.pk).update(**changes)
        subscription.refresh_from_db()
        return subscription

    def _validate_plan(self, plan):
        if plan not in VALID_PLANS:
            raise InvalidPlan()
        return plan

    # ---------- user-initiated transitions ----------

    def start_checkout(self, user, plan=Subscription.PLAN_BASIC):
        """
        Open a Stripe Checkout session for a user without access.

        The local row is only created once the billing webhook confirms payment.
        """
        self._validate_plan(plan)
        if self.has_active_subscription(user.pk):
            raise SubscriptionConflict()
        price_id = self.billing.price_for_plan(plan)
        if not price_id:
            logger.error("No Stripe price configured for plan %s", plan)
            raise BillingUnavailable("This plan is not available for purchase.")

        metadata = {"user_id": str(user.pk), "plan": plan}
        session = self.billing.create_checkout_session(
            price_id=price_id,
            customer_email=user.email,
            metadata=metadata,
            success_url=f"{settings.APP_BASE_URL}{settings.CHECKOUT_SUCCESS_PATH}",
            cancel_url=f"{settings.APP_BASE_URL}{settings.CHECKOUT_CANCEL_PATH}",
        )
        logger.info("Started %s checkout %s for user %s", plan, session.get("id"), user.pk)
        mailer.send_quietly(mailer.send_resubscribe_started_email, user.email)
        return session.get("url")

    def cancel_at_period_end(self, subscription, *, notify=True):
        """ACTIVE -> ACTIVE_PENDING_CANCEL, remote first."""
        if subscription.is_terminal or subscription.is_pending_cancel:
            raise InvalidTransition("Only an active subscription can be scheduled for cancellation.")
        if subscription.billing_reference:
            self.billing.set_cancel_at_period_end(
                subscription.billing_reference,
                True,
                idempotency_key=self.idempotency_key("cancel-at-period-end", subscription),
            )
        self._apply_local(subscription, cancel_at_period_end=True)
        logger.info("Subscription %s scheduled to cancel at period end", subscription.pk)
        if notify:
            mailer.send_quietly(mailer.send_cancel_scheduled_email, subscription.user.email)
        return subscription

    def resume(self, subscription, *, notify=True):
        """ACTIVE_PENDING_CANCEL -> ACTIVE, remote first."""
        if not subscription.is_pending_cancel:
            raise InvalidTransition("Subscription is not scheduled for cancellation.")
        if subscription.billing_reference:
            self.billing.set_cancel_at_period_end(
                subscription.billing_reference,
                False,
                idempotency_key=self.idempotency_key("resume", subscription),
            )
        self._apply_local(subscription, cancel_at_period_end=False, canceled_at=None)
        logger.info("Subscription %s resumed", subscription.pk)
        if notify:
            mailer.send_quietly(mailer.send_uncancel_confirmation_email, subscription.user.email)
        return subscription

    def change_plan(self, subscription, new_plan):
        """
        Swap the plan in place.

        No Stripe re-billing happens here; price changes made in Stripe arrive
        through `customer.subscription.updated`.
        """
        self._validate_plan(new_plan)
        if subscription.is_terminal:
            raise InvalidTransition("Cannot change the plan of an ended subscription.")
        return self._apply_local(subscription, plan=new_plan)

    # ---------- admin overrides ----------

    def admin_cancel(self, subscription):
        """Immediate cancellation: remote cancel, then CANCELLED locally."""
        if subscription.is_terminal:
            raise InvalidTransition("Subscription has already ended.")
        if subscription.billing_reference:
            self.billing.cancel_now(
                subscription.billing_reference,
                idempotency_key=self.idempotency_key("cancel-now", subscription),
            )
        self._apply_local(
            subscription,
            status=Subscription.STATUS_CANCELLED,
            cancel_at_period_end=False,
            canceled_at=self.clock(),
        )
        logger.info("Subscription %s cancelled immediately by admin", subscription.pk)
        return subscription

    def admin_schedule_cancel(self, subscription):
        return self.cancel_at_period_end(subscription, notify=False)

    def admin_resume(self, subscription):
        return self.resume(subscription, notify=False)

    # ---------- billing-driven reconciliation ----------

    def activate_from_billing(self, user, reference, plan=None, period_end=None):
        """
        Upsert the row for a Stripe subscription as ACTIVE.

        Idempotent by `reference`; any other open row for the user is expired
        so the one-open-subscription rule holds.
        """
        plan = plan if plan in VALID_PLANS else Subscription.PLAN_BASIC
        try:
            with transaction.atomic():
                return self._activate(user, reference, plan, period_end)
        except IntegrityError:
            # A concurrent delivery created the row first
            logger.info("Subscription %s created concurrently; re-applying", reference)
            with transaction.atomic():
                return self._activate(user, reference, plan, period_end)

    def _activate(self, user, reference, plan, period_end):
        existing = self.subscription_model.objects.filter(billing_reference=reference).first()
        if existing is not None:
            if existing.is_terminal:
                logger.warning("Ignoring activation of ended subscription %s", reference)
                return existing
            changes = {"status": Subscription.STATUS_ACTIVE}
            if period_end:
                changes["current_period_end"] = period_end
            return self._apply_local(existing, **changes)

        superseded = self.open_subscriptions(user).update(
            status=Subscription.STATUS_EXPIRED, updated_at=self.clock()
        )
        if superseded:
            logger.warning("Expired %d superseded subscription(s) for user %s", superseded, user.pk)
        created = self.subscription_model.objects.create(
            user=user,
            billing_reference=reference,
            plan=plan,
            status=Subscription.STATUS_ACTIVE,
            start_date=self.clock(),
            current_period_end=period_end,
        )
        logger.info("Created subscription %s for user %s (%s)", created.pk, user.pk, reference)
        return created

    def reconcile_from_billing(self, snapshot):
        """Mirror a Stripe subscription snapshot onto the matching local row."""
        subscription = self.subscription_model.objects.filter(
            billing_reference=snapshot.get("id")
        ).first()
        if subscription is None:
            logger.warning("No local subscription for Stripe id %s", snapshot.get("id"))
            return None

        changes = {"cancel_at_period_end": snapshot.get("cancel_at_period_end", False)}
        if snapshot.get("current_period_end"):
            changes["current_period_end"] = snapshot["current_period_end"]
        plan = self.billing.plan_for_price(snapshot.get("price_id"))
        if plan:
            changes["plan"] = plan

        status = REMOTE_STATUS_MAP.get(snapshot.get("status"))
        if subscription.is_terminal:
            # Ended rows never come back; only period data is refreshed
            changes.pop("cancel_at_period_end")
        elif status:
            changes["status"] = status
            if status == Subscription.STATUS_CANCELLED:
                changes["cancel_at_period_end"] = False
                changes["canceled_at"] = (
                    subscription.canceled_at or snapshot.get("canceled_at") or self.clock()
                )
        return self._apply_local(subscription, **changes)

    def mark_cancelled_from_billing(self, reference, canceled_at=None):
        subscription = self.subscription_model.objects.filter(billing_reference=reference).first()
        if subscription is None:
            logger.warning("No local subscription for deleted Stripe id %s", reference)
            return None
        return self._apply_local(
            subscription,
            status=Subscription.STATUS_CANCELLED,
            cancel_at_period_end=False,
            canceled_at=subscription.canceled_at or canceled_at or self.clock(),
        )


def get_subscription_service():
    """Build a SubscriptionService bound to the configured Stripe account."""
    return SubscriptionService(get_billing_client())
