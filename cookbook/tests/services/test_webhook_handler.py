from datetime import timedelta

from django.core import mail
from django.test import TestCase
from django.utils import timezone

from cookbook.models import ProcessedBillingEvent, Subscription, User, VerificationToken
from cookbook.services.subscriptions import SubscriptionService
from cookbook.services.webhooks import (
    RESULT_DUPLICATE,
    RESULT_IGNORED,
    RESULT_PROCESSED,
    BillingWebhookHandler,
)
from cookbook.tests.helpers import make_billing_client, make_subscription, make_user


def checkout_event(event_id="evt_1", **session):
    session.setdefault("id", "cs_1")
    session.setdefault("subscription", "sub_1")
    return {"id": event_id, "type": "checkout.session.completed", "data": {"object": session}}


def subscription_event(event_type, event_id="evt_sub", **sub):
    sub.setdefault("id", "sub_1")
    return {"id": event_id, "type": event_type, "data": {"object": sub}}


def stripe_copy(**fields):
    """What `retrieve_subscription` returns for sub_1."""
    snapshot = {
        "id": "sub_1",
        "status": "active",
        "cancel_at_period_end": False,
        "current_period_end": None,
        "canceled_at": None,
        "price_id": None,
        "metadata": {},
    }
    snapshot.update(fields)
    return snapshot


class BillingWebhookHandlerTests(TestCase):
    def setUp(self):
        self.billing = make_billing_client()
        self.subscriptions = SubscriptionService(self.billing)
        self.handler = BillingWebhookHandler(self.subscriptions)
        self.user = make_user(email="buyer@example.org")

    def test_checkout_completed_activates_subscription(self):
        event = checkout_event(metadata={"user_id": str(self.user.pk), "plan": "PREMIUM"})

        with self.captureOnCommitCallbacks(execute=True):
            result = self.handler.handle(event)

        self.assertEqual(result, RESULT_PROCESSED)
        sub = Subscription.objects.get(billing_reference="sub_1")
        self.assertEqual(sub.user, self.user)
        self.assertEqual(sub.status, Subscription.STATUS_ACTIVE)
        self.assertEqual(sub.plan, Subscription.PLAN_PREMIUM)
        self.assertTrue(self.subscriptions.has_active_subscription(self.user.pk))
        self.assertEqual([m.subject for m in mail.outbox], ["Payment received"])

    def test_checkout_for_unknown_email_creates_user_and_set_password_token(self):
        event = checkout_event(customer_details={"email": "new.person@example.org"})

        with self.captureOnCommitCallbacks(execute=True):
            self.handler.handle(event)

        user = User.objects.get(email="new.person@example.org")
        self.assertEqual(user.username, "new.person")
        self.assertFalse(user.has_usable_password())
        self.assertTrue(VerificationToken.objects.filter(identifier=user.email).exists())
        self.assertEqual(len(mail.outbox), 2)
        self.assertTrue(self.subscriptions.has_active_subscription(user.pk))

    def test_duplicate_event_is_skipped(self):
        event = checkout_event(metadata={"user_id": str(self.user.pk)})
        with self.captureOnCommitCallbacks(execute=True):
            self.handler.handle(event)
        with self.captureOnCommitCallbacks(execute=True):
            result = self.handler.handle(event)

        self.assertEqual(result, RESULT_DUPLICATE)
        self.assertEqual(Subscription.objects.count(), 1)
        self.assertEqual(ProcessedBillingEvent.objects.count(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_unknown_event_type_is_ignored(self):
        result = self.handler.handle({"id": "evt_x", "type": "customer.created", "data": {"object": {}}})
        self.assertEqual(result, RESULT_IGNORED)
        self.assertFalse(ProcessedBillingEvent.objects.exists())

    def test_subscription_deleted_marks_cancelled(self):
        sub = make_subscription(self.user, billing_reference="sub_1")

        self.handler.handle(subscription_event("customer.subscription.deleted", canceled_at=1700000000))

        sub.refresh_from_db()
        self.assertEqual(sub.status, Subscription.STATUS_CANCELLED)
        self.assertIsNotNone(sub.canceled_at)
        self.assertFalse(self.subscriptions.has_active_subscription(self.user.pk))

    def test_subscription_updated_reconciles_cancel_flag(self):
        sub = make_subscription(self.user, billing_reference="sub_1")
        self.billing.retrieve_subscription.return_value = stripe_copy(
            cancel_at_period_end=True,
            current_period_end=timezone.now() + timedelta(days=30),
        )

        self.handler.handle(subscription_event(
            "customer.subscription.updated",
            status="active",
            cancel_at_period_end=True,
        ))

        self.billing.retrieve_subscription.assert_called_once_with("sub_1")
        sub.refresh_from_db()
        self.assertTrue(sub.is_pending_cancel)
        self.assertIsNotNone(sub.current_period_end)

    def test_stale_subscription_update_does_not_undo_resume(self):
        sub = make_subscription(self.user, billing_reference="sub_1")
        self.subscriptions.cancel_at_period_end(sub, notify=False)
        self.subscriptions.resume(sub, notify=False)
        self.billing.retrieve_subscription.return_value = stripe_copy(cancel_at_period_end=False)

        # evt_2 (the resume) is delivered before the older evt_1 (the cancel)
        self.handler.handle(subscription_event(
            "customer.subscription.updated", event_id="evt_2", status="active", cancel_at_period_end=False,
        ))
        self.handler.handle(subscription_event(
            "customer.subscription.updated", event_id="evt_1", status="active", cancel_at_period_end=True,
        ))

        sub.refresh_from_db()
        self.assertFalse(sub.cancel_at_period_end)
        self.assertEqual(sub.lifecycle_state, Subscription.STATUS_ACTIVE)
        self.assertEqual(self.billing.retrieve_subscription.call_count, 2)

    def test_subscription_updated_without_id_is_skipped(self):
        self.handler.handle({
            "id": "evt_noid",
            "type": "customer.subscription.updated",
            "data": {"object": {"status": "active"}},
        })
        self.billing.retrieve_subscription.assert_not_called()

    def test_subscription_created_waits_for_payment(self):
        self.handler.handle(subscription_event(
            "customer.subscription.created",
            status="incomplete",
            metadata={"user_id": str(self.user.pk)},
        ))
        self.assertFalse(Subscription.objects.exists())

    def test_subscription_created_active_activates(self):
        self.handler.handle(subscription_event(
            "customer.subscription.created",
            status="active",
            metadata={"user_id": str(self.user.pk), "plan": "STANDARD"},
        ))
        sub = Subscription.objects.get(billing_reference="sub_1")
        self.assertEqual(sub.plan, Subscription.PLAN_STANDARD)

    def test_invoice_paid_retrieves_and_reconciles(self):
        sub = make_subscription(self.user, billing_reference="sub_1", cancel_at_period_end=True)
        self.billing.retrieve_subscription.return_value = {
            "id": "sub_1",
            "status": "active",
            "cancel_at_period_end": False,
            "current_period_end": None,
            "price_id": None,
        }

        self.handler.handle({
            "id": "evt_inv",
            "type": "invoice.payment_succeeded",
            "data": {"object": {"id": "in_1", "subscription": "sub_1"}},
        })

        self.billing.retrieve_subscription.assert_called_once_with("sub_1")
        sub.refresh_from_db()
        self.assertFalse(sub.cancel_at_period_end)

    def test_handler_failure_rolls_back_event_record(self):
        self.billing.retrieve_subscription.side_effect = RuntimeError("boom")
        event = {
            "id": "evt_fail",
            "type": "invoice.payment_succeeded",
            "data": {"object": {"id": "in_2", "subscription": "sub_1"}},
        }

        with self.assertRaises(RuntimeError):
            self.handler.handle(event)
        self.assertFalse(ProcessedBillingEvent.objects.filter(event_id="evt_fail").exists())
