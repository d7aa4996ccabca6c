from django.db import IntegrityError, transaction
from django.test import TestCase

from cookbook.models import Subscription
from cookbook.tests.helpers import make_subscription, make_user


class SubscriptionModelTestCase(TestCase):
    def setUp(self):
        self.user = make_user()

    def test_only_one_open_subscription_per_user(self):
        make_subscription(self.user)

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                make_subscription(self.user, plan=Subscription.PLAN_PREMIUM)

    def test_terminal_subscriptions_do_not_block_a_new_one(self):
        make_subscription(self.user, status=Subscription.STATUS_CANCELLED)
        make_subscription(self.user, status=Subscription.STATUS_EXPIRED)
        make_subscription(self.user)

        self.assertEqual(self.user.subscriptions.count(), 3)

    def test_lifecycle_state(self):
        sub = make_subscription(self.user)
        self.assertEqual(sub.lifecycle_state, Subscription.STATUS_ACTIVE)
        self.assertFalse(sub.is_terminal)

        sub.cancel_at_period_end = True
        self.assertTrue(sub.is_pending_cancel)
        self.assertEqual(sub.lifecycle_state, Subscription.STATE_ACTIVE_PENDING_CANCEL)

        sub.status = Subscription.STATUS_CANCELLED
        self.assertTrue(sub.is_terminal)
        self.assertFalse(sub.is_pending_cancel)
        self.assertEqual(sub.lifecycle_state, Subscription.STATUS_CANCELLED)
