"""
Subscription model.

Local mirror of a Stripe subscription. Stripe is the system of record for
payment state; rows here are reconciled from user/admin actions (after the
remote call succeeds) and again from billing webhooks.

Lifecycle:
- ACTIVE with `cancel_at_period_end=False` is a plain active subscription.
- ACTIVE with `cancel_at_period_end=True` is pending cancellation; the user
  keeps access until the billing period ends.
- CANCELLED and EXPIRED are terminal.

At most one non-terminal subscription may exist per user.
"""

from django.db import models
from django.db.models import Q
from .user import User


class Subscription(models.Model):
    STATUS_ACTIVE = "ACTIVE"
    STATUS_CANCELLED = "CANCELLED"
    STATUS_EXPIRED = "EXPIRED"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_EXPIRED, "Expired"),
    ]

    TERMINAL_STATUSES = (STATUS_CANCELLED, STATUS_EXPIRED)

    # Derived lifecycle state, never stored in `status`
    STATE_ACTIVE_PENDING_CANCEL = "ACTIVE_PENDING_CANCEL"

    PLAN_BASIC = "BASIC"
    PLAN_STANDARD = "STANDARD"
    PLAN_PREMIUM = "PREMIUM"

    PLAN_CHOICES = [
        (PLAN_BASIC, "Basic"),
        (PLAN_STANDARD, "Standard"),
        (PLAN_PREMIUM, "Premium"),
    ]

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='subscriptions',
    )
    plan = models.CharField(max_length=20, choices=PLAN_CHOICES, default=PLAN_BASIC)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    cancel_at_period_end = models.BooleanField(default=False)

    start_date = models.DateTimeField(null=True, blank=True)
    current_period_end = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    # Stripe subscription id
    billing_reference = models.CharField(max_length=255, unique=True, null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'subscription'
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['user'],
                condition=~Q(status__in=["CANCELLED", "EXPIRED"]),
                name='uq_subscription_one_open_per_user',
            ),
        ]

    def __str__(self):
        return f"{self.plan} subscription for {self.user_id} ({self.lifecycle_state})"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def is_pending_cancel(self):
        return self.status == self.STATUS_ACTIVE and self.cancel_at_period_end

    @property
    def lifecycle_state(self):
        if self.is_pending_cancel:
            return self.STATE_ACTIVE_PENDING_CANCEL
        return self.status
