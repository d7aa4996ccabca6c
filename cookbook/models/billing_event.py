"""Ledger of Stripe webhook events that have already been applied."""

from django.db import models


class ProcessedBillingEvent(models.Model):
    """One row per Stripe event id; re-delivered events are acknowledged as no-ops."""
    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100)
    processed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'processed_billing_event'

    def __str__(self):
        return f"{self.event_type} ({self.event_id})"
