from .counters import CounterService
from .likes import LikeService
from .subscriptions import SubscriptionService, has_active_subscription
from .tokens import VerificationTokenService
from .webhooks import BillingWebhookHandler

__all__ = [
    "CounterService",
    "LikeService",
    "SubscriptionService",
    "has_active_subscription",
    "VerificationTokenService",
    "BillingWebhookHandler",
]
