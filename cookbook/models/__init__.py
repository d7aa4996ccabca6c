from .user import User
from .recipe import Recipe
from .like import UserLike
from .subscription import Subscription
from .verification_token import VerificationToken
from .billing_event import ProcessedBillingEvent
from .comment import Comment
from .newsletter import NewsletterSubscriber

__all__ = [
    "User",
    "Recipe",
    "UserLike",
    "Subscription",
    "VerificationToken",
    "ProcessedBillingEvent",
    "Comment",
    "NewsletterSubscriber",
]
