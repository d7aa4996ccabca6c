import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from cookbook.billing_client import WebhookSignatureError, get_billing_client
from cookbook.errors import error_payload
from cookbook.services.subscriptions import SubscriptionService
from cookbook.services.webhooks import BillingWebhookHandler

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request):
    """
    Receive Stripe events.

    Authenticated by the Stripe-Signature header rather than a session, so
    CSRF does not apply. Failures after verification answer 500 so Stripe
    retries the delivery.
    """
    billing = get_billing_client()
    try:
        event = billing.construct_event(request.body, request.headers.get("Stripe-Signature"))
    except WebhookSignatureError as e:
        logger.warning("Rejected Stripe webhook: %s", e)
        return JsonResponse(error_payload("Invalid webhook signature."), status=400)

    handler = BillingWebhookHandler(SubscriptionService(billing))
    try:
        result = handler.handle(event)
    except Exception:
        logger.exception("Failed to process Stripe event %s", event.get("id"))
        return JsonResponse(error_payload("Webhook processing failed."), status=500)
    return JsonResponse({"received": True, "result": result})
