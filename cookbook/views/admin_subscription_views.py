"""Staff-only overrides for a subscriber's subscription."""

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from cookbook.serializers import AdminSubscriptionSerializer
from cookbook.services.subscriptions import get_subscription_service


def _run(action, subscription_id):
    service = get_subscription_service()
    subscription = service.get_or_404(subscription_id)
    getattr(service, action)(subscription)
    return Response({"subscription": AdminSubscriptionSerializer(subscription).data})


@api_view(["POST"])
@permission_classes([IsAdminUser])
def admin_cancel_subscription_api(request, subscription_id):
    """Cancel immediately, in Stripe and locally."""
    return _run("admin_cancel", subscription_id)


@api_view(["POST"])
@permission_classes([IsAdminUser])
def admin_schedule_cancel_subscription_api(request, subscription_id):
    return _run("admin_schedule_cancel", subscription_id)


@api_view(["POST"])
@permission_classes([IsAdminUser])
def admin_resume_subscription_api(request, subscription_id):
    return _run("admin_resume", subscription_id)
