"""Subscriber-facing subscription endpoints."""

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from cookbook.serializers import (
    ChangePlanRequestSerializer,
    CheckoutRequestSerializer,
    SubscriptionSerializer,
)
from cookbook.services.subscriptions import get_subscription_service


def _subscription_response(subscription):
    return Response({"subscription": SubscriptionSerializer(subscription).data})


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def subscriptions_api(request):
    """GET the current subscription (or null); POST {plan} to start checkout."""
    service = get_subscription_service()
    if request.method == "GET":
        subscription = service.current_subscription(request.user)
        data = SubscriptionSerializer(subscription).data if subscription else None
        return Response({"subscription": data})

    serializer = CheckoutRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    url = service.start_checkout(request.user, serializer.validated_data["plan"])
    return Response({"url": url})


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def cancel_subscription_api(request):
    service = get_subscription_service()
    subscription = service.current_or_404(request.user)
    return _subscription_response(service.cancel_at_period_end(subscription))


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def uncancel_subscription_api(request):
    service = get_subscription_service()
    subscription = service.current_or_404(request.user)
    return _subscription_response(service.resume(subscription))


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def change_plan_api(request):
    serializer = ChangePlanRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    service = get_subscription_service()
    subscription = service.current_or_404(request.user)
    return _subscription_response(
        service.change_plan(subscription, serializer.validated_data["newPlan"])
    )


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def subscription_check_api(request):
    """Paywall probe used by the front end."""
    service = get_subscription_service()
    return Response({"isActive": service.has_active_subscription(request.user.pk)})
