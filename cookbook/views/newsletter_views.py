"""Newsletter sign-up and verification, plus staff subscriber management."""

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response

from cookbook.models import NewsletterSubscriber
from cookbook.serializers import (
    NewsletterCampaignSerializer,
    NewsletterSubscribeSerializer,
    NewsletterSubscriberSerializer,
    NewsletterSubscriberUpdateSerializer,
)
from cookbook.services.newsletter import NewsletterService

newsletter_service = NewsletterService()


@api_view(["POST"])
@permission_classes([AllowAny])
def newsletter_subscribe_api(request):
    serializer = NewsletterSubscribeSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    subscriber, sent = newsletter_service.subscribe(serializer.validated_data["email"])
    if not sent:
        return Response({"message": "You are already subscribed."})
    return Response(
        {"message": "Check your inbox to confirm your subscription.", "id": subscriber.pk},
        status=status.HTTP_201_CREATED,
    )


@api_view(["GET"])
@permission_classes([AllowAny])
def newsletter_verify_api(request):
    newsletter_service.verify(request.query_params.get("token"))
    return Response({"message": "Your email is verified. Thanks for subscribing!"})


@api_view(["PUT", "DELETE"])
@permission_classes([IsAdminUser])
def admin_newsletter_subscriber_api(request, subscriber_id):
    subscriber = get_object_or_404(NewsletterSubscriber, pk=subscriber_id)
    if request.method == "DELETE":
        subscriber.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = NewsletterSubscriberUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    newsletter_service.update(
        subscriber,
        serializer.validated_data["email"],
        is_verified=serializer.validated_data.get("isVerified"),
    )
    return Response({"subscriber": NewsletterSubscriberSerializer(subscriber).data})


@api_view(["POST"])
@permission_classes([IsAdminUser])
def admin_newsletter_campaign_api(request):
    """Send a campaign to verified subscribers, or only to `testEmail` when given."""
    serializer = NewsletterCampaignSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    sent = newsletter_service.send_campaign(data["subject"], data["content"], test_email=data.get("testEmail"))
    return Response({"sent": sent})
