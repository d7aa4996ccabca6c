"""Password reset and first-password endpoints backed by verification tokens."""

import logging

from allauth.account.models import EmailAddress
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from cookbook.errors import InvalidToken
from cookbook.serializers import (
    CreatePasswordSerializer,
    ForgotPasswordSerializer,
    ResetPasswordSerializer,
)
from cookbook.services import mailer
from cookbook.services.tokens import RESET_PASSWORD_TTL, VerificationTokenService

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a reset link has been sent."

token_service = VerificationTokenService()


def _user_for_token(token):
    email = token_service.consume(token)
    user = get_user_model().objects.filter(email__iexact=email).first()
    if user is None:
        logger.warning("Verification token for unknown account %s", email)
        raise InvalidToken()
    return user


@api_view(["POST"])
@permission_classes([AllowAny])
def forgot_password_api(request):
    """Always answers 200 so callers cannot probe which emails have accounts."""
    serializer = ForgotPasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data["email"]

    user = get_user_model().objects.filter(email__iexact=email).first()
    if user is not None:
        token = token_service.issue(user.email, RESET_PASSWORD_TTL)
        link = f"{settings.APP_BASE_URL}/auth/reset-password?token={token.token}"
        mailer.send_quietly(mailer.send_reset_password_email, user.email, link)
    else:
        logger.info("Password reset requested for unknown email")
    return Response({"message": FORGOT_PASSWORD_MESSAGE})


@api_view(["POST"])
@permission_classes([AllowAny])
def reset_password_api(request):
    serializer = ResetPasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = _user_for_token(serializer.validated_data["token"])
    user.set_password(serializer.validated_data["newPassword"])
    user.save(update_fields=["password"])
    logger.info("Password reset for user %s", user.pk)
    return Response({"message": "Password has been reset."})


@api_view(["POST"])
@permission_classes([AllowAny])
def create_password_api(request):
    """Finish a checkout-created account: set password and name, verify email."""
    serializer = CreatePasswordSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    user = _user_for_token(data["token"])
    first_name, _, last_name = (data.get("name") or "").strip().partition(" ")
    with transaction.atomic():
        user.set_password(data["password"])
        if first_name:
            user.first_name = first_name
            user.last_name = last_name.strip()
        user.email_verified_at = timezone.now()
        user.save()
        EmailAddress.objects.update_or_create(
            user=user,
            email=user.email,
            defaults={"verified": True, "primary": True},
        )
    logger.info("Password created for user %s", user.pk)
    return Response({"message": "Password has been set."})
