"""Error taxonomy for the JSON API and the handler that renders it."""

import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class AlreadyLiked(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "You already liked this recipe."
    default_code = "already_liked"


class InvalidPlan(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid plan specified."
    default_code = "invalid_plan"


class InvalidToken(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Token is invalid or has expired."
    default_code = "invalid_token"


class SubscriptionNotFound(exceptions.NotFound):
    default_detail = "No matching subscription."
    default_code = "subscription_not_found"


class SubscriptionConflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You already have an active subscription."
    default_code = "subscription_conflict"


class InvalidTransition(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Subscription cannot make that change from its current state."
    default_code = "invalid_transition"


class BillingUnavailable(exceptions.APIException):
    """The billing system rejected or failed a call; local state was left untouched."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Billing provider request failed."
    default_code = "billing_unavailable"


class CommentRateLimited(exceptions.APIException):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many comments. Please wait a moment."
    default_code = "comment_rate_limited"


class InvalidReply(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Replies must belong to the same recipe as their parent comment."
    default_code = "invalid_reply"


class AccountSuspended(exceptions.PermissionDenied):
    default_detail = "Account suspended."
    default_code = "account_suspended"


class CannotModifyOwnAccount(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Cannot modify your own account."
    default_code = "cannot_modify_own_account"


class NoNewsletterRecipients(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "No verified subscribers found."
    default_code = "no_newsletter_recipients"


class FlushInProgress(Exception):
    """Another counter flush holds the flush lock."""


def error_payload(message, field=None):
    payload = {"error": str(message)}
    if field:
        payload["field"] = field
    return payload


def _first_error(data):
    """Return (message, field) for the first error in a DRF error structure."""
    if isinstance(data, list):
        return _first_error(data[0]) if data else ("Invalid request.", None)
    if isinstance(data, dict):
        if "detail" in data:
            return str(data["detail"]), None
        for field, value in data.items():
            message, _ = _first_error(value)
            return message, None if field == "non_field_errors" else field
        return "Invalid request.", None
    return str(data), None


def json_exception_handler(exc, context):
    """
    DRF exception handler producing a uniform `{"error": "..."}` body.

    Unhandled exceptions are logged and rendered as a 500 with the same shape
    instead of falling through to Django's HTML error page.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception("Unhandled error in %s", type(view).__name__ if view else "API view")
        return Response(
            error_payload("Internal server error."),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.NotAuthenticated):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    message, field = _first_error(response.data)
    response.data = error_payload(message, field)
    return response
