from unittest.mock import MagicMock

from django.test import SimpleTestCase
from rest_framework import exceptions, serializers

from cookbook.errors import (
    AlreadyLiked,
    BillingUnavailable,
    InvalidTransition,
    SubscriptionNotFound,
    error_payload,
    json_exception_handler,
)


class JsonExceptionHandlerTests(SimpleTestCase):
    def handle(self, exc):
        return json_exception_handler(exc, {"view": MagicMock()})

    def test_api_exceptions_keep_status_and_use_error_shape(self):
        cases = [
            (AlreadyLiked(), 400),
            (SubscriptionNotFound(), 404),
            (InvalidTransition(), 409),
            (BillingUnavailable(), 500),
        ]
        for exc, status in cases:
            with self.subTest(exc=type(exc).__name__):
                response = self.handle(exc)
                self.assertEqual(response.status_code, status)
                self.assertEqual(response.data, {"error": str(exc.detail)})

    def test_not_authenticated_is_401(self):
        response = self.handle(exceptions.NotAuthenticated())
        self.assertEqual(response.status_code, 401)

    def test_validation_error_reports_first_field(self):
        exc = serializers.ValidationError({"newPlan": ["Invalid plan specified."]})
        response = self.handle(exc)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {"error": "Invalid plan specified.", "field": "newPlan"})

    def test_unhandled_exception_is_logged_500(self):
        with self.assertLogs("cookbook.errors", level="ERROR"):
            response = self.handle(RuntimeError("boom"))
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data, {"error": "Internal server error."})

    def test_error_payload(self):
        self.assertEqual(error_payload("nope"), {"error": "nope"})
        self.assertEqual(error_payload("nope", "email"), {"error": "nope", "field": "email"})
