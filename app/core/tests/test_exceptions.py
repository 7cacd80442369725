"""Tests for the application exception hierarchy."""

from chat.exceptions import DeliveryFailure, Unauthorized
from core.exceptions import (
    BaseApplicationError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


class TestErrorCodes:
    def test_default_codes(self):
        assert ValidationError("x").error_code == "INVALID_INPUT"
        assert NotFoundError("x").error_code == "NOT_FOUND"
        assert PermissionDeniedError("x").error_code == "PERMISSION_DENIED"
        assert ExternalServiceError("x").error_code == "EXTERNAL_SERVICE_ERROR"

    def test_explicit_code_overrides_default(self):
        assert NotFoundError("x", error_code="GONE").error_code == "GONE"

    def test_str_includes_code(self):
        assert str(NotFoundError("Missing")) == "[NOT_FOUND] Missing"

    def test_details_default_to_empty(self):
        assert BaseApplicationError("x").details == {}


class TestChatErrors:
    def test_unauthorized_defaults(self):
        error = Unauthorized()

        assert isinstance(error, PermissionDeniedError)
        assert error.error_code == "UNAUTHORIZED"

    def test_not_participant(self):
        error = Unauthorized.not_participant(4, 9)

        assert error.error_code == "NOT_PARTICIPANT"
        assert error.details == {"conversation_id": 4, "user_id": 9}

    def test_delivery_failure_carries_topic(self):
        error = DeliveryFailure("chat.messages.4", "redis down")

        assert error.topic == "chat.messages.4"
        assert error.error_code == "DELIVERY_FAILURE"
        assert error.details == {"topic": "chat.messages.4"}
