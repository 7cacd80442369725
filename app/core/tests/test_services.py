"""
Tests for ServiceResult and BaseService.

Related files:
    - services.py: Implementation under test
"""

import logging
from unittest import mock

import pytest

from core.exceptions import NotFoundError, ValidationError
from core.services import BaseService, ServiceResult


class TestServiceResult:
    def test_success(self):
        result = ServiceResult.success({"id": 1})

        assert result.success is True
        assert result.data == {"id": 1}
        assert bool(result) is True

    def test_failure(self):
        result = ServiceResult.failure("Nope", error_code="INVALID_INPUT")

        assert result.success is False
        assert result.data is None
        assert bool(result) is False

    def test_from_error_keeps_message_and_code(self):
        result = ServiceResult.from_error(NotFoundError("Conversation 3 not found"))

        assert result.error == "Conversation 3 not found"
        assert result.error_code == "NOT_FOUND"

    def test_to_response_for_failure(self):
        result = ServiceResult.failure(
            "Bad", error_code="INVALID_INPUT", errors={"content": ["Required"]}
        )

        assert result.to_response() == {
            "success": False,
            "error": "Bad",
            "error_code": "INVALID_INPUT",
            "errors": {"content": ["Required"]},
        }

    def test_to_response_for_success(self):
        assert ServiceResult.success(5).to_response() == {"success": True, "data": 5}


class ExampleService(BaseService):
    pass


class TestBaseService:
    def test_logger_is_named_after_service(self):
        assert ExampleService.get_logger().name == (
            "core.tests.test_services.ExampleService"
        )

    def test_handle_exception_logs_and_converts(self):
        with mock.patch.object(ExampleService, "get_logger") as get_logger:
            result = ExampleService.handle_exception(
                ValidationError("Too long"), "send", log_level=logging.WARNING
            )

        get_logger.return_value.log.assert_called_once_with(
            logging.WARNING, "send: [INVALID_INPUT] Too long"
        )
        assert result.error_code == "INVALID_INPUT"

    def test_atomic_rolls_back_on_error(self, db):
        from authentication.models import User

        with pytest.raises(RuntimeError):
            with ExampleService.atomic():
                User.objects.create_user(email="rollback@example.com")
                raise RuntimeError("boom")

        assert not User.objects.filter(email="rollback@example.com").exists()
