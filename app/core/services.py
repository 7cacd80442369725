"""
Service layer building blocks.

ServiceResult carries the outcome of an operation that can fail in an
expected way (bad input, caller not allowed). Stores deeper down raise
BaseApplicationError subclasses; the service that owns the operation
catches them and returns ServiceResult.from_error(exc). Anything else
(database outages, bugs) propagates as an exception.

Views and consumers never hold business rules. They turn a ServiceResult
into an HTTP response or a WebSocket frame.

Example:
    class ConversationService(BaseService):
        @classmethod
        def rename(cls, conversation, name: str) -> ServiceResult[Conversation]:
            if not name.strip():
                return ServiceResult.failure(
                    "Name cannot be empty", error_code="INVALID_INPUT"
                )
            with cls.atomic():
                conversation.name = name.strip()
                conversation.save(update_fields=["name", "updated_at"])
            return ServiceResult.success(conversation)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

from core.exceptions import BaseApplicationError

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service call.

    Attributes:
        success: True when `data` holds the result
        data: Payload of a successful call
        error: Human-readable failure message
        error_code: Stable code clients branch on (INVALID_INPUT, NOT_FOUND, ...)
        errors: Optional per-field messages
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        return cls(success=False, error=error, error_code=error_code, errors=errors)

    @classmethod
    def from_error(cls, exc: BaseApplicationError) -> ServiceResult[T]:
        """Failure carrying the raised error's message and code unchanged."""
        return cls(success=False, error=exc.message, error_code=exc.error_code)

    def to_response(self) -> dict[str, Any]:
        """Body for an API response; failures get error and error_code keys."""
        if self.success:
            return {"success": True, "data": self.data}

        body: dict[str, Any] = {"success": False, "error": self.error}
        if self.error_code:
            body["error_code"] = self.error_code
        if self.errors:
            body["errors"] = self.errors
        return body

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Stateless base for services; every public method is a classmethod.

    Subclasses get a per-class logger, an explicit transaction helper and
    handle_exception() for turning caught application errors into results.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        # e.g. "chat.services.MessageStore"
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """transaction.atomic(); nesting opens a savepoint."""
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: BaseApplicationError,
        context: str = "",
        log_level: int = logging.INFO,
    ) -> ServiceResult:
        """
        Log `exc` and return it as a failed ServiceResult.

        Expected failures log at INFO by default; callers raise the level
        for authorization failures.
        """
        line = f"{context}: {exc}" if context else str(exc)
        cls.get_logger().log(log_level, line)
        return ServiceResult.from_error(exc)
