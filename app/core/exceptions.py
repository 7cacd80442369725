"""
Application error hierarchy.

Stores and services raise these for failures the caller can act on. Each
class fixes a default error_code, which travels unchanged into
ServiceResult.from_error() and from there into REST bodies and WebSocket
error frames.

    BaseApplicationError
    ├── ValidationError        INVALID_INPUT
    ├── NotFoundError          NOT_FOUND
    ├── PermissionDeniedError  PERMISSION_DENIED
    └── ExternalServiceError   EXTERNAL_SERVICE_ERROR

Request parsing errors stay with DRF serializers; these cover rules that
live in the service layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Attributes:
        message: Text safe to show the client
        error_code: Stable code, defaults to the class's default_error_code
        details: Extra context for logs (ids, limits)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, "
            f"error_code={self.error_code!r}, details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """Bad content, page or size values, malformed group requests."""

    default_error_code: str = "INVALID_INPUT"


class NotFoundError(BaseApplicationError):
    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """The caller may not perform the operation."""

    default_error_code: str = "PERMISSION_DENIED"


class ExternalServiceError(BaseApplicationError):
    """
    A backing service (channel layer, Redis) failed.

    The message should stay generic; put the underlying error in details
    or the log.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
