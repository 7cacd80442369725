"""
Chat-specific exceptions.

Extends the core exception hierarchy with the two failure kinds only the
messaging core has:

    Unauthorized: no session, or the session user is not a participant
    DeliveryFailure: a live broadcast could not be handed to the channel layer

Error codes:
    UNAUTHORIZED: No authenticated user
    NOT_PARTICIPANT: Authenticated user is not in the conversation
    DELIVERY_FAILURE: Broadcast failed (never reaches a caller)
"""

from core.exceptions import ExternalServiceError, PermissionDeniedError


class Unauthorized(PermissionDeniedError):
    """Caller may not act on the target conversation."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: str = "UNAUTHORIZED",
        details=None,
    ):
        super().__init__(message=message, error_code=error_code, details=details)

    @classmethod
    def not_participant(cls, conversation_id, user_id) -> "Unauthorized":
        return cls(
            message="You are not a participant in this conversation",
            error_code="NOT_PARTICIPANT",
            details={"conversation_id": conversation_id, "user_id": user_id},
        )


class DeliveryFailure(ExternalServiceError):
    """Publishing to a topic failed. Logged by the broadcaster, never raised past it."""

    def __init__(self, topic: str, message: str = "Broadcast failed", details=None):
        self.topic = topic
        super().__init__(
            message=message,
            error_code="DELIVERY_FAILURE",
            details={"topic": topic, **(details or {})},
        )
