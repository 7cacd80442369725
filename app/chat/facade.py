"""
Messaging facade: the single entry point for the REST and WebSocket surfaces.

Every operation takes an explicit SessionContext (who is calling) and
returns a ServiceResult. The facade:
    1. Rejects calls without an authenticated user (UNAUTHORIZED)
    2. Resolves the conversation (NOT_FOUND) and checks membership
       (NOT_PARTICIPANT)
    3. Calls the stores, which may fail with INVALID_INPUT / NOT_FOUND
    4. Hands the persisted result to DeliveryBroadcaster, whose failures
       never affect the result

Message lifecycle for send_message:
    Submitted -> Persisted -> Broadcast (success or partial)
    Failures before Persisted are returned to the caller. Once the message
    is persisted the call succeeds.

Usage:
    ctx = SessionContext.from_user(request.user)
    result = MessagingFacade.send_message(ctx, conversation_id, "hi")
    if result.success:
        message = result.data
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from chat.broadcast import DeliveryBroadcaster
from chat.exceptions import Unauthorized
from chat.models import ConversationType
from chat.pagination import HistoryPage, MessageHistoryPaginator
from chat.serializers import message_payload
from chat.services import (
    ConversationService,
    MessageStore,
    ReadReceipt,
    ReadReceiptService,
)
from core.exceptions import BaseApplicationError, PermissionDeniedError
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from chat.models import Conversation, Message


@dataclass(frozen=True)
class SessionContext:
    """The authenticated caller of a facade operation (user_id None = anonymous)."""

    user_id: int | None = None

    @classmethod
    def from_user(cls, user) -> SessionContext:
        if user is None or not getattr(user, "is_authenticated", False):
            return cls(user_id=None)
        return cls(user_id=user.pk)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


class MessagingFacade(BaseService):
    """Authorization, persistence and broadcast sequencing for chat operations."""

    # -------------------------------------------------------------------------
    # Authorization helpers
    # -------------------------------------------------------------------------

    @classmethod
    def _require_session(cls, ctx: SessionContext) -> int:
        if ctx is None or not ctx.is_authenticated:
            raise Unauthorized()
        return ctx.user_id

    @classmethod
    def _require_participant(cls, ctx: SessionContext, conversation_id) -> Conversation:
        user_id = cls._require_session(ctx)
        conversation = ConversationService.get(conversation_id)
        if not ConversationService.is_participant(conversation.pk, user_id):
            raise Unauthorized.not_participant(conversation.pk, user_id)
        return conversation

    @classmethod
    def _fail(cls, exc: BaseApplicationError, operation: str) -> ServiceResult:
        if isinstance(exc, PermissionDeniedError):
            return cls.handle_exception(exc, operation, log_level=logging.WARNING)
        return cls.handle_exception(exc, operation)

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    @classmethod
    def send_message(
        cls, ctx: SessionContext, conversation_id, content: str
    ) -> ServiceResult[Message]:
        """
        Persist a message from the session user and broadcast it.

        Returns:
            ServiceResult with the persisted Message

        Error codes:
            UNAUTHORIZED, NOT_PARTICIPANT, NOT_FOUND, INVALID_INPUT
        """
        try:
            conversation = cls._require_participant(ctx, conversation_id)
            message = MessageStore.append(ctx.user_id, conversation.pk, content)
        except BaseApplicationError as exc:
            return cls._fail(exc, "send_message")

        DeliveryBroadcaster.publish_message(conversation.pk, message_payload(message))
        return ServiceResult.success(message)

    @classmethod
    def fetch_history(
        cls, ctx: SessionContext, conversation_id, page=0, size=None
    ) -> ServiceResult[HistoryPage]:
        """
        One page of history, oldest first within the page.

        Error codes:
            UNAUTHORIZED, NOT_PARTICIPANT, NOT_FOUND, INVALID_INPUT
        """
        try:
            conversation = cls._require_participant(ctx, conversation_id)
            history = MessageHistoryPaginator.paginate(conversation.pk, page, size)
        except BaseApplicationError as exc:
            return cls._fail(exc, "fetch_history")
        return ServiceResult.success(history)

    # -------------------------------------------------------------------------
    # Read receipts
    # -------------------------------------------------------------------------

    @classmethod
    def mark_conversation_read(
        cls, ctx: SessionContext, conversation_id
    ) -> ServiceResult[list[ReadReceipt]]:
        """
        Mark the conversation read for the session user.

        One receipt is broadcast per message this call transitioned; a
        repeated call transitions and broadcasts nothing.

        Returns:
            ServiceResult with the list of ReadReceipts (len = marked count)
        """
        try:
            conversation = cls._require_participant(ctx, conversation_id)
            receipts = ReadReceiptService.mark_conversation_read(
                conversation.pk, ctx.user_id
            )
        except BaseApplicationError as exc:
            return cls._fail(exc, "mark_conversation_read")

        for receipt in receipts:
            DeliveryBroadcaster.publish_read_receipt(
                conversation.pk, receipt.to_payload()
            )
        return ServiceResult.success(receipts)

    @classmethod
    def unread_count(cls, ctx: SessionContext, conversation_id) -> ServiceResult[int]:
        try:
            conversation = cls._require_participant(ctx, conversation_id)
        except BaseApplicationError as exc:
            return cls._fail(exc, "unread_count")
        return ServiceResult.success(
            ReadReceiptService.unread_count(conversation.pk, ctx.user_id)
        )

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    @classmethod
    def resolve_direct(
        cls, ctx: SessionContext, other_user_id
    ) -> ServiceResult[Conversation]:
        """
        Existing or new direct conversation between the session user and another.

        Error codes:
            UNAUTHORIZED, NOT_FOUND, INVALID_INPUT (other user is the caller)
        """
        try:
            user_id = cls._require_session(ctx)
            conversation = ConversationService.resolve_direct(user_id, other_user_id)
        except BaseApplicationError as exc:
            return cls._fail(exc, "resolve_direct")
        return ServiceResult.success(conversation)

    @classmethod
    def create_group(
        cls, ctx: SessionContext, name: str, member_ids
    ) -> ServiceResult[Conversation]:
        try:
            user_id = cls._require_session(ctx)
            conversation = ConversationService.create_group(user_id, name, member_ids)
        except BaseApplicationError as exc:
            return cls._fail(exc, "create_group")
        return ServiceResult.success(conversation)

    @classmethod
    def create_conversation(
        cls, ctx: SessionContext, conversation_type: str, **data
    ) -> ServiceResult[Conversation]:
        """Dispatch to resolve_direct or create_group by type."""
        if conversation_type == ConversationType.GROUP:
            return cls.create_group(ctx, data.get("name", ""), data.get("member_ids"))
        return cls.resolve_direct(ctx, data.get("user_id"))

    @classmethod
    def list_conversations(cls, ctx: SessionContext) -> ServiceResult[QuerySet]:
        """The session user's conversations, most recently active first."""
        try:
            user_id = cls._require_session(ctx)
        except BaseApplicationError as exc:
            return cls._fail(exc, "list_conversations")
        return ServiceResult.success(ConversationService.list_for_user(user_id))

    @classmethod
    def get_conversation(
        cls, ctx: SessionContext, conversation_id
    ) -> ServiceResult[Conversation]:
        try:
            conversation = cls._require_participant(ctx, conversation_id)
        except BaseApplicationError as exc:
            return cls._fail(exc, "get_conversation")
        return ServiceResult.success(conversation)
