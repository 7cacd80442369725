"""
Service layer for the chat messaging core.

This module contains the stores and the read-receipt reconciler:

ConversationService:
    Conversation store. Resolves the canonical direct conversation for a
    user pair, creates groups, lists a user's conversations by recency and
    answers participant-membership questions.

MessageStore:
    Append-only per-conversation message log. Appending a message and
    refreshing the conversation's updated_at happen in one transaction
    under a row lock on the conversation.

ReadReceiptService:
    Transitions unread messages authored by others to read and returns
    exactly the messages it transitioned, one ReadReceipt each.

Error handling:
    These services raise core/chat exceptions (NotFoundError,
    ValidationError, Unauthorized). MessagingFacade (facade.py) converts
    them into ServiceResult failures for the REST and WebSocket surfaces.

Usage:
    from chat.services import ConversationService, MessageStore

    conversation = ConversationService.resolve_direct(alice.id, bob.id)
    message = MessageStore.append(alice.id, conversation.id, "hi")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import IntegrityError
from django.db.models import Exists, OuterRef
from django.utils import timezone

from authentication.services import UserDirectory
from chat.constants import MESSAGE_CONFIG
from chat.models import (
    Conversation,
    ConversationType,
    DirectConversationPair,
    Message,
    Participant,
)
from core.exceptions import NotFoundError, ValidationError
from core.services import BaseService

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User


# =============================================================================
# Conversation Store
# =============================================================================


class ConversationService(BaseService):
    """Durable record of conversations and their participant sets."""

    @classmethod
    def get(cls, conversation_id) -> Conversation:
        """
        Load a conversation by id.

        Raises:
            NotFoundError: No conversation with this id
        """
        try:
            return Conversation.objects.get(pk=conversation_id)
        except (Conversation.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(
                f"Conversation {conversation_id} not found",
                details={"conversation_id": conversation_id},
            )

    @classmethod
    def _find_direct(
        cls, user_lower_id: int, user_higher_id: int
    ) -> Conversation | None:
        try:
            pair = DirectConversationPair.objects.select_related("conversation").get(
                user_lower_id=user_lower_id, user_higher_id=user_higher_id
            )
        except DirectConversationPair.DoesNotExist:
            return None
        return pair.conversation

    @classmethod
    def resolve_direct(cls, user_a_id: int, user_b_id: int) -> Conversation:
        """
        Return the direct conversation between two users, creating it if needed.

        Implementation:
            1. Resolve both users (NotFoundError if either is missing)
            2. Canonicalize order (lower user id first)
            3. Look up an existing DirectConversationPair
            4. Otherwise create conversation, pair and both participants
               in one transaction
            5. If the pair insert loses a race (IntegrityError on the unique
               pair constraint), re-read and return the winner's conversation

        Args:
            user_a_id: Requesting user
            user_b_id: Other user

        Returns:
            The canonical direct Conversation for the pair

        Raises:
            NotFoundError: Either user does not exist
            ValidationError: Both ids are the same user
        """
        users = UserDirectory.find_many([user_a_id, user_b_id])
        for user_id in (user_a_id, user_b_id):
            if user_id not in users:
                raise NotFoundError(
                    f"User {user_id} not found", details={"user_id": user_id}
                )

        if user_a_id == user_b_id:
            raise ValidationError(
                "Cannot create a direct conversation with yourself",
                details={"user_id": user_a_id},
            )

        lower_id, higher_id = DirectConversationPair.canonical(user_a_id, user_b_id)

        existing = cls._find_direct(lower_id, higher_id)
        if existing is not None:
            cls.get_logger().debug(
                f"Found existing direct conversation {existing.id} "
                f"between users {lower_id} and {higher_id}"
            )
            return existing

        user_a, user_b = users[user_a_id], users[user_b_id]
        try:
            with cls.atomic():
                conversation = Conversation.objects.create(
                    conversation_type=ConversationType.DIRECT,
                    name=f"{user_a.username} & {user_b.username}",
                )
                DirectConversationPair.objects.create(
                    conversation=conversation,
                    user_lower_id=lower_id,
                    user_higher_id=higher_id,
                )
                Participant.objects.bulk_create(
                    [
                        Participant(conversation=conversation, user_id=lower_id),
                        Participant(conversation=conversation, user_id=higher_id),
                    ]
                )
        except IntegrityError:
            winner = cls._find_direct(lower_id, higher_id)
            if winner is None:
                raise
            cls.get_logger().info(
                f"Concurrent create for users {lower_id} and {higher_id}, "
                f"returning conversation {winner.id}"
            )
            return winner

        cls.get_logger().info(
            f"Created direct conversation {conversation.id} "
            f"between users {lower_id} and {higher_id}"
        )
        return conversation

    @classmethod
    def create_group(cls, creator_id: int, name: str, member_ids) -> Conversation:
        """
        Create a group conversation.

        The creator and every listed member become participants. Duplicate
        ids (including the creator listed as a member) are collapsed.

        Raises:
            ValidationError: Blank name, or fewer than two distinct participants
            NotFoundError: The creator or a member does not exist
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name cannot be empty")
        if len(name) > Conversation._meta.get_field("name").max_length:
            raise ValidationError("Group name is too long")

        participant_ids = list(dict.fromkeys([creator_id, *(member_ids or [])]))
        if len(participant_ids) < 2:
            raise ValidationError(
                "A group needs at least two participants",
                details={"participant_ids": participant_ids},
            )

        users = UserDirectory.find_many(participant_ids)
        missing = [user_id for user_id in participant_ids if user_id not in users]
        if missing:
            raise NotFoundError(
                f"User {missing[0]} not found", details={"user_ids": missing}
            )

        with cls.atomic():
            conversation = Conversation.objects.create(
                conversation_type=ConversationType.GROUP,
                name=name,
            )
            Participant.objects.bulk_create(
                [
                    Participant(conversation=conversation, user_id=user_id)
                    for user_id in participant_ids
                ]
            )

        cls.get_logger().info(
            f"Created group conversation {conversation.id} "
            f"with {len(participant_ids)} participants"
        )
        return conversation

    @classmethod
    def list_for_user(cls, user_id: int) -> QuerySet[Conversation]:
        """All conversations the user participates in, most recently active first."""
        membership = Participant.objects.filter(
            conversation=OuterRef("pk"), user_id=user_id
        )
        return (
            Conversation.objects.filter(Exists(membership))
            .prefetch_related("participants__user__profile")
            .order_by("-updated_at", "-id")
        )

    @classmethod
    def is_participant(cls, conversation_id, user_id) -> bool:
        if user_id is None:
            return False
        return Participant.objects.filter(
            conversation_id=conversation_id, user_id=user_id
        ).exists()

    @classmethod
    def other_participants(cls, conversation_id, viewer_id) -> list[User]:
        """Users in the conversation other than the viewer, in join order."""
        participants = (
            Participant.objects.filter(conversation_id=conversation_id)
            .exclude(user_id=viewer_id)
            .select_related("user__profile")
        )
        return [participant.user for participant in participants]

    @classmethod
    def display_name(cls, conversation: Conversation, viewer_id) -> str:
        """
        Name to show the viewer for this conversation.

        Groups show their stored name. Direct conversations show the other
        participant's current username, falling back to the stored name.
        """
        if conversation.is_group:
            return conversation.name

        # Use prefetched participants when the caller loaded them
        cache = getattr(conversation, "_prefetched_objects_cache", {})
        if "participants" in cache:
            others = [p.user for p in cache["participants"] if p.user_id != viewer_id]
        else:
            others = cls.other_participants(conversation.pk, viewer_id)

        if others:
            return others[0].username
        return conversation.name

    @classmethod
    def touch_last_read(cls, conversation_id, user_id) -> None:
        """Set the participant's last_read_at to now."""
        Participant.objects.filter(
            conversation_id=conversation_id, user_id=user_id
        ).update(last_read_at=timezone.now())


# =============================================================================
# Message Store
# =============================================================================


class MessageStore(BaseService):
    """Append-only, per-conversation message log."""

    @staticmethod
    def clean_content(content) -> str:
        """
        Strip and validate message content.

        Raises:
            ValidationError: Not a string, empty after stripping, or longer
                than MESSAGE_CONFIG.MAX_CONTENT_LENGTH
        """
        if content is not None and not isinstance(content, str):
            raise ValidationError("Message content must be text")
        content = (content or "").strip()
        if len(content) < MESSAGE_CONFIG.MIN_CONTENT_LENGTH:
            raise ValidationError("Message content cannot be empty")
        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            raise ValidationError(
                f"Message cannot exceed {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                details={"max_length": MESSAGE_CONFIG.MAX_CONTENT_LENGTH},
            )
        return content

    @classmethod
    def append(cls, sender_id: int, conversation_id: int, content: str) -> Message:
        """
        Persist a new message and refresh the conversation's updated_at.

        The conversation row is locked (SELECT ... FOR UPDATE) for the
        duration of the transaction, so concurrent appends to the same
        conversation commit one after another and their created_at values
        follow commit order. Appends to different conversations do not
        contend.

        Args:
            sender_id: Author
            conversation_id: Target conversation
            content: Message text (stripped before storing)

        Returns:
            The persisted Message, with sender and profile loaded

        Raises:
            NotFoundError: Sender or conversation does not exist
            ValidationError: Content empty or too long
        """
        sender = UserDirectory.get_user(sender_id)
        if sender is None:
            raise NotFoundError(
                f"User {sender_id} not found", details={"user_id": sender_id}
            )

        with cls.atomic():
            try:
                conversation = Conversation.objects.select_for_update().get(
                    pk=conversation_id
                )
            except (Conversation.DoesNotExist, ValueError, TypeError):
                raise NotFoundError(
                    f"Conversation {conversation_id} not found",
                    details={"conversation_id": conversation_id},
                )

            content = cls.clean_content(content)

            message = Message.objects.create(
                conversation=conversation,
                sender=sender,
                content=content,
            )
            # update() skips auto_now, so updated_at is exactly the message time
            Conversation.objects.filter(pk=conversation.pk).update(
                updated_at=message.created_at
            )
            conversation.updated_at = message.created_at

        cls.get_logger().debug(
            f"Message {message.id} appended to conversation {conversation.id} "
            f"by user {sender.id}"
        )
        return message

    @classmethod
    def get(cls, message_id) -> Message:
        """
        Raises:
            NotFoundError: No message with this id
        """
        try:
            return Message.objects.select_related("sender__profile").get(pk=message_id)
        except (Message.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(
                f"Message {message_id} not found", details={"message_id": message_id}
            )

    @classmethod
    def history(cls, conversation_id) -> QuerySet[Message]:
        """Full chronological history, oldest first."""
        return (
            Message.objects.filter(conversation_id=conversation_id)
            .select_related("sender__profile")
            .order_by("created_at", "id")
        )

    @classmethod
    def _from_others(cls, conversation_id, user_id) -> QuerySet[Message]:
        return Message.objects.filter(conversation_id=conversation_id).exclude(
            sender_id=user_id
        )

    @classmethod
    def unread_messages(cls, conversation_id, user_id) -> QuerySet[Message]:
        """
        Messages authored by others that are still unread.

        This is the one predicate behind unread counts and mark-read.
        """
        return (
            cls._from_others(conversation_id, user_id)
            .filter(is_read=False)
            .order_by("created_at", "id")
        )

    @classmethod
    def read_messages_from_others(cls, conversation_id, user_id) -> QuerySet[Message]:
        return (
            cls._from_others(conversation_id, user_id)
            .filter(is_read=True)
            .order_by("created_at", "id")
        )


# =============================================================================
# Read-Receipt Reconciler
# =============================================================================


@dataclass(frozen=True)
class ReadReceipt:
    """A message authored by sender_id has been read by reader_id."""

    message_id: int
    conversation_id: int
    sender_id: int | None
    reader_id: int
    is_read: bool = True

    def to_payload(self) -> dict:
        """Wire representation."""
        return {
            "messageId": self.message_id,
            "conversationId": self.conversation_id,
            "senderId": self.sender_id,
            "readerId": self.reader_id,
            "isRead": self.is_read,
        }


class ReadReceiptService(BaseService):
    """
    Read/unread state transitions.

    Each message is transitioned by a conditional UPDATE
    (WHERE is_read = false AND sender != reader). A row counts as
    transitioned only if that UPDATE touched it, so two concurrent
    reconciliations never both report the same message.
    """

    @classmethod
    def _transition(cls, message_id, reader_id) -> bool:
        updated = (
            Message.objects.filter(pk=message_id, is_read=False)
            .exclude(sender_id=reader_id)
            .update(is_read=True)
        )
        return updated == 1

    @classmethod
    def mark_conversation_read(cls, conversation_id, reader_id) -> list[ReadReceipt]:
        """
        Mark every unread message from others in the conversation as read.

        Args:
            conversation_id: Conversation being read
            reader_id: User reading it

        Returns:
            One ReadReceipt per message this call transitioned, oldest first.
            Empty when nothing was unread (a repeated call returns []).
        """
        candidates = list(
            MessageStore.unread_messages(conversation_id, reader_id).values_list(
                "pk", "sender_id"
            )
        )

        receipts = []
        with cls.atomic():
            for message_id, sender_id in candidates:
                if cls._transition(message_id, reader_id):
                    receipts.append(
                        ReadReceipt(
                            message_id=message_id,
                            conversation_id=conversation_id,
                            sender_id=sender_id,
                            reader_id=reader_id,
                        )
                    )
            ConversationService.touch_last_read(conversation_id, reader_id)

        if receipts:
            cls.get_logger().info(
                f"User {reader_id} read {len(receipts)} messages "
                f"in conversation {conversation_id}"
            )
        return receipts

    @classmethod
    def mark_message_read(cls, message_id, reader_id) -> ReadReceipt | None:
        """
        Single-message variant of mark_conversation_read.

        Returns:
            ReadReceipt if this call transitioned the message, None if it
            was already read or was authored by the reader.

        Raises:
            NotFoundError: No message with this id
        """
        message = MessageStore.get(message_id)
        if not cls._transition(message.pk, reader_id):
            return None
        return ReadReceipt(
            message_id=message.pk,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            reader_id=reader_id,
        )

    @classmethod
    def unread_count(cls, conversation_id, user_id) -> int:
        """Number of messages from others still unread in the conversation."""
        return MessageStore.unread_messages(conversation_id, user_id).count()
