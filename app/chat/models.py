"""
Conversations, memberships and the message log.

Ownership: deleting a conversation removes its participants and messages.
Senders are only referenced, and their names and pictures are looked up
when a message is rendered. Message order is (created_at, id). is_read
moves from False to True and never back.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import BaseModel


class ConversationType(models.TextChoices):
    """DIRECT has exactly two members and is unique per pair; GROUP has two or more."""

    DIRECT = "direct", "Direct Message"
    GROUP = "group", "Group"


class Conversation(BaseModel):
    """
    name is shown as-is for groups. For direct conversations it only
    stores "<a> & <b>" as a fallback; the other member's current username
    is displayed instead.

    updated_at is bumped to each new message's created_at, which orders
    the conversation list.
    """

    conversation_type = models.CharField(
        max_length=10,
        choices=ConversationType.choices,
        default=ConversationType.DIRECT,
        db_index=True,
        help_text="Type of conversation (direct or group)",
    )

    name = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Display name (group title, or fallback for direct)",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-updated_at", "-id"]
        indexes = [
            models.Index(
                fields=["-updated_at", "-id"],
                name="chat_conv_recency_idx",
            ),
        ]

    def __str__(self) -> str:
        if self.is_direct:
            return f"Direct({self.pk})"
        return f"Group: {self.name}"

    @property
    def is_direct(self) -> bool:
        return self.conversation_type == ConversationType.DIRECT

    @property
    def is_group(self) -> bool:
        return self.conversation_type == ConversationType.GROUP


class DirectConversationPair(models.Model):
    """
    One row per direct conversation, keyed by the ordered user pair.

    The unique constraint makes a concurrent second create for the same
    pair fail with IntegrityError; ConversationService then re-reads.
    """

    conversation = models.OneToOneField(
        Conversation,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="direct_pair",
        help_text="The direct conversation this pair represents",
    )

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with lower ID in this conversation pair",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with higher ID in this conversation pair",
    )

    class Meta:
        db_table = "chat_direct_conversation_pair"
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_direct_conversation_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="user_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        return f"DirectPair({self.user_lower_id}, {self.user_higher_id})"

    @staticmethod
    def canonical(user_a_id: int, user_b_id: int) -> tuple[int, int]:
        """Return the pair as (lower, higher)."""
        if user_a_id < user_b_id:
            return user_a_id, user_b_id
        return user_b_id, user_a_id


class Participant(BaseModel):
    """A user's membership; last_read_at stays NULL until the first mark-read."""

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="participants",
        help_text="Conversation this membership belongs to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_participations",
        help_text="Participating user",
    )

    joined_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user joined the conversation",
    )

    last_read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the user last marked the conversation read",
    )

    class Meta:
        db_table = "chat_participant"
        ordering = ["joined_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_conversation_participant",
            ),
        ]
        indexes = [
            models.Index(
                fields=["user", "conversation"],
                name="chat_part_user_conv_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Participant(user={self.user_id}, conversation={self.conversation_id})"


class Message(BaseModel):
    """
    Immutable apart from is_read.

    sender becomes NULL only if the account is deleted later. is_read is a
    single flag: set once any member other than the sender has read it.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_messages",
        help_text="User who sent this message",
    )

    content = models.TextField(
        help_text="Message text",
    )

    is_read = models.BooleanField(
        default=False,
        help_text="Set once a participant other than the sender reads it",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            # Messages in a conversation (history and pagination)
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_cursor_idx",
            ),
            # Unread messages in a conversation (badge counts, mark-read)
            models.Index(
                fields=["conversation", "sender"],
                name="chat_msg_unread_idx",
                condition=Q(is_read=False),
            ),
        ]

    def __str__(self) -> str:
        preview = self.content[:50] + "..." if len(self.content) > 50 else self.content
        return f"User {self.sender_id}: {preview}"
