"""
Serializers for chat API.

This module provides serializers for the chat system:
- Message serializers (wire representation, send request, history query)
- Conversation serializers (list, detail, create)

Serializer Hierarchy:
    MessageSerializer: Flat message record shared by REST and WebSocket
    MessageCreateSerializer: Send new message
    HistoryQuerySerializer: page/size query parameters

    ConversationListSerializer: List view with display name and unread count
    ConversationDetailSerializer: Adds participants
    ConversationCreateSerializer: Direct/group conversation creation

Design Decisions:
    - Field names are camelCase on the wire, mapped with source=
    - Read and write serializers are separate for clarity
    - The viewing user comes from context["viewer_id"], never from a global
    - Content rules (empty, length) are enforced by MessageStore so REST and
      WebSocket clients get the same INVALID_INPUT errors
"""

from __future__ import annotations

from rest_framework import serializers

from chat.models import Conversation, ConversationType, Message
from chat.services import ConversationService, ReadReceiptService


def user_summary(user) -> dict:
    """Public identity of a participant."""
    profile = getattr(user, "profile", None)
    return {
        "id": user.pk,
        "username": user.username,
        "profilePicture": profile.profile_picture_url if profile else None,
    }


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """
    Wire representation of a message.

    {id, content, senderId, senderUsername, senderProfilePicture, isRead, createdAt}

    Sender fields are resolved from the user's profile at serialization
    time, so a username change shows up on old messages too.
    """

    senderId = serializers.IntegerField(source="sender_id", read_only=True)
    senderUsername = serializers.SerializerMethodField()
    senderProfilePicture = serializers.SerializerMethodField()
    isRead = serializers.BooleanField(source="is_read", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "content",
            "senderId",
            "senderUsername",
            "senderProfilePicture",
            "isRead",
            "createdAt",
        ]
        read_only_fields = fields

    def get_senderUsername(self, obj: Message) -> str | None:
        return obj.sender.username if obj.sender_id else None

    def get_senderProfilePicture(self, obj: Message) -> str | None:
        if not obj.sender_id:
            return None
        profile = getattr(obj.sender, "profile", None)
        return profile.profile_picture_url if profile else None


def message_payload(message: Message) -> dict:
    """Plain dict for channel layer events (msgpack-safe)."""
    return dict(MessageSerializer(message).data)


class MessageCreateSerializer(serializers.Serializer):
    """Serializer for sending messages."""

    content = serializers.CharField(
        allow_blank=True,
        trim_whitespace=False,
        help_text="Message content (max 10,000 characters after trimming)",
    )


class HistoryQuerySerializer(serializers.Serializer):
    """Query parameters for message history."""

    page = serializers.IntegerField(
        required=False,
        default=0,
        help_text="0 for the latest messages, 1 for the block before, ...",
    )
    size = serializers.IntegerField(
        required=False,
        allow_null=True,
        default=None,
        help_text="Messages per page (default 50, clamped to 100)",
    )


class HistoryPageSerializer(serializers.Serializer):
    """{"messages": [...], "hasMore": bool, "page": int}"""

    messages = MessageSerializer(many=True)
    hasMore = serializers.BooleanField(source="has_more")
    page = serializers.IntegerField()


class MarkReadResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    markedCount = serializers.IntegerField()


# =============================================================================
# Conversation Serializers
# =============================================================================


class ConversationListSerializer(serializers.ModelSerializer):
    """
    Serializer for conversation list view.

    Includes computed fields:
    - displayName: stored name for groups, other user's username for direct
    - unreadCount: messages from others still unread by the viewer
    """

    type = serializers.CharField(source="conversation_type", read_only=True)
    isGroup = serializers.BooleanField(source="is_group", read_only=True)
    displayName = serializers.SerializerMethodField(
        help_text="Display name for the conversation"
    )
    unreadCount = serializers.SerializerMethodField(
        help_text="Number of unread messages"
    )
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Conversation
        fields = [
            "id",
            "type",
            "isGroup",
            "name",
            "displayName",
            "unreadCount",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = fields

    @property
    def viewer_id(self):
        return self.context.get("viewer_id")

    def get_displayName(self, obj: Conversation) -> str:
        return ConversationService.display_name(obj, self.viewer_id)

    def get_unreadCount(self, obj: Conversation) -> int:
        if self.viewer_id is None:
            return 0
        return ReadReceiptService.unread_count(obj.pk, self.viewer_id)


class ConversationDetailSerializer(ConversationListSerializer):
    """Full conversation details including all participants."""

    participants = serializers.SerializerMethodField(
        help_text="All participants in join order"
    )

    class Meta(ConversationListSerializer.Meta):
        fields = ConversationListSerializer.Meta.fields + ["participants"]
        read_only_fields = fields

    def get_participants(self, obj: Conversation) -> list[dict]:
        participants = obj.participants.select_related("user__profile").order_by(
            "joined_at", "id"
        )
        return [user_summary(p.user) for p in participants]


class ConversationCreateSerializer(serializers.Serializer):
    """
    Serializer for creating conversations.

    Supports both direct (1:1) and group conversations:
    - Direct: {"type": "direct", "userId": 7}; returns existing if found
    - Group: {"type": "group", "name": "Team", "memberIds": [7, 9]}
    """

    type = serializers.ChoiceField(
        choices=ConversationType.choices,
        default=ConversationType.DIRECT,
        help_text="Type of conversation to create",
    )
    userId = serializers.IntegerField(
        required=False,
        help_text="Other user for direct conversations",
    )
    name = serializers.CharField(
        max_length=100,
        required=False,
        allow_blank=True,
        default="",
        help_text="Group name (ignored for direct)",
    )
    memberIds = serializers.ListField(
        child=serializers.IntegerField(),
        required=False,
        default=list,
        help_text="Members to add to a group (creator is added automatically)",
    )

    def validate(self, attrs: dict) -> dict:
        """Validate based on conversation type."""
        if attrs["type"] == ConversationType.DIRECT and "userId" not in attrs:
            raise serializers.ValidationError(
                {"userId": "Direct conversations require the other user's id"}
            )
        return attrs
