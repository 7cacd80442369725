"""
Permission classes for chat API.

This module provides DRF permission classes for the chat system:
- IsConversationParticipant: User participates in the conversation

Design Decisions:
    - Membership is answered by ConversationService.is_participant, the same
      predicate the facade and the WebSocket consumers use
    - Message and history endpoints are authorized inside MessagingFacade,
      which also distinguishes NOT_FOUND from NOT_PARTICIPANT
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from chat.services import ConversationService

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView

    from chat.models import Conversation


class IsConversationParticipant(permissions.BasePermission):
    """Allows access only to participants of the conversation."""

    message = "You are not a participant in this conversation."
    code = "NOT_PARTICIPANT"

    def has_object_permission(
        self, request: Request, view: APIView, obj: Conversation
    ) -> bool:
        if not request.user.is_authenticated:
            return False
        return ConversationService.is_participant(obj.pk, request.user.pk)
