"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Conversation list/create/detail and read actions
- MessageViewSet: History and send (nested under conversation)

URL Structure:
    /api/v1/chat/conversations/                       GET, POST
    /api/v1/chat/conversations/{id}/                  GET
    /api/v1/chat/conversations/{id}/read/             POST
    /api/v1/chat/conversations/{id}/unread-count/     GET
    /api/v1/chat/conversations/{id}/messages/         GET, POST

Design Decisions:
    - Views only translate HTTP to MessagingFacade calls and back
    - A SessionContext is built from request.user for every call
    - Facade error codes map to HTTP statuses in ERROR_STATUS
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from chat.facade import MessagingFacade, SessionContext
from chat.models import Conversation
from chat.pagination import ConversationCursorPagination
from chat.permissions import IsConversationParticipant
from chat.serializers import (
    ConversationCreateSerializer,
    ConversationDetailSerializer,
    ConversationListSerializer,
    HistoryPageSerializer,
    HistoryQuerySerializer,
    MarkReadResponseSerializer,
    MessageCreateSerializer,
    MessageSerializer,
)

ERROR_STATUS = {
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "NOT_PARTICIPANT": status.HTTP_403_FORBIDDEN,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVALID_INPUT": status.HTTP_400_BAD_REQUEST,
}


def error_response(result) -> Response:
    """Map a failed ServiceResult to an HTTP error response."""
    return Response(
        result.to_response(),
        status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


class SessionContextMixin:
    """Builds the explicit caller context passed into every facade call."""

    def get_session(self) -> SessionContext:
        return SessionContext.from_user(self.request.user)

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context["viewer_id"] = self.get_session().user_id
        return context


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        tags=["Chat - Conversations"],
    ),
    create=extend_schema(
        operation_id="create_conversation",
        summary="Create conversation",
        description=(
            "Direct: returns the existing conversation with that user if there "
            "is one (200), otherwise creates it (201). Group: always creates."
        ),
        tags=["Chat - Conversations"],
        request=ConversationCreateSerializer,
        responses={
            200: ConversationDetailSerializer,
            201: ConversationDetailSerializer,
        },
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        tags=["Chat - Conversations"],
    ),
)
class ConversationViewSet(
    SessionContextMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    ViewSet for conversation operations.

    list:
        The caller's conversations, most recently active first, with
        display name and unread count.

    create:
        Resolve a direct conversation or create a group.

    retrieve:
        Conversation details including participants.
    """

    permission_classes = [IsAuthenticated]
    pagination_class = ConversationCursorPagination

    def get_queryset(self):
        """Conversations the caller participates in (list) or all (detail lookup)."""
        if self.action == "list":
            result = MessagingFacade.list_conversations(self.get_session())
            if not result.success:
                return Conversation.objects.none()
            return result.data
        return Conversation.objects.all()

    def get_serializer_class(self):
        """Return appropriate serializer based on action."""
        if self.action == "list":
            return ConversationListSerializer
        if self.action == "create":
            return ConversationCreateSerializer
        return ConversationDetailSerializer

    def get_permissions(self):
        """Return permissions based on action."""
        if self.action == "retrieve":
            return [IsAuthenticated(), IsConversationParticipant()]
        return [IsAuthenticated()]

    def create(self, request):
        """Create a conversation (direct or group)."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        session = self.get_session()
        existed = False
        if data["type"] == "direct":
            existed = Conversation.objects.filter(
                direct_pair__user_lower_id=min(session.user_id, data["userId"]),
                direct_pair__user_higher_id=max(session.user_id, data["userId"]),
            ).exists()

        result = MessagingFacade.create_conversation(
            session,
            data["type"],
            user_id=data.get("userId"),
            name=data.get("name", ""),
            member_ids=data.get("memberIds"),
        )
        if not result.success:
            return error_response(result)

        output_serializer = ConversationDetailSerializer(
            result.data, context=self.get_serializer_context()
        )
        return Response(
            output_serializer.data,
            status=status.HTTP_200_OK if existed else status.HTTP_201_CREATED,
        )

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark conversation as read",
        tags=["Chat - Conversations"],
        request=None,
        responses={200: MarkReadResponseSerializer},
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        """Mark every unread message from others as read."""
        result = MessagingFacade.mark_conversation_read(self.get_session(), pk)
        if not result.success:
            return error_response(result)
        return Response({"success": True, "markedCount": len(result.data)})

    @extend_schema(
        operation_id="conversation_unread_count",
        summary="Unread message count",
        tags=["Chat - Conversations"],
        responses={
            200: OpenApiResponse(
                response=OpenApiTypes.OBJECT,
                description='{"conversationId": int, "unreadCount": int}',
            )
        },
    )
    @action(detail=True, methods=["get"], url_path="unread-count")
    def unread_count(self, request, pk=None):
        result = MessagingFacade.unread_count(self.get_session(), pk)
        if not result.success:
            return error_response(result)
        return Response({"conversationId": int(pk), "unreadCount": result.data})


@extend_schema_view(
    list=extend_schema(
        operation_id="list_messages",
        summary="Message history",
        description=(
            "Page 0 holds the most recent messages. Messages inside a page are "
            "oldest first; hasMore tells whether older pages exist."
        ),
        tags=["Chat - Messages"],
        parameters=[
            OpenApiParameter("page", OpenApiTypes.INT, OpenApiParameter.QUERY),
            OpenApiParameter("size", OpenApiTypes.INT, OpenApiParameter.QUERY),
        ],
        responses={200: HistoryPageSerializer},
    ),
    create=extend_schema(
        operation_id="send_message",
        summary="Send message",
        tags=["Chat - Messages"],
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
    ),
)
class MessageViewSet(SessionContextMixin, viewsets.GenericViewSet):
    """
    ViewSet for message operations within a conversation.

    list:
        One page of history (page, size query parameters).

    create:
        Send a message. The message is broadcast to live subscribers after
        it is stored; broadcast problems never fail the request.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = MessageSerializer

    def list(self, request, conversation_pk=None):
        query = HistoryQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(
                {"error": "Invalid page or size", "error_code": "INVALID_INPUT"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = MessagingFacade.fetch_history(
            self.get_session(),
            conversation_pk,
            page=query.validated_data["page"],
            size=query.validated_data["size"],
        )
        if not result.success:
            return error_response(result)
        return Response(HistoryPageSerializer(result.data).data)

    def create(self, request, conversation_pk=None):
        """Send a message."""
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessagingFacade.send_message(
            self.get_session(),
            conversation_pk,
            serializer.validated_data["content"],
        )
        if not result.success:
            return error_response(result)

        return Response(
            MessageSerializer(result.data).data, status=status.HTTP_201_CREATED
        )
