"""
WebSocket consumers for the chat application.

Consumers:
    ChatConsumer: ws/chat/<id>/ - live messages, inbound send and mark-read
    ReadReceiptConsumer: ws/chat/<id>/receipts/ - live read receipts only

Authentication:
    JWTAuthMiddleware (middleware.py) attaches the user to self.scope["user"].
    Authorization goes through MessagingFacade, the same path as REST.

Channel Groups:
    chat.messages.<conversation_id> and chat.receipts.<conversation_id>
    (see chat.constants). DeliveryBroadcaster publishes to them after
    commit; consumers only subscribe.

Close codes (connection rejected before accept):
    4001: Not authenticated
    4003: Not a participant
    4004: Conversation not found

Message Types (from client, ChatConsumer):
    - {"type": "message", "content": "Hello!"}
    - {"type": "read"}

Message Types (to client):
    - message: New message in conversation
    - receipt: A message was read (ReadReceiptConsumer)
    - read: Result of the client's own mark-read request
    - error: Error response
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from chat.constants import message_topic, receipt_topic
from chat.facade import MessagingFacade, SessionContext

logger = logging.getLogger(__name__)

CLOSE_CODES = {
    "UNAUTHORIZED": 4001,
    "NOT_PARTICIPANT": 4003,
    "NOT_FOUND": 4004,
}


class ConversationTopicConsumer(AsyncJsonWebsocketConsumer):
    """
    Base consumer: authorize against one conversation and join its topic.

    Subclasses set topic_for(conversation_id) to pick the group.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.conversation_id: int | None = None
        self.topic: str | None = None
        self.session = SessionContext()

    def topic_for(self, conversation_id: int) -> str:
        raise NotImplementedError

    async def connect(self):
        """
        Handle WebSocket connection.

        Validates:
            1. User is authenticated
            2. Conversation exists
            3. User is a participant in the conversation

        On success, joins the topic group and accepts the connection.
        """
        self.conversation_id = self.scope["url_route"]["kwargs"]["conversation_id"]
        self.session = SessionContext.from_user(self.scope.get("user"))

        result = await database_sync_to_async(MessagingFacade.get_conversation)(
            self.session, self.conversation_id
        )
        if not result.success:
            logger.warning(
                f"Rejected connection from user {self.session.user_id} to "
                f"conversation {self.conversation_id}: {result.error_code}"
            )
            await self.close(code=CLOSE_CODES.get(result.error_code, 4003))
            return

        self.topic = self.topic_for(self.conversation_id)
        await self.channel_layer.group_add(self.topic, self.channel_name)

        # Browsers require the server to echo the subprotocol used for the token
        subprotocol = "jwt" if "jwt" in self.scope.get("subprotocols", []) else None
        await self.accept(subprotocol=subprotocol)
        logger.info(f"User {self.session.user_id} subscribed to {self.topic}")

    async def disconnect(self, close_code):
        """Leave the topic group if one was joined."""
        if self.topic:
            await self.channel_layer.group_discard(self.topic, self.channel_name)
            logger.info(f"User {self.session.user_id} left {self.topic} ({close_code})")

    async def send_error(self, error: str, error_code: str | None = None):
        await self.send_json(
            {"type": "error", "error": error, "error_code": error_code}
        )


class ChatConsumer(ConversationTopicConsumer):
    """
    Live message stream for one conversation.

    Inbound "message" frames are equivalent to POSTing to the messages
    endpoint: the message is stored, then broadcast to every subscriber
    (including this connection). Inbound "read" frames mark the
    conversation read and broadcast receipts to the receipt topic.
    """

    def topic_for(self, conversation_id: int) -> str:
        return message_topic(conversation_id)

    async def receive_json(self, content, **kwargs):
        """
        Handle incoming WebSocket frames.

        Args:
            content: Parsed JSON frame from client
        """
        if not isinstance(content, dict):
            await self.send_error("Frames must be JSON objects", "INVALID_INPUT")
            return

        frame_type = content.get("type")
        if frame_type == "message":
            await self._handle_message(content)
        elif frame_type == "read":
            await self._handle_read()
        else:
            await self.send_error(
                f"Unknown message type: {frame_type}", "INVALID_INPUT"
            )

    async def _handle_message(self, content):
        result = await database_sync_to_async(MessagingFacade.send_message)(
            self.session, self.conversation_id, content.get("content")
        )
        if not result.success:
            await self.send_error(result.error, result.error_code)

    async def _handle_read(self):
        result = await database_sync_to_async(MessagingFacade.mark_conversation_read)(
            self.session, self.conversation_id
        )
        if not result.success:
            await self.send_error(result.error, result.error_code)
            return
        await self.send_json({"type": "read", "markedCount": len(result.data)})

    async def chat_message(self, event):
        """Forward chat.message events from the channel layer."""
        await self.send_json({"type": "message", "message": event["message"]})


class ReadReceiptConsumer(ConversationTopicConsumer):
    """Live read receipts for one conversation."""

    def topic_for(self, conversation_id: int) -> str:
        return receipt_topic(conversation_id)

    async def receive_json(self, content, **kwargs):
        await self.send_error("This stream is read-only", "INVALID_INPUT")

    async def chat_receipt(self, event):
        """Forward chat.receipt events from the channel layer."""
        await self.send_json({"type": "receipt", "receipt": event["receipt"]})

