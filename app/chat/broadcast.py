"""
Live delivery of messages and read receipts over the channel layer.

Every conversation has two topics (Channels groups):
    chat.messages.<conversation_id>   new messages
    chat.receipts.<conversation_id>   read receipts

Delivery contract:
    - Publishing is registered with transaction.on_commit, so nothing is
      sent for a rolled-back transaction and nothing is sent before commit.
      Outside a transaction the callback runs immediately.
    - At most once, no retry, no acknowledgement. Clients that miss a push
      recover through the history and unread-count endpoints.
    - A failure to publish is wrapped in DeliveryFailure, logged at WARNING
      and swallowed. It never reaches the caller that persisted the data.

Authorization to join a topic is the consumer's job (consumers.py), not
this module's.
"""

from __future__ import annotations

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

from chat.constants import TOPIC_CONFIG, message_topic, receipt_topic
from chat.exceptions import DeliveryFailure
from core.services import BaseService


class DeliveryBroadcaster(BaseService):
    """
    Fan-out to every subscriber of a conversation topic.

    Usage:
        DeliveryBroadcaster.publish_message(conversation.id, message_payload(msg))
        DeliveryBroadcaster.publish_read_receipt(conversation.id, receipt.to_payload())
    """

    @classmethod
    def publish_message(cls, conversation_id: int, payload: dict) -> None:
        """Schedule delivery of a persisted message to the message topic."""
        cls._schedule(
            message_topic(conversation_id),
            {"type": TOPIC_CONFIG.MESSAGE_EVENT, "message": payload},
        )

    @classmethod
    def publish_read_receipt(cls, conversation_id: int, payload: dict) -> None:
        """Schedule delivery of one read receipt to the receipt topic."""
        cls._schedule(
            receipt_topic(conversation_id),
            {"type": TOPIC_CONFIG.RECEIPT_EVENT, "receipt": payload},
        )

    @classmethod
    def _schedule(cls, topic: str, event: dict) -> None:
        transaction.on_commit(lambda: cls.send(topic, event))

    @classmethod
    def send(cls, topic: str, event: dict) -> bool:
        """
        Hand one event to the channel layer now.

        Returns:
            True if the channel layer accepted the event, False if delivery
            failed (already logged)
        """
        try:
            cls._group_send(topic, event)
        except DeliveryFailure as failure:
            cls.get_logger().warning(
                f"Delivery to {topic} failed: {failure.message}",
                exc_info=failure.__cause__ is not None,
            )
            return False
        return True

    @classmethod
    def _group_send(cls, topic: str, event: dict) -> None:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            raise DeliveryFailure(topic, "No channel layer configured")
        try:
            async_to_sync(channel_layer.group_send)(topic, event)
        except Exception as exc:
            raise DeliveryFailure(topic, str(exc) or exc.__class__.__name__) from exc
