"""
Tests for DeliveryBroadcaster.

Verifies:
- Events reach every channel subscribed to the topic
- Nothing is sent before the surrounding transaction commits
- Channel layer failures are logged and swallowed
"""

from unittest import mock

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from chat.broadcast import DeliveryBroadcaster
from chat.constants import message_topic, receipt_topic


def subscribe(topic: str) -> str:
    """Join a fresh channel to the topic and return its name."""
    layer = get_channel_layer()
    channel = async_to_sync(layer.new_channel)()
    async_to_sync(layer.group_add)(topic, channel)
    return channel


def receive(channel: str) -> dict:
    return async_to_sync(get_channel_layer().receive)(channel)


class TestTopics:
    def test_topic_names(self):
        assert message_topic(12) == "chat.messages.12"
        assert receipt_topic(12) == "chat.receipts.12"


class TestSend:
    def test_fans_out_to_every_subscriber(self):
        topic = message_topic(9001)
        first, second = subscribe(topic), subscribe(topic)
        event = {"type": "chat.message", "message": {"id": 1}}

        assert DeliveryBroadcaster.send(topic, event) is True

        assert receive(first) == event
        assert receive(second) == event

    def test_layer_error_is_swallowed_and_logged(self):
        """
        Why it matters: the message is already stored when we broadcast;
        a broken channel layer must not turn a successful send into an error.
        """
        async def failing_group_send(topic, event):
            raise ConnectionError("redis down")

        layer = mock.Mock(group_send=failing_group_send)

        with mock.patch(
            "chat.broadcast.get_channel_layer", return_value=layer
        ), mock.patch.object(DeliveryBroadcaster, "get_logger") as get_logger:
            delivered = DeliveryBroadcaster.send("chat.messages.1", {"type": "x"})

        assert delivered is False
        get_logger.return_value.warning.assert_called_once()
        assert "redis down" in get_logger.return_value.warning.call_args.args[0]

    def test_missing_layer_is_a_delivery_failure(self):
        with mock.patch("chat.broadcast.get_channel_layer", return_value=None):
            assert DeliveryBroadcaster.send("chat.messages.1", {"type": "x"}) is False


class TestPublish:
    def test_message_waits_for_commit(self, db, django_capture_on_commit_callbacks):
        """
        Given a message published inside a transaction
        When the transaction has not committed yet
        Then nothing has been sent, and the event goes out on commit
        """
        with mock.patch.object(DeliveryBroadcaster, "send") as send:
            with django_capture_on_commit_callbacks() as callbacks:
                DeliveryBroadcaster.publish_message(4, {"id": 1})
                send.assert_not_called()

            assert len(callbacks) == 1
            callbacks[0]()

        send.assert_called_once_with(
            "chat.messages.4", {"type": "chat.message", "message": {"id": 1}}
        )

    def test_receipt_event_shape(self, db, django_capture_on_commit_callbacks):
        with mock.patch.object(DeliveryBroadcaster, "send") as send:
            with django_capture_on_commit_callbacks(execute=True):
                DeliveryBroadcaster.publish_read_receipt(4, {"messageId": 1})

        send.assert_called_once_with(
            "chat.receipts.4", {"type": "chat.receipt", "receipt": {"messageId": 1}}
        )
