"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/<conversation_id>/           - Live messages, send, mark read
    ws/chat/<conversation_id>/receipts/  - Live read receipts

Authentication:
    JWT access token as query parameter (?token=<jwt_access_token>) or as
    the "jwt, <token>" subprotocol pair. JWTAuthMiddleware validates it and
    attaches the user to the consumer's scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path(
        "ws/chat/<int:conversation_id>/",
        consumers.ChatConsumer.as_asgi(),
    ),
    path(
        "ws/chat/<int:conversation_id>/receipts/",
        consumers.ReadReceiptConsumer.as_asgi(),
    ),
]
