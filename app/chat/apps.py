"""
Chat application configuration.

This app provides the messaging core:
- Direct (1:1) and group conversations
- Append-only message history with page-numbered reads
- Read receipts and unread counts
- Live delivery over Django Channels
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
