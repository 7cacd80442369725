"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Message operations (content limits, history page sizes)
- Topic naming for live delivery over the channel layer

Page sizes can be overridden via Django settings
(CHAT_DEFAULT_PAGE_SIZE, CHAT_MAX_PAGE_SIZE).
Import example:
    from chat.constants import MESSAGE_CONFIG, TOPIC_CONFIG
"""

from typing import Final

from django.conf import settings


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters
    MIN_CONTENT_LENGTH: Final[int] = 1

    # History pagination
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 100


def default_page_size() -> int:
    return getattr(settings, "CHAT_DEFAULT_PAGE_SIZE", MESSAGE_CONFIG.DEFAULT_PAGE_SIZE)


def max_page_size() -> int:
    return getattr(settings, "CHAT_MAX_PAGE_SIZE", MESSAGE_CONFIG.MAX_PAGE_SIZE)


# =============================================================================
# Topic Configuration
# =============================================================================


class TOPIC_CONFIG:
    """
    Channel layer group names.

    Group names may only contain ASCII alphanumerics, hyphens, underscores
    and periods.
    """

    MESSAGES_PREFIX: Final[str] = "chat.messages"
    RECEIPTS_PREFIX: Final[str] = "chat.receipts"

    # Channel layer event types (dispatched to consumer handler methods)
    MESSAGE_EVENT: Final[str] = "chat.message"
    RECEIPT_EVENT: Final[str] = "chat.receipt"


def message_topic(conversation_id: int) -> str:
    """Group carrying new messages for one conversation."""
    return f"{TOPIC_CONFIG.MESSAGES_PREFIX}.{conversation_id}"


def receipt_topic(conversation_id: int) -> str:
    """Group carrying read receipts for one conversation."""
    return f"{TOPIC_CONFIG.RECEIPTS_PREFIX}.{conversation_id}"
