"""
Pagination for chat history and conversation lists.

MessageHistoryPaginator:
    Page-numbered view over a conversation's message log. Pages are counted
    from the newest end (page 0 is the most recent `size` messages) and
    each page is returned oldest-first, so clients can prepend older pages
    without re-sorting.

ConversationCursorPagination:
    DRF cursor pagination for the conversation list (most recent first).

Design Decisions:
    - Blocks are fetched newest-first with OFFSET/LIMIT on the
      (conversation, created_at, id) index, then reversed in Python
    - hasMore on page 0 is an EXISTS probe for anything older than the
      window; later pages fetch one extra row instead
    - Oversized page sizes are clamped, non-positive ones rejected
"""

from __future__ import annotations

from dataclasses import dataclass, field

from django.db.models import Q
from rest_framework.pagination import CursorPagination

from chat.constants import default_page_size, max_page_size
from chat.models import Message
from core.exceptions import ValidationError


@dataclass
class HistoryPage:
    """One page of message history in chronological order."""

    messages: list[Message] = field(default_factory=list)
    has_more: bool = False
    page: int = 0


class MessageHistoryPaginator:
    """
    Serve a conversation's history in bounded pages.

    Usage:
        page = MessageHistoryPaginator.paginate(conversation.id, page=0, size=50)
        page.messages  # oldest first
        page.has_more  # older messages exist
    """

    @staticmethod
    def clean_size(size) -> int:
        """
        Apply the default and the clamp to a requested page size.

        Raises:
            ValidationError: size is not a positive integer
        """
        if size is None:
            return default_page_size()
        try:
            size = int(size)
        except (TypeError, ValueError):
            raise ValidationError(
                "Page size must be an integer", details={"size": size}
            )
        if size <= 0:
            raise ValidationError("Page size must be positive", details={"size": size})
        return min(size, max_page_size())

    @staticmethod
    def clean_page(page) -> int:
        if page is None:
            return 0
        try:
            page = int(page)
        except (TypeError, ValueError):
            raise ValidationError("Page must be an integer", details={"page": page})
        if page < 0:
            raise ValidationError("Page cannot be negative", details={"page": page})
        return page

    @classmethod
    def paginate(cls, conversation_id, page=0, size=None) -> HistoryPage:
        """
        Return the page-th block of `size` messages counted from the newest.

        Args:
            conversation_id: Conversation whose history is read
            page: 0 for the latest messages, 1 for the block before that, ...
            size: Messages per page (default CHAT_DEFAULT_PAGE_SIZE,
                  clamped to CHAT_MAX_PAGE_SIZE)

        Returns:
            HistoryPage with messages oldest-first. A page past the end is
            empty with has_more=False.

        Raises:
            ValidationError: Non-positive size or negative page
        """
        size = cls.clean_size(size)
        page = cls.clean_page(page)

        messages = Message.objects.filter(conversation_id=conversation_id)
        newest_first = messages.select_related("sender__profile").order_by(
            "-created_at", "-id"
        )
        offset = page * size

        if page == 0:
            window = list(newest_first[:size])
            has_more = bool(window) and cls._has_older(messages, window[-1])
        else:
            window = list(newest_first[offset : offset + size + 1])
            has_more = len(window) > size
            window = window[:size]

        window.reverse()
        return HistoryPage(messages=window, has_more=has_more, page=page)

    @staticmethod
    def _has_older(messages, oldest: Message) -> bool:
        """Whether any message sorts before `oldest` in (created_at, id) order."""
        return messages.filter(
            Q(created_at__lt=oldest.created_at)
            | Q(created_at=oldest.created_at, id__lt=oldest.id)
        ).exists()


class ConversationCursorPagination(CursorPagination):
    """
    Cursor pagination for conversation lists.

    Orders conversations by most recent activity (updated_at, refreshed on
    every new message), then id for a stable cursor.

    Default: 20 conversations per page
    Maximum: 50 conversations per page

    Query parameters:
        cursor: Encoded cursor for position
        page_size: Number of conversations (optional override)
    """

    page_size = 20
    max_page_size = 50
    page_size_query_param = "page_size"
    ordering = ("-updated_at", "-id")
    cursor_query_param = "cursor"
