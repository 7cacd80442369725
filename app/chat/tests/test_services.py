"""
Tests for the chat stores.

This module tests:
- ConversationService: Direct resolution, groups, listing, display names
- MessageStore: Appending, content rules, history

Testing Philosophy:
    Stores raise application errors; tests assert on the raised error
    code and on database state. Facade-level ServiceResult behavior is
    covered in test_facade.py.
"""

from unittest import mock

import pytest
from django.db import IntegrityError

from authentication.tests.factories import UserFactory
from chat.models import (
    Conversation,
    ConversationType,
    DirectConversationPair,
    Message,
    Participant,
)
from chat.services import ConversationService, MessageStore, ReadReceiptService
from core.exceptions import NotFoundError, ValidationError


# =============================================================================
# ConversationService.resolve_direct
# =============================================================================


class TestResolveDirect:
    """
    Tests for ConversationService.resolve_direct().

    Verifies:
    - A new pair gets a conversation with exactly two participants
    - The same pair always resolves to the same conversation
    - Invalid pairs are rejected
    """

    def test_creates_conversation_with_both_participants(self, alice, bob):
        conversation = ConversationService.resolve_direct(alice.pk, bob.pk)

        assert conversation.conversation_type == ConversationType.DIRECT
        assert set(conversation.participants.values_list("user_id", flat=True)) == {
            alice.pk,
            bob.pk,
        }
        assert DirectConversationPair.objects.filter(
            conversation=conversation
        ).exists()

    def test_stores_fallback_name(self, alice, bob):
        conversation = ConversationService.resolve_direct(alice.pk, bob.pk)

        assert conversation.name == "alice & bob"

    def test_returns_existing_conversation_regardless_of_order(self, alice, bob):
        """
        Given alice already resolved a conversation with bob
        When bob resolves a conversation with alice
        Then he gets the same conversation and no new rows are created
        """
        first = ConversationService.resolve_direct(alice.pk, bob.pk)

        second = ConversationService.resolve_direct(bob.pk, alice.pk)

        assert second.pk == first.pk
        assert Conversation.objects.count() == 1
        assert Participant.objects.count() == 2

    def test_lost_race_returns_winning_conversation(self, alice, bob):
        """
        Given another request inserts the pair between our lookup and our insert
        When the insert hits the unique constraint
        Then the winner's conversation is returned instead of an error

        Why it matters: two users opening a chat with each other at the
        same moment must end up in one conversation.
        """
        winner = ConversationService.resolve_direct(alice.pk, bob.pk)
        real_find = ConversationService._find_direct.__func__
        calls = []

        def find_misses_once(cls, lower_id, higher_id):
            calls.append((lower_id, higher_id))
            if len(calls) == 1:
                return None
            return real_find(cls, lower_id, higher_id)

        with mock.patch.object(
            ConversationService, "_find_direct", classmethod(find_misses_once)
        ):
            resolved = ConversationService.resolve_direct(bob.pk, alice.pk)

        assert resolved.pk == winner.pk
        assert len(calls) == 2
        assert Conversation.objects.count() == 1

    def test_unexplained_integrity_error_propagates(self, alice, bob):
        with mock.patch.object(
            ConversationService, "_find_direct", return_value=None
        ), mock.patch.object(
            DirectConversationPair.objects,
            "create",
            side_effect=IntegrityError("boom"),
        ):
            with pytest.raises(IntegrityError):
                ConversationService.resolve_direct(alice.pk, bob.pk)

    def test_same_user_is_invalid_input(self, alice):
        with pytest.raises(ValidationError) as exc_info:
            ConversationService.resolve_direct(alice.pk, alice.pk)

        assert exc_info.value.error_code == "INVALID_INPUT"
        assert Conversation.objects.count() == 0

    def test_unknown_user_is_not_found(self, alice):
        with pytest.raises(NotFoundError):
            ConversationService.resolve_direct(alice.pk, 999999)

    def test_inactive_user_is_not_found(self, alice):
        ghost = UserFactory(is_active=False)

        with pytest.raises(NotFoundError):
            ConversationService.resolve_direct(alice.pk, ghost.pk)


# =============================================================================
# ConversationService.create_group
# =============================================================================


class TestCreateGroup:
    def test_creator_and_members_become_participants(self, alice, bob, carol):
        conversation = ConversationService.create_group(
            alice.pk, "  Team  ", [bob.pk, carol.pk]
        )

        assert conversation.is_group
        assert conversation.name == "Team"
        assert conversation.participants.count() == 3

    def test_duplicate_members_are_collapsed(self, alice, bob):
        conversation = ConversationService.create_group(
            alice.pk, "Pair", [bob.pk, bob.pk, alice.pk]
        )

        assert conversation.participants.count() == 2

    def test_blank_name_is_invalid(self, alice, bob):
        with pytest.raises(ValidationError):
            ConversationService.create_group(alice.pk, "   ", [bob.pk])

    def test_too_long_name_is_invalid(self, alice, bob):
        with pytest.raises(ValidationError):
            ConversationService.create_group(alice.pk, "x" * 101, [bob.pk])

    def test_creator_alone_is_invalid(self, alice):
        with pytest.raises(ValidationError):
            ConversationService.create_group(alice.pk, "Solo", [alice.pk])

    def test_unknown_member_is_not_found(self, alice, bob):
        with pytest.raises(NotFoundError) as exc_info:
            ConversationService.create_group(alice.pk, "Team", [bob.pk, 999999])

        assert exc_info.value.details == {"user_ids": [999999]}
        assert Conversation.objects.count() == 0


# =============================================================================
# ConversationService queries
# =============================================================================


class TestListForUser:
    def test_lists_only_conversations_with_user(self, alice, bob, carol):
        with_bob = ConversationService.resolve_direct(alice.pk, bob.pk)
        ConversationService.resolve_direct(bob.pk, carol.pk)

        assert list(ConversationService.list_for_user(alice.pk)) == [with_bob]

    def test_orders_by_most_recent_message(self, alice, bob, carol):
        """
        Given alice has two conversations
        When the older one receives a new message
        Then it moves to the top of her list
        """
        with_bob = ConversationService.resolve_direct(alice.pk, bob.pk)
        with_carol = ConversationService.resolve_direct(alice.pk, carol.pk)
        assert list(ConversationService.list_for_user(alice.pk)) == [
            with_carol,
            with_bob,
        ]

        MessageStore.append(bob.pk, with_bob.pk, "ping")

        assert list(ConversationService.list_for_user(alice.pk)) == [
            with_bob,
            with_carol,
        ]

    def test_no_conversations(self, alice):
        assert list(ConversationService.list_for_user(alice.pk)) == []


class TestParticipantQueries:
    def test_is_participant(self, direct_conversation, alice, carol):
        assert ConversationService.is_participant(direct_conversation.pk, alice.pk)
        assert not ConversationService.is_participant(direct_conversation.pk, carol.pk)
        assert not ConversationService.is_participant(direct_conversation.pk, None)

    def test_other_participants_excludes_viewer(self, direct_conversation, alice, bob):
        others = ConversationService.other_participants(
            direct_conversation.pk, alice.pk
        )

        assert others == [bob]

    def test_get_unknown_conversation_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            ConversationService.get(999999)


class TestDisplayName:
    def test_direct_shows_other_users_current_username(
        self, direct_conversation, alice, bob
    ):
        """
        Why it matters: the stored "alice & bob" name goes stale when a
        user renames themselves; the display name must not.
        """
        bob.profile.username = "robert"
        bob.profile.save()

        assert ConversationService.display_name(direct_conversation, alice.pk) == (
            "robert"
        )
        assert ConversationService.display_name(direct_conversation, bob.pk) == (
            "alice"
        )

    def test_direct_uses_prefetched_participants(self, direct_conversation, alice):
        conversation = ConversationService.list_for_user(alice.pk).get()

        with mock.patch.object(ConversationService, "other_participants") as other:
            name = ConversationService.display_name(conversation, alice.pk)

        assert name == "bob"
        other.assert_not_called()

    def test_group_shows_stored_name(self, group_conversation, alice):
        assert ConversationService.display_name(group_conversation, alice.pk) == "Team"


# =============================================================================
# MessageStore
# =============================================================================


class TestAppend:
    """
    Tests for MessageStore.append().

    Verifies:
    - Content is stripped and validated
    - The conversation's updated_at follows the newest message
    - Unknown sender or conversation is rejected
    """

    def test_persists_stripped_message(self, direct_conversation, alice):
        message = MessageStore.append(alice.pk, direct_conversation.pk, "  hi  ")

        assert message.content == "hi"
        assert message.sender == alice
        assert message.is_read is False

    def test_updates_conversation_updated_at(self, direct_conversation, alice):
        message = MessageStore.append(alice.pk, direct_conversation.pk, "hi")

        direct_conversation.refresh_from_db()
        assert direct_conversation.updated_at == message.created_at

    @pytest.mark.parametrize("content", ["", "   ", "\n\t", None])
    def test_empty_content_is_invalid(self, direct_conversation, alice, content):
        with pytest.raises(ValidationError) as exc_info:
            MessageStore.append(alice.pk, direct_conversation.pk, content)

        assert exc_info.value.error_code == "INVALID_INPUT"
        assert Message.objects.count() == 0

    def test_content_at_limit_is_accepted(self, direct_conversation, alice):
        message = MessageStore.append(alice.pk, direct_conversation.pk, "a" * 10000)

        assert len(message.content) == 10000

    def test_content_over_limit_is_invalid(self, direct_conversation, alice):
        with pytest.raises(ValidationError):
            MessageStore.append(alice.pk, direct_conversation.pk, "a" * 10001)

    def test_limit_applies_after_stripping(self, direct_conversation, alice):
        message = MessageStore.append(
            alice.pk, direct_conversation.pk, "  " + "a" * 10000 + "  "
        )

        assert len(message.content) == 10000

    def test_unknown_conversation_is_not_found(self, alice):
        with pytest.raises(NotFoundError):
            MessageStore.append(alice.pk, 999999, "hi")

    def test_unknown_sender_is_not_found(self, direct_conversation):
        with pytest.raises(NotFoundError):
            MessageStore.append(999999, direct_conversation.pk, "hi")

    def test_failed_append_leaves_updated_at_alone(self, direct_conversation, alice):
        before = direct_conversation.updated_at

        with pytest.raises(ValidationError):
            MessageStore.append(alice.pk, direct_conversation.pk, " ")

        direct_conversation.refresh_from_db()
        assert direct_conversation.updated_at == before


class TestHistory:
    def test_history_is_chronological(self, direct_conversation, alice, bob):
        first = MessageStore.append(alice.pk, direct_conversation.pk, "one")
        second = MessageStore.append(bob.pk, direct_conversation.pk, "two")
        third = MessageStore.append(alice.pk, direct_conversation.pk, "three")

        assert list(MessageStore.history(direct_conversation.pk)) == [
            first,
            second,
            third,
        ]

    def test_unread_messages_exclude_own(self, direct_conversation, alice, bob):
        MessageStore.append(alice.pk, direct_conversation.pk, "from alice")
        from_bob = MessageStore.append(bob.pk, direct_conversation.pk, "from bob")

        assert list(MessageStore.unread_messages(direct_conversation.pk, alice.pk)) == [
            from_bob
        ]

    def test_read_messages_from_others(self, direct_conversation, alice, bob):
        MessageStore.append(bob.pk, direct_conversation.pk, "one")
        MessageStore.append(bob.pk, direct_conversation.pk, "two")
        MessageStore.append(alice.pk, direct_conversation.pk, "mine")
        ReadReceiptService.mark_conversation_read(direct_conversation.pk, alice.pk)
        MessageStore.append(bob.pk, direct_conversation.pk, "three")

        read = MessageStore.read_messages_from_others(direct_conversation.pk, alice.pk)

        assert [m.content for m in read] == ["one", "two"]

    def test_get_unknown_message_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            MessageStore.get(999999)
