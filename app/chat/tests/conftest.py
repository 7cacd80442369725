"""
Test configuration and fixtures for chat tests.

Fixture Organization:
    - Users: alice, bob, carol (outsider unless a test adds her)
    - Conversations: direct_conversation (alice & bob), group_conversation
    - Clients: api_client, alice_client, bob_client, carol_client
    - WebSocket: access_token_for

Usage:
    def test_example(alice_client, direct_conversation):
        url = f"/api/v1/chat/conversations/{direct_conversation.id}/messages/"
        response = alice_client.post(url, {"content": "hi"}, format="json")
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from authentication.tests.factories import UserFactory
from chat.services import ConversationService


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def alice(db):
    return UserFactory(email="alice@example.com", username="alice")


@pytest.fixture
def bob(db):
    return UserFactory(email="bob@example.com", username="bob")


@pytest.fixture
def carol(db):
    """A user who is not part of direct_conversation."""
    return UserFactory(email="carol@example.com", username="carol")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def direct_conversation(alice, bob):
    """Canonical direct conversation between alice and bob."""
    return ConversationService.resolve_direct(alice.pk, bob.pk)


@pytest.fixture
def group_conversation(alice, bob, carol):
    """Group "Team" created by alice with bob and carol."""
    return ConversationService.create_group(alice.pk, "Team", [bob.pk, carol.pk])


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


def _client_for(user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def alice_client(alice):
    return _client_for(alice)


@pytest.fixture
def bob_client(bob):
    return _client_for(bob)


@pytest.fixture
def carol_client(carol):
    return _client_for(carol)


# =============================================================================
# WebSocket Fixtures
# =============================================================================


@pytest.fixture
def access_token_for():
    """Return a function that mints a JWT access token string for a user."""

    def _token(user) -> str:
        return str(AccessToken.for_user(user))

    return _token
