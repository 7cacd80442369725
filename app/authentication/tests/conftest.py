"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, api_client):
        response = api_client.post("/api/v1/auth/token/", {...})
"""

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create an active user with username "alice" and a known password."""
    return UserFactory(
        email="alice@example.com", username="alice", password="TestPass123!"
    )


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()
