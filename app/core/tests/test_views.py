"""Tests for the health check endpoint."""

from unittest import mock


class TestHealthCheck:
    def test_healthy(self, client, db):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "channel_layer": "connected",
        }

    def test_channel_layer_outage_only_degrades(self, client, db):
        """
        Why it matters: live delivery is best-effort, so orchestration must
        not restart the API just because Redis is unreachable.
        """
        with mock.patch("core.views.get_channel_layer", side_effect=OSError):
            response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["channel_layer"] == "disconnected"
