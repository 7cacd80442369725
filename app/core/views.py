"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the messaging domain but are
essential for running the service, such as health checks.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Reports on the two backing services the messaging core needs:
    the relational store (required) and the channel layer used for live
    fan-out (optional, the API keeps working without it).

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "channel_layer": "connected"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "channel_layer": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Live delivery is best-effort, so a broken channel layer only degrades
    try:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            health_status["channel_layer"] = "not_configured"
        else:
            async_to_sync(channel_layer.group_send)(
                "health.check", {"type": "health.ping"}
            )
            health_status["channel_layer"] = "connected"
    except Exception:
        logger.warning("Health check: channel layer unreachable", exc_info=True)
        health_status["channel_layer"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
