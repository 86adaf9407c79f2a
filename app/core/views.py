"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the business domain but are
essential for application infrastructure, such as health checks.
"""

import logging

from django.conf import settings
from django.core.files.storage import storages
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - media_storage: "configured" or "misconfigured" (not critical)

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "media_storage": "configured"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "media_storage": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.warning("Health check: database unreachable", exc_info=True)
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Media cleanup degrades gracefully, so storage never fails the check
    try:
        storages[settings.CHAT_MEDIA_STORAGE_ALIAS]
        health_status["media_storage"] = "configured"
    except Exception:
        logger.warning("Health check: chat media storage misconfigured", exc_info=True)
        health_status["media_storage"] = "misconfigured"

    return JsonResponse(health_status, status=200 if is_healthy else 503)
