"""Handlers for health REST API endpoints.

These endpoints are used to check if service is live and prepared to accept
requests. Note that these endpoints can be accessed using GET or HEAD HTTP
methods. For HEAD HTTP method, just the HTTP response code is used.
"""

import logging
from typing import Any

from fastapi import APIRouter, Response, status
from fastapi.concurrency import run_in_threadpool

from configuration import configuration
from models.responses import LivenessResponse, ReadinessResponse
from services.presence import PresenceServiceHolder

logger = logging.getLogger("app.endpoints.handlers")
router = APIRouter(tags=["health"])


def check_readiness() -> tuple[bool, str]:
    """
    Check that the service can serve requests.

    Checks in order: configuration is loaded, presence service is
    initialized, the settings store and the presence cache are usable.

    Returns:
        tuple[bool, str]: (is_ready, reason)
    """
    if not configuration.is_loaded():
        return False, "Configuration not loaded"

    holder = PresenceServiceHolder()
    if not holder.is_loaded():
        return False, "Presence service not initialized"

    service = holder.get_service()
    if not service.settings.ready():
        return False, "Settings store is not ready"

    if not service.cache.ready():
        return False, "Presence cache is not ready"

    return True, "Service is ready"


get_readiness_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "description": "Service is ready",
        "model": ReadinessResponse,
    },
    503: {
        "description": "Service is not ready",
        "model": ReadinessResponse,
    },
}


@router.get("/readiness", responses=get_readiness_responses)
async def readiness_probe_get_method(
    response: Response,
) -> ReadinessResponse:
    """
    Handle the readiness probe.

    Home Assistant itself is not contacted, an unreachable Home Assistant
    does not make this service unready.
    """
    logger.info("Response to /readiness endpoint")

    ready, reason = await run_in_threadpool(check_readiness)
    if not ready:
        logger.warning("Service is not ready: %s", reason)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(ready=ready, reason=reason)


get_liveness_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "description": "Service is alive",
        "model": LivenessResponse,
    },
    # HTTP_503_SERVICE_UNAVAILABLE will never be returned when unreachable
}


@router.get("/liveness", responses=get_liveness_responses)
async def liveness_probe_get_method() -> LivenessResponse:
    """
    Return the liveness status of the service.

    Returns:
        LivenessResponse: Indicates that the service is alive.
    """
    logger.info("Response to /liveness endpoint")

    return LivenessResponse(alive=True)
