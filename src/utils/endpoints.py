"""Utility functions for endpoint handlers."""

from fastapi import HTTPException, status

from configuration import AppConfig
from log import get_logger
from models.responses import ServiceUnavailableResponse
from services.presence import PresenceService, PresenceServiceHolder

logger = get_logger(__name__)


def check_configuration_loaded(config: AppConfig) -> None:
    """
    Ensure the application configuration has been loaded.

    Raises:
        HTTPException: HTTP 500 Internal Server Error with detail `{"response":
        "Configuration is not loaded"}` when configuration is not loaded.
    """
    if not config.is_loaded():
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"response": "Configuration is not loaded"},
        )


def get_presence_service() -> PresenceService:
    """
    Return the presence service of this process.

    Raises:
        HTTPException: HTTP 503 Service Unavailable when the service has
        not been initialized during startup.
    """
    holder = PresenceServiceHolder()
    if not holder.is_loaded():
        logger.error("Presence service is not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=ServiceUnavailableResponse(
                cause="Presence service has not been initialized"
            ).dump_detail(),
        )
    return holder.get_service()
