"""Handlers for REST API calls to read and update integration settings."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

import constants
from authentication import get_auth_dependency
from authentication.interface import AuthTuple
from authorization.middleware import authorize
from configuration import configuration
from models.config import Action
from models.requests import SettingsUpdateRequest
from models.responses import (
    ForbiddenResponse,
    SettingsResponse,
    SettingsStoreErrorResponse,
    SettingsUpdateResponse,
    UnauthorizedResponse,
)
from services.presence import PresenceService
from settings_store.settings_store import SettingsStoreError
from utils.endpoints import check_configuration_loaded, get_presence_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["settings"])

auth_dependency = get_auth_dependency()


get_settings_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "description": "Stored integration settings, without the access token",
        "model": SettingsResponse,
    },
    401: {
        "description": "Missing or invalid credentials provided by client",
        "model": UnauthorizedResponse,
    },
    403: {
        "description": "User is not authorized",
        "model": ForbiddenResponse,
    },
    500: {
        "description": "Settings could not be read",
        "model": SettingsStoreErrorResponse,
    },
}

update_settings_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "description": "Settings were stored",
        "model": SettingsUpdateResponse,
    },
    401: {
        "description": "Missing or invalid credentials provided by client",
        "model": UnauthorizedResponse,
    },
    403: {
        "description": "User is not an administrator",
        "model": ForbiddenResponse,
    },
    500: {
        "description": "Settings could not be stored, nothing was changed",
        "model": SettingsStoreErrorResponse,
    },
}


def read_settings(service: PresenceService) -> SettingsResponse:
    """Read the stored settings; the token is only reported as present or not."""
    store = service.settings
    return SettingsResponse(
        url=store.get(constants.SETTING_HA_URL),
        token_configured=store.get(constants.SETTING_HA_TOKEN) != "",
        polling_interval=service.cache_ttl(),
        connection_timeout=service.connection_timeout(),
        verify_ssl=service.verify_ssl(),
    )


def store_settings(service: PresenceService, update: SettingsUpdateRequest) -> None:
    """Write all settings together; an empty or missing token keeps the stored one."""
    values = {
        constants.SETTING_HA_URL: update.url,
        constants.SETTING_HA_POLLING_INTERVAL: str(update.polling_interval),
        constants.SETTING_HA_CONNECTION_TIMEOUT: str(update.connection_timeout),
        constants.SETTING_HA_VERIFY_SSL: "1" if update.verify_ssl else "0",
    }
    if update.token:
        values[constants.SETTING_HA_TOKEN] = update.token
    else:
        logger.debug("No new token supplied, keeping the stored one")
    service.settings.set_many(values)


@router.get("/settings", responses=get_settings_responses)
@authorize(Action.GET_SETTINGS)
async def get_settings_endpoint_handler(
    auth: Annotated[AuthTuple, Depends(auth_dependency)],
    request: Request,
) -> SettingsResponse:
    """
    Handle GET requests to the /settings endpoint.

    Returns:
        SettingsResponse: Stored settings. The access token is never
        returned, only the `token_configured` flag.
    """
    _ = auth
    _ = request

    check_configuration_loaded(configuration)

    service = get_presence_service()
    try:
        return await run_in_threadpool(read_settings, service)
    except SettingsStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=SettingsStoreErrorResponse(
                cause="Settings could not be read"
            ).dump_detail(),
        ) from e


@router.post("/settings", responses=update_settings_responses)
@authorize(Action.ADMIN)
async def update_settings_endpoint_handler(
    auth: Annotated[AuthTuple, Depends(auth_dependency)],
    request: Request,
    update: SettingsUpdateRequest,
) -> SettingsUpdateResponse:
    """
    Handle POST requests to the /settings endpoint.

    Polling interval and connection timeout are clamped to their
    supported ranges before they are stored. All values are stored in
    one transaction.
    """
    _ = request

    logger.info("User %s is updating Home Assistant settings", auth.user_id)

    check_configuration_loaded(configuration)

    service = get_presence_service()
    try:
        await run_in_threadpool(store_settings, service, update)
    except SettingsStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=SettingsStoreErrorResponse(
                cause="Settings were not stored, nothing was changed"
            ).dump_detail(),
        ) from e
    return SettingsUpdateResponse()
