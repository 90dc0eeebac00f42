"""Handler for REST API call to retrieve person presence."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

from authentication import get_auth_dependency
from authentication.interface import AuthTuple
from authorization.middleware import authorize
from models.config import Action
from models.presence import PresenceFailure, PresenceRecord, PresenceSuccess
from models.responses import (
    ForbiddenResponse,
    PresenceUnavailableResponse,
    UnauthorizedResponse,
)
from utils.endpoints import get_presence_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["presence"])

auth_dependency = get_auth_dependency()


presence_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "description": "Person entities found in Home Assistant",
        "model": list[PresenceRecord],
    },
    401: {
        "description": "Missing or invalid credentials provided by client",
        "model": UnauthorizedResponse,
    },
    403: {
        "description": "User is not authorized",
        "model": ForbiddenResponse,
    },
    503: {
        "description": "Presence could not be fetched from Home Assistant",
        "model": PresenceUnavailableResponse,
    },
}


@router.get("/presence", responses=presence_responses)
@authorize(Action.GET_PRESENCE)
async def presence_endpoint_handler(
    auth: Annotated[AuthTuple, Depends(auth_dependency)],
    request: Request,
) -> list[PresenceRecord]:
    """
    Handle requests to the /presence endpoint.

    Return all person entities known to Home Assistant, served from the
    presence cache while it is fresh.

    Raises:
        HTTPException: 503 with the failure message in `response` and the
        failure kind in `cause` when presence can not be fetched.
    """
    # Used only for authorization
    _ = auth

    # Nothing interesting in the request
    _ = request

    service = get_presence_service()

    # the service performs blocking HTTP calls
    outcome = await run_in_threadpool(service.get_person_presence)

    match outcome:
        case PresenceSuccess(records=records):
            return records
        case PresenceFailure(error=error):
            logger.info("Presence not available: %s", error.kind.value)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=PresenceUnavailableResponse(
                    message=error.message, kind=error.kind.value
                ).dump_detail(),
            )
