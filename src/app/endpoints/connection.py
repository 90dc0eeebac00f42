"""Handler for REST API call to test connection to Home Assistant."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from authentication import get_auth_dependency
from authentication.interface import AuthTuple
from authorization.middleware import authorize
from models.config import Action
from models.requests import TestConnectionRequest
from models.responses import (
    ConnectionTestResponse,
    ForbiddenResponse,
    UnauthorizedResponse,
)
from utils.endpoints import get_presence_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["connection"])

auth_dependency = get_auth_dependency()


test_connection_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "description": "Result of the connection test, successful or not",
        "model": ConnectionTestResponse,
    },
    401: {
        "description": "Missing or invalid credentials provided by client",
        "model": UnauthorizedResponse,
    },
    403: {
        "description": "User is not authorized",
        "model": ForbiddenResponse,
    },
}


@router.post("/test-connection", responses=test_connection_responses)
@authorize(Action.ADMIN)
async def test_connection_endpoint_handler(
    auth: Annotated[AuthTuple, Depends(auth_dependency)],
    request: Request,
    test_request: TestConnectionRequest,
) -> ConnectionTestResponse:
    """
    Handle requests to the /test-connection endpoint.

    Probe Home Assistant with the supplied URL and token. Missing values
    are taken from the stored settings. A failed probe is still reported
    with HTTP 200, the outcome is in the `success` field.
    """
    _ = auth
    _ = request

    service = get_presence_service()
    result = await run_in_threadpool(
        service.test_connection,
        test_request.url,
        test_request.token,
        test_request.connection_timeout,
        test_request.verify_ssl,
    )
    return ConnectionTestResponse(success=result.success, message=result.message)
