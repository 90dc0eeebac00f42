"""Handler for REST API call to authorized endpoint."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends

from authentication import get_auth_dependency
from authentication.interface import AuthTuple
from models.responses import AuthorizedResponse, ForbiddenResponse, UnauthorizedResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["authorized"])

auth_dependency = get_auth_dependency()


authorized_responses: dict[int | str, dict[str, Any]] = {
    200: {
        "description": "The user is logged-in and authorized to access the service",
        "model": AuthorizedResponse,
    },
    400: {
        "description": "Authorization header does not carry a bearer token",
        "model": UnauthorizedResponse,
    },
    401: {
        "description": "Missing or invalid credentials provided by client for the "
        "jwk-token authentication module",
        "model": UnauthorizedResponse,
    },
    403: {
        "description": "User is not authorized",
        "model": ForbiddenResponse,
    },
}


@router.post("/authorized", responses=authorized_responses)
async def authorized_endpoint_handler(
    auth: Annotated[AuthTuple, Depends(auth_dependency)],
) -> AuthorizedResponse:
    """
    Handle request to the /authorized endpoint.

    Process POST requests to the /authorized endpoint, returning
    the authenticated user's ID and username.

    Returns:
        AuthorizedResponse: Contains the user ID and username of the authenticated user.
    """
    # the token is never returned
    return AuthorizedResponse(user_id=auth.user_id, username=auth.username)
