"""Authorization of endpoint calls by the action they perform."""

import logging
from functools import lru_cache, wraps
from typing import Any, Callable

from fastapi import HTTPException, status

import constants
from authorization.resolvers import (
    EVERYONE_ROLE,
    AccessResolver,
    DevelopmentAccessResolver,
    JwtRolesResolver,
    NoopRolesResolver,
    RoleResolutionError,
    RolesResolver,
    RuleBasedAccessResolver,
)
from configuration import configuration
from models.config import Action
from models.responses import ForbiddenResponse

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_authorization_resolvers() -> tuple[RolesResolver, AccessResolver]:
    """Build resolvers for the configured authentication module (cached).

    The noop module allows everything to everybody. With JWT authentication
    only the configured rules grant actions; when they are missing nothing
    is allowed.
    """
    auth_config = configuration.authentication_configuration

    match auth_config.module:
        case constants.AUTH_MOD_NOOP:
            logger.warning(
                "Authentication is disabled: every caller may change Home Assistant "
                "settings. Use the noop module for development only."
            )
            return NoopRolesResolver(), DevelopmentAccessResolver()
        case constants.AUTH_MOD_JWK_TOKEN:
            role_rules = auth_config.jwk_configuration.jwt_configuration.role_rules
            access_rules = configuration.authorization_configuration.access_rules
            if not role_rules or not access_rules:
                logger.warning(
                    "Role rules or access rules are not configured, "
                    "every action is denied"
                )
            return JwtRolesResolver(role_rules), RuleBasedAccessResolver(access_rules)
        case _:
            logger.error("Unknown authentication module '%s'", auth_config.module)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error",
            )


async def _perform_authorization_check(action: Action, kwargs: dict[str, Any]) -> None:
    """Allow the call only when the caller's roles permit the action.

    Raises:
        HTTPException: 403 when access is denied, 500 when the endpoint has
        no `auth` parameter.
    """
    auth = kwargs.get("auth")
    if auth is None:
        logger.error("Endpoint performing '%s' has no auth dependency", action.value)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    roles_resolver, access_resolver = get_authorization_resolvers()

    try:
        roles = await roles_resolver.resolve_roles(auth) | {EVERYONE_ROLE}
    except RoleResolutionError as e:
        logger.warning("Unable to resolve roles of user %s: %s", auth.user_id, e)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unable to resolve user roles",
        ) from e

    if not access_resolver.check_access(action, roles):
        logger.warning("User %s may not perform '%s'", auth.user_id, action.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=ForbiddenResponse(auth.user_id, action.value).dump_detail(),
        )

    request = kwargs.get("request")
    if request is not None:
        request.state.authorized_actions = access_resolver.get_actions(roles)


def authorize(action: Action) -> Callable:
    """Guard an async endpoint with the authorization check for the action."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            await _perform_authorization_check(action, kwargs)
            return await func(*args, **kwargs)

        return wrapper

    return decorator
