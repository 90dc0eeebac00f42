"""Development authentication that trusts every caller."""

import logging

from fastapi import Request

import constants
from authentication.interface import AuthInterface, AuthTuple

logger = logging.getLogger(__name__)


class NoopAuthDependency(AuthInterface):  # pylint: disable=too-few-public-methods
    """Accept every request without credentials.

    The caller may choose its user ID with the `user_id` query parameter.
    Together with the development access resolver every caller may change
    Home Assistant settings, so this module is only meant for local use.
    """

    async def __call__(self, request: Request) -> AuthTuple:
        """Return the identity named in the query, or the default user."""
        user_id = request.query_params.get("user_id", constants.DEFAULT_USER_UID)
        logger.debug("Unauthenticated request from user %s", user_id)
        return AuthTuple(user_id, constants.DEFAULT_USER_NAME)
