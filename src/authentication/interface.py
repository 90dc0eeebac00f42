"""Caller identity and the contract shared by authentication modules."""

from abc import ABC, abstractmethod
from typing import NamedTuple

from fastapi import Request

import constants


class AuthTuple(NamedTuple):
    """Identity of the caller of an endpoint.

    `token` holds the raw bearer token the caller presented, or an empty
    string when there was none. Roles are resolved from its claims.
    """

    user_id: str
    username: str
    token: str = constants.NO_USER_TOKEN

    @property
    def anonymous(self) -> bool:
        """Caller did not present a token."""
        return self.token == constants.NO_USER_TOKEN


ANONYMOUS_CALLER = AuthTuple(constants.DEFAULT_USER_UID, constants.DEFAULT_USER_NAME)


class AuthInterface(ABC):  # pylint: disable=too-few-public-methods
    """Authentication module, used as FastAPI dependency by the endpoints."""

    @abstractmethod
    async def __call__(self, request: Request) -> AuthTuple:
        """Identify the caller of the request.

        Raises:
            HTTPException: credentials were presented but are not valid.
        """
