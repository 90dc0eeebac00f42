"""Bearer JWT authentication against keys published as a JWK set.

Administrators and users of the integration are identified by tokens issued
by an external identity provider. Signatures are verified with the keys the
provider publishes at the configured JWK URL.
"""

import logging
from asyncio import Lock
from typing import Any

import aiohttp
from authlib.jose import JsonWebKey, Key, KeySet, jwt
from authlib.jose.errors import (
    BadSignatureError,
    DecodeError,
    ExpiredTokenError,
    JoseError,
)
from cachetools import TTLCache
from fastapi import HTTPException, Request, status

from authentication.interface import ANONYMOUS_CALLER, AuthInterface, AuthTuple
from models.config import JwkConfiguration
from models.responses import DetailModel, UnauthorizedResponse

logger = logging.getLogger(__name__)

# providers rotate signing keys rarely
_key_sets: TTLCache[str, KeySet] = TTLCache(maxsize=3, ttl=3600)
_key_sets_lock = Lock()

JWK_FETCH_TIMEOUT = aiohttp.ClientTimeout(total=10)


async def get_jwk_set(url: str) -> KeySet:
    """Return the JWK set published at the URL, fetched at most once an hour."""
    async with _key_sets_lock:
        key_set = _key_sets.get(url)
        if key_set is None:
            logger.info("Fetching signing keys from %s", url)
            async with aiohttp.ClientSession(timeout=JWK_FETCH_TIMEOUT) as session:
                async with session.get(url) as resp:
                    resp.raise_for_status()
                    key_set = JsonWebKey.import_key_set(await resp.json())
            _key_sets[url] = key_set
        return key_set


class KeyNotFoundError(JoseError):
    """No key of the JWK set may verify the token."""

    error = "key_not_found"


def select_key(key_set: KeySet, header: dict[str, Any]) -> Key:
    """Pick the key that verifies a token with the given header.

    With `kid` in the header exactly that key is used, otherwise the first
    key for the token's algorithm. The algorithm of the key must always
    match `alg` from the header.

    Raises:
        KeyNotFoundError: no key, or more keys with the same `kid`.
    """
    alg = header.get("alg")
    if alg is None:
        raise KeyNotFoundError(description="Token header has no 'alg'")

    kid = header.get("kid")
    candidates = [key for key in key_set.keys if kid is None or key.kid == kid]
    if kid is not None and len(candidates) > 1:
        raise KeyNotFoundError(description=f"JWK set has more keys with kid {kid}")

    for key in candidates:
        if key["alg"] == alg:
            return key
    raise KeyNotFoundError(description="No key for the token's kid and alg")


def bearer_token(request: Request) -> str:
    """Return the token from the `Authorization: Bearer <token>` header.

    Raises:
        HTTPException: 400 when the header does not carry a bearer token.
    """
    scheme, _, token = request.headers.get("Authorization", "").strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=DetailModel(
                response="Invalid credentials",
                cause="No bearer token found in Authorization header",
            ).model_dump(),
        )
    return token


def _unauthorized(cause: str) -> HTTPException:
    """401 with the standard error body."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=UnauthorizedResponse(cause=cause).dump_detail(),
    )


class JwkTokenAuthDependency(AuthInterface):  # pylint: disable=too-few-public-methods
    """Identify callers by JWTs signed with keys from the JWK set."""

    def __init__(self, config: JwkConfiguration) -> None:
        """Initialize with JWK URL and the claims carrying user ID and name."""
        self.config = config

    async def __call__(self, request: Request) -> AuthTuple:
        """Verify the bearer token and read the caller identity from it.

        Requests without the Authorization header are anonymous; what they
        may do is decided by the access rules for the everyone role.
        """
        if not request.headers.get("Authorization"):
            return ANONYMOUS_CALLER

        token = bearer_token(request)
        try:
            key_set = await get_jwk_set(str(self.config.url))
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error("Signing keys can not be fetched: %s", e)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=DetailModel(
                    response="Service unavailable",
                    cause="Unable to retrieve signing keys",
                ).model_dump(),
            ) from e

        try:
            claims = jwt.decode(
                token, key=lambda header, _payload: select_key(key_set, header)
            )
            claims.validate()
        except DecodeError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=DetailModel(
                    response="Invalid credentials", cause="Token can not be decoded"
                ).model_dump(),
            ) from e
        except ExpiredTokenError as e:
            raise _unauthorized("Token has expired") from e
        except BadSignatureError as e:
            raise _unauthorized("Token signature is not valid") from e
        except JoseError as e:
            logger.info("Token rejected: %s", e)
            raise _unauthorized("Token is not valid") from e

        claim_names = self.config.jwt_configuration
        for claim in (claim_names.user_id_claim, claim_names.username_claim):
            if claim not in claims:
                raise _unauthorized(f"Token missing claim: {claim}")

        caller = AuthTuple(
            user_id=str(claims[claim_names.user_id_claim]),
            username=str(claims[claim_names.username_claim]),
            token=token,
        )
        logger.info("Authenticated user %s (ID: %s)", caller.username, caller.user_id)
        return caller
