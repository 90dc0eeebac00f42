"""Models for REST API responses."""

from pydantic import BaseModel, Field


class ConnectionTestResponse(BaseModel):
    """Model representing a response to a connection test request.

    Attributes:
        success: Whether Home Assistant answered with HTTP 200.
        message: Human readable result of the test.

    Example:
        ```python
        response = ConnectionTestResponse(
            success=True, message="Successfully connected to Home Assistant"
        )
        ```
    """

    success: bool = Field(
        ...,
        description="Whether the connection test succeeded",
        examples=[True, False],
    )
    message: str = Field(
        ...,
        description="Result of the connection test",
        examples=[
            "Successfully connected to Home Assistant",
            "Failed to connect: HTTP 401",
        ],
    )

    # provides examples for /docs endpoint
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "success": True,
                    "message": "Successfully connected to Home Assistant",
                }
            ]
        }
    }


class SettingsResponse(BaseModel):
    """Model representing stored integration settings.

    The access token itself is never returned, only whether one is stored.
    """

    url: str = Field(
        ...,
        description="Home Assistant base URL",
        examples=["https://homeassistant.example.com:8123"],
    )
    token_configured: bool = Field(
        ...,
        description="Whether an access token is stored",
        examples=[True, False],
    )
    polling_interval: int = Field(
        ...,
        description="Polling interval and cache TTL in seconds",
        examples=[30],
    )
    connection_timeout: int = Field(
        ...,
        description="Connection timeout in seconds",
        examples=[10],
    )
    verify_ssl: bool = Field(
        ...,
        description="Whether SSL certificates are verified",
        examples=[True],
    )

    # provides examples for /docs endpoint
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "url": "https://homeassistant.example.com:8123",
                    "token_configured": True,
                    "polling_interval": 30,
                    "connection_timeout": 10,
                    "verify_ssl": True,
                }
            ]
        }
    }


class SettingsUpdateResponse(BaseModel):
    """Model representing a response to settings update."""

    status: str = Field(
        "ok",
        description="Status of the update",
        examples=["ok"],
    )


class ReadinessResponse(BaseModel):
    """Model representing response to a readiness request.

    Attributes:
        ready: If service is ready.
        reason: The reason for the readiness.

    Example:
        ```python
        readiness_response = ReadinessResponse(
            ready=False,
            reason="Settings store is not ready",
        )
        ```
    """

    ready: bool = Field(
        ...,
        description="Flag indicating if service is ready",
        examples=[True, False],
    )

    reason: str = Field(
        ...,
        description="The reason for the readiness",
        examples=["Service is ready"],
    )

    # provides examples for /docs endpoint
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "ready": True,
                    "reason": "Service is ready",
                }
            ]
        }
    }


class LivenessResponse(BaseModel):
    """Model representing a response to a liveness request.

    Attributes:
        alive: If app is alive.
    """

    alive: bool = Field(
        ...,
        description="Flag indicating that the app is alive",
        examples=[True, False],
    )


class AuthorizedResponse(BaseModel):
    """Model representing a response to an authorization request.

    Attributes:
        user_id: The ID of the logged in user.
        username: The name of the logged in user.
    """

    user_id: str = Field(
        ...,
        description="User ID, for example UUID",
        examples=["c5260aec-4d82-4370-9fdf-05cf908b3f16"],
    )
    username: str = Field(
        ...,
        description="User name",
        examples=["John Doe", "Adam Smith"],
    )


class DetailModel(BaseModel):
    """Nested detail model for error responses."""

    response: str = Field(..., description="Short summary of the error")
    cause: str = Field(..., description="Detailed explanation of what caused the error")


class AbstractErrorResponse(BaseModel):
    """Base class for all error responses.

    Contains a nested `detail` field.
    """

    detail: DetailModel

    def dump_detail(self) -> dict:
        """Return dict in FastAPI HTTPException format."""
        return self.detail.model_dump()


class PresenceUnavailableResponse(AbstractErrorResponse):
    """503 Presence Unavailable - presence could not be fetched.

    The `cause` carries the failure kind, for example `not_configured` or
    `local_destination_blocked`.
    """

    def __init__(self, message: str, kind: str):
        """Initialize a response for a failed presence fetch."""
        super().__init__(detail=DetailModel(response=message, cause=kind))

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "detail": {
                        "response": "Home Assistant is not configured",
                        "cause": "not_configured",
                    }
                },
                {
                    "detail": {
                        "response": "Failed to fetch data: HTTP 401",
                        "cause": "upstream_error",
                    }
                },
            ]
        }
    }


class ServiceUnavailableResponse(AbstractErrorResponse):
    """503 Service Unavailable - service has not been initialized."""

    def __init__(self, cause: str):
        """Initialize a ServiceUnavailableResponse."""
        super().__init__(
            detail=DetailModel(response="Service is not initialized", cause=cause)
        )


class SettingsStoreErrorResponse(AbstractErrorResponse):
    """500 Internal Server Error - settings store can not be used."""

    def __init__(self, cause: str):
        """Initialize a response for a failed settings read or write."""
        super().__init__(
            detail=DetailModel(response="Settings store error", cause=cause)
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "detail": {
                        "response": "Settings store error",
                        "cause": "Settings were not stored, nothing was changed",
                    }
                }
            ]
        }
    }


class UnauthorizedResponse(AbstractErrorResponse):
    """401 Unauthorized - Missing or invalid credentials."""

    def __init__(self, user_id: str | None = None, cause: str | None = None):
        """Initialize an UnauthorizedResponse when authentication fails."""
        if cause is None:
            cause = (
                f"User {user_id} is unauthorized"
                if user_id
                else "Missing or invalid credentials provided by client"
            )
        super().__init__(detail=DetailModel(response="Unauthorized", cause=cause))

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "detail": {
                        "response": "Unauthorized",
                        "cause": "Missing or invalid credentials provided by client",
                    }
                }
            ]
        }
    }


class ForbiddenResponse(AbstractErrorResponse):
    """403 Forbidden - User is not allowed to perform the action."""

    def __init__(self, user_id: str, action: str):
        """Initialize a ForbiddenResponse when user lacks permission for an action."""
        super().__init__(
            detail=DetailModel(
                response="Access denied",
                cause=f"User {user_id} is not allowed to perform action {action}.",
            )
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "detail": {
                        "response": "Access denied",
                        "cause": "User 42 is not allowed to perform action admin.",
                    }
                }
            ]
        }
    }
