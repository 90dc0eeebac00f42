"""Models for REST API requests."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

import constants


class TestConnectionRequest(BaseModel):
    """Model representing a request to test connection to Home Assistant.

    Every field is optional; empty values fall back to stored settings.

    Attributes:
        url: Home Assistant base URL to test.
        token: Long-lived access token to test.
        connection_timeout: Timeout in seconds, 0 means stored setting.
        verify_ssl: Whether to verify SSL certificates, null means stored setting.

    Example:
        ```python
        request = TestConnectionRequest(url="https://ha.example.com", token="abc")
        ```
    """

    __test__ = False  # not a pytest test class

    url: str = Field(
        "",
        description="Home Assistant base URL",
        examples=["https://homeassistant.example.com:8123"],
    )
    token: str = Field(
        "",
        description="Home Assistant long-lived access token",
        examples=["eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."],
    )
    connection_timeout: int = Field(
        0,
        ge=0,
        description="Connection timeout in seconds",
        examples=[10],
    )
    verify_ssl: Optional[bool] = Field(
        None,
        description="Whether to verify SSL certificates",
        examples=[True],
    )

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "url": "https://homeassistant.example.com:8123",
                    "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                    "connection_timeout": 10,
                    "verify_ssl": True,
                },
            ]
        },
    )


class SettingsUpdateRequest(BaseModel):
    """Model representing a request to update integration settings.

    Attributes:
        url: Home Assistant base URL.
        token: Long-lived access token, the stored token is kept when empty.
        polling_interval: Polling interval and cache TTL in seconds (minimum 10).
        connection_timeout: Connection timeout in seconds (clamped to 5-60).
        verify_ssl: Whether to verify SSL certificates.
    """

    url: str = Field("", examples=["https://homeassistant.example.com:8123"])
    token: Optional[str] = Field(
        None,
        description="New token; empty or missing keeps the stored one",
    )
    polling_interval: int = Field(
        constants.DEFAULT_POLLING_INTERVAL,
        description="Polling interval in seconds",
        examples=[30],
    )
    connection_timeout: int = Field(
        constants.DEFAULT_CONNECTION_TIMEOUT,
        description="Connection timeout in seconds",
        examples=[10],
    )
    verify_ssl: bool = True

    model_config = ConfigDict(extra="forbid")

    @field_validator("url")
    @classmethod
    def strip_url(cls, value: str) -> str:
        """Remove surrounding whitespace from URL."""
        return value.strip()

    @field_validator("polling_interval")
    @classmethod
    def clamp_polling_interval(cls, value: int) -> int:
        """Polling interval can not be shorter than the minimum."""
        return max(constants.MINIMAL_POLLING_INTERVAL, value)

    @field_validator("connection_timeout")
    @classmethod
    def clamp_connection_timeout(cls, value: int) -> int:
        """Connection timeout is kept in the supported range."""
        return min(
            constants.MAXIMAL_CONNECTION_TIMEOUT,
            max(constants.MINIMAL_CONNECTION_TIMEOUT, value),
        )
