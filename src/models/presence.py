"""Models for person presence and outcomes of Home Assistant calls."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

import constants


class PresenceRecord(BaseModel):
    """One person entity observed in Home Assistant.

    Attributes:
        entity_id: Home Assistant entity identifier, always `person.<slug>`.
        name: Friendly name, the entity ID when no friendly name is set.
        state: Entity state, e.g. `home` or `not_home`.
        last_changed: Timestamp of the last state change, passed verbatim.
    """

    entity_id: str = Field(examples=["person.alice"])
    name: str = Field(examples=["Alice"])
    state: str = Field(constants.DEFAULT_PERSON_STATE, examples=["home"])
    last_changed: Optional[str] = Field(None, examples=["2024-01-01T00:00:00Z"])

    @field_validator("entity_id")
    @classmethod
    def check_person_entity(cls, value: str) -> str:
        """Only person entities are valid presence records."""
        if not value.startswith(constants.PERSON_ENTITY_PREFIX):
            raise ValueError(
                f"entity_id must start with '{constants.PERSON_ENTITY_PREFIX}'"
            )
        return value


class PresenceErrorKind(str, Enum):
    """Failure kinds shared by presence fetch and connection test."""

    NOT_CONFIGURED = "not_configured"
    UPSTREAM_ERROR = "upstream_error"
    INVALID_RESPONSE = "invalid_response"
    LOCAL_DESTINATION_BLOCKED = "local_destination_blocked"
    CONNECTION_FAILED = "connection_failed"
    SETTINGS_UNAVAILABLE = "settings_unavailable"


class PresenceError(BaseModel):
    """Failure of presence fetch with message that is safe to show to users."""

    kind: PresenceErrorKind
    message: str
    status_code: Optional[int] = None


class PresenceSuccess(BaseModel):
    """Successful presence fetch."""

    records: list[PresenceRecord] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        """Presence was fetched."""
        return True


class PresenceFailure(BaseModel):
    """Failed presence fetch."""

    error: PresenceError

    @property
    def success(self) -> bool:
        """Presence was not fetched."""
        return False


PresenceOutcome = PresenceSuccess | PresenceFailure


class ConnectionTestResult(BaseModel):
    """Result of live connectivity probe."""

    success: bool
    message: str


class ConnectionSettings(BaseModel):
    """Effective connection settings used for one Home Assistant call."""

    url: str
    token: SecretStr
    timeout: int
    verify_ssl: bool

    def is_complete(self) -> bool:
        """Check that both URL and token are set."""
        return bool(self.url) and bool(self.token.get_secret_value())
