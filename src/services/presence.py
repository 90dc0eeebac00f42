"""Presence service that reads person entities from Home Assistant.

The service owns the presence cache, performs the remote fetch and maps
every transport or protocol failure to one of the `PresenceErrorKind`
outcomes. Nothing raised by the HTTP layer or the settings store crosses the
service boundary.
"""

from typing import Any, Optional

import requests

import constants
import metrics
from cache.cache import Cache
from cache.in_memory_cache import InMemoryCache
from client import HomeAssistantClient
from configuration import AppConfig
from log import get_logger
from models.presence import (
    ConnectionSettings,
    ConnectionTestResult,
    PresenceError,
    PresenceErrorKind,
    PresenceFailure,
    PresenceOutcome,
    PresenceRecord,
    PresenceSuccess,
)
from settings_store.settings_store import SettingsStore, SettingsStoreError
from settings_store.settings_store_factory import SettingsStoreFactory
from utils.network import LocalServerError
from utils.types import Singleton
from utils.url import sanitize_url_for_logging

logger = get_logger(__name__)


def parse_person_states(states: Any) -> list[PresenceRecord]:
    """Filter person entities out of Home Assistant states.

    Args:
        states: Decoded `/api/states` body, a list of state objects (an object
            is iterated by its values).

    Returns:
        Presence records in the order they appear upstream.
    """
    items = states.values() if isinstance(states, dict) else states
    persons: list[PresenceRecord] = []
    for state in items:
        if not isinstance(state, dict):
            continue
        entity_id = state.get("entity_id")
        if not isinstance(entity_id, str) or not entity_id.startswith(
            constants.PERSON_ENTITY_PREFIX
        ):
            continue

        attributes = state.get("attributes")
        friendly_name = (
            attributes.get("friendly_name") if isinstance(attributes, dict) else None
        )
        entity_state = state.get("state")
        last_changed = state.get("last_changed")

        persons.append(
            PresenceRecord(
                entity_id=entity_id,
                name=str(friendly_name) if friendly_name is not None else entity_id,
                state=(
                    str(entity_state)
                    if entity_state is not None
                    else constants.DEFAULT_PERSON_STATE
                ),
                last_changed=str(last_changed) if last_changed is not None else None,
            )
        )
    return persons


def _failure(
    kind: PresenceErrorKind, message: str, status_code: Optional[int] = None
) -> PresenceFailure:
    """Construct failed outcome and count it."""
    metrics.presence_fetches_total.labels(kind.value).inc()
    return PresenceFailure(
        error=PresenceError(kind=kind, message=message, status_code=status_code)
    )


class PresenceService:
    """Fetch, cache and test access to Home Assistant person entities."""

    def __init__(
        self,
        settings: SettingsStore,
        cache: Cache,
        client: HomeAssistantClient,
    ) -> None:
        """Initialize the service.

        Args:
            settings: Store with integration settings (URL, token, ...).
            cache: Cache for the presence fetch; owned by this service.
            client: Home Assistant HTTP client.
        """
        self.settings = settings
        self.cache = cache
        self.client = client

    def _int_setting(self, key: str, default: int) -> int:
        """Read integer setting, default for values that are not numbers."""
        value = self.settings.get(key)
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid value '%s' for %s, using %d", value, key, default)
            return default

    def cache_ttl(self) -> int:
        """Return the cache TTL in seconds, read fresh from the settings."""
        return self._int_setting(
            constants.SETTING_HA_POLLING_INTERVAL, constants.DEFAULT_POLLING_INTERVAL
        )

    def connection_timeout(self) -> int:
        """Return the connection timeout in seconds."""
        return self._int_setting(
            constants.SETTING_HA_CONNECTION_TIMEOUT,
            constants.DEFAULT_CONNECTION_TIMEOUT,
        )

    def verify_ssl(self) -> bool:
        """Return whether SSL certificates are verified."""
        return self.settings.get(constants.SETTING_HA_VERIFY_SSL) == "1"

    def resolve_connection_settings(
        self,
        url: str = "",
        token: str = "",
        connection_timeout: int = 0,
        verify_ssl: Optional[bool] = None,
    ) -> ConnectionSettings:
        """Combine explicit overrides with stored settings.

        Empty strings, non-positive timeout and None fall back to the values
        from the settings store.
        """
        if url == "":
            url = self.settings.get(constants.SETTING_HA_URL)
            logger.debug("Using saved URL from settings")
        if token == "":
            token = self.settings.get(constants.SETTING_HA_TOKEN)
            logger.debug("Using saved token from settings")
        if connection_timeout <= 0:
            connection_timeout = self.connection_timeout()
            logger.debug("Using connection timeout %ds from settings", connection_timeout)
        if verify_ssl is None:
            verify_ssl = self.verify_ssl()

        return ConnectionSettings(
            url=url,
            token=token,
            timeout=connection_timeout,
            verify_ssl=verify_ssl,
        )

    def get_person_presence(self) -> PresenceOutcome:
        """Fetch all person entities from Home Assistant.

        Returns:
            `PresenceSuccess` with the records, or `PresenceFailure` describing
            why the records could not be fetched. Only successes are cached.
        """
        try:
            settings = self.resolve_connection_settings()
            cache_ttl = self.cache_ttl()
        except SettingsStoreError:
            logger.exception("Home Assistant settings could not be read")
            return _failure(
                PresenceErrorKind.SETTINGS_UNAVAILABLE,
                constants.SETTINGS_UNAVAILABLE_MESSAGE,
            )

        logger.debug(
            "Fetching person presence (url configured: %s, token configured: %s)",
            bool(settings.url),
            bool(settings.token.get_secret_value()),
        )

        if not settings.is_complete():
            logger.warning("Home Assistant is not configured")
            return _failure(
                PresenceErrorKind.NOT_CONFIGURED, constants.NOT_CONFIGURED_MESSAGE
            )

        sanitized_url = sanitize_url_for_logging(settings.url)

        cached = self.cache.get(constants.PRESENCE_CACHE_KEY, cache_ttl)
        if cached is not None:
            logger.debug("Returning cached person presence data")
            metrics.presence_cache_hits_total.inc()
            return cached

        logger.debug(
            "Cache miss, fetching fresh person presence data from %s (timeout=%ss, "
            "verify_ssl=%s)",
            sanitized_url,
            settings.timeout,
            settings.verify_ssl,
        )

        try:
            response = self.client.get(
                settings.url,
                constants.HA_API_STATES_PATH,
                settings.token.get_secret_value(),
                settings.timeout,
                settings.verify_ssl,
            )
        except LocalServerError:
            logger.warning(
                "Connection to local server %s blocked by destination policy",
                sanitized_url,
            )
            return _failure(
                PresenceErrorKind.LOCAL_DESTINATION_BLOCKED,
                constants.LOCAL_DESTINATION_BLOCKED_MESSAGE,
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            if isinstance(e, requests.RequestException):
                logger.error(
                    "Failed to fetch person presence from %s: %s (%s)",
                    sanitized_url,
                    e,
                    type(e).__name__,
                )
            else:
                logger.exception(
                    "Unexpected error when fetching person presence from %s",
                    sanitized_url,
                )
            return _failure(
                PresenceErrorKind.CONNECTION_FAILED,
                constants.FETCH_CONNECTION_FAILED_MESSAGE,
            )

        logger.debug(
            "Received response from states endpoint, status code %d",
            response.status_code,
        )
        if response.status_code != 200:
            logger.warning(
                "Failed to fetch person presence, status code %d",
                response.status_code,
            )
            return _failure(
                PresenceErrorKind.UPSTREAM_ERROR,
                f"Failed to fetch data: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            states = response.json()
        except ValueError:
            states = None
        if not isinstance(states, (list, dict)):
            logger.error(
                "Invalid response format from Home Assistant: %s",
                type(states).__name__,
            )
            return _failure(
                PresenceErrorKind.INVALID_RESPONSE,
                constants.INVALID_RESPONSE_MESSAGE,
            )

        result = PresenceSuccess(records=parse_person_states(states))
        logger.info(
            "Successfully fetched person presence data, %d person(s)",
            len(result.records),
        )
        metrics.presence_fetches_total.labels("success").inc()
        self.cache.set(constants.PRESENCE_CACHE_KEY, result)
        return result

    def test_connection(
        self,
        url: str = "",
        token: str = "",
        connection_timeout: int = 0,
        verify_ssl: Optional[bool] = None,
    ) -> ConnectionTestResult:
        """Test the connection to Home Assistant.

        The presence cache is neither read nor written.

        Args:
            url: URL to test, saved setting is used when empty.
            token: Token to test, saved setting is used when empty.
            connection_timeout: Timeout in seconds, saved setting when not positive.
            verify_ssl: Whether to verify SSL certificates, saved setting when None.

        Returns:
            Result of the probe with a message that can be shown to the user.
        """
        logger.info(
            "Testing Home Assistant connection (url provided: %s, token provided: %s)",
            url != "",
            token != "",
        )
        try:
            settings = self.resolve_connection_settings(
                url, token, connection_timeout, verify_ssl
            )
        except SettingsStoreError:
            logger.exception("Home Assistant settings could not be read")
            return self._test_result(False, constants.SETTINGS_UNAVAILABLE_MESSAGE)

        if not settings.is_complete():
            logger.warning(
                "Home Assistant URL or token is empty (url empty: %s, token empty: %s)",
                settings.url == "",
                settings.token.get_secret_value() == "",
            )
            return self._test_result(False, constants.MISSING_URL_OR_TOKEN_MESSAGE)

        sanitized_url = sanitize_url_for_logging(settings.url)
        logger.info(
            "Initiating connection test to %s%s (timeout=%ss, verify_ssl=%s)",
            sanitized_url,
            constants.HA_API_BASE_PATH,
            settings.timeout,
            settings.verify_ssl,
        )

        try:
            response = self.client.get(
                settings.url,
                constants.HA_API_BASE_PATH,
                settings.token.get_secret_value(),
                settings.timeout,
                settings.verify_ssl,
            )
        except LocalServerError:
            logger.warning(
                "Connection to local server %s blocked by destination policy",
                sanitized_url,
            )
            return self._test_result(
                False, constants.LOCAL_DESTINATION_BLOCKED_MESSAGE
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error(
                "Failed to connect to Home Assistant at %s: %s (%s)",
                sanitized_url,
                e,
                type(e).__name__,
            )
            return self._test_result(False, constants.TEST_CONNECTION_FAILED_MESSAGE)

        logger.info(
            "Received response from Home Assistant, status code %d",
            response.status_code,
        )
        if response.status_code == 200:
            logger.info("Home Assistant connection test successful")
            return self._test_result(True, constants.TEST_CONNECTION_SUCCESS_MESSAGE)

        logger.warning(
            "Home Assistant returned non-200 status code %d", response.status_code
        )
        return self._test_result(
            False, f"Failed to connect: HTTP {response.status_code}"
        )

    @staticmethod
    def _test_result(success: bool, message: str) -> ConnectionTestResult:
        """Construct result of connection test and count it."""
        metrics.connection_tests_total.labels(str(success).lower()).inc()
        return ConnectionTestResult(success=success, message=message)


class PresenceServiceHolder(metaclass=Singleton):
    """Container for the one presence service instance of this process."""

    _service: Optional[PresenceService] = None

    def load(self, app_config: AppConfig) -> None:
        """Construct the presence service according to configuration."""
        store = SettingsStoreFactory.settings_store(
            app_config.settings_store_configuration
        )
        allow_local = (
            app_config.home_assistant_configuration.allow_local_remote_servers
        )
        if allow_local:
            logger.warning("Calls to local and private addresses are allowed")
        self._service = PresenceService(
            settings=store,
            cache=InMemoryCache(),
            client=HomeAssistantClient(allow_local_remote_servers=allow_local),
        )
        logger.info("Presence service initialized")

    def is_loaded(self) -> bool:
        """Check if the presence service has been constructed."""
        return self._service is not None

    def get_service(self) -> PresenceService:
        """Return the initialised presence service."""
        if self._service is None:
            raise RuntimeError(
                "PresenceService has not been initialised. Ensure 'load(..)' has been called."
            )
        return self._service

    def close(self) -> None:
        """Release resources held by the service."""
        if self._service is not None:
            self._service.client.close()
            self._service = None
