"""Unit tests for the presence service."""

# pylint: disable=protected-access

import pytest
import requests
from prometheus_client import REGISTRY
from pytest_mock import MockerFixture, MockType

import constants
from models.presence import (
    PresenceErrorKind,
    PresenceFailure,
    PresenceRecord,
    PresenceSuccess,
)
from services.presence import PresenceService
from settings_store.in_memory_settings_store import InMemorySettingsStore
from settings_store.settings_store import SettingsStoreError
from utils.network import LocalServerError
from tests.unit.utils.ha_helpers import (
    HA_STATES,
    HA_TOKEN,
    HA_URL,
    FakeClock,
    make_response,
)


def _error_kind(outcome: object) -> PresenceErrorKind:
    """Return failure kind of an outcome that is expected to fail."""
    assert isinstance(outcome, PresenceFailure)
    return outcome.error.kind


class TestGetPersonPresence:
    """Test cases for PresenceService.get_person_presence."""

    @pytest.mark.parametrize(
        "stored",
        [
            {},
            {constants.SETTING_HA_URL: HA_URL},
            {constants.SETTING_HA_TOKEN: HA_TOKEN},
        ],
        ids=["nothing", "url only", "token only"],
    )
    def test_not_configured(
        self,
        presence_service: PresenceService,
        mock_http_session: MockType,
        stored: dict[str, str],
    ) -> None:
        """Missing URL or token is reported without any network call."""
        presence_service.settings = InMemorySettingsStore(stored)

        outcome = presence_service.get_person_presence()

        assert _error_kind(outcome) == PresenceErrorKind.NOT_CONFIGURED
        assert outcome.error.message == "Home Assistant is not configured"
        mock_http_session.get.assert_not_called()
        assert presence_service.cache.entry(constants.PRESENCE_CACHE_KEY) is None

    def test_person_entities_are_returned(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Only person entities are returned, in upstream order."""
        mock_http_session.get.return_value = make_response(mocker, 200, HA_STATES)

        outcome = presence_service.get_person_presence()

        assert isinstance(outcome, PresenceSuccess)
        assert outcome.success is True
        assert outcome.records == [
            PresenceRecord(
                entity_id="person.alice",
                name="Alice",
                state="home",
                last_changed="2024-01-01T00:00:00Z",
            ),
            PresenceRecord(
                entity_id="person.bob",
                name="person.bob",
                state="not_home",
                last_changed=None,
            ),
        ]

    def test_request_parameters(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        settings_store: InMemorySettingsStore,
        mock_http_session: MockType,
    ) -> None:
        """States endpoint is called with stored timeout, SSL flag and token."""
        settings_store.set(constants.SETTING_HA_URL, HA_URL + "/")
        settings_store.set(constants.SETTING_HA_CONNECTION_TIMEOUT, "25")
        settings_store.set(constants.SETTING_HA_VERIFY_SSL, "0")
        mock_http_session.get.return_value = make_response(mocker, 200, [])

        presence_service.get_person_presence()

        mock_http_session.get.assert_called_once_with(
            "https://ha.example.com:8123/api/states",
            headers={
                "Authorization": f"Bearer {HA_TOKEN}",
                "Content-Type": "application/json",
            },
            timeout=25,
            verify=False,
            allow_redirects=False,
        )

    def test_cached_within_ttl(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
        fake_clock: FakeClock,
    ) -> None:
        """Calls within the TTL window are served from the cache."""
        mock_http_session.get.return_value = make_response(mocker, 200, HA_STATES)

        first = presence_service.get_person_presence()
        fake_clock.advance(constants.DEFAULT_POLLING_INTERVAL - 1)
        second = presence_service.get_person_presence()

        assert mock_http_session.get.call_count == 1
        assert second == first

        fake_clock.advance(1)
        presence_service.get_person_presence()

        assert mock_http_session.get.call_count == 2

    def test_ttl_is_read_on_every_call(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        settings_store: InMemorySettingsStore,
        mock_http_session: MockType,
        fake_clock: FakeClock,
    ) -> None:
        """Changed polling interval is honoured without restart."""
        mock_http_session.get.return_value = make_response(mocker, 200, HA_STATES)

        presence_service.get_person_presence()
        fake_clock.advance(15)
        presence_service.get_person_presence()
        assert mock_http_session.get.call_count == 1

        settings_store.set(constants.SETTING_HA_POLLING_INTERVAL, "10")
        presence_service.get_person_presence()
        assert mock_http_session.get.call_count == 2

    def test_invalid_polling_interval_uses_default(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        settings_store: InMemorySettingsStore,
        mock_http_session: MockType,
        fake_clock: FakeClock,
    ) -> None:
        """Polling interval that is not a number falls back to the default."""
        settings_store.set(constants.SETTING_HA_POLLING_INTERVAL, "often")
        mock_http_session.get.return_value = make_response(mocker, 200, HA_STATES)

        presence_service.get_person_presence()
        fake_clock.advance(constants.DEFAULT_POLLING_INTERVAL - 1)
        presence_service.get_person_presence()

        assert presence_service.cache_ttl() == constants.DEFAULT_POLLING_INTERVAL
        assert mock_http_session.get.call_count == 1

    def test_upstream_error_is_not_cached(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Non-200 status is reported with the code and is never cached."""
        mock_http_session.get.return_value = make_response(mocker, 503)

        outcome = presence_service.get_person_presence()

        assert _error_kind(outcome) == PresenceErrorKind.UPSTREAM_ERROR
        assert outcome.success is False
        assert outcome.error.message == "Failed to fetch data: HTTP 503"
        assert outcome.error.status_code == 503
        assert presence_service.cache.entry(constants.PRESENCE_CACHE_KEY) is None

        presence_service.get_person_presence()
        assert mock_http_session.get.call_count == 2

    def test_redirect_is_upstream_error(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Redirects are not followed."""
        mock_http_session.get.return_value = make_response(mocker, 302)

        outcome = presence_service.get_person_presence()

        assert _error_kind(outcome) == PresenceErrorKind.UPSTREAM_ERROR
        assert "302" in outcome.error.message

    def test_body_is_not_json(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Body that can not be decoded is an invalid response."""
        mock_http_session.get.return_value = make_response(
            mocker, 200, json_error=ValueError("Expecting value")
        )

        outcome = presence_service.get_person_presence()

        assert _error_kind(outcome) == PresenceErrorKind.INVALID_RESPONSE
        assert outcome.error.message == "Invalid response from Home Assistant"

    @pytest.mark.parametrize("body", ["states", 42, None, True])
    def test_body_is_not_list_or_object(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
        body: object,
    ) -> None:
        """Top-level JSON scalar is an invalid response."""
        mock_http_session.get.return_value = make_response(mocker, 200, body)

        outcome = presence_service.get_person_presence()

        assert _error_kind(outcome) == PresenceErrorKind.INVALID_RESPONSE
        assert presence_service.cache.entry(constants.PRESENCE_CACHE_KEY) is None

    def test_top_level_object_is_iterated_by_values(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """JSON object is treated as a collection of its values."""
        body = {str(index): state for index, state in enumerate(HA_STATES)}
        mock_http_session.get.return_value = make_response(mocker, 200, body)

        outcome = presence_service.get_person_presence()

        assert isinstance(outcome, PresenceSuccess)
        assert [r.entity_id for r in outcome.records] == [
            "person.alice",
            "person.bob",
        ]

    def test_local_destination_blocked(
        self,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Local destination block has its own kind and remediation message."""
        mock_http_session.get.side_effect = LocalServerError(
            "Host violates local access rules"
        )

        outcome = presence_service.get_person_presence()

        assert _error_kind(outcome) == PresenceErrorKind.LOCAL_DESTINATION_BLOCKED
        assert outcome.error.message == constants.LOCAL_DESTINATION_BLOCKED_MESSAGE
        assert outcome.error.message != constants.FETCH_CONNECTION_FAILED_MESSAGE
        assert "allow_local_remote_servers" in outcome.error.message
        assert "LocalServerError" not in outcome.error.message
        assert "Traceback" not in outcome.error.message

    @pytest.mark.parametrize(
        "exception",
        [
            requests.exceptions.ConnectTimeout("timed out"),
            requests.exceptions.ConnectionError("refused"),
            requests.exceptions.SSLError("certificate verify failed"),
            requests.exceptions.InvalidURL("bad url"),
            RuntimeError("boom"),
        ],
    )
    def test_connection_failed(
        self,
        presence_service: PresenceService,
        mock_http_session: MockType,
        exception: Exception,
    ) -> None:
        """Transport failures map to the generic message without details."""
        mock_http_session.get.side_effect = exception

        outcome = presence_service.get_person_presence()

        assert _error_kind(outcome) == PresenceErrorKind.CONNECTION_FAILED
        assert outcome.error.message == constants.FETCH_CONNECTION_FAILED_MESSAGE
        assert type(exception).__name__ not in outcome.error.message
        assert str(exception) not in outcome.error.message

    def test_unexpected_error_is_logged_with_traceback(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Transport errors are logged briefly, other errors with traceback."""
        mock_logger = mocker.patch("services.presence.logger")

        mock_http_session.get.side_effect = requests.exceptions.ConnectTimeout()
        presence_service.get_person_presence()
        mock_logger.error.assert_called_once()
        mock_logger.exception.assert_not_called()

        mock_http_session.get.side_effect = RuntimeError("boom")
        outcome = presence_service.get_person_presence()
        mock_logger.exception.assert_called_once()
        assert _error_kind(outcome) == PresenceErrorKind.CONNECTION_FAILED

    def test_blocked_by_destination_policy(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        settings_store: InMemorySettingsStore,
        mock_http_session: MockType,
    ) -> None:
        """Client with local destinations disallowed refuses private hosts."""
        presence_service.client.allow_local_remote_servers = False
        settings_store.set(constants.SETTING_HA_URL, "http://192.168.1.10:8123")
        mocker.patch(
            "utils.network.socket.getaddrinfo",
            return_value=[(2, 1, 6, "", ("192.168.1.10", 8123))],
        )

        outcome = presence_service.get_person_presence()

        assert _error_kind(outcome) == PresenceErrorKind.LOCAL_DESTINATION_BLOCKED
        mock_http_session.get.assert_not_called()

    def test_settings_store_failure(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Broken settings store is reported as a failure, not raised."""
        mocker.patch.object(
            presence_service.settings,
            "_read",
            side_effect=SettingsStoreError("Failed to read settings key ha_url"),
        )

        outcome = presence_service.get_person_presence()

        assert _error_kind(outcome) == PresenceErrorKind.SETTINGS_UNAVAILABLE
        assert outcome.error.message == constants.SETTINGS_UNAVAILABLE_MESSAGE
        mock_http_session.get.assert_not_called()

    def test_outcome_metrics(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Fetches and cache hits are counted."""

        def sample(name: str, labels: dict[str, str] | None = None) -> float:
            return REGISTRY.get_sample_value(name, labels or {}) or 0.0

        success_before = sample("ha_presence_fetches_total", {"outcome": "success"})
        hits_before = sample("ha_presence_cache_hits_total")
        mock_http_session.get.return_value = make_response(mocker, 200, HA_STATES)

        presence_service.get_person_presence()
        presence_service.get_person_presence()

        assert (
            sample("ha_presence_fetches_total", {"outcome": "success"})
            == success_before + 1
        )
        assert sample("ha_presence_cache_hits_total") == hits_before + 1


class TestTestConnection:
    """Test cases for PresenceService.test_connection."""

    def test_missing_url_and_token(
        self,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Nothing stored and nothing supplied is reported immediately."""
        presence_service.settings = InMemorySettingsStore()

        result = presence_service.test_connection(url="", token="")

        assert result.success is False
        assert result.message == "Home Assistant URL and token must be configured"
        mock_http_session.get.assert_not_called()

    def test_success_with_stored_settings(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Stored settings are used when nothing is supplied."""
        mock_http_session.get.return_value = make_response(mocker, 200)

        result = presence_service.test_connection()

        assert result.success is True
        assert result.message == "Successfully connected to Home Assistant"
        mock_http_session.get.assert_called_once_with(
            "https://ha.example.com:8123/api/",
            headers={
                "Authorization": f"Bearer {HA_TOKEN}",
                "Content-Type": "application/json",
            },
            timeout=constants.DEFAULT_CONNECTION_TIMEOUT,
            verify=True,
            allow_redirects=False,
        )

    def test_supplied_values_override_stored_ones(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Explicit parameters win over the settings store."""
        mock_http_session.get.return_value = make_response(mocker, 200)

        presence_service.test_connection(
            url="https://other.example.com",
            token="other-token",
            connection_timeout=7,
            verify_ssl=False,
        )

        mock_http_session.get.assert_called_once_with(
            "https://other.example.com/api/",
            headers={
                "Authorization": "Bearer other-token",
                "Content-Type": "application/json",
            },
            timeout=7,
            verify=False,
            allow_redirects=False,
        )

    def test_non_200_status(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Non-200 status is reported with the code."""
        mock_http_session.get.return_value = make_response(mocker, 401)

        result = presence_service.test_connection()

        assert result.success is False
        assert result.message == "Failed to connect: HTTP 401"

    def test_local_destination_blocked(
        self,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Local destination block gets the remediation message."""
        mock_http_session.get.side_effect = LocalServerError("blocked")

        result = presence_service.test_connection()

        assert result.success is False
        assert result.message == constants.LOCAL_DESTINATION_BLOCKED_MESSAGE
        assert result.message != constants.TEST_CONNECTION_FAILED_MESSAGE

    def test_connection_failed(
        self,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Transport failure is reported without exception details."""
        mock_http_session.get.side_effect = requests.exceptions.ReadTimeout(
            "HTTPSConnectionPool: Read timed out"
        )

        result = presence_service.test_connection()

        assert result.success is False
        assert result.message == constants.TEST_CONNECTION_FAILED_MESSAGE
        assert "ReadTimeout" not in result.message
        assert "HTTPSConnectionPool" not in result.message

    def test_settings_store_failure(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Broken settings store is reported as a failed test, not raised."""
        mocker.patch.object(
            presence_service.settings,
            "_read",
            side_effect=SettingsStoreError("Failed to read settings key ha_url"),
        )

        result = presence_service.test_connection()

        assert result.success is False
        assert result.message == constants.SETTINGS_UNAVAILABLE_MESSAGE
        mock_http_session.get.assert_not_called()

    def test_does_not_touch_presence_cache(
        self,
        mocker: MockerFixture,
        presence_service: PresenceService,
        mock_http_session: MockType,
    ) -> None:
        """Connection tests and presence fetches do not share cached data."""
        states_response = make_response(mocker, 200, HA_STATES)
        probe_response = make_response(mocker, 200, {"message": "API running."})
        mock_http_session.get.side_effect = [
            probe_response,
            states_response,
            probe_response,
            probe_response,
        ]

        presence_service.test_connection()
        assert presence_service.cache.entry(constants.PRESENCE_CACHE_KEY) is None

        presence_service.get_person_presence()
        entry = presence_service.cache.entry(constants.PRESENCE_CACHE_KEY)
        assert entry is not None

        presence_service.test_connection()
        presence_service.test_connection()
        assert presence_service.cache.entry(constants.PRESENCE_CACHE_KEY) is entry

        # presence is still served from the cache
        presence_service.get_person_presence()
        assert mock_http_session.get.call_count == 4


class TestResolveConnectionSettings:
    """Test cases for PresenceService.resolve_connection_settings."""

    def test_defaults_from_store(self, presence_service: PresenceService) -> None:
        """Stored values and lexicon defaults are used."""
        settings = presence_service.resolve_connection_settings()

        assert settings.url == HA_URL
        assert settings.token.get_secret_value() == HA_TOKEN
        assert settings.timeout == constants.DEFAULT_CONNECTION_TIMEOUT
        assert settings.verify_ssl is True
        assert settings.is_complete()

    def test_token_is_not_exposed(self, presence_service: PresenceService) -> None:
        """Resolved token does not show up in the textual representation."""
        settings = presence_service.resolve_connection_settings()

        assert HA_TOKEN not in repr(settings)
        assert HA_TOKEN not in str(settings)

    @pytest.mark.parametrize(
        "stored,expected",
        [("1", True), ("0", False), ("yes", False), ("", False)],
    )
    def test_verify_ssl_flag(
        self,
        presence_service: PresenceService,
        settings_store: InMemorySettingsStore,
        stored: str,
        expected: bool,
    ) -> None:
        """Only "1" enables SSL verification."""
        settings_store.set(constants.SETTING_HA_VERIFY_SSL, stored)

        assert presence_service.verify_ssl() is expected

    def test_invalid_timeout_uses_default(
        self,
        presence_service: PresenceService,
        settings_store: InMemorySettingsStore,
    ) -> None:
        """Timeout that is not a number falls back to the default."""
        settings_store.set(constants.SETTING_HA_CONNECTION_TIMEOUT, "ten")

        assert (
            presence_service.connection_timeout()
            == constants.DEFAULT_CONNECTION_TIMEOUT
        )
