"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from typing import Generator

import pytest
import requests
from pytest_mock import MockerFixture, MockType

import constants
import tests.unit  # noqa: F401  pylint: disable=unused-import
from cache.in_memory_cache import InMemoryCache
from client import HomeAssistantClient
from services.presence import PresenceService, PresenceServiceHolder
from settings_store.in_memory_settings_store import InMemorySettingsStore
from tests.unit.utils.ha_helpers import HA_TOKEN, HA_URL, FakeClock


@pytest.fixture(name="fake_clock")
def fake_clock_fixture() -> FakeClock:
    """Controllable clock for cache tests."""
    return FakeClock()


@pytest.fixture(name="settings_store")
def settings_store_fixture() -> InMemorySettingsStore:
    """Settings store with URL and token configured."""
    return InMemorySettingsStore(
        {
            constants.SETTING_HA_URL: HA_URL,
            constants.SETTING_HA_TOKEN: HA_TOKEN,
        }
    )


@pytest.fixture(name="mock_http_session")
def mock_http_session_fixture(mocker: MockerFixture) -> MockType:
    """HTTP session that never reaches the network."""
    return mocker.MagicMock(spec=requests.Session)


@pytest.fixture(name="presence_service")
def presence_service_fixture(
    settings_store: InMemorySettingsStore,
    mock_http_session: MockType,
    fake_clock: FakeClock,
) -> PresenceService:
    """Presence service with mocked HTTP session and fake clock.

    Local destinations are allowed so that no name resolution takes place.
    """
    return PresenceService(
        settings=settings_store,
        cache=InMemoryCache(clock=fake_clock),
        client=HomeAssistantClient(
            allow_local_remote_servers=True, session=mock_http_session
        ),
    )


@pytest.fixture(name="loaded_presence_service")
def loaded_presence_service_fixture(
    presence_service: PresenceService,
) -> Generator[PresenceService, None, None]:
    """Install the presence service into the process-wide holder."""
    holder = PresenceServiceHolder()
    original = holder._service  # pylint: disable=protected-access
    holder._service = presence_service  # pylint: disable=protected-access
    yield presence_service
    holder._service = original  # pylint: disable=protected-access
