"""Shared fixtures for integration tests."""

from pathlib import Path
from typing import Generator

import pytest
from fastapi import Request
from pytest_mock import MockerFixture
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from authentication.interface import AuthTuple
from authentication.noop import NoopAuthDependency
from configuration import AppConfig, configuration
from models.database.base import Base

TESTS_DIR = Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def reset_configuration_state() -> Generator:
    """Reset configuration state before each integration test.

    The configuration is a process-wide singleton, the state seen before
    the test is restored afterwards.
    """
    # pylint: disable=protected-access
    original = configuration._configuration
    configuration._configuration = None
    yield
    configuration._configuration = original


@pytest.fixture(name="test_config")
def test_config_fixture() -> Generator[AppConfig, None, None]:
    """Load the configuration used by tests (memory store, noop auth)."""
    config_path = TESTS_DIR / "configuration" / "ha-presence.yaml"
    assert config_path.exists(), f"Config file not found: {config_path}"

    configuration.load_configuration(str(config_path))
    yield configuration


@pytest.fixture(name="current_config")
def current_config_fixture() -> Generator[AppConfig, None, None]:
    """Load the configuration shipped in the project root."""
    config_path = TESTS_DIR.parent / "ha-presence.yaml"
    assert config_path.exists(), f"Config file not found: {config_path}"

    configuration.load_configuration(str(config_path))
    yield configuration


@pytest.fixture(name="test_db_engine")
def test_db_engine_fixture() -> Generator[Engine, None, None]:
    """Create an in-memory SQLite database engine for testing.

    All sessions share one connection so that every session sees the same
    in-memory database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="test_db_session_factory")
def test_db_session_factory_fixture(
    mocker: MockerFixture, test_db_engine: Engine
) -> sessionmaker:
    """Route database settings store sessions to the test database."""
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    mocker.patch(
        "settings_store.database_settings_store.get_session", side_effect=session_local
    )
    return session_local


@pytest.fixture(name="test_request")
def test_request_fixture() -> Request:
    """Create a test FastAPI Request object with proper scope."""
    return Request(
        scope={
            "type": "http",
            "query_string": b"",
            "headers": [],
        }
    )


@pytest.fixture(name="test_auth")
async def test_auth_fixture(test_request: Request) -> AuthTuple:
    """Create authentication using real noop auth module."""
    noop_auth = NoopAuthDependency()
    return await noop_auth(test_request)
