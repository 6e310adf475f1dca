import logging
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Tuple
from unittest.mock import AsyncMock, Mock

import pytest
from _pytest.monkeypatch import MonkeyPatch

from src.weather_api.models import Location
from src.weather_api.services.db_service_async import Database
from src.weather_api.services.open_weather_map_api_client_async import (
    WeatherPayload,
)


@pytest.fixture(scope="session", autouse=True)  # type: ignore[misc]
def configure_logging() -> None:
    """Configure root logging for tests if not already set up.

    Side effects:
        Ensures DEBUG level logging is configured once for the session.
    """
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=logging.DEBUG)


@pytest.fixture  # type: ignore[misc]
def database(tmp_path: Path) -> Generator[Database, None, None]:
    """Provide a file-backed SQLite `Database` with all tables created.

    A file is used instead of `:memory:` because the stores run their
    queries in worker threads.
    """
    db = Database(f"sqlite:///{tmp_path / 'weather.db'}")
    db.create_tables()
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture  # type: ignore[misc]
def warsaw() -> Location:
    return Location(
        location_id=756135,
        city_name="Warsaw",
        country_code="PL",
        latitude=52.23,
        longitude=21.01,
    )


@pytest.fixture  # type: ignore[misc]
def warsaw_payload() -> WeatherPayload:
    return WeatherPayload(
        id=756135,
        name="Warsaw",
        country="PL",
        latitude=52.23,
        longitude=21.01,
        temperature=280.32,
        temp_min=279.15,
        temp_max=281.15,
        conditions=["Rain", "Mist"],
    )


@pytest.fixture  # type: ignore[misc]
def mock_location_store() -> Mock:
    """Provide a location store mock with async CRUD methods."""
    m = Mock()
    m.get = AsyncMock(return_value=None)
    m.list = AsyncMock(return_value=[])
    m.save = AsyncMock(side_effect=lambda location: location)
    m.delete = AsyncMock(return_value=None)
    return m


@pytest.fixture  # type: ignore[misc]
def mock_weather_store() -> Mock:
    """Provide a weather store mock with async save/statistics methods."""
    m = Mock()
    m.save_reading = AsyncMock(side_effect=lambda reading: reading)
    m.get_statistics = AsyncMock()
    return m


@pytest.fixture  # type: ignore[misc]
def mock_provider() -> Mock:
    """Provide a weather provider client mock."""
    p = Mock()
    p.fetch = AsyncMock()
    p.fetch_by_id = AsyncMock()
    p.fetch_by_city = AsyncMock()
    p.close = AsyncMock(return_value=None)
    return p


@pytest.fixture  # type: ignore[misc]
def env_vars(monkeypatch: MonkeyPatch) -> Callable[[Dict[str, Any]], None]:
    """Fixture to set environment variables for the duration of a test.

    Args:
        monkeypatch (MonkeyPatch): Pytest monkeypatch fixture used internally.

    Returns:
        Callable[[Dict[str, Any]], None]: Function that accepts a mapping of
        names to values and sets them in os.environ for the test. A value of
        None removes the variable.
    """

    def _setter(mapping: Dict[str, Any]) -> None:
        for k, v in mapping.items():
            if v is None:
                monkeypatch.delenv(k, raising=False)
            else:
                monkeypatch.setenv(k, str(v))

    return _setter


@pytest.fixture  # type: ignore[misc]
def aiohttp_session_mock() -> Tuple[Mock, Mock]:
    """Build an aiohttp-like session whose GET yields a mocked response.

    Returns:
        Tuple[Mock, Mock]: (session, response). `response.status` defaults
        to 200 and `response.read` is an AsyncMock returning bytes.
    """
    session = Mock()
    session.closed = False
    session.close = AsyncMock(return_value=None)

    response = Mock()
    response.status = 200
    response.read = AsyncMock(return_value=b"{}")

    get_ctx = Mock()
    get_ctx.__aenter__ = AsyncMock(return_value=response)
    get_ctx.__aexit__ = AsyncMock(return_value=None)
    session.get.return_value = get_ctx

    return session, response
