from typing import List

import pytest

from src.weather_api.errors import ErrorKind, ServiceError
from src.weather_api.models import Base, Location
from src.weather_api.services.db_service_async import Database
from src.weather_api.services.location_store import LocationStore


def _locations() -> List[Location]:
    return [
        Location(
            location_id=2643743,
            city_name="London",
            country_code="GB",
            latitude=51.51,
            longitude=-0.13,
        ),
        Location(
            location_id=756135,
            city_name="Warsaw",
            country_code="PL",
            latitude=52.23,
            longitude=21.01,
        ),
        Location(
            location_id=3094802,
            city_name="Krakow",
            country_code="PL",
            latitude=50.08,
            longitude=19.92,
        ),
    ]


@pytest.mark.asyncio  # type: ignore[misc]
async def test_save_then_get_returns_stored_location(
    database: Database, warsaw: Location
) -> None:
    # Arrange
    store = LocationStore(database)

    # Act
    await store.save(warsaw)
    found = await store.get(756135)

    # Assert
    assert found.city_name == "Warsaw"
    assert found.country_code == "PL"
    assert found.latitude == pytest.approx(52.23)


@pytest.mark.asyncio  # type: ignore[misc]
async def test_get_missing_row_raises_not_found(database: Database) -> None:
    # Arrange
    store = LocationStore(database)

    # Act
    with pytest.raises(ServiceError) as exc_info:
        await store.get(462356)

    # Assert
    assert exc_info.value.kind is ErrorKind.NOT_FOUND
    assert exc_info.value.message == "location '462356' not found"


@pytest.mark.asyncio  # type: ignore[misc]
async def test_get_and_delete_on_broken_storage_raise_unavailable(
    database: Database,
) -> None:
    # Arrange
    store = LocationStore(database)
    Base.metadata.drop_all(database.engine)

    # Act
    with pytest.raises(ServiceError) as get_exc:
        await store.get(123)
    with pytest.raises(ServiceError) as delete_exc:
        await store.delete(123)

    # Assert
    assert get_exc.value.kind is ErrorKind.UNAVAILABLE
    assert "no such table" not in get_exc.value.message
    assert delete_exc.value.kind is ErrorKind.UNAVAILABLE
    assert delete_exc.value.message == "can not delete location '123'"


@pytest.mark.asyncio  # type: ignore[misc]
async def test_list_orders_by_country_then_city(database: Database) -> None:
    # Arrange
    store = LocationStore(database)
    for location in _locations():
        await store.save(location)

    # Act
    result = await store.list()

    # Assert
    assert [(loc.country_code, loc.city_name) for loc in result] == [
        ("GB", "London"),
        ("PL", "Krakow"),
        ("PL", "Warsaw"),
    ]


@pytest.mark.asyncio  # type: ignore[misc]
async def test_list_on_empty_table_returns_empty_list(
    database: Database,
) -> None:
    # Act
    result = await LocationStore(database).list()

    # Assert
    assert result == []


@pytest.mark.asyncio  # type: ignore[misc]
async def test_save_duplicate_identifier_raises_conflict(
    database: Database, warsaw: Location
) -> None:
    # Arrange
    store = LocationStore(database)
    await store.save(warsaw)
    duplicate = Location(
        location_id=756135,
        city_name="Warszawa",
        country_code="PL",
        latitude=52.23,
        longitude=21.01,
    )

    # Act
    with pytest.raises(ServiceError) as exc_info:
        await store.save(duplicate)

    # Assert
    assert exc_info.value.kind is ErrorKind.CONFLICT


@pytest.mark.asyncio  # type: ignore[misc]
async def test_save_duplicate_city_and_country_raises_conflict(
    database: Database, warsaw: Location
) -> None:
    # Arrange
    store = LocationStore(database)
    await store.save(warsaw)
    same_city = Location(
        location_id=1,
        city_name="Warsaw",
        country_code="PL",
        latitude=0.0,
        longitude=0.0,
    )

    # Act
    with pytest.raises(ServiceError) as exc_info:
        await store.save(same_city)

    # Assert
    assert exc_info.value.kind is ErrorKind.CONFLICT
    assert exc_info.value.message == "location 'Warsaw,PL' already exists"


@pytest.mark.asyncio  # type: ignore[misc]
async def test_delete_removes_row_and_second_delete_is_not_found(
    database: Database, warsaw: Location
) -> None:
    # Arrange
    store = LocationStore(database)
    await store.save(warsaw)

    # Act
    await store.delete(756135)
    with pytest.raises(ServiceError) as exc_info:
        await store.delete(756135)

    # Assert
    assert exc_info.value.kind is ErrorKind.NOT_FOUND
    assert exc_info.value.message == "location '756135' does not exist"
    assert await store.list() == []
