from sqlalchemy import Date, DateTime, Float, Integer, String
from sqlalchemy.orm import attributes

from src.weather_api.models import Condition, Location, WeatherReading


def test_location_table_columns_and_constraints() -> None:
    # Arrange
    table = Location.__table__

    # Act
    cols = set(table.columns.keys())
    pk_col = table.columns["location_id"]

    # Assert
    expected = {
        "location_id",
        "city_name",
        "country_code",
        "latitude",
        "longitude",
        "created_at",
    }
    assert expected.issubset(cols)

    assert pk_col.primary_key
    assert pk_col.autoincrement is False
    assert isinstance(table.columns["country_code"].type, String)
    assert getattr(table.columns["country_code"].type, "length", None) == 10
    assert isinstance(table.columns["latitude"].type, Float)

    constraint_names = {
        getattr(c, "name", None) for c in getattr(table, "constraints", [])
    }
    assert "uq_locations_city_name_country_code" in constraint_names


def test_weather_table_references_location_without_foreign_key() -> None:
    # Arrange
    table = WeatherReading.__table__

    # Act
    cols = set(table.columns.keys())
    location_col = table.columns["location_id"]

    # Assert
    expected = {
        "id",
        "location_id",
        "temperature",
        "temp_min",
        "temp_max",
        "date",
        "created_at",
    }
    assert expected.issubset(cols)
    assert table.name == "weather"
    assert isinstance(location_col.type, Integer)
    assert not location_col.foreign_keys
    assert location_col.index
    assert isinstance(table.columns["date"].type, Date)
    assert isinstance(table.columns["created_at"].type, DateTime)

    assert isinstance(
        getattr(WeatherReading, "conditions"),
        attributes.InstrumentedAttribute,
    )


def test_condition_table_cascades_from_weather() -> None:
    # Arrange
    table = Condition.__table__

    # Act
    fks = list(table.columns["weather_id"].foreign_keys)

    # Assert
    assert table.name == "conditions"
    assert [str(fk.column) for fk in fks] == ["weather.id"]
    assert fks[0].ondelete == "CASCADE"
    assert table.columns["type"].nullable is False


def test_weather_reading_starts_with_empty_condition_list() -> None:
    # Act
    reading = WeatherReading(
        location_id=1, temperature=1.0, temp_min=0.0, temp_max=2.0
    )

    # Assert
    assert reading.conditions == []
