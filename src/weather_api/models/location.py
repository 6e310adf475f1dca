from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.weather_api.models.base import Base


class Location(Base):
    """A named place tracked by the service.

    The primary key is the identifier assigned by OpenWeatherMap, it is
    never generated locally. A (city_name, country_code) pair may appear
    only once. Rows are never updated in place: a location is deleted and
    created again instead.

    Attributes:
        location_id (int): Provider-assigned identifier and primary key.
        city_name (str): Canonical city name reported by the provider.
        country_code (str): Short country code, e.g. "PL".
        latitude (float): Latitude in decimal degrees.
        longitude (float): Longitude in decimal degrees.
        created_at (datetime): Record creation timestamp (UTC).
    """

    __tablename__ = "locations"
    __table_args__ = (
        UniqueConstraint(
            "city_name",
            "country_code",
            name="uq_locations_city_name_country_code",
        ),
    )

    location_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=False
    )
    city_name: Mapped[str] = mapped_column(String, nullable=False)
    country_code: Mapped[str] = mapped_column(String(10), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    longitude: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"Location(location_id={self.location_id!r}, "
            f"city_name={self.city_name!r}, "
            f"country_code={self.country_code!r})"
        )
