from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, List

from sqlalchemy import Date, DateTime, Float, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.weather_api.models.base import Base

if TYPE_CHECKING:
    from .condition import Condition


def _today_utc() -> date:
    return datetime.now(timezone.utc).date()


class WeatherReading(Base):
    """One observation of the current weather for a location.

    `location_id` is a plain indexed column rather than a foreign key:
    deleting a location leaves its history in place. The conditions are
    owned by the reading and are written in the same transaction.

    Attributes:
        id (int): Primary key assigned by the database.
        location_id (int): Identifier of the observed location.
        temperature (float): Observed temperature.
        temp_min (float): Minimum temperature reported with the reading.
        temp_max (float): Maximum temperature reported with the reading.
        date (date): Observation date used for statistics grouping.
        created_at (datetime): Record creation timestamp (UTC).
        conditions (List[Condition]): Weather condition labels.
    """

    __tablename__ = "weather"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    location_id: Mapped[int] = mapped_column(
        Integer, nullable=False, index=True
    )
    temperature: Mapped[float] = mapped_column(Float, nullable=False)
    temp_min: Mapped[float] = mapped_column(Float, nullable=False)
    temp_max: Mapped[float] = mapped_column(Float, nullable=False)
    date: Mapped[date] = mapped_column(
        Date, nullable=False, default=_today_utc
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    conditions: Mapped[List["Condition"]] = relationship(
        "Condition",
        back_populates="reading",
        cascade="all, delete-orphan",
        order_by="Condition.id",
        lazy="selectin",
    )

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("conditions", [])
        super().__init__(**kwargs)
