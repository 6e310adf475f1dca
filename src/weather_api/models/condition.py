from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.weather_api.models.base import Base

if TYPE_CHECKING:
    from .weather_reading import WeatherReading


class Condition(Base):
    __tablename__ = "conditions"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    weather_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("weather.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String, nullable=False)

    reading: Mapped["WeatherReading"] = relationship(
        "WeatherReading", back_populates="conditions"
    )
