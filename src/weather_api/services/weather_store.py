import asyncio
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import extract, func, select
from sqlalchemy.exc import SQLAlchemyError

from src.weather_api.errors import SERVICE_UNAVAILABLE, ErrorKind, ServiceError
from src.weather_api.models import (
    Condition,
    MonthTemperature,
    Statistics,
    WeatherReading,
)
from src.weather_api.services.db_service_async import Database

logger = logging.getLogger(__name__)


class WeatherStore:
    """Persistence of weather readings and the statistics derived from them.

    Attributes:
        db (Database): Pooled database shared with the location store.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def save_reading(self, reading: WeatherReading) -> WeatherReading:
        """Insert a reading together with its conditions atomically.

        The reading row and its conditions are flushed in one transaction:
        the unit of work inserts the reading first, stamps every condition
        with the new reading id and inserts the conditions. Only then is
        the transaction committed. If any insert fails the whole unit is
        rolled back, so no partial reading is ever visible to later reads.

        Args:
            reading (WeatherReading): Unsaved reading; its `conditions` list
                may be empty.

        Returns:
            WeatherReading: The persisted reading with ids assigned.

        Raises:
            ServiceError: UNAVAILABLE if the transaction could not be
                committed.
        """

        def _query() -> WeatherReading:
            with self.db.session() as session:
                try:
                    session.add(reading)
                    session.flush()
                    session.commit()
                except Exception:
                    session.rollback()
                    raise
                return reading

        try:
            saved = await asyncio.to_thread(_query)
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to save weather for location "
                f"{reading.location_id}, transaction rolled back: {e}"
            )
            raise ServiceError(
                ErrorKind.UNAVAILABLE, SERVICE_UNAVAILABLE
            ) from e

        logger.info(
            f"Saved weather reading {saved.id} with "
            f"{len(saved.conditions)} condition(s) for location "
            f"{saved.location_id}"
        )
        return saved

    async def get_statistics(self, location_id: int) -> Statistics:
        """Compute the statistics of a location's weather history.

        - `count`: number of stored readings.
        - `month_temperature`: per calendar month, min(temp_min),
          max(temp_max) and avg(temperature), labelled YYYY-MM and sorted
          ascending.
        - `daily_condition`: ISO date mapped to the distinct condition
          labels seen that day, in first-seen order. Days whose readings
          have no conditions map to an empty list.

        Raises:
            ServiceError: UNAVAILABLE on any database failure.
        """

        def _query() -> Statistics:
            with self.db.session() as session:
                count = session.execute(
                    select(func.count(WeatherReading.id)).where(
                        WeatherReading.location_id == location_id
                    )
                ).scalar_one()

                year = extract("year", WeatherReading.date)
                month = extract("month", WeatherReading.date)
                monthly_rows = session.execute(
                    select(
                        year.label("year"),
                        month.label("month"),
                        func.min(WeatherReading.temp_min),
                        func.max(WeatherReading.temp_max),
                        func.avg(WeatherReading.temperature),
                    )
                    .where(WeatherReading.location_id == location_id)
                    .group_by(year, month)
                    .order_by(year, month)
                ).all()

                daily_rows = session.execute(
                    select(WeatherReading.date, Condition.type)
                    .outerjoin(
                        Condition, Condition.weather_id == WeatherReading.id
                    )
                    .where(WeatherReading.location_id == location_id)
                    .order_by(
                        WeatherReading.date, WeatherReading.id, Condition.id
                    )
                ).all()

            return Statistics(
                count=int(count),
                month_temperature=[
                    MonthTemperature(
                        min=float(t_min),
                        max=float(t_max),
                        avg=float(t_avg),
                        month=f"{int(y):04d}-{int(m):02d}",
                    )
                    for y, m, t_min, t_max, t_avg in monthly_rows
                ],
                daily_condition=group_daily_conditions(daily_rows),
            )

        try:
            return await asyncio.to_thread(_query)
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to compute statistics for location "
                f"{location_id}: {e}"
            )
            raise ServiceError(
                ErrorKind.UNAVAILABLE, SERVICE_UNAVAILABLE
            ) from e


def group_daily_conditions(
    rows: Iterable[Tuple[Any, Optional[str]]],
) -> Dict[str, List[str]]:
    """Group (date, condition type) rows into first-seen distinct labels."""
    daily: Dict[str, List[str]] = {}
    for day, condition_type in rows:
        key = day.isoformat() if isinstance(day, date) else str(day)
        labels = daily.setdefault(key, [])
        if condition_type is not None and condition_type not in labels:
            labels.append(condition_type)
    return daily
