import asyncio
import logging
from typing import List, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.weather_api.errors import SERVICE_UNAVAILABLE, ErrorKind, ServiceError
from src.weather_api.models import Location
from src.weather_api.services.db_service_async import Database

logger = logging.getLogger(__name__)


class LocationStore:
    """Persistence of `Location` rows.

    A missing row is always reported as NOT_FOUND and any other storage
    failure as UNAVAILABLE; the two are never merged. Uniqueness violations
    on save are reported as CONFLICT.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def get(self, location_id: int) -> Location:
        """Return the location with the given provider identifier.

        Raises:
            ServiceError: NOT_FOUND if there is no such row, UNAVAILABLE on
                any other database failure.
        """

        def _query() -> Location:
            with self.db.session() as session:
                location = session.get(Location, location_id)
                if location is None:
                    raise ServiceError(
                        ErrorKind.NOT_FOUND,
                        f"location '{location_id}' not found",
                    )
                return location

        try:
            return await asyncio.to_thread(_query)
        except SQLAlchemyError as e:
            logger.error(f"Failed to get location {location_id}: {e}")
            raise ServiceError(
                ErrorKind.UNAVAILABLE, SERVICE_UNAVAILABLE
            ) from e

    async def list(self) -> List[Location]:
        """Return every location ordered by country code, then city name.

        Returns an empty list when the table is empty.
        """

        def _query() -> Sequence[Location]:
            with self.db.session() as session:
                result = session.execute(
                    select(Location).order_by(
                        Location.country_code.asc(), Location.city_name.asc()
                    )
                )
                return result.scalars().all()

        try:
            return list(await asyncio.to_thread(_query))
        except SQLAlchemyError as e:
            logger.error(f"Failed to list locations: {e}")
            raise ServiceError(
                ErrorKind.UNAVAILABLE, SERVICE_UNAVAILABLE
            ) from e

    async def save(self, location: Location) -> Location:
        """Insert a new location row.

        The table's primary key and (city_name, country_code) constraint are
        the final guard against duplicates created concurrently.

        Raises:
            ServiceError: CONFLICT on a uniqueness violation, UNAVAILABLE on
                any other database failure.
        """

        def _query() -> Location:
            with self.db.session() as session:
                try:
                    session.add(location)
                    session.commit()
                except Exception:
                    session.rollback()
                    raise
                return location

        try:
            return await asyncio.to_thread(_query)
        except IntegrityError as e:
            logger.warning(
                f"Location {location.location_id} violates a uniqueness "
                f"constraint: {e.orig}"
            )
            raise ServiceError(
                ErrorKind.CONFLICT,
                f"location '{location.city_name},{location.country_code}' "
                "already exists",
            ) from e
        except SQLAlchemyError as e:
            logger.error(
                f"Failed to save location {location.location_id}: {e}"
            )
            raise ServiceError(
                ErrorKind.UNAVAILABLE, SERVICE_UNAVAILABLE
            ) from e

    async def delete(self, location_id: int) -> None:
        """Delete a location. Its weather history is left untouched.

        Raises:
            ServiceError: NOT_FOUND if no row was deleted, UNAVAILABLE on
                any other database failure.
        """

        def _query() -> int:
            with self.db.session() as session:
                try:
                    result = session.execute(
                        delete(Location).where(
                            Location.location_id == location_id
                        )
                    )
                    session.commit()
                except Exception:
                    session.rollback()
                    raise
                return int(result.rowcount)

        try:
            deleted = await asyncio.to_thread(_query)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete location {location_id}: {e}")
            raise ServiceError(
                ErrorKind.UNAVAILABLE,
                f"can not delete location '{location_id}'",
            ) from e

        if deleted == 0:
            raise ServiceError(
                ErrorKind.NOT_FOUND,
                f"location '{location_id}' does not exist",
            )
