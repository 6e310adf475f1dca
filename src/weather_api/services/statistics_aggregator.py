import logging

from src.weather_api.errors import ErrorKind, ServiceError
from src.weather_api.models import Statistics
from src.weather_api.services.location_store import LocationStore
from src.weather_api.services.weather_store import WeatherStore
from src.weather_api.utils.common import parse_location_id

logger = logging.getLogger(__name__)


class StatisticsAggregator:
    """Serves weather statistics of stored locations.

    The location must exist: unknown identifiers are answered with
    NOT_FOUND rather than with zeroed statistics.
    """

    def __init__(
        self, locations: LocationStore, weather: WeatherStore
    ) -> None:
        self.locations = locations
        self.weather = weather

    async def get_statistics(self, raw_id: object) -> Statistics:
        location_id = parse_location_id(raw_id)

        try:
            await self.locations.get(location_id)
        except ServiceError as e:
            if e.kind is ErrorKind.NOT_FOUND:
                raise ServiceError(
                    ErrorKind.NOT_FOUND,
                    f"location '{location_id}' does not exist",
                ) from e
            raise

        return await self.weather.get_statistics(location_id)
