import logging

from src.weather_api.errors import ProviderError, ServiceError
from src.weather_api.models import Condition, WeatherReading
from src.weather_api.services.location_orchestrator import (
    provider_error_to_service_error,
)
from src.weather_api.services.location_store import LocationStore
from src.weather_api.services.open_weather_map_api_client_async import (
    WeatherPayload,
    WeatherProviderClient,
)
from src.weather_api.services.weather_store import WeatherStore
from src.weather_api.utils.common import parse_location_id

logger = logging.getLogger(__name__)


class WeatherIngestionService:
    """Fetches current weather for a stored location and records it.

    Attributes:
        locations (LocationStore): Used to confirm the location exists.
        weather (WeatherStore): Persistence of readings.
        provider (WeatherProviderClient): OpenWeatherMap client.
    """

    def __init__(
        self,
        locations: LocationStore,
        weather: WeatherStore,
        provider: WeatherProviderClient,
    ) -> None:
        self.locations = locations
        self.weather = weather
        self.provider = provider

    async def fetch_current_weather(self, raw_id: object) -> WeatherReading:
        """Fetch, persist and return the current weather of a location.

        Args:
            raw_id (object): Location identifier as received by the API.

        Returns:
            WeatherReading: The stored reading, including its id and
            conditions.

        Raises:
            ServiceError: INVALID_INPUT for a malformed id, NOT_FOUND if the
                location is unknown locally or upstream, UNAVAILABLE for
                any other provider or storage failure.
        """
        location_id = parse_location_id(raw_id)
        await self.locations.get(location_id)

        try:
            payload = await self.provider.fetch_by_id(location_id)
        except ProviderError as e:
            logger.error(
                f"Get weather: provider call for location {location_id} "
                f"failed ({e.kind.value}): {e.message}"
            )
            raise provider_error_to_service_error(e, str(location_id)) from e

        reading = reading_from_payload(location_id, payload)
        try:
            return await self.weather.save_reading(reading)
        except ServiceError:
            logger.error(f"Get weather: reading for {location_id} not saved")
            raise


def reading_from_payload(
    location_id: int, payload: WeatherPayload
) -> WeatherReading:
    return WeatherReading(
        location_id=location_id,
        temperature=payload.temperature,
        temp_min=payload.temp_min,
        temp_max=payload.temp_max,
        conditions=[Condition(type=label) for label in payload.conditions],
    )
