import logging
from typing import List, Optional

from src.weather_api.errors import (
    SERVICE_UNAVAILABLE,
    ErrorKind,
    ProviderError,
    ProviderErrorKind,
    ServiceError,
)
from src.weather_api.models import Location
from src.weather_api.services.location_store import LocationStore
from src.weather_api.services.open_weather_map_api_client_async import (
    WeatherPayload,
    WeatherProviderClient,
    build_city_query,
)
from src.weather_api.utils.common import parse_location_id

logger = logging.getLogger(__name__)


def provider_error_to_service_error(
    error: ProviderError, subject: str
) -> ServiceError:
    """Translate a provider failure into the domain error vocabulary.

    UPSTREAM_NOT_FOUND becomes NOT_FOUND naming `subject`; every other kind,
    timeouts included, becomes UNAVAILABLE.

    Args:
        error (ProviderError): Failure raised by the provider client.
        subject (str): What the caller asked for (a city query or an id).

    Returns:
        ServiceError: Error to raise towards the API layer.
    """
    if error.kind is ProviderErrorKind.UPSTREAM_NOT_FOUND:
        return ServiceError(
            ErrorKind.NOT_FOUND, f"location '{subject}' not found"
        )
    return ServiceError(ErrorKind.UNAVAILABLE, SERVICE_UNAVAILABLE)


class LocationOrchestrator:
    """Creates, reads, lists and deletes locations.

    Creation resolves the city through OpenWeatherMap, so the stored
    identifier and canonical name always come from the provider.

    Attributes:
        store (LocationStore): Location persistence.
        provider (WeatherProviderClient): OpenWeatherMap client.
    """

    def __init__(
        self, store: LocationStore, provider: WeatherProviderClient
    ) -> None:
        self.store = store
        self.provider = provider

    async def create_location(
        self, city_name: Optional[str], country_code: Optional[str] = None
    ) -> Location:
        """Resolve a city through the provider and store it.

        Steps:
          1) Validate that a city name was given
          2) Query the provider with "city[,country]"
          3) Reject the location if its provider id is already stored
          4) Insert the new row

        Args:
            city_name (Optional[str]): City to look up.
            country_code (Optional[str]): Optional country code narrowing the
                lookup.

        Returns:
            Location: The created location.

        Raises:
            ServiceError: INVALID_INPUT for a missing city name, NOT_FOUND if
                the provider does not know the city, CONFLICT if the
                location already exists, UNAVAILABLE for any provider or
                storage failure.
        """
        if not isinstance(city_name, str) or not city_name.strip():
            raise ServiceError(
                ErrorKind.INVALID_INPUT, "city_name is required"
            )
        if country_code is not None and not isinstance(country_code, str):
            raise ServiceError(
                ErrorKind.INVALID_INPUT, "country_code must be a string"
            )

        query = build_city_query(city_name, country_code)
        try:
            payload = await self.provider.fetch_by_city(
                city_name, country_code
            )
        except ProviderError as e:
            logger.error(
                f"Create location: provider lookup for '{query}' failed "
                f"({e.kind.value}): {e.message}"
            )
            raise provider_error_to_service_error(e, query) from e

        # The existence check is an optimization; the table constraints
        # decide when two creates race.
        try:
            await self.store.get(payload.id)
        except ServiceError as e:
            if e.kind is not ErrorKind.NOT_FOUND:
                raise
        else:
            logger.info(f"Create location: '{query}' already exists")
            raise ServiceError(
                ErrorKind.CONFLICT, f"location '{query}' already exists"
            )

        location = await self.store.save(location_from_payload(payload))
        logger.info(
            f"New location has been created: {location.location_id} "
            f"{location.city_name},{location.country_code}"
        )
        return location

    async def get_location(self, raw_id: object) -> Location:
        location_id = parse_location_id(raw_id)
        return await self.store.get(location_id)

    async def list_locations(self) -> List[Location]:
        return await self.store.list()

    async def delete_location(self, raw_id: object) -> None:
        location_id = parse_location_id(raw_id)
        await self.store.delete(location_id)
        logger.info(f"Location {location_id} has been deleted")


def location_from_payload(payload: WeatherPayload) -> Location:
    return Location(
        location_id=payload.id,
        city_name=payload.name,
        country_code=payload.country,
        latitude=payload.latitude,
        longitude=payload.longitude,
    )
