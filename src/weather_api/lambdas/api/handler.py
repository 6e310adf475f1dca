import asyncio
import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from src.weather_api.config import Settings, load_settings
from src.weather_api.errors import (
    SERVICE_UNAVAILABLE,
    ErrorKind,
    ServiceError,
)
from src.weather_api.services.db_service_async import Database
from src.weather_api.services.location_orchestrator import (
    LocationOrchestrator,
)
from src.weather_api.services.location_store import LocationStore
from src.weather_api.services.logger_service import get_logger
from src.weather_api.services.open_weather_map_api_client_async import (
    WeatherProviderClient,
)
from src.weather_api.services.secrets_manager_service_async import (
    AsyncSecretsManagerService,
)
from src.weather_api.services.statistics_aggregator import (
    StatisticsAggregator,
)
from src.weather_api.services.weather_ingestion_service import (
    WeatherIngestionService,
)
from src.weather_api.services.weather_store import WeatherStore
from src.weather_api.utils.serializers import (
    location_to_dict,
    locations_to_list,
    reading_to_dict,
    statistics_to_dict,
)

logger = get_logger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass
class Services:
    """Components needed to answer one invocation."""

    provider: WeatherProviderClient
    locations: LocationOrchestrator
    ingestion: WeatherIngestionService
    statistics: StatisticsAggregator


Operation = Callable[
    [Services, Dict[str, str], Dict[str, Any]],
    Awaitable[Tuple[int, Any]],
]


@lru_cache(maxsize=1)
def get_secrets_service() -> AsyncSecretsManagerService:
    """Return the secrets client kept for the life of the container.

    Decoded secrets live on this instance, so a warm container reads each
    secret from Secrets Manager once.
    """
    return AsyncSecretsManagerService()


@lru_cache(maxsize=4)
def get_database(db_url: str) -> Database:
    """Return the pooled `Database` for a URL.

    The instance is cached at module level so that warm Lambda invocations
    reuse the same engine and connection pool.
    """
    return Database(db_url)


def init_services(settings: Settings) -> Services:
    """Wire stores, the provider client and the orchestration services.

    Args:
        settings (Settings): Resolved configuration.

    Returns:
        Services: Ready-to-use service container. The caller must close
        `provider` when the invocation ends.
    """
    db = get_database(settings.db_url)
    location_store = LocationStore(db)
    weather_store = WeatherStore(db)
    provider = WeatherProviderClient(
        settings.api_url, settings.api_key, timeout=settings.timeout
    )

    return Services(
        provider=provider,
        locations=LocationOrchestrator(location_store, provider),
        ingestion=WeatherIngestionService(
            location_store, weather_store, provider
        ),
        statistics=StatisticsAggregator(location_store, weather_store),
    )


def parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """Decode the JSON request body of an API Gateway proxy event.

    Raises:
        ServiceError: INVALID_INPUT when the body is not a JSON object.
    """
    raw = event.get("body") or "{}"
    try:
        body = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ServiceError(
            ErrorKind.INVALID_INPUT, "invalid data input"
        ) from e
    if not isinstance(body, dict):
        raise ServiceError(ErrorKind.INVALID_INPUT, "invalid data input")
    return body


async def get_location(
    services: Services, params: Dict[str, str], event: Dict[str, Any]
) -> Tuple[int, Any]:
    location = await services.locations.get_location(params["location_id"])
    return 200, location_to_dict(location)


async def list_locations(
    services: Services, params: Dict[str, str], event: Dict[str, Any]
) -> Tuple[int, Any]:
    locations = await services.locations.list_locations()
    return 200, locations_to_list(locations)


async def create_location(
    services: Services, params: Dict[str, str], event: Dict[str, Any]
) -> Tuple[int, Any]:
    body = parse_body(event)
    location = await services.locations.create_location(
        body.get("city_name"), body.get("country_code") or None
    )
    return 201, location_to_dict(location)


async def delete_location(
    services: Services, params: Dict[str, str], event: Dict[str, Any]
) -> Tuple[int, Any]:
    location_id = params["location_id"]
    await services.locations.delete_location(location_id)
    return 200, {"message": f"location '{location_id}' has been deleted"}


async def get_weather(
    services: Services, params: Dict[str, str], event: Dict[str, Any]
) -> Tuple[int, Any]:
    reading = await services.ingestion.fetch_current_weather(
        params["location_id"]
    )
    return 200, reading_to_dict(reading)


async def get_statistics(
    services: Services, params: Dict[str, str], event: Dict[str, Any]
) -> Tuple[int, Any]:
    statistics = await services.statistics.get_statistics(
        params["location_id"]
    )
    return 200, statistics_to_dict(statistics)


ROUTES: List[Tuple[str, "re.Pattern[str]", Operation]] = [
    ("GET", re.compile(r"^/locations/?$"), list_locations),
    ("POST", re.compile(r"^/locations/?$"), create_location),
    (
        "GET",
        re.compile(r"^/locations/(?P<location_id>[^/]+)/?$"),
        get_location,
    ),
    (
        "DELETE",
        re.compile(r"^/locations/(?P<location_id>[^/]+)/?$"),
        delete_location,
    ),
    (
        "GET",
        re.compile(r"^/weather/(?P<location_id>[^/]+)/statistics/?$"),
        get_statistics,
    ),
    ("GET", re.compile(r"^/weather/(?P<location_id>[^/]+)/?$"), get_weather),
]


def route(
    method: str, path: str
) -> Tuple[Optional[Operation], Dict[str, str], int]:
    """Resolve an HTTP method and path to an operation.

    Returns:
        Tuple[Optional[Operation], Dict[str, str], int]: The operation (or
        None), the captured path parameters and the status to use when no
        operation matched: 404 for an unknown path, 405 when only the
        method is wrong.
    """
    path_matched = False
    for route_method, pattern, operation in ROUTES:
        match = pattern.match(path)
        if not match:
            continue
        path_matched = True
        if route_method == method.upper():
            return operation, match.groupdict(), 200
    return None, {}, 405 if path_matched else 404


def make_response(status_code: int, body: Any) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": dict(JSON_HEADERS),
        "body": json.dumps(body, ensure_ascii=False),
    }


async def dispatch(
    services: Services, event: Dict[str, Any]
) -> Dict[str, Any]:
    """Run the operation addressed by an API Gateway proxy event.

    Domain errors are answered with the status of their kind and their
    message; unexpected exceptions are logged and answered with 503
    without exposing their text.

    Args:
        services (Services): Initialized service container.
        event (Dict[str, Any]): API Gateway proxy event.

    Returns:
        Dict[str, Any]: Lambda proxy response.
    """
    method = str(event.get("httpMethod", "GET"))
    path = str(event.get("path", "/"))
    operation, params, miss_status = route(method, path)
    if operation is None:
        if miss_status == 404:
            message = "route not found"
        else:
            message = "method not allowed"
        return make_response(miss_status, {"error": message})

    try:
        status_code, body = await operation(services, params, event)
    except ServiceError as e:
        level = logging.ERROR
        if e.kind in (ErrorKind.NOT_FOUND, ErrorKind.INVALID_INPUT):
            level = logging.WARNING
        logger.log(
            level,
            f"{method} {path} failed: {e.message}",
            extra={
                "kind": e.kind.value,
                "status_code": e.http_status,
                "route": f"{method} {path}",
                "location_id": params.get("location_id"),
            },
        )
        return make_response(e.http_status, {"error": e.message})
    except Exception as e:
        logger.exception(f"🔥 Unexpected failure in {method} {path}: {e}")
        return make_response(503, {"error": SERVICE_UNAVAILABLE})

    return make_response(status_code, body)


async def async_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Asynchronous AWS Lambda handler entrypoint.

    Resolves configuration, wires the services, answers the request and
    releases the provider HTTP session before returning.

    Args:
        event (Dict[str, Any]): API Gateway proxy event.
        context (Any): Lambda context object (unused here).

    Returns:
        Dict[str, Any]: Lambda proxy response with `statusCode`, `headers`
        and JSON `body`.
    """
    try:
        settings = await load_settings(get_secrets_service())
        services = init_services(settings)
    except Exception as e:
        logger.exception(f"🔥 Service initialization failed: {e}")
        return make_response(503, {"error": SERVICE_UNAVAILABLE})

    try:
        return await dispatch(services, event)
    finally:
        await services.provider.close()


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Synchronous Lambda entrypoint that bridges to the async handler.

    Args:
        event (Dict[str, Any]): API Gateway proxy event.
        context (Any): Lambda context object.

    Returns:
        Dict[str, Any]: Lambda proxy response as produced by `async_handler`.
    """
    return asyncio.run(async_handler(event, context))
