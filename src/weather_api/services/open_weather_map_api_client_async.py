import asyncio
import json
import logging
import ssl
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union
from urllib.parse import urlencode

import aiohttp
import certifi

from src.weather_api.errors import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 4.0

QueryValue = Union[str, int]


@dataclass(frozen=True)
class WeatherPayload:
    """Subset of an OpenWeatherMap "current weather" document.

    Attributes:
        id (int): Provider identifier of the location.
        name (str): Canonical city name.
        country (str): Country code from `sys.country`.
        latitude (float): `coord.lat`.
        longitude (float): `coord.lon`.
        temperature (float): `main.temp`.
        temp_min (float): `main.temp_min`.
        temp_max (float): `main.temp_max`.
        conditions (List[str]): `main` label of every `weather[]` entry.
    """

    id: int
    name: str
    country: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    temperature: float = 0.0
    temp_min: float = 0.0
    temp_max: float = 0.0
    conditions: List[str] = field(default_factory=list)


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be an object, got {type(value)}")
    return value


def _number(
    data: Mapping[str, Any], key: str, default: float = 0.0
) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}' must be a number, got {type(value)}")
    return float(value)


def _typed(
    data: Mapping[str, Any],
    key: str,
    expected: Union[Type[Any], Tuple[Type[Any], ...]],
    default: Any = None,
) -> Any:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, expected):
        raise ValueError(f"'{key}' has unexpected type {type(value)}")
    return value


def parse_weather_payload(data: Any) -> WeatherPayload:
    """Validate raw provider JSON and extract a `WeatherPayload`.

    `id` and `name` are mandatory; absent `coord`, `main`, `sys` and
    `weather` sections fall back to zero/empty values. A value of the
    wrong type anywhere is rejected.

    Args:
        data (Any): JSON document decoded from the response body.

    Returns:
        WeatherPayload: Parsed payload.

    Raises:
        ValueError: If the document does not have the expected shape.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected dict from API, got {type(data)}")

    coord = _section(data, "coord")
    main = _section(data, "main")
    sys_section = _section(data, "sys")

    descriptions = data.get("weather") or []
    if not isinstance(descriptions, list):
        raise ValueError("'weather' must be a list")
    conditions: List[str] = []
    for entry in descriptions:
        if not isinstance(entry, dict):
            raise ValueError("'weather' entries must be objects")
        conditions.append(_typed(entry, "main", str))

    return WeatherPayload(
        id=_typed(data, "id", int),
        name=_typed(data, "name", str),
        country=_typed(sys_section, "country", str, ""),
        latitude=_number(coord, "lat"),
        longitude=_number(coord, "lon"),
        temperature=_number(main, "temp"),
        temp_min=_number(main, "temp_min"),
        temp_max=_number(main, "temp_max"),
        conditions=conditions,
    )


def _upstream_message(body: str) -> str:
    try:
        decoded = json.loads(body)
    except ValueError:
        return body[:200]
    if isinstance(decoded, dict) and "message" in decoded:
        return str(decoded["message"])
    return body[:200]


class WeatherProviderClient:
    """Async client for the OpenWeatherMap "current weather" endpoint.

    Every failure is classified into exactly one `ProviderErrorKind`, checked
    in this order: TIMEOUT (the configured total timeout elapsed),
    UPSTREAM_NOT_FOUND (HTTP 404), UPSTREAM_ERROR (any other non-2xx status
    or transport failure) and MALFORMED_PAYLOAD (2xx body that is not a
    valid weather document). Requests are never retried.

    The client owns a pooled `aiohttp.ClientSession`, created lazily on the
    first request and released by `close()` or by leaving the
    `async with` block.

    Attributes:
        api_url (str): Base URL of the OpenWeatherMap API.
        api_key (str): API key used for authenticating requests.
        timeout (float): Total timeout of one request, in seconds.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "WeatherProviderClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def build_weather_url(self, params: Mapping[str, QueryValue]) -> str:
        """Build the "current weather" endpoint URL.

        The API key always comes first, followed by the query parameters in
        the order given.

        Args:
            params (Mapping[str, QueryValue]): Query parameters such as
                `{"q": "Warsaw,PL"}` or `{"id": 756135}`.

        Returns:
            str: Fully formed URL ready to be fetched.
        """
        query: Dict[str, QueryValue] = {"appid": self.api_key}
        query.update(params)
        return f"{self.api_url}/weather?{urlencode(query)}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(ssl=ssl_context),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Release the pooled HTTP session if this client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    async def fetch(self, params: Mapping[str, QueryValue]) -> WeatherPayload:
        """Retrieve current weather for an arbitrary query.

        Args:
            params (Mapping[str, QueryValue]): Query parameters appended to
                the endpoint URL.

        Returns:
            WeatherPayload: Parsed provider document.

        Raises:
            ProviderError: On any failure, classified by kind.
        """
        url = self.build_weather_url(params)
        session = self._get_session()

        try:
            async with session.get(
                url, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                status = response.status
                raw = await response.read()
        except asyncio.TimeoutError as e:
            logger.error(f"OpenWeatherMap request timed out: {params}")
            raise ProviderError(
                ProviderErrorKind.TIMEOUT,
                f"request exceeded {self.timeout}s",
            ) from e
        except aiohttp.ClientError as e:
            logger.error(f"OpenWeatherMap transport error: {e}")
            raise ProviderError(
                ProviderErrorKind.UPSTREAM_ERROR, f"transport error: {e}"
            ) from e

        body = raw.decode("utf-8", errors="replace")
        if status == 404:
            raise ProviderError(
                ProviderErrorKind.UPSTREAM_NOT_FOUND,
                _upstream_message(body),
                status,
            )
        if not 200 <= status < 300:
            message = _upstream_message(body)
            logger.error(f"OpenWeatherMap responded {status}: {message}")
            raise ProviderError(
                ProviderErrorKind.UPSTREAM_ERROR, message, status
            )

        try:
            return parse_weather_payload(json.loads(body))
        except ValueError as e:
            logger.error(f"Malformed OpenWeatherMap payload: {e}")
            raise ProviderError(
                ProviderErrorKind.MALFORMED_PAYLOAD,
                f"{e} body=({body[:200]})",
                status,
            ) from e

    async def fetch_by_id(self, location_id: int) -> WeatherPayload:
        return await self.fetch({"id": location_id})

    async def fetch_by_city(
        self, city_name: str, country_code: Optional[str] = None
    ) -> WeatherPayload:
        query = build_city_query(city_name, country_code)
        return await self.fetch({"q": query})


def build_city_query(
    city_name: str, country_code: Optional[str] = None
) -> str:
    """Return the `q` parameter value: "city" or "city,country"."""
    query = city_name.strip()
    if country_code and country_code.strip():
        query += f",{country_code.strip()}"
    return query
