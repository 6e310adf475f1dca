import logging
import os
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import URL

from src.weather_api.services.secrets_manager_service_async import (
    AsyncSecretsManagerService,
)
from src.weather_api.utils.common import get_env_var

logger = logging.getLogger(__name__)

DEFAULT_DB_DRIVER = "postgresql+psycopg2"
DEFAULT_PROVIDER_TIMEOUT = 4.0


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, built once at startup.

    Components receive the values they need through their constructors and
    never read the process environment on their own.

    Attributes:
        db_url (str): SQLAlchemy database URL.
        api_url (str): Base URL of the OpenWeatherMap API,
            e.g. "https://api.openweathermap.org/data/2.5".
        api_key (str): OpenWeatherMap API key (sent as `appid`).
        timeout (float): Total timeout of one provider call, in seconds.
    """

    db_url: str
    api_url: str
    api_key: str
    timeout: float = DEFAULT_PROVIDER_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from plain environment variables.

        Required: DB_USER, DB_DATABASE, DB_ADDRESS, OPEN_WEATHER_MAP_URL,
        OPEN_WEATHER_MAP_TOKEN. Optional: DB_PASSWORD, DB_DRIVER,
        OPEN_WEATHER_MAP_TIMEOUT.

        Raises:
            EnvironmentError: If a required variable is missing or empty.
            ValueError: If DB_ADDRESS or the timeout cannot be parsed.
        """
        return cls(
            db_url=build_db_url_from_env(),
            api_url=get_env_var("OPEN_WEATHER_MAP_URL"),
            api_key=get_env_var("OPEN_WEATHER_MAP_TOKEN"),
            timeout=_timeout_from_env(),
        )


def build_db_url_from_env() -> str:
    user = get_env_var("DB_USER")
    database = get_env_var("DB_DATABASE")
    address = get_env_var("DB_ADDRESS")
    password = os.environ.get("DB_PASSWORD") or None
    driver = os.environ.get("DB_DRIVER") or DEFAULT_DB_DRIVER

    host, _, port = address.partition(":")
    url = URL.create(
        drivername=driver,
        username=user,
        password=password,
        host=host or None,
        port=int(port) if port else None,
        database=database,
    )
    return url.render_as_string(hide_password=False)


def _timeout_from_env() -> float:
    raw = os.environ.get("OPEN_WEATHER_MAP_TIMEOUT")
    if not raw:
        return DEFAULT_PROVIDER_TIMEOUT
    timeout = float(raw)
    if timeout <= 0:
        raise ValueError("OPEN_WEATHER_MAP_TIMEOUT must be positive")
    return timeout


async def load_settings(
    secrets: Optional[AsyncSecretsManagerService] = None,
) -> Settings:
    """Resolve settings, preferring Secrets Manager when it is configured.

    When SECRET_NAME_DB is set, the database URL is read from the `db_url`
    key of that secret instead of the DB_* variables. When SECRET_NAME_API
    is set, the API key is read from its `openweathermap` key instead of
    OPEN_WEATHER_MAP_TOKEN.

    Args:
        secrets (Optional[AsyncSecretsManagerService]): Secrets client; one
            is created on demand if omitted.

    Returns:
        Settings: Fully resolved configuration.

    Raises:
        ValueError: If a configured secret lacks the expected key.
        EnvironmentError: If a required environment variable is missing.
    """
    secret_name_db = os.environ.get("SECRET_NAME_DB")
    secret_name_api = os.environ.get("SECRET_NAME_API")
    if not secret_name_db and not secret_name_api:
        return Settings.from_env()

    secrets = secrets or AsyncSecretsManagerService()

    if secret_name_db:
        secrets_db = await secrets.get_secret(secret_name_db)
        db_url = secrets_db.get("db_url")
        if not isinstance(db_url, str) or not db_url:
            raise ValueError(
                "Database URL (db_url) missing or invalid in secrets"
            )
    else:
        db_url = build_db_url_from_env()

    if secret_name_api:
        secrets_api = await secrets.get_secret(secret_name_api)
        api_key = secrets_api.get("openweathermap")
        if not api_key:
            raise ValueError("OpenWeatherMap API key not found in secrets")
    else:
        api_key = get_env_var("OPEN_WEATHER_MAP_TOKEN")

    logger.info("Configuration loaded from Secrets Manager")
    return Settings(
        db_url=db_url,
        api_url=get_env_var("OPEN_WEATHER_MAP_URL"),
        api_key=str(api_key),
        timeout=_timeout_from_env(),
    )
