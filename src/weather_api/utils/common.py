import os
import re
from typing import Any

from src.weather_api.errors import INVALID_LOCATION_ID, ErrorKind, ServiceError

# ASCII digits only: int() also takes "1_000" and non-Latin digits.
DECIMAL_ID = re.compile(r"[+-]?[0-9]+")


def get_env_var(name: str) -> str:
    """Read a required setting from the process environment.

    Only the configuration layer calls this; services receive their values
    through `Settings`.

    Raises:
        EnvironmentError: If the variable is unset or empty.
    """
    value = os.environ.get(name)
    if not value:
        raise EnvironmentError(f"{name} environment variable not set")
    return value


def parse_location_id(raw: Any) -> int:
    """Convert a path parameter into a location identifier.

    Args:
        raw (Any): Integer or decimal string received from the caller.

    Returns:
        int: Parsed identifier.

    Raises:
        ServiceError: INVALID_INPUT when the value is not an integer.
    """
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if not isinstance(raw, str):
        raise ServiceError(ErrorKind.INVALID_INPUT, INVALID_LOCATION_ID)
    digits = raw.strip()
    if not DECIMAL_ID.fullmatch(digits):
        raise ServiceError(ErrorKind.INVALID_INPUT, INVALID_LOCATION_ID)
    return int(digits)
