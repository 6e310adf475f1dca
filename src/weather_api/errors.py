from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Complete failure vocabulary shared by every service component.

    Each kind maps onto exactly one HTTP status so that the API layer can
    answer deterministically without inspecting the underlying cause.
    """

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.UNAVAILABLE: 503,
}

SERVICE_UNAVAILABLE = "service is unavailable"
INVALID_LOCATION_ID = "location_id must be an integer"


class ServiceError(Exception):
    """Domain failure raised by stores and orchestration services.

    The message is safe to show to API callers: it never contains driver or
    transport error text. The original exception, when there is one, is
    chained via `raise ... from`.

    Attributes:
        kind (ErrorKind): Classification of the failure.
        message (str): Short human-readable description.
    """

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def http_status(self) -> int:
        return self.kind.http_status

    def __repr__(self) -> str:
        return f"ServiceError({self.kind.name}, {self.message!r})"


class ProviderErrorKind(str, Enum):
    """Outcome classes of a failed call to the weather provider, in the
    order they are checked."""

    TIMEOUT = "timeout"
    UPSTREAM_NOT_FOUND = "upstream_not_found"
    UPSTREAM_ERROR = "upstream_error"
    MALFORMED_PAYLOAD = "malformed_payload"


class ProviderError(Exception):
    """Failure raised by the OpenWeatherMap client.

    Attributes:
        kind (ProviderErrorKind): Classification of the failure.
        message (str): Description for logs; may include upstream text.
        status (Optional[int]): HTTP status returned by the provider, if a
            response was received at all.
    """

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status = status
