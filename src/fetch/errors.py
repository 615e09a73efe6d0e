"""Mapping of transport exceptions onto FetchError kinds."""

import httpx

from src.fetch.models import FetchError, FetchErrorKind
from src.fetch.validators import RequestValidationError


class DeadlineExceededError(TimeoutError):
    """Raised when the whole exchange outlives the request timeout."""

    def __init__(self, timeout_ms: int) -> None:
        """Initialize the error.

        Args:
            timeout_ms: The timeout that was exceeded.
        """
        super().__init__(f"No complete response within {timeout_ms} ms")
        self.timeout_ms = timeout_ms


class MalformedResponseError(Exception):
    """Raised when a response parses but cannot be represented as received."""


# Exceptions folded into a FetchError; anything else propagates.
FETCH_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.HTTPError,
    httpx.InvalidURL,
    TimeoutError,
    RequestValidationError,
    MalformedResponseError,
)


def classify_exception(exc: Exception) -> FetchError:
    """Classify an exception raised while fetching.

    Order matters: ConnectTimeout is both a timeout and a connect failure
    and is reported as TIMEOUT.

    Args:
        exc: One of FETCH_EXCEPTIONS.

    Returns:
        The corresponding FetchError.
    """
    detail = str(exc) or type(exc).__name__

    if isinstance(exc, RequestValidationError | httpx.InvalidURL):
        return FetchError(kind=FetchErrorKind.INVALID_URL, detail=detail)
    if isinstance(exc, httpx.UnsupportedProtocol):
        return FetchError(kind=FetchErrorKind.INVALID_URL, detail=detail)
    if isinstance(exc, httpx.TimeoutException | TimeoutError):
        return FetchError(
            kind=FetchErrorKind.TIMEOUT, detail=f"Request timed out: {detail}"
        )
    if isinstance(exc, httpx.ConnectError | httpx.ProxyError):
        return FetchError(
            kind=FetchErrorKind.CONNECTION_FAILED,
            detail=f"Connection failed: {detail}",
        )
    return FetchError(
        kind=FetchErrorKind.PROTOCOL_ERROR,
        detail=f"{type(exc).__name__}: {detail}",
    )
