"""Data models for the HTTP fetch layer."""

import codecs
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Annotated, Any, Self, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.fetch.constants import (
    DEFAULT_ENCODING,
    HTTP_STATUS_MAX,
    HTTP_STATUS_MIN,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    MAX_TIMEOUT_MS,
)


HeaderSource = Mapping[str, str] | Iterable[tuple[str, str]] | None


def merge_headers(*sources: HeaderSource) -> dict[str, str]:
    """Merge header sources with case-insensitive names.

    Later writes win, including the spelling of the header name.

    Args:
        sources: Mappings or (name, value) pairs, applied in order.

    Returns:
        Merged headers dictionary.
    """
    merged: dict[str, tuple[str, str]] = {}
    for source in sources:
        if not source:
            continue
        items = source.items() if isinstance(source, Mapping) else source
        for name, value in items:
            merged[name.lower()] = (name, value)
    return dict(merged.values())


class HttpMethod(str, Enum):
    """HTTP request methods supported by the fetcher."""

    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"


class FetchRequest(BaseModel):
    """A single HTTP request.

    The URL is kept as a plain string; it is checked by the fetcher before
    any network I/O so that a malformed URL surfaces as an INVALID_URL
    result rather than a construction error.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: HttpMethod = HttpMethod.GET
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes | None = None
    timeout_ms: Annotated[int, Field(gt=0, le=MAX_TIMEOUT_MS)] | None = Field(
        default=None, description="Overrides the fetcher default when set"
    )

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        """Accept method names in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("headers", mode="before")
    @classmethod
    def normalize_headers(cls, v: Any) -> dict[str, str]:
        """Collapse header names that differ only in case."""
        return merge_headers(v)


class FetchResponse(BaseModel):
    """Response exactly as received from the server."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_code: int = Field(ge=HTTP_STATUS_MIN, le=HTTP_STATUS_MAX)
    url: Annotated[str, Field(min_length=1)]
    headers: dict[str, str] = Field(
        default_factory=dict, description="Lowercase header names"
    )
    body: bytes = b""
    http_version: str = "HTTP/1.1"
    encoding: str | None = Field(
        default=None, description="Charset declared by the server, if any"
    )

    @field_validator("headers", mode="before")
    @classmethod
    def lowercase_headers(cls, v: Any) -> dict[str, str]:
        """Store header names lowercased, joining repeats with commas."""
        if v is None:
            return {}
        items = v.items() if isinstance(v, Mapping) else v
        result: dict[str, str] = {}
        for name, value in items:
            key = name.lower()
            result[key] = f"{result[key]}, {value}" if key in result else value
        return result

    @property
    def is_success(self) -> bool:
        """Check if the status code is 2xx."""
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    @property
    def body_size(self) -> int:
        """Get the size of the response body in bytes."""
        return len(self.body)

    @property
    def text(self) -> str:
        """Decode the body using the declared charset, falling back to UTF-8."""
        encoding = self.encoding or DEFAULT_ENCODING
        try:
            codecs.lookup(encoding)
        except LookupError:
            encoding = DEFAULT_ENCODING
        return self.body.decode(encoding, errors="replace")

    def header(self, name: str) -> str | None:
        """Look up a response header case-insensitively."""
        return self.headers.get(name.lower())


class FetchErrorKind(str, Enum):
    """Classification of fetch failures.

    - TIMEOUT: No complete response within the timeout
    - CONNECTION_FAILED: TCP/TLS connection could not be established
    - INVALID_URL: URL rejected before any network I/O
    - PROTOCOL_ERROR: Malformed or truncated response
    """

    TIMEOUT = "TIMEOUT"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    INVALID_URL = "INVALID_URL"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"


class FetchError(BaseModel):
    """Typed error from a fetch operation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: FetchErrorKind
    detail: Annotated[str, Field(min_length=1, description="Human-readable detail")]

    def describe(self) -> str:
        """Format the error as ``KIND: detail``."""
        return f"{self.kind.value}: {self.detail}"


class FetchFailedError(Exception):
    """Raised by FetchResult.unwrap when the fetch failed."""

    def __init__(self, error: FetchError) -> None:
        """Initialize the exception.

        Args:
            error: The fetch error being raised.
        """
        super().__init__(error.describe())
        self.error = error


class FetchResult(BaseModel):
    """Outcome of a fetch: exactly one of response or error is set."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    response: FetchResponse | None = None
    error: FetchError | None = None

    @model_validator(mode="after")
    def check_exactly_one(self) -> Self:
        """Ensure the result carries either a response or an error."""
        if (self.response is None) == (self.error is None):
            msg = "FetchResult requires exactly one of response or error"
            raise ValueError(msg)
        return self

    @classmethod
    def ok(cls, response: FetchResponse) -> "FetchResult":
        """Build a successful result."""
        return cls(response=response)

    @classmethod
    def failed(cls, error: FetchError) -> "FetchResult":
        """Build a failed result."""
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        """Check if a response was received."""
        return self.response is not None

    def unwrap(self) -> FetchResponse:
        """Return the response or raise the error.

        Returns:
            The received response.

        Raises:
            FetchFailedError: If the fetch failed.
        """
        if self.error is not None:
            raise FetchFailedError(self.error)
        # Exactly one of response and error is set
        return cast(FetchResponse, self.response)
