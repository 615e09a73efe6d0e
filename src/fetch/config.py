"""Configuration model for the HTTP fetch layer."""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.fetch.constants import DEFAULT_TIMEOUT_MS, DEFAULT_USER_AGENT, MAX_TIMEOUT_MS
from src.fetch.models import FetchRequest, merge_headers


FORBIDDEN_DEFAULT_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})


class FetchConfig(BaseModel):
    """Immutable client configuration passed to a fetcher.

    Holds the defaults applied to every request a fetcher issues.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_timeout_ms: Annotated[int, Field(ge=1, le=MAX_TIMEOUT_MS)] = (
        DEFAULT_TIMEOUT_MS
    )
    http2: bool = Field(
        default=True, description="Offer HTTP/2 via ALPN, falling back to HTTP/1.1"
    )
    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )
    default_headers: dict[str, str] = Field(
        default_factory=dict, description="Headers sent unless the request sets them"
    )
    verify_tls: bool = True

    @field_validator("default_headers", mode="before")
    @classmethod
    def normalize_default_headers(cls, v: Any) -> dict[str, str]:
        """Collapse header names that differ only in case."""
        return merge_headers(v)

    @field_validator("default_headers")
    @classmethod
    def validate_no_auth_headers(cls, v: dict[str, str]) -> dict[str, str]:
        """Ensure no credentials are baked into the shared configuration."""
        for key in v:
            if key.lower() in FORBIDDEN_DEFAULT_HEADERS:
                msg = (
                    f"Header '{key}' must not be stored in config; "
                    "pass it on the request instead"
                )
                raise ValueError(msg)
        return v

    def timeout_for(self, request: FetchRequest) -> int:
        """Get the effective timeout for a request.

        Args:
            request: The request being sent.

        Returns:
            Timeout in milliseconds.
        """
        if request.timeout_ms is not None:
            return request.timeout_ms
        return self.default_timeout_ms

    def headers_for(self, request: FetchRequest) -> dict[str, str]:
        """Build the headers sent for a request.

        Request headers override configured defaults case-insensitively.

        Args:
            request: The request being sent.

        Returns:
            Complete headers dictionary.
        """
        return merge_headers(
            {"User-Agent": self.user_agent},
            self.default_headers,
            request.headers,
        )
