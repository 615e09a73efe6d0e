"""Request validators run before any network I/O.

A validator is a plain callable that takes a FetchRequest and raises
RequestValidationError when the request must not be sent. Validators
compose with compose_validators.
"""

import re
from collections.abc import Callable
from urllib.parse import urlsplit

from src.fetch.constants import ALLOWED_SCHEMES
from src.fetch.models import FetchRequest


RequestValidator = Callable[[FetchRequest], None]

# RFC 7230 token characters
_HEADER_NAME_PATTERN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_WHITESPACE_PATTERN = re.compile(r"\s")


class RequestValidationError(ValueError):
    """Raised when a request fails validation."""

    def __init__(self, message: str, field: str = "url") -> None:
        """Initialize the error.

        Args:
            message: Human-readable reason.
            field: Request field that failed validation.
        """
        super().__init__(message)
        self.field = field


def validate_url(request: FetchRequest) -> None:
    """Require an absolute http(s) URL with a host.

    Args:
        request: Request to check.

    Raises:
        RequestValidationError: If the URL is not acceptable.
    """
    url = request.url
    if not url or _WHITESPACE_PATTERN.search(url):
        msg = f"URL must be non-empty and contain no whitespace: {url!r}"
        raise RequestValidationError(msg)

    try:
        parts = urlsplit(url)
        # Accessing port parses it; out-of-range values raise ValueError
        _ = parts.port
    except ValueError as e:
        msg = f"URL could not be parsed: {e}"
        raise RequestValidationError(msg) from e

    if not parts.scheme:
        msg = f"URL is not absolute: {url!r}"
        raise RequestValidationError(msg)
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        msg = f"Unsupported URL scheme '{parts.scheme}' (expected http or https)"
        raise RequestValidationError(msg)
    if not parts.hostname:
        msg = f"URL has no host: {url!r}"
        raise RequestValidationError(msg)


def validate_header_names(request: FetchRequest) -> None:
    """Require token header names and single-line header values.

    Args:
        request: Request to check.

    Raises:
        RequestValidationError: If a header cannot be sent as given.
    """
    for name, value in request.headers.items():
        if not _HEADER_NAME_PATTERN.match(name):
            msg = f"Invalid header name: {name!r}"
            raise RequestValidationError(msg, field="headers")
        if "\r" in value or "\n" in value:
            msg = f"Header '{name}' value contains a line break"
            raise RequestValidationError(msg, field="headers")
        if not value.isascii():
            msg = f"Header '{name}' value contains non-ASCII characters"
            raise RequestValidationError(msg, field="headers")


def compose_validators(*validators: RequestValidator) -> RequestValidator:
    """Combine validators into one that runs them in order.

    The first validator to raise stops the chain.

    Args:
        validators: Validators to run.

    Returns:
        A single validator.
    """

    def run_all(request: FetchRequest) -> None:
        for validator in validators:
            validator(request)

    return run_all


DEFAULT_VALIDATORS: tuple[RequestValidator, ...] = (validate_url, validate_header_names)
