"""HTTP fetch layer: one request per call, typed failures.

This module provides:
- HttpFetcher and AsyncHttpFetcher issuing a single request with a bounded
  timeout, HTTP/2 negotiation and caller-supplied headers
- Immutable request, response and result models
- Validators run before any network I/O
- Header redaction and metrics for observability
"""

from src.fetch.async_client import AsyncHttpFetcher
from src.fetch.client import HttpFetcher
from src.fetch.config import FetchConfig
from src.fetch.constants import DEFAULT_TIMEOUT_MS
from src.fetch.errors import classify_exception
from src.fetch.metrics import FetchMetrics
from src.fetch.models import (
    FetchError,
    FetchErrorKind,
    FetchFailedError,
    FetchRequest,
    FetchResponse,
    FetchResult,
    HttpMethod,
    merge_headers,
)
from src.fetch.redact import redact_headers, redact_url_credentials
from src.fetch.validators import (
    RequestValidationError,
    RequestValidator,
    compose_validators,
    validate_header_names,
    validate_url,
)


__all__ = [
    # Clients
    "HttpFetcher",
    "AsyncHttpFetcher",
    # Config
    "FetchConfig",
    # Models
    "HttpMethod",
    "FetchRequest",
    "FetchResponse",
    "FetchResult",
    "FetchError",
    "FetchErrorKind",
    "FetchFailedError",
    "merge_headers",
    # Validation
    "RequestValidator",
    "RequestValidationError",
    "compose_validators",
    "validate_url",
    "validate_header_names",
    # Errors
    "classify_exception",
    # Constants
    "DEFAULT_TIMEOUT_MS",
    # Metrics
    "FetchMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
