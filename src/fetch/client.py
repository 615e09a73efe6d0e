"""HTTP client issuing one request per call with typed failures."""

import time
from collections.abc import Sequence
from io import BytesIO
from typing import Any

import httpx
import structlog

from src.fetch.config import FetchConfig
from src.fetch.constants import HTTP_STATUS_MAX, HTTP_STATUS_MIN
from src.fetch.deadline import DeadlineWatchdog
from src.fetch.errors import (
    FETCH_EXCEPTIONS,
    DeadlineExceededError,
    MalformedResponseError,
    classify_exception,
)
from src.fetch.metrics import FetchMetrics
from src.fetch.models import FetchError, FetchRequest, FetchResponse, FetchResult
from src.fetch.redact import redact_headers, redact_url_credentials
from src.fetch.validators import (
    DEFAULT_VALIDATORS,
    RequestValidator,
    compose_validators,
)


logger = structlog.get_logger()


class BaseFetcher:
    """Request preparation, response conversion and reporting.

    Shared by the blocking and the asyncio fetchers; subclasses only
    implement the transport exchange.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        validators: Sequence[RequestValidator] = (),
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Client configuration; defaults apply when omitted.
            validators: Extra validators run after the built-in URL and
                header checks.
        """
        self._config = config or FetchConfig()
        self._validate = compose_validators(*DEFAULT_VALIDATORS, *validators)
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch")

    @property
    def config(self) -> FetchConfig:
        """The immutable configuration this fetcher was built with."""
        return self._config

    def _bind_request(self, request: FetchRequest) -> structlog.stdlib.BoundLogger:
        return self._log.bind(
            method=request.method.value,
            url=redact_url_credentials(request.url),
        )

    def _client_options(self, timeout_ms: int) -> dict[str, Any]:
        """Keyword arguments shared by httpx.Client and httpx.AsyncClient."""
        return {
            "http2": self._config.http2,
            "verify": self._config.verify_tls,
            "timeout": httpx.Timeout(timeout_ms / 1000.0),
            "follow_redirects": False,
            "trust_env": False,
        }

    @staticmethod
    def _strip_default_headers(client: httpx.Client | httpx.AsyncClient) -> None:
        """Drop httpx defaults that would alter the body the server sends."""
        client.headers.pop("Accept-Encoding", None)

    @staticmethod
    def _to_response(response: httpx.Response, body: bytes) -> FetchResponse:
        """Convert an httpx response without interpreting it.

        Raises:
            MalformedResponseError: If the status code is outside 100-599.
        """
        status_code = response.status_code
        if not HTTP_STATUS_MIN <= status_code <= HTTP_STATUS_MAX:
            msg = f"Invalid status code {status_code}"
            raise MalformedResponseError(msg)
        return FetchResponse(
            status_code=status_code,
            url=str(response.url),
            headers=response.headers.multi_items(),
            body=body,
            http_version=response.http_version,
            encoding=response.charset_encoding,
        )

    def _completed(
        self,
        response: FetchResponse,
        start_ns: int,
        log: structlog.stdlib.BoundLogger,
    ) -> FetchResult:
        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        self._metrics.record_response(
            response.status_code, response.body_size, duration_ms
        )
        log.info(
            "fetch_complete",
            status_code=response.status_code,
            bytes=response.body_size,
            http_version=response.http_version,
            duration_ms=round(duration_ms, 2),
        )
        return FetchResult.ok(response)

    def _failed(
        self,
        exc: Exception,
        start_ns: int,
        log: structlog.stdlib.BoundLogger,
    ) -> FetchResult:
        error: FetchError = classify_exception(exc)
        duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
        self._metrics.record_failure(error.kind, duration_ms)
        log.warning(
            "fetch_failed",
            error_kind=error.kind.value,
            detail=error.detail,
            duration_ms=round(duration_ms, 2),
        )
        return FetchResult.failed(error)


class HttpFetcher(BaseFetcher):
    """Blocking HTTP fetcher.

    Each call opens its own connection, offers HTTP/2 (falling back to
    HTTP/1.1 when the server does not negotiate it), sends the request and
    returns the response exactly as received. No redirects are followed and
    nothing is retried; a 404 or 500 is a normal response.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        validators: Sequence[RequestValidator] = (),
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Client configuration; defaults apply when omitted.
            validators: Extra validators run before any network I/O.
            transport: Transport override, mainly for tests.
        """
        super().__init__(config, validators)
        self._transport = transport

    def fetch(self, request: FetchRequest) -> FetchResult:
        """Send one request and wait for the response or the timeout.

        Args:
            request: The request to send.

        Returns:
            FetchResult carrying either the response or a FetchError.
        """
        start_ns = time.perf_counter_ns()
        log = self._bind_request(request)

        try:
            self._validate(request)
            response = self._send(request, log)
        except FETCH_EXCEPTIONS as e:
            return self._failed(e, start_ns, log)

        return self._completed(response, start_ns, log)

    def _send(
        self,
        request: FetchRequest,
        log: structlog.stdlib.BoundLogger,
    ) -> FetchResponse:
        timeout_ms = self._config.timeout_for(request)
        headers = self._config.headers_for(request)
        deadline = time.monotonic() + timeout_ms / 1000.0

        log.debug(
            "fetch_start",
            headers=redact_headers(headers),
            timeout_ms=timeout_ms,
        )

        with (
            DeadlineWatchdog(timeout_ms) as watchdog,
            httpx.Client(
                transport=self._transport, **self._client_options(timeout_ms)
            ) as client,
        ):
            self._strip_default_headers(client)
            try:
                with client.stream(
                    request.method.value,
                    request.url,
                    headers=headers,
                    content=request.body,
                    extensions={"trace": watchdog.trace},
                ) as response:
                    body = self._read_body(response, deadline, timeout_ms)
                    return self._to_response(response, body)
            except Exception as e:
                # The watchdog shut the socket down; whatever broke is the deadline
                if watchdog.expired:
                    raise DeadlineExceededError(timeout_ms) from e
                raise

    @staticmethod
    def _read_body(
        response: httpx.Response,
        deadline: float,
        timeout_ms: int,
    ) -> bytes:
        """Read the raw body, enforcing the overall deadline between chunks.

        Transports that hand back an already-read response (httpx.MockTransport
        with ``content=``) are returned as read.

        Raises:
            DeadlineExceededError: If the deadline passes mid-body.
        """
        buffer = BytesIO()
        if time.monotonic() > deadline:
            raise DeadlineExceededError(timeout_ms)
        if response.is_stream_consumed:
            return response.content

        for chunk in response.iter_raw():
            buffer.write(chunk)
            if time.monotonic() > deadline:
                raise DeadlineExceededError(timeout_ms)

        return buffer.getvalue()
