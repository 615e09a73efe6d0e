"""Asyncio counterpart of HttpFetcher."""

import asyncio
import time
from collections.abc import Sequence
from io import BytesIO

import httpx
import structlog

from src.fetch.client import BaseFetcher
from src.fetch.config import FetchConfig
from src.fetch.errors import FETCH_EXCEPTIONS
from src.fetch.models import FetchRequest, FetchResponse, FetchResult
from src.fetch.redact import redact_headers
from src.fetch.validators import RequestValidator


class AsyncHttpFetcher(BaseFetcher):
    """Asyncio HTTP fetcher with the same contract as HttpFetcher.

    The calling task suspends until the response arrives or the timeout
    elapses; the whole exchange runs under a single asyncio.timeout.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        validators: Sequence[RequestValidator] = (),
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Client configuration; defaults apply when omitted.
            validators: Extra validators run before any network I/O.
            transport: Async transport override, mainly for tests.
        """
        super().__init__(config, validators)
        self._transport = transport

    async def fetch(self, request: FetchRequest) -> FetchResult:
        """Send one request and await the response or the timeout.

        Args:
            request: The request to send.

        Returns:
            FetchResult carrying either the response or a FetchError.
        """
        start_ns = time.perf_counter_ns()
        log = self._bind_request(request)

        try:
            self._validate(request)
            timeout_ms = self._config.timeout_for(request)
            async with asyncio.timeout(timeout_ms / 1000.0):
                response = await self._send(request, timeout_ms, log)
        except FETCH_EXCEPTIONS as e:
            return self._failed(e, start_ns, log)

        return self._completed(response, start_ns, log)

    async def _send(
        self,
        request: FetchRequest,
        timeout_ms: int,
        log: structlog.stdlib.BoundLogger,
    ) -> FetchResponse:
        headers = self._config.headers_for(request)
        log.debug(
            "fetch_start",
            headers=redact_headers(headers),
            timeout_ms=timeout_ms,
        )

        async with httpx.AsyncClient(
            transport=self._transport, **self._client_options(timeout_ms)
        ) as client:
            self._strip_default_headers(client)
            async with client.stream(
                request.method.value,
                request.url,
                headers=headers,
                content=request.body,
            ) as response:
                if response.is_stream_consumed:
                    return self._to_response(response, response.content)
                buffer = BytesIO()
                async for chunk in response.aiter_raw():
                    buffer.write(chunk)
                return self._to_response(response, buffer.getvalue())
