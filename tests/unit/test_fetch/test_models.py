"""Unit tests for fetch request, response and result models."""

import pytest
from pydantic import ValidationError

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


class TestMergeHeaders:
    """Tests for case-insensitive header merging."""

    def test_last_write_wins_case_insensitive(self) -> None:
        """A later header differing only in case replaces the earlier one."""
        result = merge_headers({"Accept": "text/html"}, {"accept": "application/json"})

        assert result == {"accept": "application/json"}

    def test_pairs_are_applied_in_order(self) -> None:
        """Pairs are merged in iteration order."""
        result = merge_headers([("X-Trace", "1"), ("X-TRACE", "2"), ("Accept", "*/*")])

        assert result == {"X-TRACE": "2", "Accept": "*/*"}

    def test_none_and_empty_sources_are_skipped(self) -> None:
        """Missing sources contribute nothing."""
        assert merge_headers(None, {}, {"A": "1"}) == {"A": "1"}


class TestFetchRequest:
    """Tests for FetchRequest."""

    def test_defaults(self) -> None:
        """A bare URL makes a GET with no headers and no timeout override."""
        request = FetchRequest(url="https://example.com/")

        assert request.method == HttpMethod.GET
        assert request.headers == {}
        assert request.body is None
        assert request.timeout_ms is None

    def test_method_is_case_insensitive(self) -> None:
        """Method names are accepted in any case."""
        assert FetchRequest(method="post", url="http://x.test/").method == HttpMethod.POST

    def test_unknown_method_rejected(self) -> None:
        """Unsupported methods fail at construction."""
        with pytest.raises(ValidationError):
            FetchRequest(method="BREW", url="http://x.test/")

    @pytest.mark.parametrize("timeout_ms", [0, -1, 600_001])
    def test_timeout_must_be_in_range(self, timeout_ms: int) -> None:
        """Timeouts must be positive and bounded."""
        with pytest.raises(ValidationError):
            FetchRequest(url="http://x.test/", timeout_ms=timeout_ms)

    def test_headers_collapse_case_variants(self) -> None:
        """Header names differing only in case keep the last value."""
        request = FetchRequest(
            url="http://x.test/",
            headers=[("Accept", "text/html"), ("ACCEPT", "application/json")],
        )

        assert request.headers == {"ACCEPT": "application/json"}

    def test_string_body_encoded_as_bytes(self) -> None:
        """A str body is stored as bytes."""
        request = FetchRequest(method="POST", url="http://x.test/", body="hi")

        assert request.body == b"hi"

    def test_request_is_immutable(self) -> None:
        """Requests cannot be modified after construction."""
        request = FetchRequest(url="http://x.test/")

        with pytest.raises(ValidationError):
            request.url = "http://other.test/"  # type: ignore[misc]

    def test_malformed_url_is_accepted_by_model(self) -> None:
        """URL checks belong to the fetcher, not the model."""
        assert FetchRequest(url="not a url").url == "not a url"


class TestFetchResponse:
    """Tests for FetchResponse."""

    def test_headers_lowercased_and_repeats_joined(self) -> None:
        """Header names are stored lowercase; repeats are comma-joined."""
        response = FetchResponse(
            status_code=200,
            url="http://x.test/",
            headers=[("Set-Cookie", "a=1"), ("set-cookie", "b=2"), ("ETag", '"v1"')],
        )

        assert response.headers == {"set-cookie": "a=1, b=2", "etag": '"v1"'}
        assert response.header("ETAG") == '"v1"'
        assert response.header("Missing") is None

    @pytest.mark.parametrize("status_code", [99, 600])
    def test_status_code_range(self, status_code: int) -> None:
        """Status codes must be within 100-599."""
        with pytest.raises(ValidationError):
            FetchResponse(status_code=status_code, url="http://x.test/")

    @pytest.mark.parametrize(
        ("status_code", "expected"), [(200, True), (204, True), (304, False), (404, False)]
    )
    def test_is_success(self, status_code: int, expected: bool) -> None:
        """Only 2xx counts as success."""
        response = FetchResponse(status_code=status_code, url="http://x.test/")

        assert response.is_success is expected

    def test_text_uses_declared_encoding(self) -> None:
        """The declared charset decodes the body."""
        response = FetchResponse(
            status_code=200,
            url="http://x.test/",
            body="café".encode("latin-1"),
            encoding="latin-1",
        )

        assert response.text == "café"

    def test_text_falls_back_to_utf8(self) -> None:
        """Missing or unknown charsets decode as UTF-8 with replacement."""
        unknown = FetchResponse(
            status_code=200, url="http://x.test/", body=b"ok\xff", encoding="no-such"
        )
        missing = FetchResponse(status_code=200, url="http://x.test/", body=b"hello")

        assert unknown.text == "ok�"
        assert missing.text == "hello"

    def test_body_size(self) -> None:
        """body_size counts raw bytes."""
        response = FetchResponse(status_code=200, url="http://x.test/", body=b"hello")

        assert response.body_size == 5


class TestFetchResult:
    """Tests for the response-or-error result."""

    def test_ok_result_unwraps(self) -> None:
        """A successful result returns its response."""
        response = FetchResponse(status_code=404, url="http://x.test/missing")
        result = FetchResult.ok(response)

        assert result.is_ok is True
        assert result.error is None
        assert result.unwrap() is response

    def test_failed_result_raises_on_unwrap(self) -> None:
        """unwrap raises FetchFailedError carrying the error."""
        error = FetchError(kind=FetchErrorKind.TIMEOUT, detail="Request timed out")
        result = FetchResult.failed(error)

        assert result.is_ok is False
        with pytest.raises(FetchFailedError) as exc_info:
            result.unwrap()

        assert exc_info.value.error == error
        assert str(exc_info.value) == "TIMEOUT: Request timed out"

    def test_requires_exactly_one_outcome(self) -> None:
        """Neither or both outcomes are rejected."""
        response = FetchResponse(status_code=200, url="http://x.test/")
        error = FetchError(kind=FetchErrorKind.INVALID_URL, detail="bad")

        with pytest.raises(ValidationError):
            FetchResult()
        with pytest.raises(ValidationError):
            FetchResult(response=response, error=error)


class TestFetchError:
    """Tests for FetchError."""

    def test_describe(self) -> None:
        """describe formats kind and detail."""
        error = FetchError(kind=FetchErrorKind.PROTOCOL_ERROR, detail="bad header")

        assert error.describe() == "PROTOCOL_ERROR: bad header"

    def test_detail_required(self) -> None:
        """An empty detail is rejected."""
        with pytest.raises(ValidationError):
            FetchError(kind=FetchErrorKind.TIMEOUT, detail="")
