"""Unit tests for fetch metrics."""

import threading

from src.fetch.metrics import FetchMetrics
from src.fetch.models import FetchErrorKind


class TestFetchMetrics:
    """Tests for FetchMetrics."""

    def test_singleton_and_reset(self) -> None:
        """get_instance is shared until reset."""
        first = FetchMetrics.get_instance()

        assert FetchMetrics.get_instance() is first

        FetchMetrics.reset()

        assert FetchMetrics.get_instance() is not first

    def test_records_responses_and_failures(self) -> None:
        """Responses and failures are counted separately."""
        metrics = FetchMetrics.get_instance()

        metrics.record_response(200, 100, duration_ms=10.0)
        metrics.record_response(200, 50, duration_ms=20.0)
        metrics.record_response(404, 0, duration_ms=5.0)
        metrics.record_failure(FetchErrorKind.TIMEOUT, duration_ms=25.0)

        assert metrics.to_dict() == {
            "responses_total": {200: 2, 404: 1},
            "failures_total": {"TIMEOUT": 1},
            "bytes_total": 150,
            "duration_ms_total": 60.0,
            "fetch_count": 4,
        }
        assert metrics.avg_duration_ms == 15.0

    def test_avg_duration_without_fetches(self) -> None:
        """The average is zero before any fetch."""
        assert FetchMetrics.get_instance().avg_duration_ms == 0.0

    def test_concurrent_records_are_not_lost(self) -> None:
        """Counts stay exact when many threads record at once."""
        metrics = FetchMetrics.get_instance()
        threads_count = 8
        per_thread = 2_000

        def record() -> None:
            for _ in range(per_thread):
                metrics.record_response(200, 1, 0.5)
                metrics.record_failure(FetchErrorKind.TIMEOUT, 0.5)

        threads = [threading.Thread(target=record) for _ in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        total = threads_count * per_thread
        assert metrics.responses_total == {200: total}
        assert metrics.failures_total == {"TIMEOUT": total}
        assert metrics.bytes_total == total
        assert metrics.fetch_count == 2 * total
