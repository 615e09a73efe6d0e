"""Metrics collection for the HTTP fetch layer."""

import threading
from dataclasses import dataclass, field
from typing import ClassVar

from src.fetch.models import FetchErrorKind


@dataclass
class FetchMetrics:
    """Metrics for HTTP fetch operations.

    Singleton shared by every fetcher in the process. Tracks responses by
    status code, failures by error kind, bytes received and time spent.
    """

    responses_total: dict[int, int] = field(default_factory=dict)
    failures_total: dict[str, int] = field(default_factory=dict)
    bytes_total: int = 0
    duration_ms_total: float = 0.0
    fetch_count: int = 0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    _instance: ClassVar["FetchMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FetchMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_response(
        self, status_code: int, bytes_received: int, duration_ms: float
    ) -> None:
        """Record a received response.

        Args:
            status_code: HTTP status code.
            bytes_received: Body size in bytes.
            duration_ms: Time spent on the fetch.
        """
        with self._lock:
            self.responses_total[status_code] = (
                self.responses_total.get(status_code, 0) + 1
            )
            self.bytes_total += bytes_received
            self._record_fetch(duration_ms)

    def record_failure(self, kind: FetchErrorKind, duration_ms: float) -> None:
        """Record a failed fetch.

        Args:
            kind: Classification of the failure.
            duration_ms: Time spent before failing.
        """
        key = kind.value
        with self._lock:
            self.failures_total[key] = self.failures_total.get(key, 0) + 1
            self._record_fetch(duration_ms)

    def _record_fetch(self, duration_ms: float) -> None:
        # Caller holds _lock
        self.fetch_count += 1
        self.duration_ms_total += duration_ms

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "responses_total": dict(self.responses_total),
            "failures_total": dict(self.failures_total),
            "bytes_total": self.bytes_total,
            "duration_ms_total": self.duration_ms_total,
            "fetch_count": self.fetch_count,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Average fetch duration in milliseconds."""
        if self.fetch_count == 0:
            return 0.0
        return self.duration_ms_total / self.fetch_count
