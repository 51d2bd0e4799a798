"""Metrics collection for the fetch layer."""

from dataclasses import dataclass, field
from typing import ClassVar

from wirefetch.fetch.errors import FetchErrorClass


@dataclass
class FetchMetrics:
    """Metrics for fetch operations.

    Singleton class that tracks request counts, redirects, decompression
    fallbacks, and failures.
    """

    http_requests_total: dict[int, int] = field(default_factory=dict)
    redirects_total: int = 0
    decompression_fallbacks_total: int = 0
    undecoded_bodies_total: int = 0
    data_uris_total: int = 0
    failures_total: dict[str, int] = field(default_factory=dict)
    wire_bytes_total: int = 0
    content_bytes_total: int = 0
    duration_ms_total: float = 0.0
    fetch_count: int = 0

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

    def record_request(self, status_code: int, wire_bytes: int) -> None:
        """Record a single HTTP exchange.

        Args:
            status_code: HTTP status code.
            wire_bytes: Number of body bytes received over the wire.
        """
        self.http_requests_total[status_code] = (
            self.http_requests_total.get(status_code, 0) + 1
        )
        self.wire_bytes_total += wire_bytes

    def record_redirect(self) -> None:
        """Record a followed redirect."""
        self.redirects_total += 1

    def record_decompression_fallback(self) -> None:
        """Record a body decoded with a different coding than declared."""
        self.decompression_fallbacks_total += 1

    def record_undecoded_body(self) -> None:
        """Record a terminal response left without a decoded body."""
        self.undecoded_bodies_total += 1

    def record_data_uri(self) -> None:
        """Record a resolved data URI."""
        self.data_uris_total += 1

    def record_failure(self, error_class: FetchErrorClass) -> None:
        """Record a failed fetch.

        Args:
            error_class: Classification of the failure.
        """
        key = error_class.value
        self.failures_total[key] = self.failures_total.get(key, 0) + 1

    def record_fetch(self, content_bytes: int, duration_ms: float) -> None:
        """Record a completed fetch.

        Args:
            content_bytes: Size of the decompressed body.
            duration_ms: Duration of the whole call in milliseconds.
        """
        self.content_bytes_total += content_bytes
        self.duration_ms_total += duration_ms
        self.fetch_count += 1

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "http_requests_total": dict(self.http_requests_total),
            "redirects_total": self.redirects_total,
            "decompression_fallbacks_total": self.decompression_fallbacks_total,
            "undecoded_bodies_total": self.undecoded_bodies_total,
            "data_uris_total": self.data_uris_total,
            "failures_total": dict(self.failures_total),
            "wire_bytes_total": self.wire_bytes_total,
            "content_bytes_total": self.content_bytes_total,
            "duration_ms_total": self.duration_ms_total,
            "fetch_count": self.fetch_count,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average fetch duration.

        Returns:
            Average duration in milliseconds.
        """
        if self.fetch_count == 0:
            return 0.0
        return self.duration_ms_total / self.fetch_count
