"""Unit tests for fetch metrics."""

from collections.abc import Generator

import pytest

from wirefetch.fetch.errors import FetchErrorClass
from wirefetch.fetch.metrics import FetchMetrics


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None, None, None]:
    """Give every test a fresh metrics singleton."""
    FetchMetrics.reset()
    yield
    FetchMetrics.reset()


class TestFetchMetrics:
    """Tests for FetchMetrics."""

    def test_singleton(self) -> None:
        """get_instance returns the same object until reset."""
        first = FetchMetrics.get_instance()

        assert FetchMetrics.get_instance() is first

        FetchMetrics.reset()
        assert FetchMetrics.get_instance() is not first

    def test_record_request(self) -> None:
        """Requests are counted by status and wire bytes summed."""
        metrics = FetchMetrics.get_instance()
        metrics.record_request(301, 0)
        metrics.record_request(200, 120)
        metrics.record_request(200, 30)

        assert metrics.http_requests_total == {301: 1, 200: 2}
        assert metrics.wire_bytes_total == 150

    def test_record_failure(self) -> None:
        """Failures are counted by class."""
        metrics = FetchMetrics.get_instance()
        metrics.record_failure(FetchErrorClass.REDIRECT_LOOP)
        metrics.record_failure(FetchErrorClass.REDIRECT_LOOP)

        assert metrics.failures_total == {"REDIRECT_LOOP": 2}

    def test_average_duration(self) -> None:
        """Average duration is computed over completed fetches."""
        metrics = FetchMetrics.get_instance()

        assert metrics.avg_duration_ms == 0.0

        metrics.record_fetch(10, 20.0)
        metrics.record_fetch(10, 40.0)

        assert metrics.avg_duration_ms == 30.0
        assert metrics.content_bytes_total == 20

    def test_to_dict(self) -> None:
        """to_dict exposes every counter."""
        metrics = FetchMetrics.get_instance()
        metrics.record_redirect()
        metrics.record_decompression_fallback()
        metrics.record_undecoded_body()
        metrics.record_data_uri()

        data = metrics.to_dict()

        assert data["redirects_total"] == 1
        assert data["decompression_fallbacks_total"] == 1
        assert data["undecoded_bodies_total"] == 1
        assert data["data_uris_total"] == 1
