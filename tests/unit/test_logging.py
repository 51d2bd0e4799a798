"""Unit tests for logging configuration."""

import io
import json
import logging

import structlog

from wirefetch.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    parse_level,
)


class TestParseLevel:
    """Tests for level parsing."""

    def test_names(self) -> None:
        """Level names map to logging constants."""
        assert parse_level("debug") == logging.DEBUG
        assert parse_level("WARNING") == logging.WARNING

    def test_unknown_defaults_to_info(self) -> None:
        """Unknown names fall back to INFO."""
        assert parse_level("chatty") == logging.INFO

    def test_numeric_passthrough(self) -> None:
        """Numeric levels are returned unchanged."""
        assert parse_level(logging.ERROR) == logging.ERROR


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output_with_context(self) -> None:
        """JSON lines carry the event and bound request id."""
        output = io.StringIO()
        configure_logging(level=logging.INFO, output=output, json_format=True)
        bind_request_context("req-1")
        try:
            structlog.get_logger().info("fetch_complete", status_code=200)
        finally:
            clear_request_context()
            structlog.reset_defaults()

        line = json.loads(output.getvalue().strip().splitlines()[-1])
        assert line["event"] == "fetch_complete"
        assert line["request_id"] == "req-1"
        assert line["level"] == "info"

    def test_level_filtering(self) -> None:
        """Messages below the level are dropped."""
        output = io.StringIO()
        configure_logging(level=logging.WARNING, output=output, json_format=True)
        try:
            structlog.get_logger().info("hidden")
        finally:
            structlog.reset_defaults()

        assert output.getvalue() == ""
