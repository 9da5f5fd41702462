"""
Unit tests for configuration and exchange logging.
"""

import json
import logging

import pytest

from httpfuture.config import FutureConfig, configure_logging
from httpfuture.http.request import RequestDescriptor
from httpfuture.http.status import HTTPResult, TransportErrorResult
from httpfuture.log import ExchangeLog, log_exchange


class TestFutureConfig:
    """Tests for FutureConfig."""

    def test_defaults_are_valid(self):
        """Test that the default configuration validates."""
        config = FutureConfig()
        config.validate()

        assert config.default_timeout == 300.0
        assert config.max_continue_responses == 10

    def test_from_env(self, monkeypatch):
        """Test reading settings from environment variables."""
        monkeypatch.setenv("HTTPFUTURE_TIMEOUT", "12.5")
        monkeypatch.setenv("HTTPFUTURE_WORKERS", "3")
        monkeypatch.setenv("HTTPFUTURE_MAX_CONTINUE", "2")
        monkeypatch.setenv("HTTPFUTURE_LOG_FORMAT", "json")

        config = FutureConfig.from_env()

        assert config.default_timeout == 12.5
        assert config.max_workers == 3
        assert config.max_continue_responses == 2
        assert config.log_format == "json"

    @pytest.mark.parametrize("overrides", [
        {"default_timeout": 0},
        {"default_timeout": float("inf")},
        {"buffer_size": 10},
        {"max_continue_responses": -1},
        {"min_workers": 0},
        {"min_workers": 5, "max_workers": 2},
        {"queue_size": 0},
        {"log_format": "xml"},
    ])
    def test_validate_rejects(self, overrides):
        """Test that bad values fail fast."""
        with pytest.raises(ValueError):
            FutureConfig(**overrides).validate()

    def test_configure_logging(self):
        """Test that the package logger level follows the config."""
        configure_logging(FutureConfig(log_level="debug"))

        assert logging.getLogger("httpfuture").level == logging.DEBUG


class TestExchangeLog:
    """Tests for per-exchange log records."""

    def test_text_format(self):
        """Test the human-readable rendering."""
        entry = ExchangeLog("GET", "http://x/", "HTTP/200", False, 5, 12.345, "t")

        assert entry.to_text() == "GET http://x/ -> HTTP/200 5B 12.35ms"

    def test_json_format(self, caplog):
        """Test JSON output on the exchange logger."""
        request = RequestDescriptor("http://example.test/")

        with caplog.at_level(logging.INFO, logger="httpfuture.exchange"):
            log_exchange(request, HTTPResult(200, b"hello"), 0.01, log_format="json")

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["status"] == "HTTP/200"
        assert payload["body_bytes"] == 5
        assert payload["is_error"] is False
        assert caplog.records[-1].levelno == logging.INFO

    def test_error_logged_as_warning(self, caplog):
        """Test that error results log at WARNING."""
        request = RequestDescriptor("http://example.test/")

        with caplog.at_level(logging.INFO, logger="httpfuture.exchange"):
            entry = log_exchange(request, TransportErrorResult.timeout(1.0), 1.0)

        assert entry.status == "Transport/timeout"
        assert entry.body_bytes == 0
        assert caplog.records[-1].levelno == logging.WARNING
