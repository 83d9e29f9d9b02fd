"""Tests for Sentry integration module."""

from unittest.mock import patch

from api.exceptions import NotFoundError, ScanFailedError
from api.sentry import _before_send, _before_send_transaction, init_sentry, set_scan_context


class TestBeforeSend:
    """Tests for the before_send filter function."""

    def test_filters_client_errors(self):
        exc = NotFoundError("Task", "123")
        hint = {"exc_info": (NotFoundError, exc, None)}

        assert _before_send({"message": "not found"}, hint) is None

    def test_keeps_server_errors(self):
        exc = ScanFailedError("https://example.com", "timeout")
        hint = {"exc_info": (ScanFailedError, exc, None)}
        event = {"message": "scan failed"}

        assert _before_send(event, hint) is event

    def test_keeps_unexpected_exceptions(self):
        exc = RuntimeError("boom")
        hint = {"exc_info": (RuntimeError, exc, None)}

        assert _before_send({"message": "boom"}, hint) is not None

    def test_scrubs_sensitive_headers(self):
        event = {
            "request": {
                "headers": {"authorization": "Bearer secret", "cookie": "s=1", "accept": "*/*"}
            }
        }

        result = _before_send(event, {})

        headers = result["request"]["headers"]
        assert headers["authorization"] == "[Filtered]"
        assert headers["cookie"] == "[Filtered]"
        assert headers["accept"] == "*/*"


class TestBeforeSendTransaction:
    """Tests for the transaction filter."""

    def test_drops_health_and_metrics(self):
        assert _before_send_transaction({"transaction": "/api/health"}, {}) is None
        assert _before_send_transaction({"transaction": "/metrics"}, {}) is None

    def test_keeps_api_transactions(self):
        event = {"transaction": "/v1/scans"}
        assert _before_send_transaction(event, {}) is event


class TestInitSentry:
    """Tests for Sentry initialization."""

    def test_not_configured_without_dsn(self, settings):
        assert settings.sentry_dsn is None
        assert init_sentry() is False

    def test_scan_context_is_noop_when_not_initialized(self):
        with patch("api.sentry.sentry_sdk.set_tag") as set_tag:
            set_scan_context("example.com", "https://example.com")
        set_tag.assert_not_called()
