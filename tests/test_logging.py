"""
Tests for the structured JSON log format.
"""

import json
import logging

from hrdesk.shared.infrastructure.logging import (
    CustomJsonFormatter,
    bind_correlation_id,
    log_anomaly,
    log_latency,
)


def _format(**extra) -> dict:
    formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="test")
    record = logging.LogRecord("hrdesk.test", logging.WARNING, __file__, 1, "Something happened", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


class TestJsonFormatter:

    def test_standard_fields(self):
        data = _format(request_id="ITM-7-0001")
        assert data["message"] == "Something happened"
        assert data["levelname"] == "WARNING"
        assert data["environment"] == "test"
        assert data["request_id"] == "ITM-7-0001"
        assert "timestamp" in data

    def test_correlation_id_from_context(self):
        bind_correlation_id("corr-1")
        try:
            assert _format()["correlation_id"] == "corr-1"
        finally:
            bind_correlation_id(None)
        assert "correlation_id" not in _format()

    def test_sensitive_values_are_redacted(self):
        data = _format(api_key="abc", session_token="xyz", service="Payroll")
        assert data["api_key"] == "***REDACTED***"
        assert data["session_token"] == "***REDACTED***"
        assert data["service"] == "Payroll"


class TestHelpers:

    def test_anomaly_is_a_warning_with_context(self, caplog):
        logger = logging.getLogger("hrdesk.test.anomaly")
        with caplog.at_level(logging.WARNING):
            log_anomaly(logger, "due_date_missing", "No rule", service="Payroll - Final Pay")
        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.anomaly == "due_date_missing"
        assert record.service == "Payroll - Final Pay"

    def test_latency_logged_even_on_error(self, caplog):
        logger = logging.getLogger("hrdesk.test.latency")
        with caplog.at_level(logging.INFO):
            try:
                with log_latency(logger, "lifecycle_action", action="Start"):
                    raise RuntimeError("boom")
            except RuntimeError:
                pass
        record = caplog.records[-1]
        assert record.getMessage() == "lifecycle_action completed"
        assert record.action == "Start"
        assert record.latency_ms >= 0
