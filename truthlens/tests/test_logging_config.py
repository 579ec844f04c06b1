"""Tests for logging helpers and the metrics collector."""

import json
import logging

import pytest

from truthlens.utils.logging_config import (
    ConsoleFormatter,
    JSONFormatter,
    MetricsCollector,
    RequestContextFilter,
    log_execution_time,
    redact,
    request_id_var,
)


def make_record(message, **extra_data):
    record = logging.LogRecord("truthlens.test", logging.WARNING, __file__, 1, message, (), None)
    if extra_data:
        record.extra_data = extra_data
    return record


class TestRedaction:
    def test_api_key_masked(self):
        line = "Network error: https://translation.googleapis.com/v2?key=AIzaSecret&q=x"
        assert redact(line) == "Network error: https://translation.googleapis.com/v2?key=***&q=x"

    def test_filter_redacts_and_stamps_request_id(self):
        token = request_id_var.set("req-7")
        try:
            record = make_record("GET /models?key=AIzaSecret failed")
            RequestContextFilter().filter(record)
        finally:
            request_id_var.reset(token)
        assert record.request_id == "req-7"
        assert "AIzaSecret" not in record.getMessage()

    def test_json_formatter(self):
        record = make_record("Story generation failed", error="timeout")
        record.request_id = "req-1"
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "Story generation failed"
        assert data["request_id"] == "req-1"
        assert data["data"] == {"error": "timeout"}

    def test_console_formatter_appends_context(self):
        line = ConsoleFormatter().format(make_record("Analysis completed", analysis_id="analysis_1"))
        assert line.endswith("Analysis completed | analysis_id=analysis_1")


class TestMetricsCollector:
    def test_fallback_rates(self):
        collector = MetricsCollector()
        for _ in range(4):
            collector.increment("analysis.requests")
        collector.increment("analysis.fallback.analysis")

        rates = collector.get_stats()["fallback_rates"]
        assert rates["analysis"] == 0.25
        assert rates["detailed_report"] == 0.0

    def test_no_requests_no_division(self):
        assert MetricsCollector().get_stats()["fallback_rates"]["analysis"] == 0.0

    def test_timing_window(self):
        collector = MetricsCollector()
        for i in range(MetricsCollector.MAX_SAMPLES + 10):
            collector.timing("timing.analyze", float(i))
        summary = collector.get_stats()["timings"]["timing.analyze"]
        assert summary["count"] == MetricsCollector.MAX_SAMPLES
        assert summary["min"] == 10.0

    def test_execution_time_recorded_on_failure(self):
        from truthlens.utils.logging_config import metrics

        @log_execution_time("truthlens.test")
        def explode():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            explode()
        assert metrics.get_stats()["timings"]["timing.explode"]["count"] == 1
