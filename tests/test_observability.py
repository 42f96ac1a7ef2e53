"""Tests for log context, structured logging and metrics."""

import logging
import os
from unittest.mock import patch

import pytest

from image_request.core.observability import (
    LogContext,
    MetricsCollector,
    PerformanceMetrics,
    StructuredLogger,
)


class TestLogContext:
    """Tests for LogContext."""

    def test_correlation_id_generated(self):
        assert LogContext().correlation_id != LogContext().correlation_id

    def test_with_operation_keeps_correlation_id(self):
        context = LogContext(operation="image_request", component="pipeline")
        derived = context.with_operation("decode")

        assert derived.correlation_id == context.correlation_id
        assert derived.operation == "decode"
        assert derived.component == "pipeline"

    def test_with_metadata_does_not_mutate_original(self):
        context = LogContext(metadata={"bucket": "validBucket"})
        derived = context.with_metadata(key="validKey")

        assert context.metadata == {"bucket": "validBucket"}
        assert derived.metadata == {"bucket": "validBucket", "key": "validKey"}


class TestStructuredLogger:
    """Tests for StructuredLogger formatting."""

    def test_context_passed_as_extra(self):
        logger = StructuredLogger("test-structured-logger", level="DEBUG")
        context = LogContext(correlation_id="abc-123", operation="image_request").with_metadata(
            bucket="validBucket"
        )

        with patch.object(logger._logger, "log") as mock_log:
            logger.warning("Signature does not match", context, kind="SignatureDoesNotMatch")

        assert mock_log.call_args[0] == (logging.WARNING, "Signature does not match")
        assert mock_log.call_args[1]["extra"] == {
            "correlation_id": "abc-123",
            "operation": "image_request",
            "request_fields": {"bucket": "validBucket", "kind": "SignatureDoesNotMatch"},
        }

    def test_message_without_context(self):
        logger = StructuredLogger("test-structured-plain")

        with patch.object(logger._logger, "log") as mock_log:
            logger.info("Ready", attempt=1)

        assert mock_log.call_args[0] == (logging.INFO, "Ready")
        assert mock_log.call_args[1]["extra"] == {
            "correlation_id": "-",
            "operation": "-",
            "request_fields": {"attempt": 1},
        }

    def test_rendered_line_carries_context(self, capsys):
        """Test a logged line shows correlation id, operation and fields."""
        with patch.dict(os.environ, {}, clear=True):
            logger = StructuredLogger("test-structured-rendered")
        context = LogContext(correlation_id="abc-123", operation="image_request").with_metadata(
            bucket="validBucket"
        )

        logger.warning("Signature does not match", context)

        line = capsys.readouterr().out.strip()
        assert "| WARNING  | image_request | abc-123 | Signature does not match (bucket=validBucket)" in line


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def _metric(self, success=True, fallback=False, duration=0.5):
        return PerformanceMetrics(
            operation="image_request",
            start_time=10.0,
            end_time=10.0 + duration,
            success=success,
            metadata={"fallback": fallback},
        )

    def test_duration(self):
        metric = self._metric(duration=0.25)
        assert metric.duration == pytest.approx(0.25)
        assert metric.duration_ms == pytest.approx(250)

    def test_summary(self):
        """Test summary statistics including fallback runs."""
        collector = MetricsCollector()
        collector.record_metric(self._metric())
        collector.record_metric(self._metric(fallback=True, duration=1.0))
        collector.record_metric(self._metric(success=False))

        summary = collector.get_summary("image_request")

        assert summary["total_operations"] == 3
        assert summary["successful_operations"] == 2
        assert summary["failed_operations"] == 1
        assert summary["fallback_operations"] == 1
        assert summary["max_duration"] == pytest.approx(1.0)

    def test_empty_summary_and_clear(self):
        collector = MetricsCollector()
        assert collector.get_summary() == {}

        collector.record_metric(self._metric())
        collector.clear_metrics()
        assert collector.get_metrics() == []
