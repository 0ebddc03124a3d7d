"""Unit tests for tracing, logging and metrics wiring."""

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from prometheus_client import CollectorRegistry

from multipart_uploader.infrastructure.logging import get_logger
from multipart_uploader.infrastructure.metrics import UploaderMetrics
from multipart_uploader.infrastructure.tracing import phase_span


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter):
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider.get_tracer("test")


@pytest.mark.unit
class TestPhaseSpan:
    """Test per-phase spans."""

    def test_span_named_after_phase(self, tracer, span_exporter):
        """Test the span name and attributes."""
        with phase_span(tracer, "hash", **{"upload.parts": 3}):
            pass

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "multipart_upload.hash"
        assert span.attributes["upload.phase"] == "hash"
        assert span.attributes["upload.parts"] == 3
        assert span.status.status_code is StatusCode.UNSET

    def test_span_marked_failed(self, tracer, span_exporter):
        """Test an exception sets the error status and propagates."""
        with pytest.raises(RuntimeError, match="boom"):
            with phase_span(tracer, "complete"):
                raise RuntimeError("boom")

        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code is StatusCode.ERROR
        assert "boom" in span.status.description


@pytest.mark.unit
class TestMetrics:
    """Test metrics registration."""

    def test_private_registries_do_not_collide(self):
        """Test two collectors can coexist on separate registries."""
        first = UploaderMetrics(registry=CollectorRegistry())
        second = UploaderMetrics(registry=CollectorRegistry())
        first.parts_uploaded.inc()
        assert second.parts_uploaded._value.get() == 0

    def test_failed_uploads_by_phase(self):
        """Test failures are labelled by phase."""
        registry = CollectorRegistry()
        metrics = UploaderMetrics(registry=registry)
        metrics.uploads_failed.labels(phase="transfer").inc()
        assert registry.get_sample_value(
            "multipart_uploader_uploads_failed_total", {"phase": "transfer"}
        ) == 1


@pytest.mark.unit
class TestLogging:
    """Test logger helpers."""

    def test_get_logger_binds_context(self):
        """Test initial context is bound to the logger."""
        logger = get_logger("test", upload_id="abc")
        assert logger is not None
        assert hasattr(logger, "info")
