"""OpenTelemetry tracing for the multipart uploader."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode

from multipart_uploader import __version__
from multipart_uploader.infrastructure.config import ObservabilityConfig, get_config


def setup_tracing(config: ObservabilityConfig | None = None) -> trace.Tracer:
    """Install a tracer provider and return the uploader tracer.

    Spans go to the OTLP collector when an endpoint is configured and to
    the console otherwise.
    """
    config = config or get_config().observability

    resource = Resource.create(
        {
            "service.name": "multipart_uploader",
            "service.version": __version__,
            "deployment.environment": config.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    if config.otlp_endpoint:
        exporter = OTLPSpanExporter(endpoint=config.otlp_endpoint, insecure=True)
    else:
        exporter = ConsoleSpanExporter()
    provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)

    return trace.get_tracer("multipart_uploader")


def get_tracer(name: str = "multipart_uploader") -> trace.Tracer:
    """Get a tracer instance (no-op until a provider is installed)."""
    return trace.get_tracer(name)


@contextmanager
def phase_span(tracer: trace.Tracer, phase: str, **attributes: Any) -> Iterator[trace.Span]:
    """Run one upload phase inside a span, marking it failed on error."""
    with tracer.start_as_current_span(
        f"multipart_upload.{phase}",
        attributes={"upload.phase": phase, **attributes},
    ) as span:
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
