"""
Logging and telemetry for the claim status service.

Provides:
- Request-correlation ids injected into every log record
- Optional OpenTelemetry tracing and metrics over OTLP gRPC
- Span and metric helpers for summary generation
"""

import logging
import os
from contextvars import ContextVar
from typing import Optional

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
DEFAULT_SERVICE_NAME = "claim-status-api"

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def set_request_id(request_id: str):
    """Bind a correlation id to the current context. Returns the reset token."""
    return _request_id.set(request_id)


def reset_request_id(token) -> None:
    _request_id.reset(token)


def current_request_id() -> str:
    return _request_id.get()


class RequestContextFilter(logging.Filter):
    """Add the current request id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _request_id.get()
        return True


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging once for the process.

    Every root handler receives the request-context filter so the format's
    ``%(request_id)s`` field is always populated.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers:
        if not any(isinstance(f, RequestContextFilter) for f in handler.filters):
            handler.addFilter(RequestContextFilter())


def configure_telemetry(
    endpoint: Optional[str] = None,
    service_name: str = DEFAULT_SERVICE_NAME,
    service_version: str = "1.0.0",
    enable_logging: bool = True,
) -> None:
    """
    Configure OpenTelemetry with OTLP gRPC exporters.

    Args:
        endpoint: OTLP gRPC endpoint (default: http://localhost:4317)
        service_name: Service identifier for Resource attributes
        service_version: Reported service version
        enable_logging: Whether to instrument Python logging
    """
    endpoint = endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")

    logger.info(
        "Configuring telemetry: endpoint=%s, service_name=%s",
        endpoint,
        service_name,
    )

    resource = Resource.create({
        SERVICE_NAME: service_name,
        "service.version": service_version,
        "deployment.environment": os.getenv("ENVIRONMENT", "development"),
    })

    insecure = "localhost" in endpoint or "127.0.0.1" in endpoint

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=insecure))
    )
    trace.set_tracer_provider(tracer_provider)

    metric_reader = PeriodicExportingMetricReader(
        exporter=OTLPMetricExporter(endpoint=endpoint, insecure=insecure),
        export_interval_millis=5000,
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[metric_reader]))

    if enable_logging:
        LoggingInstrumentor().instrument(set_logging_format=False)

    logger.info("Telemetry configuration complete")


class SummaryTracer:
    """Span helper for summary generation."""

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        self.tracer = trace.get_tracer(service_name)

    def create_summary_span(self, claim_id: str, mode: str):
        """
        Create a span around one summary generation.

        Args:
            claim_id: Claim identifier
            mode: ``remote`` or ``mock``

        Returns:
            OpenTelemetry span context manager
        """
        return self.tracer.start_as_current_span(
            "claim.summarize",
            attributes={"claim.id": claim_id, "summary.mode": mode},
        )

    def set_outcome(self, span, outcome: str) -> None:
        span.set_attribute("summary.outcome", outcome)


class SummaryMetrics:
    """Counters and histograms for summary generation."""

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        self.meter = metrics.get_meter(service_name)

        self.summaries_generated = self.meter.create_counter(
            name="summaries.generated",
            description="Summaries produced, by outcome",
            unit="1",
        )
        self.tokens_used = self.meter.create_counter(
            name="summaries.tokens",
            description="Total tokens reported by the completion service",
            unit="1",
        )
        self.duration = self.meter.create_histogram(
            name="summaries.duration",
            description="Summary generation duration in seconds",
            unit="s",
        )

    def record(self, outcome: str, duration_seconds: float, tokens: int) -> None:
        attrs = {"outcome": outcome}
        self.summaries_generated.add(1, attributes=attrs)
        self.duration.record(duration_seconds, attributes=attrs)
        if tokens:
            self.tokens_used.add(tokens, attributes=attrs)


_tracer: Optional[SummaryTracer] = None
_metrics: Optional[SummaryMetrics] = None


def get_tracer() -> SummaryTracer:
    global _tracer
    if _tracer is None:
        _tracer = SummaryTracer()
    return _tracer


def get_metrics() -> SummaryMetrics:
    global _metrics
    if _metrics is None:
        _metrics = SummaryMetrics()
    return _metrics
