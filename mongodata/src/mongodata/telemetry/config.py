import logging
import structlog

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    SimpleSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.instrumentation.logging import LoggingInstrumentor


def add_service_name(service_name: str, service_version: str):
    """structlog processor adding the service and the current OTel span ids."""

    def processor(logger, method_name, event_dict):
        event_dict["service_name"] = service_name
        event_dict["service_version"] = service_version

        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict["trace_id"] = format(ctx.trace_id, "032x")
            event_dict["span_id"] = format(ctx.span_id, "016x")
            event_dict["span_name"] = span.name
        return event_dict

    return processor


def configure_structlog(service_name: str, service_version: str, level: str = "INFO"):
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            add_service_name(service_name, service_version),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_telemetry(
    service_name: str,
    service_version: str = "1.0.0",
    level: str = "INFO",
    exporter: SpanExporter | None = None,
):
    """
    Configure OpenTelemetry and structlog:
    - service resource
    - SimpleSpanProcessor on a console exporter (or the given exporter)
    - stdlib logging instrumentation
    """
    resource = Resource.create(
        {
            "service.name": service_name,
            "service.version": service_version,
        }
    )

    provider = TracerProvider(resource=resource)
    provider.add_span_processor(SimpleSpanProcessor(exporter or ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    LoggingInstrumentor().instrument()

    configure_structlog(service_name, service_version, level)

    logger = structlog.get_logger(__name__)
    logger.info("Telemetry initialized", service=service_name, version=service_version)
    return provider


def get_tracer(name: str):
    return trace.get_tracer(name)


def get_logger(name: str = None):
    return structlog.get_logger(name)
