from .config import setup_telemetry, configure_structlog, get_logger, get_tracer
from .decorators import traced_class
from .listener import CommandLoggingListener
import opentelemetry.trace as trace

__all__ = [
    "CommandLoggingListener",
    "configure_structlog",
    "setup_telemetry",
    "get_logger",
    "get_tracer",
    "trace",
    "traced_class",
]
