"""Logging helpers with optional OpenTelemetry support."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import TelemetryConfig

CONSOLE_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s "
    "| trace_id=%(otelTraceID)s span_id=%(otelSpanID)s"
)

_LOGGERS: dict[str, logging.Logger] = {}
_HANDLER_INSTALLED = False
_CONSOLE_CONFIGURED = False


class _OtelContextFilter(logging.Filter):
    """Ensures trace/span placeholders exist even when no context is active."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        if not hasattr(record, "otelTraceID"):
            record.otelTraceID = "-"
        if not hasattr(record, "otelSpanID"):
            record.otelSpanID = "-"
        return True


def get_logger(name: str = "airbattle") -> logging.Logger:
    """Return a named logger, created once per name."""
    logger = _LOGGERS.get(name)
    if logger is None:
        logger = logging.getLogger(name)
        _LOGGERS[name] = logger
    return logger


def configure_console_logging(level: str = "WARNING") -> None:
    """Install a console handler on the root logger once and set the package level."""
    global _CONSOLE_CONFIGURED
    root_logger = logging.getLogger()
    if not _CONSOLE_CONFIGURED and not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        handler.addFilter(_OtelContextFilter())
        root_logger.addHandler(handler)
        _CONSOLE_CONFIGURED = True
    logging.getLogger("airbattle").setLevel(level)


def init_logging(config: TelemetryConfig) -> logging.Logger:
    logger = get_logger(config.service_name)
    try:
        from opentelemetry._logs import set_logger_provider
        from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
        from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
        from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
        from opentelemetry.sdk.resources import Resource
    except ImportError:  # pragma: no cover
        return logger

    provider = LoggerProvider(resource=Resource.create(config.resource()))
    if config.otlp_logs_endpoint:
        exporter = OTLPLogExporter(endpoint=config.otlp_logs_endpoint, insecure=True)
        provider.add_log_record_processor(BatchLogRecordProcessor(exporter))

    set_logger_provider(provider)
    handler = LoggingHandler(level=logging.getLevelName(config.log_level), logger_provider=provider)
    _install_root_handler(handler)
    return logger


def _install_root_handler(handler: logging.Handler) -> None:
    """Attach the OTLP logging handler to the root logger once."""
    global _HANDLER_INSTALLED
    if _HANDLER_INSTALLED:
        return
    handler.addFilter(_OtelContextFilter())
    logging.getLogger().addHandler(handler)
    _HANDLER_INSTALLED = True
