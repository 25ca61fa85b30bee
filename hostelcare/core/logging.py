"""Logging and tracing setup for the maintenance API.

Log records carry the active OpenTelemetry trace and span ids, so a
transition logged by the ticket service can be matched to its span.
"""

from __future__ import annotations

import logging
from logging.config import dictConfig
from urllib.parse import unquote

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from hostelcare.core.config import Settings

APP_LOGGER = "hostelcare"

# Library loggers that flood the output below WARNING unless debugging.
_NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "multipart", "python_multipart")

_provider: TracerProvider | None = None


class TraceContextFilter(logging.Filter):
    """Attach ``trace_id`` and ``span_id`` to every record, ``-`` outside a span."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = trace.get_current_span().get_span_context()
        if context.is_valid:
            record.trace_id = format(context.trace_id, "032x")
            record.span_id = format(context.span_id, "016x")
        else:
            record.trace_id = "-"
            record.span_id = "-"
        return True


def parse_otlp_headers(raw: str | None) -> dict[str, str]:
    """Parse ``key=value`` pairs as given in ``OTEL_EXPORTER_OTLP_HEADERS``.

    Values may be percent-encoded; malformed pairs are skipped.
    """

    headers: dict[str, str] = {}
    for item in (raw or "").split(","):
        key, sep, value = item.partition("=")
        key = key.strip()
        if sep and key:
            headers[key] = unquote(value.strip())
    return headers


def configure_logging(settings: Settings) -> logging.Logger:
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    library_level = level if level <= logging.DEBUG else logging.WARNING

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"trace_context": {"()": TraceContextFilter}},
            "formatters": {"default": {"format": settings.log_format}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["trace_context"],
                }
            },
            "root": {"handlers": ["console"], "level": level},
            "loggers": {
                APP_LOGGER: {"level": level},
                **{name: {"level": library_level} for name in _NOISY_LOGGERS},
            },
        }
    )
    return logging.getLogger(APP_LOGGER)


def get_tracer(name: str = APP_LOGGER) -> trace.Tracer:
    """Tracer for service code; spans are dropped when tracing is disabled."""

    return trace.get_tracer(name)


def init_tracer(settings: Settings) -> TracerProvider | None:
    """Install an OTLP-exporting provider when ``otel_enabled`` is set."""

    global _provider

    if _provider is not None or not settings.otel_enabled:
        return None

    exporter = OTLPSpanExporter(
        endpoint=settings.otel_exporter_otlp_endpoint or None,
        headers=parse_otlp_headers(settings.otel_exporter_otlp_headers) or None,
    )
    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": settings.otel_service_name, "deployment.environment": settings.environment}
        )
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def shutdown_tracer(provider: TracerProvider | None) -> None:
    global _provider

    if provider is None:
        return
    provider.shutdown()
    if provider is _provider:
        _provider = None
