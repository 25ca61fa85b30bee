import logging

from opentelemetry.sdk.trace import TracerProvider

from hostelcare.core.config import Settings
from hostelcare.core.logging import TraceContextFilter, configure_logging, init_tracer, parse_otlp_headers


def _record() -> logging.LogRecord:
    return logging.LogRecord("hostelcare.tickets", logging.INFO, __file__, 1, "moved", None, None)


def test_filter_marks_records_outside_a_span():
    record = _record()
    assert TraceContextFilter().filter(record)
    assert record.trace_id == "-"
    assert record.span_id == "-"


def test_filter_copies_active_span_ids():
    tracer = TracerProvider().get_tracer("tests")
    record = _record()

    with tracer.start_as_current_span("ticket.transition") as span:
        TraceContextFilter().filter(record)
        expected = format(span.get_span_context().trace_id, "032x")

    assert record.trace_id == expected
    assert len(record.span_id) == 16


def test_parse_otlp_headers():
    parsed = parse_otlp_headers("api-key=abc%3D%3D, tenant = hostel ,broken,=x")
    assert parsed == {"api-key": "abc==", "tenant": "hostel"}
    assert parse_otlp_headers(None) == {}


def test_configure_logging_quiets_library_loggers():
    logger = configure_logging(Settings(log_level="info"))

    assert logger.name == "hostelcare"
    assert logger.level == logging.INFO
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_configure_logging_debug_keeps_library_output():
    configure_logging(Settings(log_level="DEBUG"))
    assert logging.getLogger("sqlalchemy.engine").level == logging.DEBUG


def test_tracer_disabled_by_default():
    assert init_tracer(Settings(otel_enabled=False)) is None
