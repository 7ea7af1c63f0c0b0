"""Shared telemetry: logging setup, fault reporting, OpenTelemetry config and tracing helpers."""

from sharebox.shared.telemetry.logging import get_logger, report_fault, setup_logging
from sharebox.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)
from sharebox.shared.telemetry.tracing import (
    add_span_attributes,
    get_trace_id,
    set_span_error,
    traced,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "report_fault",
    "TelemetryConfig",
    "get_telemetry",
    "set_telemetry",
    "traced",
    "add_span_attributes",
    "set_span_error",
    "get_trace_id",
]
