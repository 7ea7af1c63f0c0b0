"""Logging configuration and fault reporting for the application."""

import logging
import sys
from typing import Any

from sharebox.core.config import Settings, get_settings
from sharebox.shared.context import get_request_id
from sharebox.shared.telemetry.tracing import get_trace_id, set_span_error

_REPORTED_FLAG = "_sharebox_fault_reported"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Attach the current request id (or "-") to every record as record.request_id."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = get_request_id() or "-"
        return True


def setup_logging(settings: Settings | None = None) -> None:
    """Configure application-wide logging.

    Level is DEBUG when settings.debug is True, otherwise INFO.
    Output goes to stdout; each line carries the request id.
    """
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[handler],
    )


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)


def was_reported(exc: BaseException) -> bool:
    """True when exc, or an exception it was raised from, went through report_fault."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if getattr(current, _REPORTED_FLAG, False):
            return True
        seen.add(id(current))
        current = current.__cause__
    return False


def report_fault(logger: logging.Logger, exc: BaseException, **context: Any) -> None:
    """Report an internal fault to operators: ERROR log with traceback plus span error.

    The traceback of exc.__cause__ is logged when present. A fault is reported
    once: re-raising it, or wrapping it with "raise ... from", does not produce
    a second ERROR record. Never raises.
    """
    if was_reported(exc):
        logger.debug("Already reported: %s", exc)
        return
    cause = exc.__cause__ or exc
    trace_id = get_trace_id()
    if trace_id:
        context.setdefault("trace_id", trace_id)
    fields = " ".join(f"{k}={v}" for k, v in sorted(context.items()))
    logger.error(
        "Internal fault: %s%s",
        exc,
        f" ({fields})" if fields else "",
        exc_info=(type(cause), cause, cause.__traceback__),
        extra={"request_id": get_request_id() or "-"},
    )
    setattr(exc, _REPORTED_FLAG, True)
    if isinstance(exc, Exception):
        set_span_error(exc)
