"""Correlation ID logging context for tracing a booking session.

Provides a session_id-aware logger that attaches a correlation ID to every
log message, so one customer's path from quote to submitted booking can be
followed across the wizard, the availability checks and the repository.

Usage:
    from mountquote.logging_context import get_session_logger, set_session_id

    set_session_id("WZ-abc123")
    logger = get_session_logger(__name__)
    logger.info("Slot selected")  # record.session_id == "WZ-abc123"
"""

import logging
from contextvars import ContextVar

_session_id: ContextVar[str] = ContextVar("session_id", default="NO_SESSION")


def set_session_id(session_id: str) -> None:
    """Set the correlation ID for the current context."""
    _session_id.set(session_id)


def get_session_id() -> str:
    """Retrieve the current correlation ID."""
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Injects session_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def get_session_logger(name: str) -> logging.Logger:
    """Return a logger with the SessionIdFilter attached.

    The filter adds ``session_id`` to each record so formatters can
    include ``%(session_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
