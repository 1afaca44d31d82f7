# backend/portfolio_tracker/utils/context.py
"""
Request-scoped context for the Portfolio Tracker.

Holds the correlation ID of the request being served. contextvars keeps the
value isolated per request and carries it through async/await calls, so the
logging filter can read it from anywhere.

Usage:
    from portfolio_tracker.utils.context import get_correlation_id, set_correlation_id

    set_correlation_id("abc-123")      # middleware
    get_correlation_id()               # "abc-123" anywhere in the request
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Return the current request's correlation ID, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current request. Called by middleware."""
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Unbind the correlation ID once the request has been answered."""
    _correlation_id_var.set(None)
