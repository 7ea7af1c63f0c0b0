"""Request context management using contextvars.

Holds request-scoped values (currently the request id) so that log records
and fault reports can be correlated without threading the request through
every call. Context is scoped to the current async task.
"""

from contextvars import ContextVar, Token

_current_request_id: ContextVar[str | None] = ContextVar(
    "current_request_id", default=None
)


def set_request_id(request_id: str | None) -> Token:
    """Bind request_id to the current context. Returns a token for reset_request_id()."""
    return _current_request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    """Restore the request id that was active before set_request_id()."""
    _current_request_id.reset(token)


def get_request_id() -> str | None:
    """Return the request id for the current request, or None outside a request."""
    return _current_request_id.get()
