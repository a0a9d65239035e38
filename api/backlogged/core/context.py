"""Per-request context carried in contextvars.

Every log line emitted while handling a request picks up the request id,
the authenticated actor id and the upstream trace id from here, so call
sites never have to pass them along explicitly.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
actor_id_var: ContextVar[str | None] = ContextVar("actor_id", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Bind a request ID, generating one when the caller sent none.

    Returns:
        The request ID now bound to the context.
    """
    rid = request_id or str(uuid4())
    request_id_var.set(rid)
    return rid


def get_actor_id() -> str | None:
    return actor_id_var.get()


def set_actor_id(actor_id: str | UUID | None) -> None:
    actor_id_var.set(str(actor_id) if actor_id is not None else None)


def get_trace_id() -> str | None:
    return trace_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    trace_id_var.set(trace_id)


def get_context() -> dict[str, Any]:
    """Return the bound context values, skipping the empty ones."""
    values = {
        "request_id": get_request_id(),
        "actor_id": get_actor_id(),
        "trace_id": get_trace_id(),
    }
    return {key: value for key, value in values.items() if value}


def clear_context() -> None:
    """Reset every context variable at the end of a request."""
    request_id_var.set("")
    actor_id_var.set(None)
    trace_id_var.set(None)
