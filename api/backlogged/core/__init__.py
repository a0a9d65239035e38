# Core infrastructure
from backlogged.core.context import (
    clear_context,
    get_actor_id,
    get_context,
    get_request_id,
    get_trace_id,
    set_actor_id,
    set_request_id,
    set_trace_id,
)
from backlogged.core.errors import (
    ConflictError,
    DomainError,
    ErrorKind,
    ForbiddenError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from backlogged.core.logging import configure_structlog, get_logger
from backlogged.core.middleware import RequestContextMiddleware


__all__ = [
    "ConflictError",
    "DomainError",
    "ErrorKind",
    "ForbiddenError",
    "InternalError",
    "InvalidInputError",
    "NotFoundError",
    "RateLimitedError",
    "RequestContextMiddleware",
    "UnauthorizedError",
    "clear_context",
    "configure_structlog",
    "get_actor_id",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_trace_id",
    "set_actor_id",
    "set_request_id",
    "set_trace_id",
]
