"""Domain error taxonomy.

Every failure raised by the engine and the resource services is a
``DomainError`` subclass carrying exactly one ``ErrorKind``, a stable
machine-readable ``code`` and a human-readable message. The HTTP layer maps
the kind to a status code; nothing below the routers knows about HTTP.
"""

from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    """Failure categories exposed to API consumers."""

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class DomainError(Exception):
    """Base class for every expected failure."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, code: str | None = None):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class UnauthorizedError(DomainError):
    kind = ErrorKind.UNAUTHORIZED
    code = "unauthorized"
    default_message = "Authentication required"


class ForbiddenError(DomainError):
    kind = ErrorKind.FORBIDDEN
    code = "forbidden"
    default_message = "You are not allowed to perform this action"


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    code = "not_found"
    default_message = "Resource not found"


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT
    code = "conflict"
    default_message = "Resource state conflict"


class InvalidInputError(DomainError):
    kind = ErrorKind.VALIDATION
    code = "invalid_input"
    default_message = "Invalid input"


class RateLimitedError(DomainError):
    kind = ErrorKind.RATE_LIMITED
    code = "rate_limited"
    default_message = "Too many requests"


class InternalError(DomainError):
    default_message = "An unexpected error occurred. Please try again later."
