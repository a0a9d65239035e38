"""Authenticated caller identity."""

from dataclasses import dataclass
from uuid import UUID

from backlogged.auth.permissions import UserRole, is_admin


@dataclass(frozen=True)
class Actor:
    """The caller a procedure runs on behalf of.

    Anonymous callers are represented by ``None`` wherever an
    ``Actor | None`` is accepted.
    """

    id: UUID
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)
