"""Actor roles.

Backlogged has two roles. Admins only gain extra rights where a resource
type declares an admin override (see ``backlogged.access.policy``).
"""

from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


def parse_role(role: UserRole | str | None) -> UserRole:
    """Coerce a token claim into a role; unknown values fall back to USER."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return UserRole.USER


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    return parse_role(role) is UserRole.ADMIN
