from backlogged.auth.models import Actor
from backlogged.auth.permissions import UserRole, is_admin


__all__ = ["Actor", "UserRole", "is_admin"]
