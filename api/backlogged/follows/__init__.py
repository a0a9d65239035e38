"""Follow graph between users."""

from .models import FOLLOWS_TABLES_CQL, FollowEdge


__all__ = ["FOLLOWS_TABLES_CQL", "FollowEdge"]
