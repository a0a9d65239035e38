"""Like ledgers for comments, reviews and playlists."""

from .models import LIKES_TABLES_CQL, Like, LikeTarget


__all__ = ["LIKES_TABLES_CQL", "Like", "LikeTarget"]
