"""Owned game playlists with tiered visibility.

Note: Router and service are not exported here to avoid circular imports.
"""

from .models import PLAYLISTS_TABLES_CQL, Playlist, PlaylistGame, PlaylistType


__all__ = ["PLAYLISTS_TABLES_CQL", "Playlist", "PlaylistGame", "PlaylistType"]
