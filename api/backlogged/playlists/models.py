"""Playlist tables and entities.

Playlists are owned collections of games with a visibility tier. Deleting a
playlist tombstones it; its game rows are left in place.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from backlogged.access.policy import ResourceDescriptor, Visibility


class PlaylistType(str, Enum):
    BACKLOG = "BACKLOG"
    LIKED = "LIKED"
    COMPLETED = "COMPLETED"
    PLAYING = "PLAYING"
    DROPPED = "DROPPED"
    CUSTOM = "CUSTOM"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

PLAYLISTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.playlists (
    playlist_id UUID PRIMARY KEY,
    owner_id UUID,
    name TEXT,
    description TEXT,
    playlist_type TEXT,
    visibility TEXT,
    state TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    deleted_at TIMESTAMP
)
"""

PLAYLISTS_OWNER_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS playlists_owner_idx
ON {keyspace}.playlists (owner_id)
"""

# Ordered game membership; ordering by position happens on read since
# position changes would otherwise mean rewriting clustering keys.
PLAYLIST_GAMES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.playlist_games (
    playlist_id UUID,
    game_id UUID,
    position INT,
    added_at TIMESTAMP,
    PRIMARY KEY ((playlist_id), game_id)
)
"""

PLAYLISTS_TABLES_CQL = [
    PLAYLISTS_TABLE_CQL,
    PLAYLISTS_OWNER_INDEX_CQL,
    PLAYLIST_GAMES_TABLE_CQL,
]

PLAYLIST_INDEXED_COLUMNS = ("owner_id",)


# ==============================================================================
# Entities
# ==============================================================================


@dataclass
class Playlist:
    playlist_id: UUID
    owner_id: UUID
    name: str
    description: str | None
    playlist_type: PlaylistType
    visibility: Visibility
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Any) -> "Playlist":
        return cls(
            playlist_id=row.playlist_id,
            owner_id=row.owner_id,
            name=row.name,
            description=row.description,
            playlist_type=PlaylistType(row.playlist_type),
            visibility=Visibility(row.visibility),
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
            deleted_at=row.deleted_at,
        )

    def descriptor(self, admin_mutable: bool = False) -> ResourceDescriptor:
        return ResourceDescriptor(
            owner_id=self.owner_id,
            visibility=self.visibility,
            admin_mutable=admin_mutable,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "playlist_id": self.playlist_id,
            "owner_id": self.owner_id,
            "name": self.name,
            "description": self.description,
            "playlist_type": self.playlist_type.value,
            "visibility": self.visibility.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "deleted_at": None,
        }


@dataclass
class PlaylistGame:
    playlist_id: UUID
    game_id: UUID
    position: int
    added_at: datetime

    @classmethod
    def from_row(cls, row: Any) -> "PlaylistGame":
        return cls(
            playlist_id=row.playlist_id,
            game_id=row.game_id,
            position=row.position or 0,
            added_at=row.added_at,
        )


def create_playlist(
    owner_id: UUID,
    name: str,
    playlist_type: PlaylistType,
    visibility: Visibility,
    now: datetime,
    description: str | None = None,
) -> Playlist:
    """Factory function to create a new playlist."""
    return Playlist(
        playlist_id=uuid4(),
        owner_id=owner_id,
        name=name,
        description=description,
        playlist_type=playlist_type,
        visibility=visibility,
        created_at=now,
        updated_at=now,
    )
