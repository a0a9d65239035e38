"""Pydantic schemas for playlists."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from backlogged.access.policy import Visibility

from .models import Playlist, PlaylistGame, PlaylistType
from .service import PlaylistDetails


MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


def _strip_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        msg = "Name cannot be empty"
        raise ValueError(msg)
    return v


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreatePlaylistRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    playlist_type: PlaylistType = PlaylistType.CUSTOM
    visibility: Visibility = Visibility.PUBLIC

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Strip whitespace and reject blank names."""
        return _strip_name(v)


class UpdatePlaylistRequest(BaseModel):
    """Only the fields sent are changed."""

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)
    visibility: Visibility | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Strip whitespace and reject blank names."""
        return _strip_name(v)


class PlaylistGamesRequest(BaseModel):
    game_ids: list[UUID] = Field(..., min_length=1)


class UpdateOrderRequest(BaseModel):
    game_id: UUID
    position: int = Field(..., ge=0)


# ==============================================================================
# Response Schemas
# ==============================================================================


class PlaylistResponse(BaseModel):
    playlist_id: UUID
    owner_id: UUID
    name: str
    description: str | None
    playlist_type: PlaylistType
    visibility: Visibility
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_playlist(cls, playlist: Playlist) -> "PlaylistResponse":
        return cls(
            playlist_id=playlist.playlist_id,
            owner_id=playlist.owner_id,
            name=playlist.name,
            description=playlist.description,
            playlist_type=playlist.playlist_type,
            visibility=playlist.visibility,
            created_at=playlist.created_at,
            updated_at=playlist.updated_at,
        )


class PlaylistGameResponse(BaseModel):
    game_id: UUID
    position: int
    added_at: datetime

    @classmethod
    def from_game(cls, game: PlaylistGame) -> "PlaylistGameResponse":
        return cls(game_id=game.game_id, position=game.position, added_at=game.added_at)


class PlaylistGamesResponse(BaseModel):
    playlist_id: UUID
    games: list[PlaylistGameResponse]


class PlaylistDetailsResponse(PlaylistResponse):
    games: list[PlaylistGameResponse]
    like_count: int

    @classmethod
    def from_details(cls, details: PlaylistDetails) -> "PlaylistDetailsResponse":
        return cls(
            **PlaylistResponse.from_playlist(details.playlist).model_dump(),
            games=[PlaylistGameResponse.from_game(g) for g in details.games],
            like_count=details.like_count,
        )


class PlaylistListResponse(BaseModel):
    items: list[PlaylistResponse]
    total: int
