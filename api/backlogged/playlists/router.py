"""Playlist API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from backlogged.auth.dependencies import CurrentActor, OptionalActor
from backlogged.likes.models import LikeTarget
from backlogged.likes.schemas import LikeStatusResponse

from .dependencies import PlaylistServiceDep
from .schemas import (
    CreatePlaylistRequest,
    PlaylistDetailsResponse,
    PlaylistGameResponse,
    PlaylistGamesRequest,
    PlaylistGamesResponse,
    PlaylistListResponse,
    PlaylistResponse,
    UpdateOrderRequest,
    UpdatePlaylistRequest,
)


router = APIRouter(prefix="/v1/playlists", tags=["playlists"])


@router.post(
    "",
    response_model=PlaylistResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create playlist",
)
async def create_playlist(
    data: CreatePlaylistRequest,
    service: PlaylistServiceDep,
    actor: CurrentActor,
) -> PlaylistResponse:
    playlist = await service.create(
        actor,
        name=data.name,
        playlist_type=data.playlist_type,
        visibility=data.visibility,
        description=data.description,
    )
    return PlaylistResponse.from_playlist(playlist)


@router.get("", response_model=PlaylistListResponse, summary="List playlists")
async def list_playlists(
    service: PlaylistServiceDep,
    actor: OptionalActor,
    owner_id: UUID | None = Query(None, description="Only this user's playlists"),
) -> PlaylistListResponse:
    """Playlists visible to the caller; hidden ones are left out."""
    playlists = await service.get_all(actor, owner_id=owner_id)
    return PlaylistListResponse(
        items=[PlaylistResponse.from_playlist(p) for p in playlists],
        total=len(playlists),
    )


@router.get("/{playlist_id}", response_model=PlaylistResponse, summary="Get playlist")
async def get_playlist(
    playlist_id: UUID, service: PlaylistServiceDep, actor: OptionalActor
) -> PlaylistResponse:
    return PlaylistResponse.from_playlist(await service.get_by_id(actor, playlist_id))


@router.get(
    "/{playlist_id}/details",
    response_model=PlaylistDetailsResponse,
    summary="Get playlist with games",
)
async def get_playlist_details(
    playlist_id: UUID, service: PlaylistServiceDep, actor: OptionalActor
) -> PlaylistDetailsResponse:
    details = await service.get_details(actor, playlist_id)
    return PlaylistDetailsResponse.from_details(details)


@router.put("/{playlist_id}", response_model=PlaylistResponse, summary="Edit playlist")
async def update_playlist(
    playlist_id: UUID,
    data: UpdatePlaylistRequest,
    service: PlaylistServiceDep,
    actor: CurrentActor,
) -> PlaylistResponse:
    playlist = await service.update(
        actor,
        playlist_id,
        name=data.name,
        description=data.description,
        visibility=data.visibility,
    )
    return PlaylistResponse.from_playlist(playlist)


@router.delete(
    "/{playlist_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete playlist",
)
async def delete_playlist(
    playlist_id: UUID, service: PlaylistServiceDep, actor: CurrentActor
) -> None:
    await service.delete(actor, playlist_id)


def _games_response(playlist_id: UUID, games: list) -> PlaylistGamesResponse:
    return PlaylistGamesResponse(
        playlist_id=playlist_id,
        games=[PlaylistGameResponse.from_game(g) for g in games],
    )


@router.post(
    "/{playlist_id}/games",
    response_model=PlaylistGamesResponse,
    summary="Add games to playlist",
)
async def add_games(
    playlist_id: UUID,
    data: PlaylistGamesRequest,
    service: PlaylistServiceDep,
    actor: CurrentActor,
) -> PlaylistGamesResponse:
    games = await service.add_games(actor, playlist_id, data.game_ids)
    return _games_response(playlist_id, games)


@router.delete(
    "/{playlist_id}/games",
    response_model=PlaylistGamesResponse,
    summary="Remove games from playlist",
)
async def remove_games(
    playlist_id: UUID,
    data: PlaylistGamesRequest,
    service: PlaylistServiceDep,
    actor: CurrentActor,
) -> PlaylistGamesResponse:
    games = await service.remove_games(actor, playlist_id, data.game_ids)
    return _games_response(playlist_id, games)


@router.put(
    "/{playlist_id}/games/order",
    response_model=PlaylistGamesResponse,
    summary="Move a game within the playlist",
)
async def update_order(
    playlist_id: UUID,
    data: UpdateOrderRequest,
    service: PlaylistServiceDep,
    actor: CurrentActor,
) -> PlaylistGamesResponse:
    games = await service.update_order(actor, playlist_id, data.game_id, data.position)
    return _games_response(playlist_id, games)


@router.post(
    "/{playlist_id}/like", response_model=LikeStatusResponse, summary="Like playlist"
)
async def like_playlist(
    playlist_id: UUID, service: PlaylistServiceDep, actor: CurrentActor
) -> LikeStatusResponse:
    await service.like(actor, playlist_id)
    return LikeStatusResponse(
        target=LikeTarget.PLAYLIST,
        target_id=playlist_id,
        liked=True,
        like_count=await service.likes.count(playlist_id),
    )


@router.delete(
    "/{playlist_id}/like",
    response_model=LikeStatusResponse,
    summary="Unlike playlist",
)
async def unlike_playlist(
    playlist_id: UUID, service: PlaylistServiceDep, actor: CurrentActor
) -> LikeStatusResponse:
    await service.unlike(actor, playlist_id)
    return LikeStatusResponse(
        target=LikeTarget.PLAYLIST,
        target_id=playlist_id,
        liked=False,
        like_count=await service.likes.count(playlist_id),
    )
