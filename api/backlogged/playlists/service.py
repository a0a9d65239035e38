"""Playlist service layer.

Business logic for:
- Visibility-gated reads (PUBLIC / PRIVATE / FOLLOWERS_ONLY)
- Owner-only edits, soft deletes and game membership changes
- Playlist likes
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from backlogged.access.policy import (
    AccessPolicyResolver,
    RelationshipFacts,
    ResourceDescriptor,
    Visibility,
    can_view,
)
from backlogged.auth.models import Actor
from backlogged.core.database.soft_delete import (
    DEFAULT_CAS_ATTEMPTS,
    DEFAULT_SCAN_LIMIT,
    SoftDeleteStore,
    utcnow,
)
from backlogged.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from backlogged.follows.service import FollowGraph
from backlogged.likes.models import Like, LikeTarget
from backlogged.likes.service import LikeLedger

from .models import (
    PLAYLIST_INDEXED_COLUMNS,
    Playlist,
    PlaylistGame,
    PlaylistType,
    create_playlist,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class PlaylistNotFoundError(NotFoundError):
    code = "playlist_not_found"
    default_message = "Playlist not found"


class PlaylistAccessDeniedError(ForbiddenError):
    code = "playlist_access_denied"
    default_message = "You are not allowed to view this playlist"


class PlaylistPermissionError(ForbiddenError):
    code = "playlist_permission_denied"
    default_message = "Only the owner can change this playlist"


class PlaylistGameNotFoundError(NotFoundError):
    code = "playlist_game_not_found"
    default_message = "Game is not in this playlist"


# ==============================================================================
# Read models
# ==============================================================================


@dataclass
class PlaylistDetails:
    playlist: Playlist
    games: list[PlaylistGame]
    like_count: int


# ==============================================================================
# Playlist Service
# ==============================================================================


class PlaylistService:
    """Procedures for playlists.

    Args:
        session: Cassandra session (game membership and likes).
        keyspace: Keyspace name.
        store: Playlist store.
        policy: Access policy resolver.
        follows: Follow graph, for bulk follow facts when listing.
        admin_override: Let admins change other users' playlists.
    """

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        store: SoftDeleteStore[Playlist],
        policy: AccessPolicyResolver,
        follows: FollowGraph,
        admin_override: bool = False,
    ) -> None:
        self.session = session
        self.keyspace = keyspace
        self.store = store
        self.policy = policy
        self.follows = follows
        self.admin_override = admin_override
        self._prepare_statements()
        self.likes = LikeLedger(
            session, keyspace, LikeTarget.PLAYLIST, self.load_descriptor, policy
        )

    def _prepare_statements(self) -> None:
        self._insert_game = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.playlist_games
            (playlist_id, game_id, position, added_at)
            VALUES (?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._delete_game = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.playlist_games
            WHERE playlist_id = ? AND game_id = ?
        """)

        self._update_game_position = self.session.prepare(f"""
            UPDATE {self.keyspace}.playlist_games
            SET position = ?
            WHERE playlist_id = ? AND game_id = ?
            IF EXISTS
        """)

        self._get_games = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.playlist_games
            WHERE playlist_id = ?
        """)

    # ==========================================================================
    # Access helpers
    # ==========================================================================

    async def load_descriptor(self, playlist_id: UUID) -> ResourceDescriptor:
        playlist = await self.store.read(playlist_id)
        return playlist.descriptor(self.admin_override)

    async def _load_mutable(self, actor: Actor | None, playlist_id: UUID) -> Playlist:
        playlist = await self.store.read(playlist_id)
        self.policy.check_mutate(
            actor, playlist.descriptor(self.admin_override), PlaylistPermissionError
        )
        return playlist

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_by_id(self, actor: Actor | None, playlist_id: UUID) -> Playlist:
        """Return a playlist the actor may view.

        Raises:
            PlaylistNotFoundError: Absent or deleted.
            PlaylistAccessDeniedError: Exists but hidden from the actor.
        """
        playlist = await self.store.read(playlist_id)
        await self.policy.check_view(
            actor, playlist.descriptor(self.admin_override), PlaylistAccessDeniedError
        )
        return playlist

    async def get_all(
        self, actor: Actor | None, owner_id: UUID | None = None
    ) -> list[Playlist]:
        """Every playlist the actor may view, optionally for one owner.

        Hidden playlists are left out silently.
        """
        if owner_id is not None:
            playlists = await self.store.list_by("owner_id", owner_id)
        else:
            playlists = await self.store.list_all()

        following: set[UUID] = set()
        if actor is not None and any(
            p.visibility is Visibility.FOLLOWERS_ONLY and p.owner_id != actor.id
            for p in playlists
        ):
            following = await self.follows.following_ids(actor.id)

        return [
            p
            for p in playlists
            if can_view(
                actor,
                p.descriptor(),
                RelationshipFacts(actor_follows_owner=p.owner_id in following),
            )
        ]

    async def list_games(self, playlist_id: UUID) -> list[PlaylistGame]:
        rows = await self.session.aexecute(self._get_games, [playlist_id])
        games = [PlaylistGame.from_row(row) for row in rows]
        return sorted(games, key=lambda g: (g.position, g.added_at))

    async def get_details(
        self, actor: Actor | None, playlist_id: UUID
    ) -> PlaylistDetails:
        playlist = await self.get_by_id(actor, playlist_id)
        return PlaylistDetails(
            playlist=playlist,
            games=await self.list_games(playlist_id),
            like_count=await self.likes.count(playlist_id),
        )

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create(
        self,
        actor: Actor | None,
        name: str,
        playlist_type: PlaylistType,
        visibility: Visibility,
        description: str | None = None,
    ) -> Playlist:
        """Create a playlist owned by the caller."""
        if actor is None:
            raise UnauthorizedError

        playlist = create_playlist(
            owner_id=actor.id,
            name=name,
            playlist_type=playlist_type,
            visibility=visibility,
            now=utcnow(),
            description=description,
        )
        await self.store.insert(playlist.to_row())
        logger.info(
            "playlist_created",
            playlist_id=str(playlist.playlist_id),
            owner_id=str(actor.id),
            visibility=visibility.value,
        )
        return playlist

    async def update(
        self,
        actor: Actor | None,
        playlist_id: UUID,
        name: str | None = None,
        description: str | None = None,
        visibility: Visibility | None = None,
    ) -> Playlist:
        """Change name, description and/or visibility (owner only)."""
        await self._load_mutable(actor, playlist_id)

        values: dict[str, object] = {"updated_at": utcnow()}
        if name is not None:
            values["name"] = name
        if description is not None:
            values["description"] = description
        if visibility is not None:
            values["visibility"] = visibility.value

        updated = await self.store.update_active(playlist_id, values)
        logger.info(
            "playlist_updated",
            playlist_id=str(playlist_id),
            fields=sorted(k for k in values if k != "updated_at"),
        )
        return updated

    async def delete(self, actor: Actor | None, playlist_id: UUID) -> None:
        """Soft-delete a playlist (owner only)."""
        await self._load_mutable(actor, playlist_id)
        await self.store.soft_delete(playlist_id)
        logger.info("playlist_deleted", playlist_id=str(playlist_id))

    async def add_games(
        self, actor: Actor | None, playlist_id: UUID, game_ids: list[UUID]
    ) -> list[PlaylistGame]:
        """Append games after the current last position, skipping ones present."""
        await self._load_mutable(actor, playlist_id)

        games = await self.list_games(playlist_id)
        present = {g.game_id for g in games}
        position = max((g.position for g in games), default=-1) + 1
        now = utcnow()

        added = []
        for game_id in dict.fromkeys(game_ids):
            if game_id in present:
                continue
            result = await self.session.aexecute(
                self._insert_game, [playlist_id, game_id, position, now]
            )
            if result.was_applied:
                added.append(game_id)
                position += 1

        await self.store.update_active(playlist_id, {"updated_at": now})
        logger.info(
            "playlist_games_added", playlist_id=str(playlist_id), count=len(added)
        )
        return await self.list_games(playlist_id)

    async def remove_games(
        self, actor: Actor | None, playlist_id: UUID, game_ids: list[UUID]
    ) -> list[PlaylistGame]:
        """Remove games; ids not in the playlist are ignored."""
        await self._load_mutable(actor, playlist_id)

        for game_id in dict.fromkeys(game_ids):
            await self.session.aexecute(self._delete_game, [playlist_id, game_id])

        await self.store.update_active(playlist_id, {"updated_at": utcnow()})
        logger.info(
            "playlist_games_removed", playlist_id=str(playlist_id), count=len(game_ids)
        )
        return await self.list_games(playlist_id)

    async def update_order(
        self, actor: Actor | None, playlist_id: UUID, game_id: UUID, position: int
    ) -> list[PlaylistGame]:
        """Move one game to ``position`` and renumber the rest from zero.

        Positions past either end are clamped.

        Raises:
            PlaylistGameNotFoundError: The game is not in the playlist.
        """
        await self._load_mutable(actor, playlist_id)

        games = await self.list_games(playlist_id)
        moving = next((g for g in games if g.game_id == game_id), None)
        if moving is None:
            raise PlaylistGameNotFoundError

        games.remove(moving)
        games.insert(max(0, min(position, len(games))), moving)
        for index, game in enumerate(games):
            if game.position != index:
                await self.session.aexecute(
                    self._update_game_position, [index, playlist_id, game.game_id]
                )
                game.position = index

        await self.store.update_active(playlist_id, {"updated_at": utcnow()})
        logger.info(
            "playlist_reordered",
            playlist_id=str(playlist_id),
            game_id=str(game_id),
            position=games.index(moving),
        )
        return games

    async def like(self, actor: Actor | None, playlist_id: UUID) -> Like:
        return await self.likes.like(actor, playlist_id)

    async def unlike(self, actor: Actor | None, playlist_id: UUID) -> None:
        await self.likes.unlike(actor, playlist_id)


def create_playlist_store(
    session: "Session",
    keyspace: str,
    scan_limit: int = DEFAULT_SCAN_LIMIT,
    cas_max_attempts: int = DEFAULT_CAS_ATTEMPTS,
) -> SoftDeleteStore[Playlist]:
    return SoftDeleteStore(
        session,
        keyspace,
        table="playlists",
        key_column="playlist_id",
        factory=Playlist.from_row,
        not_found_error=PlaylistNotFoundError,
        tombstoned_error=PlaylistNotFoundError,
        indexed_columns=PLAYLIST_INDEXED_COLUMNS,
        scan_limit=scan_limit,
        cas_max_attempts=cas_max_attempts,
    )
