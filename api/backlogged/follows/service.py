"""Directed follow relationships."""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from backlogged.core.database.soft_delete import utcnow
from backlogged.core.errors import ConflictError, InvalidInputError, NotFoundError

from .models import FollowEdge


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class SelfFollowError(InvalidInputError):
    code = "self_follow"
    default_message = "You cannot follow yourself"


class AlreadyFollowingError(ConflictError):
    code = "already_following"
    default_message = "You already follow this user"


class NotFollowingError(NotFoundError):
    code = "not_following"
    default_message = "You do not follow this user"


# ==============================================================================
# Follow Graph
# ==============================================================================


class FollowGraph:
    """Follow edges keyed by (follower, following).

    Edge uniqueness is enforced by ``IF NOT EXISTS`` on insert and
    ``IF EXISTS`` on delete, so concurrent duplicate follows produce exactly
    one edge and one ``AlreadyFollowingError``.
    """

    def __init__(self, session: "Session", keyspace: str) -> None:
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._insert_follow = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.follows (follower_id, following_id, created_at)
            VALUES (?, ?, ?)
            IF NOT EXISTS
        """)

        self._insert_follower = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.followers_by_user
            (following_id, follower_id, created_at)
            VALUES (?, ?, ?)
        """)

        self._delete_follow = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.follows
            WHERE follower_id = ? AND following_id = ?
            IF EXISTS
        """)

        self._delete_follower = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.followers_by_user
            WHERE following_id = ? AND follower_id = ?
        """)

        self._get_follow = self.session.prepare(f"""
            SELECT follower_id FROM {self.keyspace}.follows
            WHERE follower_id = ? AND following_id = ?
        """)

        self._get_following = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.follows
            WHERE follower_id = ?
        """)

        self._get_followers = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.followers_by_user
            WHERE following_id = ?
        """)

    async def follow(self, follower_id: UUID, following_id: UUID) -> FollowEdge:
        """Create the edge follower -> following.

        Raises:
            SelfFollowError: follower and following are the same user.
            AlreadyFollowingError: The edge already exists.
        """
        if follower_id == following_id:
            raise SelfFollowError

        now = utcnow()
        result = await self.session.aexecute(
            self._insert_follow, [follower_id, following_id, now]
        )
        if not result.was_applied:
            # Re-upsert the mirror so a follow whose mirror write failed
            # earlier is repaired by the retry.
            existing = result.one()
            created_at = getattr(existing, "created_at", None) or now
            await self.session.aexecute(
                self._insert_follower, [following_id, follower_id, created_at]
            )
            raise AlreadyFollowingError

        await self.session.aexecute(
            self._insert_follower, [following_id, follower_id, now]
        )
        logger.info(
            "user_followed",
            follower_id=str(follower_id),
            following_id=str(following_id),
        )
        return FollowEdge(follower_id=follower_id, following_id=following_id, created_at=now)

    async def unfollow(self, follower_id: UUID, following_id: UUID) -> None:
        """Remove the edge follower -> following.

        Raises:
            NotFollowingError: No such edge.
        """
        result = await self.session.aexecute(
            self._delete_follow, [follower_id, following_id]
        )
        if not result.was_applied:
            raise NotFollowingError

        await self.session.aexecute(
            self._delete_follower, [following_id, follower_id]
        )
        logger.info(
            "user_unfollowed",
            follower_id=str(follower_id),
            following_id=str(following_id),
        )

    async def exists(self, follower_id: UUID, following_id: UUID) -> bool:
        result = await self.session.aexecute(
            self._get_follow, [follower_id, following_id]
        )
        return result.one() is not None

    async def list_following(self, follower_id: UUID) -> list[FollowEdge]:
        rows = await self.session.aexecute(self._get_following, [follower_id])
        return sorted(
            (FollowEdge.from_row(row) for row in rows), key=lambda edge: edge.created_at
        )

    async def list_followers(self, following_id: UUID) -> list[FollowEdge]:
        rows = await self.session.aexecute(self._get_followers, [following_id])
        return sorted(
            (FollowEdge.from_row(row) for row in rows), key=lambda edge: edge.created_at
        )

    async def following_ids(self, follower_id: UUID) -> set[UUID]:
        """Everyone ``follower_id`` follows, for filtering listings in bulk."""
        return {edge.following_id for edge in await self.list_following(follower_id)}
