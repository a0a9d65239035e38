"""Idempotent like facts per (actor, target)."""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from backlogged.access.policy import AccessPolicyResolver, ResourceDescriptor
from backlogged.auth.models import Actor
from backlogged.core.database.soft_delete import utcnow
from backlogged.core.errors import ConflictError, NotFoundError, UnauthorizedError

from .models import Like, LikeTarget


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)

TargetLoader = Callable[[UUID], Awaitable[ResourceDescriptor]]


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AlreadyLikedError(ConflictError):
    code = "already_liked"
    default_message = "You already liked this"


class NotLikedError(NotFoundError):
    code = "not_liked"
    default_message = "You have not liked this"


# ==============================================================================
# Ledger
# ==============================================================================


class LikeLedger:
    """Like rows for one target kind.

    Args:
        session: Cassandra session.
        keyspace: Keyspace name.
        target: Which kind of thing is being liked.
        load_target: Loads the target's descriptor, raising the target's
            not-found error when it is absent or tombstoned.
        policy: Resolver used to require read access before liking.
    """

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        target: LikeTarget,
        load_target: TargetLoader,
        policy: AccessPolicyResolver,
    ) -> None:
        self.session = session
        self.keyspace = keyspace
        self.target = target
        self.load_target = load_target
        self.policy = policy
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        table = f"{self.keyspace}.{self.target.table}"

        self._insert_like = self.session.prepare(f"""
            INSERT INTO {table} (target_id, user_id, created_at)
            VALUES (?, ?, ?)
            IF NOT EXISTS
        """)

        self._delete_like = self.session.prepare(f"""
            DELETE FROM {table}
            WHERE target_id = ? AND user_id = ?
            IF EXISTS
        """)

        self._get_like = self.session.prepare(f"""
            SELECT user_id FROM {table}
            WHERE target_id = ? AND user_id = ?
        """)

        self._count_likes = self.session.prepare(f"""
            SELECT COUNT(*) FROM {table}
            WHERE target_id = ?
        """)

    async def like(self, actor: Actor | None, target_id: UUID) -> Like:
        """Record that ``actor`` likes the target.

        Raises:
            UnauthorizedError: Anonymous caller.
            NotFoundError: Target absent or tombstoned.
            ForbiddenError: Actor cannot view the target.
            AlreadyLikedError: The like already exists.
        """
        if actor is None:
            raise UnauthorizedError
        descriptor = await self.load_target(target_id)
        await self.policy.check_view(actor, descriptor)

        now = utcnow()
        result = await self.session.aexecute(
            self._insert_like, [target_id, actor.id, now]
        )
        if not result.was_applied:
            raise AlreadyLikedError

        logger.info(
            "target_liked",
            target=self.target.value,
            target_id=str(target_id),
            user_id=str(actor.id),
        )
        return Like(target=self.target, target_id=target_id, user_id=actor.id, created_at=now)

    async def unlike(self, actor: Actor | None, target_id: UUID) -> None:
        """Remove ``actor``'s like.

        Raises:
            UnauthorizedError: Anonymous caller.
            NotFoundError: Target absent or tombstoned.
            NotLikedError: There was no like to remove.
        """
        if actor is None:
            raise UnauthorizedError
        await self.load_target(target_id)

        result = await self.session.aexecute(self._delete_like, [target_id, actor.id])
        if not result.was_applied:
            raise NotLikedError

        logger.info(
            "target_unliked",
            target=self.target.value,
            target_id=str(target_id),
            user_id=str(actor.id),
        )

    async def count(self, target_id: UUID) -> int:
        result = await self.session.aexecute(self._count_likes, [target_id])
        row = result.one()
        return row.count if row else 0

    async def has_liked(self, actor: Actor | None, target_id: UUID) -> bool:
        if actor is None:
            return False
        result = await self.session.aexecute(self._get_like, [target_id, actor.id])
        return result.one() is not None
