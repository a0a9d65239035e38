"""Review service layer."""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from backlogged.access.policy import AccessPolicyResolver, ResourceDescriptor
from backlogged.auth.models import Actor
from backlogged.core.database.soft_delete import DEFAULT_SCAN_LIMIT, utcnow
from backlogged.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from backlogged.likes.models import Like, LikeTarget
from backlogged.likes.service import LikeLedger

from .models import Review, create_review


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ReviewNotFoundError(NotFoundError):
    code = "review_not_found"
    default_message = "Review not found"


class ReviewPermissionError(ForbiddenError):
    code = "review_permission_denied"
    default_message = "Only the author or an admin can change this review"


# ==============================================================================
# Review Service
# ==============================================================================


class ReviewService:
    """Review CRUD plus the review like ledger."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        policy: AccessPolicyResolver,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
    ) -> None:
        self.session = session
        self.keyspace = keyspace
        self.policy = policy
        self.scan_limit = scan_limit
        self._prepare_statements()
        self.likes = LikeLedger(
            session, keyspace, LikeTarget.REVIEW, self.load_descriptor, policy
        )

    def _prepare_statements(self) -> None:
        self._insert_review = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.reviews
            (review_id, game_id, author_id, content, rating, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._get_review = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.reviews
            WHERE review_id = ?
        """)

        self._get_reviews = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.reviews
            LIMIT ?
        """)

        self._get_reviews_by_game = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.reviews
            WHERE game_id = ?
        """)

        self._update_review = self.session.prepare(f"""
            UPDATE {self.keyspace}.reviews
            SET content = ?, rating = ?, updated_at = ?
            WHERE review_id = ?
            IF EXISTS
        """)

        self._delete_review = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.reviews
            WHERE review_id = ?
            IF EXISTS
        """)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_by_id(self, review_id: UUID) -> Review:
        result = await self.session.aexecute(self._get_review, [review_id])
        row = result.one()
        if row is None:
            raise ReviewNotFoundError
        return Review.from_row(row)

    async def load_descriptor(self, review_id: UUID) -> ResourceDescriptor:
        return (await self.get_by_id(review_id)).descriptor

    async def get_all(self, game_id: UUID | None = None) -> list[Review]:
        """All reviews, or a game's reviews, oldest first."""
        if game_id is not None:
            rows = await self.session.aexecute(self._get_reviews_by_game, [game_id])
        else:
            rows = await self.session.aexecute(self._get_reviews, [self.scan_limit])
        return sorted((Review.from_row(row) for row in rows), key=lambda r: r.created_at)

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create(
        self,
        actor: Actor | None,
        game_id: UUID,
        rating: int,
        content: str,
    ) -> Review:
        if actor is None:
            raise UnauthorizedError

        review = create_review(
            game_id=game_id,
            author_id=actor.id,
            content=content,
            rating=rating,
            now=utcnow(),
        )
        await self.session.aexecute(
            self._insert_review,
            [
                review.review_id,
                review.game_id,
                review.author_id,
                review.content,
                review.rating,
                review.created_at,
                review.updated_at,
            ],
        )
        logger.info(
            "review_created",
            review_id=str(review.review_id),
            game_id=str(game_id),
            author_id=str(actor.id),
        )
        return review

    async def update(
        self,
        actor: Actor | None,
        review_id: UUID,
        rating: int | None = None,
        content: str | None = None,
    ) -> Review:
        """Change rating and/or content (author or admin)."""
        review = await self.get_by_id(review_id)
        self.policy.check_mutate(actor, review.descriptor, ReviewPermissionError)

        review.rating = rating if rating is not None else review.rating
        review.content = content if content is not None else review.content
        review.updated_at = utcnow()

        result = await self.session.aexecute(
            self._update_review,
            [review.content, review.rating, review.updated_at, review_id],
        )
        if not result.was_applied:
            raise ReviewNotFoundError

        logger.info("review_updated", review_id=str(review_id), actor_id=str(actor.id))
        return review

    async def delete(self, actor: Actor | None, review_id: UUID) -> None:
        """Hard-delete a review (author or admin)."""
        review = await self.get_by_id(review_id)
        self.policy.check_mutate(actor, review.descriptor, ReviewPermissionError)

        result = await self.session.aexecute(self._delete_review, [review_id])
        if not result.was_applied:
            raise ReviewNotFoundError

        logger.info("review_deleted", review_id=str(review_id), actor_id=str(actor.id))

    async def like(self, actor: Actor | None, review_id: UUID) -> Like:
        return await self.likes.like(actor, review_id)

    async def unlike(self, actor: Actor | None, review_id: UUID) -> None:
        await self.likes.unlike(actor, review_id)
