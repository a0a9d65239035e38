"""Comment service layer.

Business logic for:
- Comment creation on reviews, optionally as a reply
- Visible-only reads (tombstones never reach API consumers)
- Edits and deletes through the thread integrity manager
- Comment likes
- Rate limiting and content sanitization
"""

import html
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from backlogged.access.policy import AccessPolicyResolver, ResourceDescriptor
from backlogged.auth.models import Actor
from backlogged.core.database.soft_delete import (
    DEFAULT_CAS_ATTEMPTS,
    DEFAULT_SCAN_LIMIT,
    SoftDeleteStore,
    utcnow,
)
from backlogged.core.errors import InvalidInputError, NotFoundError, UnauthorizedError
from backlogged.core.redis import RateLimiter
from backlogged.likes.models import Like, LikeTarget
from backlogged.likes.service import LikeLedger
from backlogged.reviews.service import ReviewService

from .models import COMMENT_INDEXED_COLUMNS, Comment, create_comment
from .threads import CommentTombstonedError, DeleteOutcome, ThreadIntegrityManager


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CommentNotFoundError(NotFoundError):
    code = "comment_not_found"
    default_message = "Comment not found"


class ParentCommentNotFoundError(NotFoundError):
    code = "parent_comment_not_found"
    default_message = "Parent comment not found"


class ParentReviewMismatchError(InvalidInputError):
    code = "parent_review_mismatch"
    default_message = "A reply must belong to the same review as its parent"


class CommentTooLongError(InvalidInputError):
    code = "comment_too_long"


# ==============================================================================
# Content Sanitization
# ==============================================================================


# Basic formatting tags survive escaping
ALLOWED_TAGS = ("b", "i", "em", "strong", "code")


def sanitize_content(content: str) -> str:
    """Strip and HTML-escape comment text, re-enabling basic formatting tags."""
    escaped = html.escape(content.strip())
    for tag in ALLOWED_TAGS:
        escaped = escaped.replace(f"&lt;{tag}&gt;", f"<{tag}>")
        escaped = escaped.replace(f"&lt;/{tag}&gt;", f"</{tag}>")
    return escaped


# ==============================================================================
# Read models
# ==============================================================================


@dataclass
class CommentNode:
    comment: Comment
    like_count: int
    replies: list["CommentNode"] = field(default_factory=list)


@dataclass
class CommentDetails:
    """A comment with its visible parent and two levels of visible replies."""

    node: CommentNode
    parent: Comment | None


# ==============================================================================
# Comment Service
# ==============================================================================


class CommentService:
    """Procedures for review comments.

    Args:
        session: Cassandra session (for the comment like ledger).
        keyspace: Keyspace name.
        store: Comment store (children column ``reply_count``).
        reviews: Review service, used to check the review exists.
        policy: Access policy resolver.
        limiter: Per-author creation rate limiter.
        max_length: Maximum content length after sanitization.
        admin_override: Let admins edit/delete other users' comments.
    """

    DETAIL_DEPTH = 2

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        store: SoftDeleteStore[Comment],
        reviews: ReviewService,
        policy: AccessPolicyResolver,
        limiter: RateLimiter,
        max_length: int = 5000,
        admin_override: bool = False,
    ) -> None:
        self.store = store
        self.reviews = reviews
        self.policy = policy
        self.limiter = limiter
        self.max_length = max_length
        self.threads = ThreadIntegrityManager(store, policy, admin_override)
        self.likes = LikeLedger(
            session,
            keyspace,
            LikeTarget.COMMENT,
            self.load_descriptor,
            policy,
        )

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_by_id(self, comment_id: UUID) -> Comment:
        return await self.store.read(comment_id)

    async def load_descriptor(self, comment_id: UUID) -> ResourceDescriptor:
        return (await self.store.read(comment_id)).descriptor()

    async def get_all(self) -> list[Comment]:
        return await self.store.list_all()

    async def list_by_review(self, review_id: UUID) -> list[Comment]:
        """Visible comments on a review in thread order (oldest first)."""
        await self.reviews.get_by_id(review_id)
        return await self.store.list_by("review_id", review_id)

    async def list_replies(self, comment_id: UUID) -> list[Comment]:
        return await self.store.list_by("parent_id", comment_id)

    async def get_details(self, comment_id: UUID) -> CommentDetails:
        comment = await self.store.read(comment_id)

        parent = None
        if comment.parent_id is not None:
            try:
                parent = await self.store.read(comment.parent_id)
            except NotFoundError:
                parent = None

        node = await self._build_node(comment, self.DETAIL_DEPTH)
        return CommentDetails(node=node, parent=parent)

    async def _build_node(self, comment: Comment, depth: int) -> CommentNode:
        node = CommentNode(
            comment=comment, like_count=await self.likes.count(comment.comment_id)
        )
        if depth > 0 and comment.reply_count > 0:
            for reply in await self.list_replies(comment.comment_id):
                node.replies.append(await self._build_node(reply, depth - 1))
        return node

    async def audit_lookup(self, comment_id: UUID) -> Comment:
        """Fetch a comment even if tombstoned. Not exposed over HTTP."""
        return await self.store.read_including_deleted(comment_id)

    # ==========================================================================
    # Mutations
    # ==========================================================================

    def _clean(self, content: str) -> str:
        safe_content = sanitize_content(content)
        if not safe_content:
            raise InvalidInputError("Content cannot be empty", code="comment_empty")
        if len(safe_content) > self.max_length:
            raise CommentTooLongError(f"Comment exceeds {self.max_length} characters")
        return safe_content

    async def create(
        self,
        actor: Actor | None,
        review_id: UUID,
        content: str,
        parent_id: UUID | None = None,
    ) -> Comment:
        """Create a comment on a review, or a reply to one of its comments.

        Raises:
            UnauthorizedError: Anonymous caller.
            RateLimitedError: Author is over the creation rate limit.
            CommentTooLongError: Content too long once sanitized.
            ReviewNotFoundError: No such review.
            ParentCommentNotFoundError: Parent absent or tombstoned.
            ParentReviewMismatchError: Parent is on another review.
        """
        if actor is None:
            raise UnauthorizedError

        safe_content = self._clean(content)
        await self.limiter.check(actor.id)
        await self.reviews.get_by_id(review_id)

        if parent_id is not None:
            try:
                parent = await self.store.read(parent_id)
            except NotFoundError as e:
                raise ParentCommentNotFoundError from e
            if parent.review_id != review_id:
                raise ParentReviewMismatchError
            try:
                await self.store.attach_child(parent_id)
            except NotFoundError as e:
                raise ParentCommentNotFoundError from e

        comment = create_comment(
            review_id=review_id,
            author_id=actor.id,
            content=safe_content,
            now=utcnow(),
            parent_id=parent_id,
        )
        await self.store.insert(comment.to_row())
        await self.limiter.hit(actor.id)

        logger.info(
            "comment_created",
            comment_id=str(comment.comment_id),
            review_id=str(review_id),
            parent_id=str(parent_id) if parent_id else None,
        )
        return comment

    async def update(self, actor: Actor | None, comment_id: UUID, content: str) -> Comment:
        return await self.threads.update(comment_id, actor, self._clean(content))

    async def delete(self, actor: Actor | None, comment_id: UUID) -> DeleteOutcome:
        return await self.threads.delete(comment_id, actor)

    async def like(self, actor: Actor | None, comment_id: UUID) -> Like:
        return await self.likes.like(actor, comment_id)

    async def unlike(self, actor: Actor | None, comment_id: UUID) -> None:
        await self.likes.unlike(actor, comment_id)


def create_comment_store(
    session: "Session",
    keyspace: str,
    scan_limit: int = DEFAULT_SCAN_LIMIT,
    cas_max_attempts: int = DEFAULT_CAS_ATTEMPTS,
) -> SoftDeleteStore[Comment]:
    """Comment table access; ``reply_count`` guards hard deletes."""
    return SoftDeleteStore(
        session,
        keyspace,
        table="comments",
        key_column="comment_id",
        factory=Comment.from_row,
        not_found_error=CommentNotFoundError,
        tombstoned_error=CommentTombstonedError,
        indexed_columns=COMMENT_INDEXED_COLUMNS,
        children_column="reply_count",
        scan_limit=scan_limit,
        cas_max_attempts=cas_max_attempts,
    )
