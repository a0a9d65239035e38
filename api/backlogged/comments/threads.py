"""Comment lifecycle: Active -> Tombstoned | Removed.

A comment with replies is tombstoned on delete so the thread keeps its
shape; a comment without replies is removed outright. There is no way back
from Tombstoned and a tombstone is never removed.
"""

from enum import Enum
from uuid import UUID

import structlog

from backlogged.access.policy import AccessPolicyResolver
from backlogged.auth.models import Actor
from backlogged.core.database.soft_delete import SoftDeleteStore, utcnow
from backlogged.core.errors import ConflictError, ForbiddenError

from .models import Comment


logger = structlog.get_logger(__name__)


class CommentPermissionError(ForbiddenError):
    code = "comment_permission_denied"
    default_message = "Only the author can change this comment"


class CommentTombstonedError(ForbiddenError):
    code = "comment_deleted"
    default_message = "Deleted comments cannot be edited"


class DeleteOutcome(str, Enum):
    TOMBSTONED = "tombstoned"
    REMOVED = "removed"


class ThreadIntegrityManager:
    """Delete and edit comments without breaking reply chains.

    Args:
        store: Comment store; ``reply_count`` is its children column.
        policy: Access policy resolver.
        admin_override: Let admins edit/delete other users' comments.
    """

    def __init__(
        self,
        store: SoftDeleteStore[Comment],
        policy: AccessPolicyResolver,
        admin_override: bool = False,
    ) -> None:
        self.store = store
        self.policy = policy
        self.admin_override = admin_override

    async def delete(self, comment_id: UUID, actor: Actor | None) -> DeleteOutcome:
        """Delete a comment, tombstoning it when anything replies to it.

        Raises:
            CommentNotFoundError: Absent or already tombstoned.
            UnauthorizedError: Anonymous caller.
            CommentPermissionError: Caller may not delete it.
        """
        comment = await self.store.read(comment_id)
        self.policy.check_mutate(
            actor, comment.descriptor(self.admin_override), CommentPermissionError
        )

        if comment.reply_count > 0:
            outcome = await self._tombstone(comment)
        else:
            try:
                await self.store.hard_delete(comment_id)
            except ConflictError:
                # A reply got attached between the read and the delete
                outcome = await self._tombstone(comment)
            else:
                outcome = DeleteOutcome.REMOVED
                if comment.parent_id is not None:
                    await self._detach_from_parent(comment)

        logger.info(
            "comment_deleted",
            comment_id=str(comment_id),
            review_id=str(comment.review_id),
            outcome=outcome.value,
        )
        return outcome

    async def _tombstone(self, comment: Comment) -> DeleteOutcome:
        await self.store.soft_delete(comment.comment_id)
        return DeleteOutcome.TOMBSTONED

    async def _detach_from_parent(self, comment: Comment) -> None:
        if not await self.store.detach_child(comment.parent_id):
            logger.warning(
                "reply_count_not_decremented",
                parent_id=str(comment.parent_id),
                comment_id=str(comment.comment_id),
            )

    async def update(
        self, comment_id: UUID, actor: Actor | None, content: str
    ) -> Comment:
        """Replace the content of an active comment.

        Raises:
            CommentNotFoundError: No such comment.
            UnauthorizedError: Anonymous caller.
            CommentPermissionError: Caller may not edit it.
            CommentTombstonedError: The comment is tombstoned.
        """
        comment = await self.store.read_including_deleted(comment_id)
        self.policy.check_mutate(
            actor, comment.descriptor(self.admin_override), CommentPermissionError
        )
        if comment.is_tombstoned:
            raise CommentTombstonedError

        updated = await self.store.update_active(
            comment_id, {"content": content, "updated_at": utcnow()}
        )
        logger.info("comment_updated", comment_id=str(comment_id))
        return updated
