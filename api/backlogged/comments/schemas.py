"""Pydantic schemas for review comments.

Request/Response models with validation for:
- Comment creation and edits
- Comment details (parent + two reply levels)
- Delete outcome
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .models import Comment
from .service import CommentDetails, CommentNode
from .threads import DeleteOutcome


MAX_CONTENT_LENGTH = 5000


def _strip_content(v: str) -> str:
    v = v.strip()
    if not v:
        msg = "Content cannot be empty"
        raise ValueError(msg)
    return v


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(BaseModel):
    """Request to create a comment on a review."""

    review_id: UUID
    parent_id: UUID | None = None
    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_LENGTH)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        return _strip_content(v)


class UpdateCommentRequest(BaseModel):
    """Request to edit a comment."""

    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_LENGTH)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        return _strip_content(v)


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(BaseModel):
    """Comment as seen by API consumers (always active)."""

    comment_id: UUID
    review_id: UUID
    parent_id: UUID | None
    author_id: UUID
    content: str
    reply_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        return cls(
            comment_id=comment.comment_id,
            review_id=comment.review_id,
            parent_id=comment.parent_id,
            author_id=comment.author_id,
            content=comment.content,
            reply_count=comment.reply_count,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class CommentNodeResponse(CommentResponse):
    like_count: int = 0
    replies: list["CommentNodeResponse"] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: CommentNode) -> "CommentNodeResponse":
        base = CommentResponse.from_comment(node.comment)
        return cls(
            **base.model_dump(),
            like_count=node.like_count,
            replies=[cls.from_node(reply) for reply in node.replies],
        )


class CommentDetailsResponse(BaseModel):
    comment: CommentNodeResponse
    parent: CommentResponse | None = None

    @classmethod
    def from_details(cls, details: CommentDetails) -> "CommentDetailsResponse":
        return cls(
            comment=CommentNodeResponse.from_node(details.node),
            parent=(
                CommentResponse.from_comment(details.parent)
                if details.parent
                else None
            ),
        )


class CommentListResponse(BaseModel):
    items: list[CommentResponse]
    total: int


class DeleteCommentResponse(BaseModel):
    comment_id: UUID
    outcome: DeleteOutcome
