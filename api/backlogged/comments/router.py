"""Comment API endpoints.

Domain errors raised by the service propagate to the app-wide handler,
which renders them as the structured error body.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from backlogged.auth.dependencies import CurrentActor
from backlogged.likes.models import LikeTarget
from backlogged.likes.schemas import LikeStatusResponse

from .dependencies import CommentServiceDep
from .schemas import (
    CommentDetailsResponse,
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    DeleteCommentResponse,
    UpdateCommentRequest,
)


router = APIRouter(prefix="/v1/comments", tags=["comments"])


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    service: CommentServiceDep,
    actor: CurrentActor,
) -> CommentResponse:
    """Comment on a review, or reply to one of its comments.

    Rate limited per author when Redis is available.
    """
    comment = await service.create(
        actor,
        review_id=data.review_id,
        content=data.content,
        parent_id=data.parent_id,
    )
    return CommentResponse.from_comment(comment)


@router.get("", response_model=CommentListResponse, summary="List comments")
async def list_comments(
    service: CommentServiceDep,
    review_id: UUID | None = Query(None, description="Only comments on this review"),
) -> CommentListResponse:
    """Visible comments, oldest first. Deleted comments are never listed."""
    if review_id is not None:
        comments = await service.list_by_review(review_id)
    else:
        comments = await service.get_all()
    return CommentListResponse(
        items=[CommentResponse.from_comment(c) for c in comments],
        total=len(comments),
    )


@router.get("/{comment_id}", response_model=CommentResponse, summary="Get comment")
async def get_comment(comment_id: UUID, service: CommentServiceDep) -> CommentResponse:
    return CommentResponse.from_comment(await service.get_by_id(comment_id))


@router.get(
    "/{comment_id}/details",
    response_model=CommentDetailsResponse,
    summary="Get comment with parent and replies",
)
async def get_comment_details(
    comment_id: UUID, service: CommentServiceDep
) -> CommentDetailsResponse:
    return CommentDetailsResponse.from_details(await service.get_details(comment_id))


@router.put("/{comment_id}", response_model=CommentResponse, summary="Edit comment")
async def update_comment(
    comment_id: UUID,
    data: UpdateCommentRequest,
    service: CommentServiceDep,
    actor: CurrentActor,
) -> CommentResponse:
    """Edit your own comment. Deleted comments cannot be edited."""
    comment = await service.update(actor, comment_id, data.content)
    return CommentResponse.from_comment(comment)


@router.delete(
    "/{comment_id}",
    response_model=DeleteCommentResponse,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: UUID,
    service: CommentServiceDep,
    actor: CurrentActor,
) -> DeleteCommentResponse:
    """Delete your own comment.

    Comments with replies are tombstoned so the thread stays intact;
    comments without replies are removed.
    """
    outcome = await service.delete(actor, comment_id)
    return DeleteCommentResponse(comment_id=comment_id, outcome=outcome)


@router.post(
    "/{comment_id}/like", response_model=LikeStatusResponse, summary="Like comment"
)
async def like_comment(
    comment_id: UUID, service: CommentServiceDep, actor: CurrentActor
) -> LikeStatusResponse:
    await service.like(actor, comment_id)
    return LikeStatusResponse(
        target=LikeTarget.COMMENT,
        target_id=comment_id,
        liked=True,
        like_count=await service.likes.count(comment_id),
    )


@router.delete(
    "/{comment_id}/like", response_model=LikeStatusResponse, summary="Unlike comment"
)
async def unlike_comment(
    comment_id: UUID, service: CommentServiceDep, actor: CurrentActor
) -> LikeStatusResponse:
    await service.unlike(actor, comment_id)
    return LikeStatusResponse(
        target=LikeTarget.COMMENT,
        target_id=comment_id,
        liked=False,
        like_count=await service.likes.count(comment_id),
    )
