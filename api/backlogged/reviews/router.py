"""Review API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from backlogged.auth.dependencies import CurrentActor
from backlogged.likes.models import LikeTarget
from backlogged.likes.schemas import LikeStatusResponse

from .dependencies import ReviewServiceDep
from .schemas import (
    CreateReviewRequest,
    ReviewListResponse,
    ReviewResponse,
    UpdateReviewRequest,
)


router = APIRouter(prefix="/v1/reviews", tags=["reviews"])


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create review",
)
async def create_review(
    data: CreateReviewRequest,
    service: ReviewServiceDep,
    actor: CurrentActor,
) -> ReviewResponse:
    review = await service.create(
        actor, game_id=data.game_id, rating=data.rating, content=data.content
    )
    return ReviewResponse.from_review(review)


@router.get("", response_model=ReviewListResponse, summary="List reviews")
async def list_reviews(
    service: ReviewServiceDep,
    game_id: UUID | None = Query(None, description="Only reviews of this game"),
) -> ReviewListResponse:
    reviews = await service.get_all(game_id=game_id)
    return ReviewListResponse(
        items=[ReviewResponse.from_review(r) for r in reviews],
        total=len(reviews),
    )


@router.get("/{review_id}", response_model=ReviewResponse, summary="Get review")
async def get_review(review_id: UUID, service: ReviewServiceDep) -> ReviewResponse:
    return ReviewResponse.from_review(await service.get_by_id(review_id))


@router.put("/{review_id}", response_model=ReviewResponse, summary="Edit review")
async def update_review(
    review_id: UUID,
    data: UpdateReviewRequest,
    service: ReviewServiceDep,
    actor: CurrentActor,
) -> ReviewResponse:
    """Edit a review. Admins may edit any review."""
    review = await service.update(
        actor, review_id, rating=data.rating, content=data.content
    )
    return ReviewResponse.from_review(review)


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete review",
)
async def delete_review(
    review_id: UUID, service: ReviewServiceDep, actor: CurrentActor
) -> None:
    """Delete a review. Admins may delete any review."""
    await service.delete(actor, review_id)


@router.post("/{review_id}/like", response_model=LikeStatusResponse, summary="Like review")
async def like_review(
    review_id: UUID, service: ReviewServiceDep, actor: CurrentActor
) -> LikeStatusResponse:
    await service.like(actor, review_id)
    return LikeStatusResponse(
        target=LikeTarget.REVIEW,
        target_id=review_id,
        liked=True,
        like_count=await service.likes.count(review_id),
    )


@router.delete(
    "/{review_id}/like", response_model=LikeStatusResponse, summary="Unlike review"
)
async def unlike_review(
    review_id: UUID, service: ReviewServiceDep, actor: CurrentActor
) -> LikeStatusResponse:
    await service.unlike(actor, review_id)
    return LikeStatusResponse(
        target=LikeTarget.REVIEW,
        target_id=review_id,
        liked=False,
        like_count=await service.likes.count(review_id),
    )
