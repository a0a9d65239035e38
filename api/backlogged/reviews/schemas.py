"""Pydantic schemas for reviews."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import MAX_RATING, MIN_RATING, Review


MAX_CONTENT_LENGTH = 10000


def _strip_content(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        msg = "Content is required"
        raise ValueError(msg)
    return v


class CreateReviewRequest(BaseModel):
    game_id: UUID
    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_LENGTH)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        return _strip_content(v)


class UpdateReviewRequest(BaseModel):
    rating: int | None = Field(None, ge=MIN_RATING, le=MAX_RATING)
    content: str | None = Field(None, min_length=1, max_length=MAX_CONTENT_LENGTH)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str | None) -> str | None:
        """Strip whitespace and validate content."""
        return _strip_content(v)

    @model_validator(mode="after")
    def require_change(self) -> "UpdateReviewRequest":
        if self.rating is None and self.content is None:
            msg = "Nothing to update"
            raise ValueError(msg)
        return self


class ReviewResponse(BaseModel):
    review_id: UUID
    game_id: UUID
    author_id: UUID
    rating: int
    content: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_review(cls, review: Review) -> "ReviewResponse":
        return cls(
            review_id=review.review_id,
            game_id=review.game_id,
            author_id=review.author_id,
            rating=review.rating,
            content=review.content,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )


class ReviewListResponse(BaseModel):
    items: list[ReviewResponse]
    total: int
