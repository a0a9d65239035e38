"""Pydantic schemas shared by the like endpoints."""

from uuid import UUID

from pydantic import BaseModel

from .models import LikeTarget


class LikeStatusResponse(BaseModel):
    """Like state of a target after a like/unlike call."""

    target: LikeTarget
    target_id: UUID
    liked: bool
    like_count: int
