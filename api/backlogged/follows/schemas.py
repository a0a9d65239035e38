"""Pydantic schemas for the follow graph."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from .models import FollowEdge


class FollowResponse(BaseModel):
    follower_id: UUID
    following_id: UUID
    created_at: datetime

    @classmethod
    def from_edge(cls, edge: FollowEdge) -> "FollowResponse":
        return cls(
            follower_id=edge.follower_id,
            following_id=edge.following_id,
            created_at=edge.created_at,
        )


class FollowListResponse(BaseModel):
    user_id: UUID
    items: list[FollowResponse]
    total: int
