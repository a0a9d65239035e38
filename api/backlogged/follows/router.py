"""Follow graph API endpoints.

Edges are always created and removed on behalf of the caller, who is the
follower.
"""

from uuid import UUID

from fastapi import APIRouter, status

from backlogged.auth.dependencies import CurrentActor

from .dependencies import FollowGraphDep
from .schemas import FollowListResponse, FollowResponse


router = APIRouter(prefix="/v1/follows", tags=["follows"])


@router.post(
    "/{user_id}",
    response_model=FollowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Follow user",
)
async def follow_user(
    user_id: UUID, graph: FollowGraphDep, actor: CurrentActor
) -> FollowResponse:
    return FollowResponse.from_edge(await graph.follow(actor.id, user_id))


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unfollow user",
)
async def unfollow_user(user_id: UUID, graph: FollowGraphDep, actor: CurrentActor) -> None:
    await graph.unfollow(actor.id, user_id)


@router.get(
    "/{user_id}/followers",
    response_model=FollowListResponse,
    summary="List followers",
)
async def list_followers(user_id: UUID, graph: FollowGraphDep) -> FollowListResponse:
    edges = await graph.list_followers(user_id)
    return FollowListResponse(
        user_id=user_id,
        items=[FollowResponse.from_edge(e) for e in edges],
        total=len(edges),
    )


@router.get(
    "/{user_id}/following",
    response_model=FollowListResponse,
    summary="List followed users",
)
async def list_following(user_id: UUID, graph: FollowGraphDep) -> FollowListResponse:
    edges = await graph.list_following(user_id)
    return FollowListResponse(
        user_id=user_id,
        items=[FollowResponse.from_edge(e) for e in edges],
        total=len(edges),
    )
