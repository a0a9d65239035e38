"""FastAPI dependencies for the follow graph."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import FollowGraph


async def get_follow_graph(request: Request) -> FollowGraph:
    """Get follow graph from app state."""
    app_state = request.app.state
    if not getattr(app_state, "follow_graph", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Follow service not available",
        )
    return app_state.follow_graph


FollowGraphDep = Annotated[FollowGraph, Depends(get_follow_graph)]
