"""FastAPI dependencies for playlists."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import PlaylistService


async def get_playlist_service(request: Request) -> PlaylistService:
    """Get playlist service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "playlist_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Playlist service not available",
        )
    return app_state.playlist_service


PlaylistServiceDep = Annotated[PlaylistService, Depends(get_playlist_service)]
