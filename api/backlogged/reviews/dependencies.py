"""FastAPI dependencies for reviews."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ReviewService


async def get_review_service(request: Request) -> ReviewService:
    """Get review service from app state."""
    app_state = request.app.state
    if not getattr(app_state, "review_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Review service not available",
        )
    return app_state.review_service


ReviewServiceDep = Annotated[ReviewService, Depends(get_review_service)]
