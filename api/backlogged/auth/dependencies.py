"""FastAPI dependencies resolving the calling actor from a bearer token."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from backlogged.auth.models import Actor
from backlogged.auth.security import actor_from_token
from backlogged.core.context import set_actor_id


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


async def get_current_actor(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Actor:
    """Resolve the authenticated actor.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        actor = actor_from_token(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    set_actor_id(actor.id)
    return actor


async def get_optional_actor(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Actor | None:
    """Resolve the actor if a valid token was sent, otherwise anonymous."""
    if not token:
        return None

    try:
        actor = actor_from_token(token)
    except JWTError:
        return None

    set_actor_id(actor.id)
    return actor


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
OptionalActor = Annotated[Actor | None, Depends(get_optional_actor)]
