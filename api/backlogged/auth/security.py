"""JWT access token handling.

Tokens are minted by the identity service; this API only verifies them.
``create_access_token`` exists for local tooling and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from backlogged.auth.models import Actor
from backlogged.auth.permissions import UserRole, parse_role
from backlogged.config.settings import get_settings


ACCESS_TOKEN_TYPE = "access"


def create_access_token(
    user_id: UUID,
    role: UserRole = UserRole.USER,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token for ``user_id``.

    Payload: ``sub``, ``role``, ``exp``, ``iat`` and ``type="access"``.
    """
    settings = get_settings()

    now = datetime.now(UTC)
    expire = now + (
        expires_delta or timedelta(minutes=settings.auth_access_token_expire_minutes)
    )
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "exp": expire,
        "iat": now,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.auth_secret_key, algorithm=settings.auth_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Validates signature, expiration and ``type == "access"``.

    Raises:
        JWTError: If token is invalid, expired, or wrong type
    """
    settings = get_settings()

    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        msg = "Invalid token type: expected 'access'"
        raise JWTError(msg)

    return payload


def actor_from_token(token: str) -> Actor:
    """Build the ``Actor`` a token speaks for.

    Raises:
        JWTError: If the token is invalid or ``sub`` is not a UUID.
    """
    payload = decode_access_token(token)
    try:
        user_id = UUID(str(payload["sub"]))
    except (KeyError, ValueError) as e:
        msg = "Invalid subject claim"
        raise JWTError(msg) from e
    return Actor(id=user_id, role=parse_role(payload.get("role")))
