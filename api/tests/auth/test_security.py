"""Tests for auth security functions."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from backlogged.auth.permissions import UserRole
from backlogged.auth.security import (
    actor_from_token,
    create_access_token,
    decode_access_token,
)
from backlogged.config import get_settings


def sign(payload: dict) -> str:
    settings = get_settings()
    return jwt.encode(payload, settings.auth_secret_key, algorithm=settings.auth_algorithm)


class TestAccessToken:
    """Tests for access token creation and decoding."""

    def test_create_access_token(self) -> None:
        """Should create valid access token."""
        token = create_access_token(uuid4())
        assert token is not None
        assert len(token) > 0

    def test_decode_access_token(self) -> None:
        """Should decode token and return payload."""
        user_id = uuid4()
        token = create_access_token(user_id, UserRole.ADMIN)
        payload = decode_access_token(token)

        assert payload["sub"] == str(user_id)
        assert payload["role"] == UserRole.ADMIN.value
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_decode_access_token_expired(self) -> None:
        """Should raise JWTError for expired token."""
        token = create_access_token(uuid4(), expires_delta=timedelta(seconds=-1))

        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_decode_access_token_invalid(self) -> None:
        """Should raise JWTError for invalid token."""
        with pytest.raises(JWTError):
            decode_access_token("invalid.token.here")

    def test_decode_access_token_wrong_type(self) -> None:
        """Should raise JWTError if token type is not 'access'."""
        token = sign(
            {
                "sub": str(uuid4()),
                "type": "refresh",
                "exp": datetime.now(UTC) + timedelta(minutes=5),
            }
        )

        with pytest.raises(JWTError, match="expected 'access'"):
            decode_access_token(token)


class TestActorFromToken:
    def test_actor_carries_id_and_role(self) -> None:
        user_id = uuid4()
        actor = actor_from_token(create_access_token(user_id, UserRole.ADMIN))

        assert actor.id == user_id
        assert actor.is_admin is True

    def test_unknown_role_is_plain_user(self) -> None:
        token = sign(
            {
                "sub": str(uuid4()),
                "role": "superadmin",
                "type": "access",
                "exp": datetime.now(UTC) + timedelta(minutes=5),
            }
        )

        assert actor_from_token(token).role is UserRole.USER

    def test_subject_must_be_uuid(self) -> None:
        token = sign(
            {
                "sub": "not-a-uuid",
                "type": "access",
                "exp": datetime.now(UTC) + timedelta(minutes=5),
            }
        )

        with pytest.raises(JWTError, match="subject"):
            actor_from_token(token)
