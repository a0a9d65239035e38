"""Tests for auth permissions."""

from uuid import uuid4

import pytest

from backlogged.auth.models import Actor
from backlogged.auth.permissions import UserRole, is_admin, parse_role


class TestUserRole:
    """Tests for UserRole enum."""

    def test_role_values(self) -> None:
        """Roles should have correct string values."""
        assert UserRole.USER.value == "user"
        assert UserRole.ADMIN.value == "admin"


class TestParseRole:
    @pytest.mark.parametrize(
        "role,expected",
        [
            (UserRole.ADMIN, UserRole.ADMIN),
            ("admin", UserRole.ADMIN),
            ("user", UserRole.USER),
        ],
    )
    def test_known_roles(self, role, expected: UserRole) -> None:
        assert parse_role(role) is expected

    @pytest.mark.parametrize("role", ["superadmin", "", None])
    def test_unknown_roles_fall_back_to_user(self, role) -> None:
        """Unknown claims never escalate."""
        assert parse_role(role) is UserRole.USER


class TestIsAdmin:
    def test_admin(self) -> None:
        assert is_admin(UserRole.ADMIN) is True
        assert is_admin("admin") is True

    def test_non_admin(self) -> None:
        assert is_admin(UserRole.USER) is False
        assert is_admin("moderator") is False

    def test_actor_property(self) -> None:
        assert Actor(id=uuid4(), role=UserRole.ADMIN).is_admin is True
        assert Actor(id=uuid4()).is_admin is False
