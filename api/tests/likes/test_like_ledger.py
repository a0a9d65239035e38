"""Tests for the like ledger."""

from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from backlogged.access.policy import ResourceDescriptor, Visibility
from backlogged.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from backlogged.likes.models import LIKES_TABLES_CQL, LikeTarget
from backlogged.likes.service import AlreadyLikedError, LikeLedger, NotLikedError
from doubles import lwt_result, rows_result


@pytest.fixture
def load_target():
    return AsyncMock()


@pytest.fixture
def ledger(mock_session, load_target, policy) -> LikeLedger:
    return LikeLedger(
        mock_session, "test_keyspace", LikeTarget.PLAYLIST, load_target, policy
    )


class TestLikeTables:
    def test_one_table_per_target(self) -> None:
        assert len(LIKES_TABLES_CQL) == len(LikeTarget)
        assert any("{keyspace}.review_likes" in cql for cql in LIKES_TABLES_CQL)

    def test_statements_use_target_table(self, ledger, mock_session) -> None:
        prepared = [call.args[0] for call in mock_session.prepare.call_args_list]
        assert all("test_keyspace.playlist_likes" in cql for cql in prepared)


class TestLike:
    @pytest.mark.asyncio
    async def test_like_visible_target(
        self, ledger, load_target, mock_session, owner, other_user
    ) -> None:
        target_id = uuid4()
        load_target.return_value = ResourceDescriptor(owner_id=owner.id)

        like = await ledger.like(other_user, target_id)

        assert like.target is LikeTarget.PLAYLIST
        assert like.target_id == target_id
        assert like.user_id == other_user.id
        assert mock_session.aexecute.call_args.args[1][:2] == [target_id, other_user.id]

    @pytest.mark.asyncio
    async def test_duplicate_like(
        self, ledger, load_target, mock_session, owner, other_user
    ) -> None:
        load_target.return_value = ResourceDescriptor(owner_id=owner.id)
        mock_session.aexecute.return_value = lwt_result(False)

        with pytest.raises(AlreadyLikedError):
            await ledger.like(other_user, uuid4())

    @pytest.mark.asyncio
    async def test_anonymous(self, ledger, load_target) -> None:
        with pytest.raises(UnauthorizedError):
            await ledger.like(None, uuid4())
        load_target.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_target(self, ledger, load_target, mock_session, owner) -> None:
        load_target.side_effect = NotFoundError

        with pytest.raises(NotFoundError):
            await ledger.like(owner, uuid4())
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_hidden_target(
        self, ledger, load_target, mock_session, owner, other_user
    ) -> None:
        load_target.return_value = ResourceDescriptor(
            owner_id=owner.id, visibility=Visibility.PRIVATE
        )

        with pytest.raises(ForbiddenError):
            await ledger.like(other_user, uuid4())
        mock_session.aexecute.assert_not_awaited()


class TestUnlike:
    @pytest.mark.asyncio
    async def test_unlike(self, ledger, load_target, mock_session, owner) -> None:
        load_target.return_value = ResourceDescriptor(owner_id=owner.id)

        await ledger.unlike(owner, uuid4())

        mock_session.aexecute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unlike_without_like(
        self, ledger, load_target, mock_session, owner
    ) -> None:
        load_target.return_value = ResourceDescriptor(owner_id=owner.id)
        mock_session.aexecute.return_value = lwt_result(False)

        with pytest.raises(NotLikedError):
            await ledger.unlike(owner, uuid4())


class TestCounts:
    @pytest.mark.asyncio
    async def test_count(self, ledger, mock_session) -> None:
        mock_session.aexecute.return_value = rows_result([SimpleNamespace(count=3)])

        assert await ledger.count(uuid4()) == 3

    @pytest.mark.asyncio
    async def test_has_liked(self, ledger, mock_session, owner) -> None:
        mock_session.aexecute.return_value = rows_result([SimpleNamespace(user_id=owner.id)])
        assert await ledger.has_liked(owner, uuid4()) is True

        mock_session.aexecute.return_value = rows_result([])
        assert await ledger.has_liked(owner, uuid4()) is False
        assert await ledger.has_liked(None, uuid4()) is False
