"""Tests for review CRUD and the admin override."""

from datetime import UTC, datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest

from backlogged.auth.models import Actor
from backlogged.core.errors import UnauthorizedError
from backlogged.reviews.service import (
    ReviewNotFoundError,
    ReviewPermissionError,
    ReviewService,
)
from doubles import lwt_result, rows_result


@pytest.fixture
def review_service(mock_session, policy) -> ReviewService:
    return ReviewService(session=mock_session, keyspace="test_keyspace", policy=policy)


def review_row(author: Actor, rating: int = 4, minute: int = 0):
    created = datetime(2024, 1, 1, 12, minute, tzinfo=UTC)
    return SimpleNamespace(
        review_id=uuid4(),
        game_id=uuid4(),
        author_id=author.id,
        content="Solid",
        rating=rating,
        created_at=created,
        updated_at=created,
    )


class TestCreateReview:
    @pytest.mark.asyncio
    async def test_create(self, review_service, mock_session, owner) -> None:
        game_id = uuid4()

        review = await review_service.create(owner, game_id=game_id, rating=5, content="Loved it")

        assert review.author_id == owner.id
        assert review.game_id == game_id
        assert review.rating == 5
        mock_session.aexecute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_anonymous(self, review_service) -> None:
        with pytest.raises(UnauthorizedError):
            await review_service.create(None, game_id=uuid4(), rating=3, content="Meh")


class TestReadReviews:
    @pytest.mark.asyncio
    async def test_missing(self, review_service, mock_session) -> None:
        mock_session.aexecute.return_value = rows_result([])

        with pytest.raises(ReviewNotFoundError):
            await review_service.get_by_id(uuid4())

    @pytest.mark.asyncio
    async def test_list_oldest_first(self, review_service, mock_session, owner) -> None:
        late, early = review_row(owner, minute=30), review_row(owner, minute=5)
        mock_session.aexecute.return_value = rows_result([late, early])

        reviews = await review_service.get_all()

        assert [r.review_id for r in reviews] == [early.review_id, late.review_id]


class TestUpdateReview:
    @pytest.mark.asyncio
    async def test_author_updates_rating_only(
        self, review_service, mock_session, owner
    ) -> None:
        row = review_row(owner, rating=2)
        mock_session.aexecute.side_effect = [rows_result([row]), lwt_result(True)]

        review = await review_service.update(owner, row.review_id, rating=4)

        assert review.rating == 4
        assert review.content == "Solid"

    @pytest.mark.asyncio
    async def test_other_user(self, review_service, mock_session, owner, other_user) -> None:
        row = review_row(owner)
        mock_session.aexecute.return_value = rows_result([row])

        with pytest.raises(ReviewPermissionError):
            await review_service.update(other_user, row.review_id, content="Mine now")

    @pytest.mark.asyncio
    async def test_admin_override(self, review_service, mock_session, owner, admin) -> None:
        row = review_row(owner)
        mock_session.aexecute.side_effect = [rows_result([row]), lwt_result(True)]

        review = await review_service.update(admin, row.review_id, content="[removed]")

        assert review.content == "[removed]"

    @pytest.mark.asyncio
    async def test_deleted_between_read_and_write(
        self, review_service, mock_session, owner
    ) -> None:
        row = review_row(owner)
        mock_session.aexecute.side_effect = [rows_result([row]), lwt_result(False)]

        with pytest.raises(ReviewNotFoundError):
            await review_service.update(owner, row.review_id, rating=1)


class TestDeleteReview:
    @pytest.mark.asyncio
    async def test_admin_deletes(self, review_service, mock_session, owner, admin) -> None:
        row = review_row(owner)
        mock_session.aexecute.side_effect = [rows_result([row]), lwt_result(True)]

        await review_service.delete(admin, row.review_id)

        assert mock_session.aexecute.await_count == 2

    @pytest.mark.asyncio
    async def test_anonymous(self, review_service, mock_session, owner) -> None:
        mock_session.aexecute.return_value = rows_result([review_row(owner)])

        with pytest.raises(UnauthorizedError):
            await review_service.delete(None, uuid4())

    @pytest.mark.asyncio
    async def test_missing_before_permission(
        self, review_service, mock_session, other_user
    ) -> None:
        mock_session.aexecute.return_value = rows_result([])

        with pytest.raises(ReviewNotFoundError):
            await review_service.delete(other_user, uuid4())
