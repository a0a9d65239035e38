"""Tests for comment creation, replies, reads and likes."""

from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest

from backlogged.comments.models import Comment
from backlogged.comments.service import (
    CommentNotFoundError,
    CommentService,
    CommentTooLongError,
    ParentCommentNotFoundError,
    ParentReviewMismatchError,
    sanitize_content,
)
from backlogged.comments.threads import CommentTombstonedError
from backlogged.core.errors import InvalidInputError, RateLimitedError, UnauthorizedError
from backlogged.core.redis import RateLimiter, RateWindow
from backlogged.likes.service import AlreadyLikedError
from backlogged.reviews.service import ReviewNotFoundError
from doubles import InMemorySoftDeleteStore, lwt_result


@pytest.fixture
def comment_store() -> InMemorySoftDeleteStore:
    return InMemorySoftDeleteStore(
        Comment.from_row,
        key_column="comment_id",
        not_found_error=CommentNotFoundError,
        tombstoned_error=CommentTombstonedError,
        children_column="reply_count",
    )


@pytest.fixture
def mock_redis():
    """Mock Redis client."""
    redis_mock = AsyncMock()
    # Mock pipeline for rate limiting
    mock_pipe = Mock()
    mock_pipe.incr = Mock()
    mock_pipe.expire = Mock()
    mock_pipe.execute = AsyncMock(return_value=[1, True])
    redis_mock.pipeline = Mock(return_value=mock_pipe)
    redis_mock.get = AsyncMock(return_value=None)
    return redis_mock


@pytest.fixture
def mock_reviews():
    reviews = Mock()
    reviews.get_by_id = AsyncMock()
    return reviews


@pytest.fixture
def comment_service(
    mock_session, comment_store, mock_reviews, policy, mock_redis
) -> CommentService:
    limiter = RateLimiter(
        mock_redis,
        prefix="comments",
        windows=[RateWindow("minute", 60, 10), RateWindow("hour", 3600, 100)],
    )
    return CommentService(
        session=mock_session,
        keyspace="test_keyspace",
        store=comment_store,
        reviews=mock_reviews,
        policy=policy,
        limiter=limiter,
        max_length=50,
    )


@pytest.fixture
def review_id() -> UUID:
    return uuid4()


class TestSanitizeContent:
    def test_escapes_script(self) -> None:
        assert sanitize_content("<script>x</script>") == "&lt;script&gt;x&lt;/script&gt;"

    def test_keeps_basic_formatting(self) -> None:
        assert sanitize_content("  <b>bold</b> & <i>it</i> ") == "<b>bold</b> &amp; <i>it</i>"


class TestCreateComment:
    @pytest.mark.asyncio
    async def test_top_level_comment(
        self, comment_service, comment_store, mock_redis, owner, review_id
    ) -> None:
        comment = await comment_service.create(owner, review_id, "  Great game  ")

        assert comment.content == "Great game"
        assert comment.parent_id is None
        assert comment.author_id == owner.id
        assert comment_store.rows[comment.comment_id]["state"] == "active"
        mock_redis.pipeline.return_value.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_anonymous(self, comment_service, review_id) -> None:
        with pytest.raises(UnauthorizedError):
            await comment_service.create(None, review_id, "Hi")

    @pytest.mark.asyncio
    async def test_empty_after_sanitizing(self, comment_service, owner, review_id) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            await comment_service.create(owner, review_id, "   ")
        assert exc_info.value.code == "comment_empty"

    @pytest.mark.asyncio
    async def test_too_long(self, comment_service, owner, review_id) -> None:
        with pytest.raises(CommentTooLongError):
            await comment_service.create(owner, review_id, "x" * 51)

    @pytest.mark.asyncio
    async def test_unknown_review(
        self, comment_service, mock_reviews, owner, review_id
    ) -> None:
        mock_reviews.get_by_id.side_effect = ReviewNotFoundError

        with pytest.raises(ReviewNotFoundError):
            await comment_service.create(owner, review_id, "Hi")

    @pytest.mark.asyncio
    async def test_rate_limited(
        self, comment_service, comment_store, mock_redis, owner, review_id
    ) -> None:
        mock_redis.get.return_value = "10"

        with pytest.raises(RateLimitedError):
            await comment_service.create(owner, review_id, "Spam")
        assert comment_store.rows == {}


class TestReplies:
    @pytest.mark.asyncio
    async def test_reply_counts_on_parent(
        self, comment_service, comment_store, owner, other_user, review_id
    ) -> None:
        parent = await comment_service.create(owner, review_id, "Parent")

        reply = await comment_service.create(
            other_user, review_id, "Reply", parent_id=parent.comment_id
        )

        assert reply.parent_id == parent.comment_id
        assert comment_store.rows[parent.comment_id]["reply_count"] == 1
        replies = await comment_service.list_replies(parent.comment_id)
        assert [r.comment_id for r in replies] == [reply.comment_id]

    @pytest.mark.asyncio
    async def test_reply_to_missing_parent(self, comment_service, owner, review_id) -> None:
        with pytest.raises(ParentCommentNotFoundError):
            await comment_service.create(owner, review_id, "Reply", parent_id=uuid4())

    @pytest.mark.asyncio
    async def test_reply_to_tombstoned_parent(
        self, comment_service, owner, other_user, review_id
    ) -> None:
        parent = await comment_service.create(owner, review_id, "Parent")
        await comment_service.create(
            other_user, review_id, "First reply", parent_id=parent.comment_id
        )
        await comment_service.delete(owner, parent.comment_id)

        with pytest.raises(ParentCommentNotFoundError):
            await comment_service.create(
                other_user, review_id, "Late reply", parent_id=parent.comment_id
            )

    @pytest.mark.asyncio
    async def test_reply_on_other_review(
        self, comment_service, comment_store, owner, review_id
    ) -> None:
        parent = await comment_service.create(owner, review_id, "Parent")

        with pytest.raises(ParentReviewMismatchError):
            await comment_service.create(
                owner, uuid4(), "Wrong review", parent_id=parent.comment_id
            )
        assert comment_store.rows[parent.comment_id]["reply_count"] == 0


class TestReads:
    @pytest.mark.asyncio
    async def test_details_include_two_reply_levels(
        self, comment_service, owner, other_user, review_id
    ) -> None:
        root = await comment_service.create(owner, review_id, "Root")
        child = await comment_service.create(
            other_user, review_id, "Child", parent_id=root.comment_id
        )
        grandchild = await comment_service.create(
            owner, review_id, "Grandchild", parent_id=child.comment_id
        )
        await comment_service.create(
            other_user, review_id, "Too deep", parent_id=grandchild.comment_id
        )

        details = await comment_service.get_details(root.comment_id)

        assert details.parent is None
        [child_node] = details.node.replies
        assert child_node.comment.comment_id == child.comment_id
        [grandchild_node] = child_node.replies
        assert grandchild_node.comment.comment_id == grandchild.comment_id
        assert grandchild_node.replies == []

    @pytest.mark.asyncio
    async def test_listing_checks_review_exists(
        self, comment_service, mock_reviews
    ) -> None:
        mock_reviews.get_by_id.side_effect = ReviewNotFoundError

        with pytest.raises(ReviewNotFoundError):
            await comment_service.list_by_review(uuid4())

    @pytest.mark.asyncio
    async def test_unknown_comment(self, comment_service) -> None:
        with pytest.raises(CommentNotFoundError):
            await comment_service.get_by_id(uuid4())


class TestCommentLikes:
    @pytest.mark.asyncio
    async def test_like_twice_conflicts(
        self, comment_service, mock_session, owner, other_user, review_id
    ) -> None:
        comment = await comment_service.create(owner, review_id, "Like me")

        like = await comment_service.like(other_user, comment.comment_id)
        assert like.user_id == other_user.id

        mock_session.aexecute.return_value = lwt_result(False)
        with pytest.raises(AlreadyLikedError):
            await comment_service.like(other_user, comment.comment_id)

    @pytest.mark.asyncio
    async def test_like_tombstoned_comment(
        self, comment_service, owner, other_user, review_id
    ) -> None:
        parent = await comment_service.create(owner, review_id, "Parent")
        await comment_service.create(
            other_user, review_id, "Reply", parent_id=parent.comment_id
        )
        await comment_service.delete(owner, parent.comment_id)

        with pytest.raises(CommentNotFoundError):
            await comment_service.like(other_user, parent.comment_id)

    @pytest.mark.asyncio
    async def test_unlike_tombstoned_comment(
        self, comment_service, owner, other_user, review_id
    ) -> None:
        parent = await comment_service.create(owner, review_id, "Parent")
        await comment_service.create(
            other_user, review_id, "Reply", parent_id=parent.comment_id
        )
        await comment_service.delete(owner, parent.comment_id)

        with pytest.raises(CommentNotFoundError):
            await comment_service.unlike(other_user, parent.comment_id)
