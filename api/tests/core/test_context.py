"""Tests for request context, log processors and the rate limiter."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from backlogged.core.context import (
    clear_context,
    get_actor_id,
    get_context,
    get_request_id,
    set_actor_id,
    set_request_id,
)
from backlogged.core.errors import ErrorKind, NotFoundError, RateLimitedError
from backlogged.core.logging import add_request_context, mask_sensitive_values
from backlogged.core.middleware import parse_traceparent
from backlogged.core.redis import RateLimiter, RateWindow


@pytest.fixture(autouse=True)
def _clean_context():
    clear_context()
    yield
    clear_context()


class TestRequestContext:
    def test_generates_request_id(self) -> None:
        rid = set_request_id()
        assert rid
        assert get_request_id() == rid

    def test_keeps_caller_request_id(self) -> None:
        assert set_request_id("abc") == "abc"

    def test_clear_context_resets_actor(self) -> None:
        actor_id = uuid4()
        set_request_id("r-2")
        set_actor_id(actor_id)
        assert get_actor_id() == str(actor_id)

        clear_context()

        assert get_request_id() == ""
        assert get_actor_id() is None

    def test_get_context_skips_empty(self) -> None:
        set_request_id("only-this")
        assert get_context() == {"request_id": "only-this"}


class TestLogProcessors:
    def test_adds_request_context(self) -> None:
        set_request_id("r-1")
        event = add_request_context(Mock(), "info", {"event": "x"})
        assert event["request_id"] == "r-1"

    def test_masks_secrets(self) -> None:
        event = mask_sensitive_values(
            Mock(),
            "info",
            {"event": "x", "authorization": "Bearer abcdef", "pwd_hint": "ok", "token": "abc"},
        )
        assert event["authorization"].startswith("Be")
        assert "abcd" not in event["authorization"]
        assert event["token"] == "***"
        assert event["pwd_hint"] == "ok"


class TestTraceparent:
    def test_parses_trace_id(self) -> None:
        header = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"
        assert parse_traceparent(header) == "4bf92f3577b34da6a3ce929d0e0e4736"

    def test_missing_or_malformed(self) -> None:
        assert parse_traceparent(None) is None
        assert parse_traceparent("garbage") is None


class TestErrors:
    def test_kind_maps_to_status(self) -> None:
        assert NotFoundError().status_code == 404
        assert RateLimitedError().status_code == 429
        assert ErrorKind.VALIDATION.status_code == 422

    def test_message_and_code_override(self) -> None:
        error = NotFoundError("Gone", code="gone")
        assert error.message == "Gone"
        assert error.code == "gone"
        assert NotFoundError.code == "not_found"


class TestRateLimiter:
    @pytest.mark.asyncio
    async def test_without_redis_everything_passes(self) -> None:
        limiter = RateLimiter(None, prefix="comments", windows=[RateWindow("minute", 60, 1)])
        await limiter.check(uuid4())
        await limiter.hit(uuid4())

    @pytest.mark.asyncio
    async def test_full_window_rejects(self) -> None:
        client = Mock()
        client.get = AsyncMock(side_effect=["3", "10"])
        limiter = RateLimiter(
            client,
            prefix="comments",
            windows=[RateWindow("minute", 60, 10), RateWindow("hour", 3600, 10)],
        )

        with pytest.raises(RateLimitedError, match="per hour"):
            await limiter.check(uuid4())

    @pytest.mark.asyncio
    async def test_hit_sets_expiry_per_window(self) -> None:
        pipe = Mock(execute=AsyncMock())
        client = Mock(pipeline=Mock(return_value=pipe))
        limiter = RateLimiter(
            client,
            prefix="comments",
            windows=[RateWindow("minute", 60, 10), RateWindow("hour", 3600, 100)],
        )
        actor_id = uuid4()

        await limiter.hit(actor_id)

        pipe.incr.assert_any_call(f"comments:rate:{actor_id}:minute")
        pipe.expire.assert_any_call(f"comments:rate:{actor_id}:hour", 3600)
        pipe.execute.assert_awaited_once()
