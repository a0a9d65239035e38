"""Tests for the HTTP layer: auth, routing and the error envelope."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

from fastapi.testclient import TestClient

from backlogged.comments.threads import DeleteOutcome
from backlogged.core.errors import InternalError, RateLimitedError
from backlogged.follows.models import FollowEdge
from backlogged.follows.service import SelfFollowError
from backlogged.playlists.service import PlaylistAccessDeniedError
from backlogged.reviews.service import ReviewNotFoundError


class TestErrorEnvelope:
    def test_domain_error_shape(self, client: TestClient, app) -> None:
        app.state.review_service = Mock(get_by_id=AsyncMock(side_effect=ReviewNotFoundError))

        response = client.get(f"/v1/reviews/{uuid4()}", headers={"X-Request-ID": "req-1"})

        assert response.status_code == 404
        assert response.json() == {
            "error": True,
            "kind": "not_found",
            "code": "review_not_found",
            "message": "Review not found",
            "status_code": 404,
            "request_id": "req-1",
        }
        assert response.headers["X-Request-ID"] == "req-1"

    def test_forbidden(self, client: TestClient, app) -> None:
        app.state.playlist_service = Mock(
            get_by_id=AsyncMock(side_effect=PlaylistAccessDeniedError)
        )

        response = client.get(f"/v1/playlists/{uuid4()}")

        assert response.status_code == 403
        assert response.json()["kind"] == "forbidden"
        assert response.json()["code"] == "playlist_access_denied"

    def test_rate_limited(self, client: TestClient, app, auth_headers) -> None:
        app.state.comment_service = Mock(create=AsyncMock(side_effect=RateLimitedError))

        response = client.post(
            "/v1/comments",
            json={"review_id": str(uuid4()), "content": "Hello"},
            headers=auth_headers,
        )

        assert response.status_code == 429
        assert response.json()["kind"] == "rate_limited"

    def test_validation_error(self, client: TestClient, app, auth_headers) -> None:
        app.state.review_service = Mock()

        response = client.post(
            "/v1/reviews",
            json={"game_id": str(uuid4()), "rating": 9, "content": "Too good"},
            headers=auth_headers,
        )

        assert response.status_code == 422
        data = response.json()
        assert data["kind"] == "validation"
        assert any(d["field"].endswith("rating") for d in data["details"])

    def test_unhandled_error_is_generic(self, client: TestClient, app) -> None:
        app.state.review_service = Mock(
            get_by_id=AsyncMock(side_effect=RuntimeError("driver exploded"))
        )

        response = client.get(f"/v1/reviews/{uuid4()}")

        assert response.status_code == 500
        data = response.json()
        assert data["kind"] == "internal"
        assert data["code"] == InternalError.code
        assert data["message"] == InternalError.default_message
        assert "driver exploded" not in data["message"]

    def test_service_unavailable(self, client: TestClient) -> None:
        response = client.get(f"/v1/reviews/{uuid4()}")

        assert response.status_code == 503


class TestAuthentication:
    def test_mutation_requires_token(self, client: TestClient, app) -> None:
        app.state.review_service = Mock()

        response = client.delete(f"/v1/reviews/{uuid4()}")

        assert response.status_code == 401
        assert response.json()["kind"] == "unauthorized"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_bad_token_rejected(self, client: TestClient, app) -> None:
        app.state.review_service = Mock()

        response = client.delete(
            f"/v1/reviews/{uuid4()}", headers={"Authorization": "Bearer nope"}
        )

        assert response.status_code == 401

    def test_bad_token_reads_anonymously(self, client: TestClient, app) -> None:
        app.state.playlist_service = Mock(get_all=AsyncMock(return_value=[]))

        response = client.get("/v1/playlists", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 200
        assert app.state.playlist_service.get_all.await_args.args[0] is None


class TestRoutes:
    def test_delete_comment_reports_outcome(
        self, client: TestClient, app, auth_headers, owner
    ) -> None:
        comment_id = uuid4()
        app.state.comment_service = Mock(
            delete=AsyncMock(return_value=DeleteOutcome.TOMBSTONED)
        )

        response = client.delete(f"/v1/comments/{comment_id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"comment_id": str(comment_id), "outcome": "tombstoned"}
        actor, called_id = app.state.comment_service.delete.await_args.args
        assert actor.id == owner.id
        assert called_id == comment_id

    def test_follow(self, client: TestClient, app, auth_headers, owner) -> None:
        target = uuid4()
        app.state.follow_graph = Mock(
            follow=AsyncMock(
                return_value=FollowEdge(
                    follower_id=owner.id,
                    following_id=target,
                    created_at=datetime(2024, 1, 1, tzinfo=UTC),
                )
            )
        )

        response = client.post(f"/v1/follows/{target}", headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["following_id"] == str(target)
        app.state.follow_graph.follow.assert_awaited_once_with(owner.id, target)

    def test_self_follow(self, client: TestClient, app, auth_headers, owner) -> None:
        app.state.follow_graph = Mock(follow=AsyncMock(side_effect=SelfFollowError))

        response = client.post(f"/v1/follows/{owner.id}", headers=auth_headers)

        assert response.status_code == 422
        assert response.json()["code"] == "self_follow"

    def test_like_review(self, client: TestClient, app, auth_headers) -> None:
        review_id = uuid4()
        service = Mock(like=AsyncMock())
        service.likes.count = AsyncMock(return_value=7)
        app.state.review_service = service

        response = client.post(f"/v1/reviews/{review_id}/like", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "target": "review",
            "target_id": str(review_id),
            "liked": True,
            "like_count": 7,
        }
