"""
RecipeShare Backend — API Tests
================================

What:  HTTP behavior: status codes, error bodies, headers, auth gating.
How:   httpx AsyncClient over ASGITransport; services are patched so no
       database is needed.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from starlette.requests import Request

from app.exceptions import NotFoundError, PermissionDeniedError
from app.middleware.rate_limit import RateLimitMiddleware
from app.models.base import utcnow
from app.models.user import AuthSession
from app.schemas.recipe import RecipeListResponse, RecipeResponse


def _recipe_response(user_id) -> RecipeResponse:
    now = datetime.now(timezone.utc)
    return RecipeResponse(
        id=uuid4(), title="Toast", ingredients=["bread"], instructions=["toast"],
        user_id=user_id, created_at=now, updated_at=now,
    )


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        with patch("app.routes.health.async_session_factory", MagicMock()), \
             patch("app.routes.health.category_service.count_categories",
                   new_callable=AsyncMock, return_value=8):
            response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["categories"] == 8
        assert body["latency_ms"] is not None

    @pytest.mark.asyncio
    async def test_database_down(self, test_client):
        with patch("app.routes.health.async_session_factory", MagicMock()), \
             patch("app.routes.health.category_service.count_categories",
                   new_callable=AsyncMock, side_effect=OSError("connection refused")):
            response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["categories"] is None


class TestAuthGate:

    @pytest.mark.asyncio
    async def test_me_without_token(self, test_client):
        response = await test_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        body = response.json()
        assert body["error"] == "authentication_required"
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_create_recipe_without_token(self, test_client):
        response = await test_client.post(
            "/api/recipes", json={"title": "Toast", "ingredients": ["bread"], "instructions": ["toast"]}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_client_request_id_echoed(self, test_client):
        response = await test_client.get("/api/auth/me", headers={"X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"
        assert response.json()["request_id"] == "trace-42"

    @pytest.mark.asyncio
    async def test_unsafe_request_id_replaced(self, test_client):
        response = await test_client.get("/api/auth/me", headers={"X-Request-ID": "bad id!"})
        assert response.headers["X-Request-ID"] != "bad id!"
        assert len(response.headers["X-Request-ID"]) == 8


class TestRecipes:

    @pytest.mark.asyncio
    async def test_feed_sets_total_count(self, authed_client):
        listing = RecipeListResponse(recipes=[], total_count=7, limit=24, offset=0, has_more=False)
        with patch("app.routes.recipes.recipe_service.list_recipes",
                   new_callable=AsyncMock, return_value=listing) as list_recipes:
            response = await authed_client.get("/api/recipes?filter=quick&sort=rating&search=egg")

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "7"
        params = list_recipes.call_args[0][1]
        assert params.filter == "quick"
        assert params.sort == "rating"
        assert params.search == "egg"

    @pytest.mark.asyncio
    async def test_unknown_sort_is_422(self, authed_client):
        response = await authed_client.get("/api/recipes?sort=bogus")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_returns_201(self, authed_client, user):
        with patch("app.routes.recipes.recipe_service.create_recipe",
                   new_callable=AsyncMock, return_value=_recipe_response(user.id)):
            response = await authed_client.post(
                "/api/recipes",
                json={"title": "Toast", "ingredients": ["bread"], "instructions": ["toast"]},
            )

        assert response.status_code == 201
        assert response.json()["title"] == "Toast"

    @pytest.mark.asyncio
    async def test_negative_prep_time_is_422(self, authed_client):
        response = await authed_client.post(
            "/api/recipes",
            json={"title": "Toast", "ingredients": ["bread"], "instructions": ["toast"], "prep_time": -5},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_by_non_author_is_403(self, authed_client):
        with patch("app.routes.recipes.recipe_service.delete_recipe",
                   new_callable=AsyncMock, side_effect=PermissionDeniedError("You can only edit or delete your own recipes.")):
            response = await authed_client.delete(f"/api/recipes/{uuid4()}")

        assert response.status_code == 403
        assert response.json()["error"] == "permission_denied"

    @pytest.mark.asyncio
    async def test_missing_recipe_is_404(self, authed_client):
        with patch("app.routes.recipes.recipe_service.get_recipe",
                   new_callable=AsyncMock, side_effect=NotFoundError("Recipe", "x")):
            response = await authed_client.get(f"/api/recipes/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestRateLimit:

    def _request(self, method: str, path: str) -> Request:
        return Request({"type": "http", "method": method, "path": path, "headers": [], "query_string": b""})

    def test_auth_posts_use_auth_bucket(self):
        bucket, _, _ = RateLimitMiddleware.bucket_for(self._request("POST", "/api/auth/signin"))
        assert bucket == "auth"

    def test_everything_else_is_general(self):
        assert RateLimitMiddleware.bucket_for(self._request("GET", "/api/auth/signin"))[0] == "general"
        assert RateLimitMiddleware.bucket_for(self._request("GET", "/api/recipes"))[0] == "general"

    def test_window_blocks_then_recovers(self):
        limiter = RateLimitMiddleware(app=MagicMock())
        key = ("auth", "1.2.3.4")

        assert limiter.check(key, limit=2, window=60, now=1000.0) is None
        assert limiter.check(key, limit=2, window=60, now=1001.0) is None
        retry_after = limiter.check(key, limit=2, window=60, now=1002.0)
        assert retry_after == 59

        # First request has left the window
        assert limiter.check(key, limit=2, window=60, now=1061.0) is None


@pytest_asyncio.fixture
async def session_client(mock_db_session):
    """Client with the real auth dependencies; only the database is faked."""
    from app.database import get_db_session
    from app.main import app

    async def _db():
        try:
            yield mock_db_session
            await mock_db_session.commit()
        except Exception:
            await mock_db_session.rollback()
            raise

    app.dependency_overrides[get_db_session] = _db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


class TestExpiredSession:

    @pytest.mark.asyncio
    async def test_expired_token_is_401_and_deletion_is_committed(self, session_client, mock_db_session, make_result, user):
        expired = AuthSession(token="stale", user_id=user.id, expires_at=utcnow() - timedelta(hours=1))
        mock_db_session.execute.return_value = make_result(scalar=expired)
        cleanup_session = AsyncMock()
        factory = MagicMock()
        factory.return_value.__aenter__.return_value = cleanup_session

        with patch("app.services.auth_service.async_session_factory", factory):
            response = await session_client.get(
                "/api/me/recipes", headers={"Authorization": "Bearer stale"}
            )

        assert response.status_code == 401
        assert "expired" in response.json()["message"]
        # The request transaction is rolled back; the delete went through its own commit
        mock_db_session.rollback.assert_awaited_once()
        mock_db_session.commit.assert_not_called()
        cleanup_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_live_token_reaches_the_route(self, session_client, mock_db_session, make_result, user):
        live = AuthSession(token="fresh", user_id=user.id, expires_at=utcnow() + timedelta(hours=1))
        live.user = user
        mock_db_session.execute.side_effect = [make_result(scalar=live), make_result(rows=[])]

        response = await session_client.get("/api/me/recipes", headers={"Authorization": "Bearer fresh"})

        assert response.status_code == 200
        assert response.json() == []


class TestImageRelease:

    @pytest.mark.asyncio
    async def test_delete_removes_file_only_after_commit(self, authed_client, mock_db_session, user):
        url = f"/api/files/recipe-images/{user.id}/2024/01/01/cake.jpg"

        async def cleanup(released_url):
            assert mock_db_session.commit.await_count == 1
            assert released_url == url

        with patch("app.routes.recipes.recipe_service.delete_recipe",
                   new_callable=AsyncMock, return_value=url), \
             patch("app.routes.recipes.file_service.cleanup_url",
                   new_callable=AsyncMock, side_effect=cleanup) as cleanup_url:
            response = await authed_client.delete(f"/api/recipes/{uuid4()}")

        assert response.status_code == 200
        cleanup_url.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_commit_keeps_file(self, authed_client, mock_db_session, user):
        mock_db_session.commit.side_effect = OperationalError("COMMIT", {}, Exception("down"))
        url = f"/api/files/recipe-images/{user.id}/2024/01/01/cake.jpg"

        with patch("app.routes.recipes.recipe_service.delete_recipe",
                   new_callable=AsyncMock, return_value=url), \
             patch("app.routes.recipes.file_service.cleanup_url", new_callable=AsyncMock) as cleanup_url:
            response = await authed_client.delete(f"/api/recipes/{uuid4()}")

        assert response.status_code == 500
        cleanup_url.assert_not_called()

    @pytest.mark.asyncio
    async def test_edit_without_released_image_touches_no_files(self, authed_client, user):
        with patch("app.routes.recipes.recipe_service.update_recipe",
                   new_callable=AsyncMock, return_value=(_recipe_response(user.id), None)), \
             patch("app.routes.recipes.file_service.cleanup_url", new_callable=AsyncMock) as cleanup_url:
            response = await authed_client.patch(f"/api/recipes/{uuid4()}", json={"title": "Toast"})

        assert response.status_code == 200
        assert response.json()["title"] == "Toast"
        cleanup_url.assert_not_called()


class TestRatingBody:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", ["4", 4.0, 4.5, True])
    async def test_non_integer_scores_are_422(self, authed_client, score):
        with patch("app.routes.ratings.rating_service.submit_rating", new_callable=AsyncMock) as submit:
            response = await authed_client.put(f"/api/recipes/{uuid4()}/rating", json={"rating": score})

        assert response.status_code == 422
        submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_out_of_range_is_422(self, authed_client):
        response = await authed_client.put(f"/api/recipes/{uuid4()}/rating", json={"rating": 6})
        assert response.status_code == 422


class TestMeAndCategories:

    @pytest.mark.asyncio
    async def test_me_routes_require_sign_in(self, test_client):
        for path in ("/api/me/recipes", "/api/me/favorites", "/api/me/reviews",
                     "/api/me/reviews/received", "/api/me/dashboard"):
            response = await test_client.get(path)
            assert response.status_code == 401, path

    @pytest.mark.asyncio
    async def test_my_recipes(self, authed_client, mock_db_session, make_result, make_recipe):
        mock_db_session.execute.return_value = make_result(rows=[(make_recipe(), 4.5, 2)])

        response = await authed_client.get("/api/me/recipes")

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "1"
        assert response.headers["Cache-Control"] == "private, no-store"
        assert response.json()[0]["average_rating"] == 4.5

    @pytest.mark.asyncio
    async def test_received_reviews_empty(self, authed_client, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalars=[])

        response = await authed_client.get("/api/me/reviews/received")

        assert response.status_code == 200
        assert response.json() == {"reviews": [], "total_count": 0}
        assert response.headers["X-Total-Count"] == "0"

    @pytest.mark.asyncio
    async def test_my_reviews(self, authed_client, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(scalars=[])

        response = await authed_client.get("/api/me/reviews")

        assert response.status_code == 200
        assert response.json()["total_count"] == 0

    @pytest.mark.asyncio
    async def test_my_favorites_passes_feed_options(self, authed_client, mock_db_session, make_result):
        mock_db_session.execute.side_effect = [
            make_result(scalar=0),
            make_result(rows=[]),
            make_result(one=(4, 1, 2, 0)),
        ]

        response = await authed_client.get("/api/me/favorites?filter=easy&sort=title")

        assert response.status_code == 200
        body = response.json()
        assert body["total_count"] == 0
        assert body["counts"] == {"total": 4, "easy": 1, "quick": 2, "mine": 0}

    @pytest.mark.asyncio
    async def test_dashboard(self, authed_client, mock_db_session, make_result, profile):
        mock_db_session.execute.side_effect = [make_result(scalar=profile)] + [
            make_result(scalar=n) for n in (3, 2, 5, 1)
        ]

        response = await authed_client.get("/api/me/dashboard")

        assert response.status_code == 200
        body = response.json()
        assert body["recipes_count"] == 3
        assert body["reviews_written_count"] == 1
        assert response.headers["Cache-Control"] == "private, no-store"

    @pytest.mark.asyncio
    async def test_categories_are_public_and_cacheable(self, authed_client, mock_db_session, make_result, category):
        mock_db_session.execute.return_value = make_result(scalars=[category])

        response = await authed_client.get("/api/categories")

        assert response.status_code == 200
        assert response.json()[0]["name"] == "Desserts"
        assert response.headers["X-Total-Count"] == "1"
        assert response.headers["Cache-Control"] == "public, max-age=300"
