"""Tests for versepuzzle.main — FastAPI app, middleware, and dependency injection.

Covers: health endpoint, CORS headers, auth dependency (happy path + failures),
exception handlers (HTTPException, validation, engine errors, unhandled),
request logging.

Uses httpx.AsyncClient with ASGITransport (async test client). All tests use
explicit @pytest.mark.asyncio per strict mode.
"""

import logging

import httpx
import pytest
from fastapi import APIRouter, Depends
from httpx import ASGITransport
from pydantic import BaseModel

from versepuzzle.api.deps import get_current_player
from versepuzzle.engine.errors import InvalidTokenError
from versepuzzle.schemas import Player
from versepuzzle.tests.conftest import auth


# ---------------------------------------------------------------------------
# Helper: a tiny router for auth and error handling
# ---------------------------------------------------------------------------

_test_router = APIRouter(prefix="/api/v1/test")


@_test_router.get("/protected")
async def protected_route(player: Player = Depends(get_current_player)) -> dict:
    return {"player_id": player.id}


class _BodyModel(BaseModel):
    name: str
    age: int


@_test_router.post("/validated")
async def validated_route(body: _BodyModel) -> dict:
    return {"name": body.name}


@_test_router.get("/explode")
async def exploding_route() -> dict:
    raise RuntimeError("Something went terribly wrong")


@_test_router.get("/engine-error")
async def engine_error_route() -> dict:
    raise InvalidTokenError("Token 7 is not in the pool.")


@pytest.fixture
def test_client(make_app) -> httpx.AsyncClient:
    """Client for an app with the helper router mounted."""
    app = make_app()
    app.include_router(_test_router)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_200(self, client: httpx.AsyncClient) -> None:
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_health_returns_api_response(self, client: httpx.AsyncClient) -> None:
        body = (await client.get("/api/v1/health")).json()
        assert body["ok"] is True
        assert body["data"] == {"status": "healthy"}
        assert body["error"] is None


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


class TestCors:
    @pytest.mark.asyncio
    async def test_allowed_origin_gets_cors_header(self, client: httpx.AsyncClient) -> None:
        resp = await client.get("/api/v1/health", headers={"Origin": "http://localhost:8081"})
        assert resp.headers.get("access-control-allow-origin") == "http://localhost:8081"

    @pytest.mark.asyncio
    async def test_disallowed_origin_no_cors_header(self, client: httpx.AsyncClient) -> None:
        resp = await client.get("/api/v1/health", headers={"Origin": "http://evil.example"})
        assert "access-control-allow-origin" not in resp.headers


# ---------------------------------------------------------------------------
# Auth dependency
# ---------------------------------------------------------------------------


class TestAuthDependency:
    @pytest.mark.asyncio
    async def test_valid_bearer_token(self, test_client: httpx.AsyncClient) -> None:
        async with test_client:
            resp = await test_client.get("/api/v1/test/protected", headers=auth("player-9"))
        assert resp.status_code == 200
        assert resp.json() == {"player_id": "player-9"}

    @pytest.mark.asyncio
    async def test_missing_header_returns_401(self, test_client: httpx.AsyncClient) -> None:
        async with test_client:
            resp = await test_client.get("/api/v1/test/protected")
        assert resp.status_code == 401
        body = resp.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_empty_bearer_token_returns_401(self, test_client: httpx.AsyncClient) -> None:
        async with test_client:
            resp = await test_client.get(
                "/api/v1/test/protected", headers={"Authorization": "Bearer   "}
            )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_header_returns_401(self, test_client: httpx.AsyncClient) -> None:
        async with test_client:
            resp = await test_client.get(
                "/api/v1/test/protected", headers={"Authorization": "Token player-1"}
            )
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid authorization header format."


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


class TestExceptionHandlers:
    @pytest.mark.asyncio
    async def test_unhandled_exception_returns_500(self, test_client: httpx.AsyncClient) -> None:
        async with test_client:
            resp = await test_client.get("/api/v1/test/explode")
        assert resp.status_code == 500
        body = resp.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "INTERNAL_ERROR"
        assert "went terribly wrong" not in resp.text

    @pytest.mark.asyncio
    async def test_engine_error_returns_400_with_code(self, test_client: httpx.AsyncClient) -> None:
        async with test_client:
            resp = await test_client.get("/api/v1/test/engine-error")
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "INVALID_TOKEN"
        assert error["message"] == "Token 7 is not in the pool."
        assert error["retryable"] is False

    @pytest.mark.asyncio
    async def test_validation_error_returns_422(self, test_client: httpx.AsyncClient) -> None:
        async with test_client:
            resp = await test_client.post("/api/v1/test/validated", json={"name": "test"})
        assert resp.status_code == 422
        body = resp.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert "age" in body["error"]["message"]

    @pytest.mark.asyncio
    async def test_404_returns_api_response(self, client: httpx.AsyncClient) -> None:
        resp = await client.get("/api/v1/nonexistent")
        assert resp.status_code == 404
        body = resp.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "HTTP_ERROR"


# ---------------------------------------------------------------------------
# Request logging
# ---------------------------------------------------------------------------


class TestRequestLogging:
    @pytest.mark.asyncio
    async def test_request_is_logged(
        self, client: httpx.AsyncClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="versepuzzle"):
            await client.get("/api/v1/health")

        log_messages = [r.message for r in caplog.records if r.name == "versepuzzle"]
        assert any(
            "GET" in msg and "/api/v1/health" in msg and "200" in msg and "ms" in msg
            for msg in log_messages
        )

    @pytest.mark.asyncio
    async def test_auth_header_is_not_logged(
        self, client: httpx.AsyncClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="versepuzzle"):
            await client.get("/api/v1/progress", headers=auth("secret-player"))
        assert "secret-player" not in caplog.text
