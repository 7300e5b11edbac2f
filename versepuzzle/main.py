"""FastAPI application — entry point, middleware, and health endpoint.

Creates the Verse Puzzle API with:
- API versioning via router prefix (/api/v1/)
- CORS middleware (origins from settings)
- Request logging middleware (raw ASGI — no response body buffering)
- Global exception handlers (HTTPException, validation, engine errors,
  catch-all)
- An AppContext on ``app.state.context`` holding every service
- A lifespan hook that stops all countdowns on shutdown

Run with: uvicorn versepuzzle.main:app --reload

Tier 3 orchestration module: imports from config, state, api/*, schemas.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from versepuzzle.config import Settings, get_settings
from versepuzzle.engine.errors import (
    ContentUnavailable,
    PuzzleError,
    ReviewNotFound,
    SessionNotFound,
)
from versepuzzle.schemas import ApiError, ApiResponse
from versepuzzle.state import AppContext, create_context

logger = logging.getLogger("versepuzzle")


# ---------------------------------------------------------------------------
# Request logging middleware (raw ASGI)
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware:
    """Logs method, path, status code, and duration for every request.

    Does NOT log request/response bodies, query params or auth headers;
    the bearer token is the player id.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "?")
        path = scope.get("path", "?")
        start = time.monotonic()
        status_code = 0

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, logging_send)
        finally:
            duration_ms = (time.monotonic() - start) * 1000
            logger.info("%s %s %d %.1fms", method, path, status_code, duration_ms)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _http_exception_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wraps HTTPException in ApiResponse envelope.

    If the detail is already an ApiResponse dict (from deps.py), returns it
    directly. Otherwise wraps in a generic error.
    """
    if isinstance(exc.detail, dict) and "ok" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponse(
            ok=False,
            error=ApiError(code="HTTP_ERROR", message=str(exc.detail)),
        ).model_dump(),
    )


def _validation_error_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Wraps Pydantic validation errors in ApiResponse envelope."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = " -> ".join(str(part) for part in first.get("loc", []))
        msg = first.get("msg", "Validation error")
        detail = f"{loc}: {msg}" if loc else msg
    else:
        detail = "Request validation failed."

    return JSONResponse(
        status_code=422,
        content=ApiResponse(
            ok=False,
            error=ApiError(code="VALIDATION_ERROR", message=detail),
        ).model_dump(),
    )


_PUZZLE_ERROR_STATUS: dict[type[PuzzleError], int] = {
    SessionNotFound: 404,
    ReviewNotFound: 404,
    ContentUnavailable: 503,
}


def _puzzle_error_response(request: Request, exc: PuzzleError) -> JSONResponse:
    """Maps engine errors that escaped to the caller onto the envelope.

    Content failures are retryable; the client offers a retry button.
    """
    status_code = _PUZZLE_ERROR_STATUS.get(type(exc), 400)
    if status_code >= 500:
        logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse(
            ok=False,
            error=ApiError(code=exc.code, message=exc.message, retryable=exc.retryable),
        ).model_dump(),
    )


def _unhandled_exception_response(request: Request, exc: Exception) -> JSONResponse:
    """Catches all unhandled exceptions — never leaks internals to client.

    Logs the full traceback server-side. Returns a generic 500 response.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=500,
        content=ApiResponse(
            ok=False,
            error=ApiError(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred.",
            ),
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# App creation
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    yield
    context: AppContext | None = getattr(application.state, "context", None)
    if context is not None:
        await context.runtime.shutdown()


def create_app(
    settings: Settings | None = None,
    context: AppContext | None = None,
) -> FastAPI:
    """Creates and configures the FastAPI application.

    Args:
        settings: Configuration; loaded from the environment if omitted.
        context: Prebuilt services (tests pass their own); built from
            settings if omitted.
    """
    settings = settings or get_settings()

    # Configure logging level
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    application = FastAPI(
        title="Verse Puzzle",
        description="Bible verse puzzles, character guessing and verse matching",
        version="0.1.0",
        lifespan=_lifespan,
    )
    application.state.context = context or create_context(settings)

    # -- Middleware (order matters: last added = first executed) --

    # CORS — must be outermost to handle preflight before auth
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_middleware(RequestLoggingMiddleware)

    # -- Exception handlers --
    application.add_exception_handler(StarletteHTTPException, _http_exception_response)
    application.add_exception_handler(RequestValidationError, _validation_error_response)
    application.add_exception_handler(PuzzleError, _puzzle_error_response)
    application.add_exception_handler(Exception, _unhandled_exception_response)

    # -- Routers --
    _register_routes(application)

    return application


def _register_routes(application: FastAPI) -> None:
    """Registers all API routers on the application."""
    from fastapi import APIRouter

    v1 = APIRouter(prefix="/api/v1")

    @v1.get("/health")
    async def health() -> dict[str, Any]:
        return ApiResponse(ok=True, data={"status": "healthy"}).model_dump()

    # Sub-routers (BEFORE including v1 into the app):
    from versepuzzle.api.puzzle import router as puzzle_router

    v1.include_router(puzzle_router, prefix="/puzzle", tags=["puzzle"])

    from versepuzzle.api.character import router as character_router

    v1.include_router(character_router, prefix="/character", tags=["character"])

    from versepuzzle.api.match import router as match_router

    v1.include_router(match_router, prefix="/match", tags=["match"])

    from versepuzzle.api.progress import content_router, router as progress_router

    v1.include_router(progress_router, prefix="/progress", tags=["progress"])
    v1.include_router(content_router, prefix="/content", tags=["content"])

    from versepuzzle.api.reviews import router as reviews_router

    v1.include_router(reviews_router, prefix="/reviews", tags=["reviews"])

    application.include_router(v1)


app = create_app()
