"""Shared FastAPI dependencies — app context, auth and runtime injection.

Every service lives on the AppContext attached to ``app.state.context``
by ``create_app()``. Route handlers reach services through these
providers via Depends(), never by importing stubs directly. When the team
swaps a stub for a real implementation, they change ``create_context()``
in versepuzzle/state.py and every handler picks it up.

Tier 2 service module: imports from state (Tier 3 types only),
hooks/interfaces (Tier 1), schemas (Tier 1).

Usage:
    from versepuzzle.api.deps import get_current_player, get_runtime

    @router.get("/something")
    async def do_thing(
        player: Player = Depends(get_current_player),
        runtime: PuzzleRuntime = Depends(get_runtime),
    ): ...
"""

from fastapi import Depends, Header, HTTPException, Request

from versepuzzle.hooks.interfaces import AuthService, ContentSource
from versepuzzle.persistence import ReviewRepository
from versepuzzle.runtime import PuzzleRuntime
from versepuzzle.schemas import ApiError, ApiResponse, Player
from versepuzzle.state import AppContext


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def get_context(request: Request) -> AppContext:
    """Returns the AppContext of the app serving this request.

    Raises HTTPException(503) if the app was built without one.
    """
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(
            status_code=503,
            detail=ApiResponse(
                ok=False,
                error=ApiError(
                    code="SERVICE_UNAVAILABLE",
                    message="Service is not ready yet.",
                    retryable=True,
                ),
            ).model_dump(),
        )
    return context


def get_auth_service(context: AppContext = Depends(get_context)) -> AuthService:
    return context.auth


def get_runtime(context: AppContext = Depends(get_context)) -> PuzzleRuntime:
    return context.runtime


def get_content(context: AppContext = Depends(get_context)) -> ContentSource:
    return context.content


def get_reviews(context: AppContext = Depends(get_context)) -> ReviewRepository:
    return context.reviews


# ---------------------------------------------------------------------------
# Auth dependency — used by route handlers
# ---------------------------------------------------------------------------


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=ApiResponse(
            ok=False,
            error=ApiError(code="UNAUTHORIZED", message=message),
        ).model_dump(),
    )


async def get_current_player(
    authorization: str | None = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> Player:
    """Extracts and validates a Bearer token from the Authorization header.

    Raises:
        HTTPException: 401 with ApiResponse envelope on auth failure.
    """
    if not authorization:
        raise _unauthorized("Missing authorization header.")

    parts = authorization.split(" ", maxsplit=1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise _unauthorized("Invalid authorization header format.")

    player = await auth_service.validate_token(parts[1].strip())
    if player is None:
        raise _unauthorized("Invalid or expired token.")
    return player


def unknown_mode(mode_id: str) -> HTTPException:
    """404 for a mode id that isn't registered."""
    return HTTPException(
        status_code=404,
        detail=ApiResponse(
            ok=False,
            error=ApiError(code="MODE_NOT_FOUND", message=f"Unknown mode: {mode_id}"),
        ).model_dump(),
    )
