"""Verse puzzle routes — tile sessions for word and phrase modes.

Session lifecycle:
- POST /sessions                  start (replaces the active one in the mode)
- GET  /sessions/{id}             current state
- POST /sessions/{id}/place|remove|swap|reset|hint
- POST /sessions/{id}/submit|abandon
- GET|POST|DELETE /resume/{mode_id}   offer, continue or drop a saved attempt

Actions on a finished session, or with a token/position that doesn't
exist, answer 200 with ``applied: false`` and the unchanged state. The
canonical text is only included once the session is over.

Tier 3 orchestration module: imports from deps, runtime, schemas.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from versepuzzle.api.deps import get_current_player, get_runtime, unknown_mode
from versepuzzle.engine.session import PuzzleSession
from versepuzzle.modes import VERSE_PUZZLE
from versepuzzle.runtime import PuzzleRuntime
from versepuzzle.schemas import ApiResponse, Player, PuzzleSnapshot

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class StartPuzzleRequest(BaseModel):
    """Request body for POST /sessions."""

    mode_id: str = VERSE_PUZZLE
    reference: str | None = None


class PlaceRequest(BaseModel):
    token_index: int
    position: int | None = None


class RemoveRequest(BaseModel):
    position: int


class SwapRequest(BaseModel):
    position_a: int
    position_b: int


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def session_view(session: PuzzleSession) -> dict[str, Any]:
    """Client-facing session state. Hides the answer while it's in play."""
    view: dict[str, Any] = {
        "session_id": session.session_id,
        "mode_id": session.mode.mode_id,
        "reference": session.reference,
        "state": session.state,
        "outcome": session.outcome,
        "score": session.score,
        "pool": [t.model_dump() for t in session.scrambled_pool],
        "arrangement": [t.model_dump() for t in session.arrangement],
        "hints_used": session.hints_used,
        "hints_remaining": session.hints_remaining,
        "time_budget_seconds": session.time_budget_seconds,
        "time_remaining_seconds": session.time_remaining_seconds,
    }
    if session.is_terminal:
        view["answer"] = " ".join(t.text for t in session.tokens)
    return view


def _resume_offer(snapshot: PuzzleSnapshot | None) -> dict[str, Any]:
    if snapshot is None:
        return {"available": False}
    return {
        "available": True,
        "session_id": snapshot.session_id,
        "reference": snapshot.reference,
        "placed": len(snapshot.arrangement),
        "total": len(snapshot.tokens),
        "hints_used": snapshot.hints_used,
        "time_remaining_seconds": snapshot.time_remaining_seconds,
        "saved_at": snapshot.saved_at.isoformat(),
    }


def _action(session: PuzzleSession, applied: bool) -> dict[str, Any]:
    return ApiResponse(
        ok=True, data={"applied": applied, "session": session_view(session)}
    ).model_dump()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/sessions")
async def start_session(
    body: StartPuzzleRequest,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    try:
        session = await runtime.start_puzzle(player.id, body.mode_id, body.reference)
    except KeyError:
        raise unknown_mode(body.mode_id)
    return ApiResponse(ok=True, data=session_view(session)).model_dump()


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    session = runtime.get_puzzle(session_id, player.id)
    return ApiResponse(ok=True, data=session_view(session)).model_dump()


@router.post("/sessions/{session_id}/place")
async def place_token(
    session_id: str,
    body: PlaceRequest,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    applied = await runtime.place(session_id, player.id, body.token_index, body.position)
    return _action(runtime.get_puzzle(session_id, player.id), applied)


@router.post("/sessions/{session_id}/remove")
async def remove_token(
    session_id: str,
    body: RemoveRequest,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    applied = await runtime.remove(session_id, player.id, body.position)
    return _action(runtime.get_puzzle(session_id, player.id), applied)


@router.post("/sessions/{session_id}/swap")
async def swap_tokens(
    session_id: str,
    body: SwapRequest,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    applied = await runtime.swap(session_id, player.id, body.position_a, body.position_b)
    return _action(runtime.get_puzzle(session_id, player.id), applied)


@router.post("/sessions/{session_id}/reset")
async def reset_session(
    session_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    applied = await runtime.reset(session_id, player.id)
    return _action(runtime.get_puzzle(session_id, player.id), applied)


@router.post("/sessions/{session_id}/hint")
async def use_hint(
    session_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    token = await runtime.hint(session_id, player.id)
    session = runtime.get_puzzle(session_id, player.id)
    return ApiResponse(
        ok=True,
        data={
            "applied": token is not None,
            "token": token.model_dump() if token is not None else None,
            "session": session_view(session),
        },
    ).model_dump()


@router.post("/sessions/{session_id}/submit")
async def submit_session(
    session_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    session = await runtime.submit(session_id, player.id)
    return ApiResponse(ok=True, data=session_view(session)).model_dump()


@router.post("/sessions/{session_id}/abandon")
async def abandon_session(
    session_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    applied = await runtime.abandon(session_id, player.id)
    return _action(runtime.get_puzzle(session_id, player.id), applied)


@router.get("/resume/{mode_id}")
async def resume_offer(
    mode_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    try:
        snapshot = await runtime.resumable_puzzle(player.id, mode_id)
    except KeyError:
        raise unknown_mode(mode_id)
    return ApiResponse(ok=True, data=_resume_offer(snapshot)).model_dump()


@router.post("/resume/{mode_id}")
async def resume_session(
    mode_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    try:
        session = await runtime.resume_puzzle(player.id, mode_id)
    except KeyError:
        raise unknown_mode(mode_id)
    return ApiResponse(ok=True, data=session_view(session)).model_dump()


@router.delete("/resume/{mode_id}")
async def discard_session(
    mode_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    try:
        await runtime.discard_puzzle(player.id, mode_id)
    except KeyError:
        raise unknown_mode(mode_id)
    return ApiResponse(ok=True, data={"discarded": True}).model_dump()
