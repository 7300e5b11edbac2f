"""Guess the Character routes.

- POST /rounds                 start at the player's current level
- GET  /rounds/{id}            current state
- POST /rounds/{id}/hint       reveal the next hint
- POST /rounds/{id}/guess      free-text guess; wrong guesses keep the round open
- POST /rounds/{id}/abandon
- POST /resume                 continue the saved round

The character's name is only included once the round is over.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from versepuzzle.api.deps import get_current_player, get_runtime
from versepuzzle.engine.character import CharacterRound
from versepuzzle.runtime import PuzzleRuntime
from versepuzzle.schemas import ApiResponse, Player

router = APIRouter()


class GuessRequest(BaseModel):
    answer: str = Field(max_length=200)


def round_view(rnd: CharacterRound) -> dict[str, Any]:
    view: dict[str, Any] = {
        "round_id": rnd.round_id,
        "level": rnd.level,
        "outcome": rnd.outcome,
        "score": rnd.score,
        "hints": rnd.visible_hints,
        "hints_used": rnd.hints_used,
        "max_hints": rnd.max_hints,
        "can_reveal": rnd.can_reveal(),
        "wrong_guesses": rnd.wrong_guesses,
        "time_budget_seconds": rnd.time_budget_seconds,
        "time_remaining_seconds": rnd.time_remaining_seconds,
    }
    if rnd.is_terminal:
        view["answer"] = rnd.character_name
    return view


@router.post("/rounds")
async def start_round(
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    rnd = await runtime.start_character(player.id)
    return ApiResponse(ok=True, data=round_view(rnd)).model_dump()


@router.get("/rounds/{round_id}")
async def get_round(
    round_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    rnd = runtime.get_character_round(round_id, player.id)
    return ApiResponse(ok=True, data=round_view(rnd)).model_dump()


@router.post("/rounds/{round_id}/hint")
async def reveal_hint(
    round_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    hint = await runtime.reveal_character_hint(round_id, player.id)
    rnd = runtime.get_character_round(round_id, player.id)
    return ApiResponse(
        ok=True,
        data={"applied": hint is not None, "hint": hint, "round": round_view(rnd)},
    ).model_dump()


@router.post("/rounds/{round_id}/guess")
async def guess(
    round_id: str,
    body: GuessRequest,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    correct = await runtime.guess_character(round_id, player.id, body.answer)
    rnd = runtime.get_character_round(round_id, player.id)
    return ApiResponse(
        ok=True, data={"correct": correct, "round": round_view(rnd)}
    ).model_dump()


@router.post("/rounds/{round_id}/abandon")
async def abandon_round(
    round_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    applied = await runtime.abandon_character(round_id, player.id)
    rnd = runtime.get_character_round(round_id, player.id)
    return ApiResponse(ok=True, data={"applied": applied, "round": round_view(rnd)}).model_dump()


@router.post("/resume")
async def resume_round(
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    rnd = await runtime.resume_character(player.id)
    return ApiResponse(ok=True, data=round_view(rnd)).model_dump()
