"""Match the Verse routes.

- POST /rounds                 deal a board
- GET  /rounds/{id}            current board
- POST /rounds/{id}/reveal     select a card (first half)
- POST /rounds/{id}/choose     answer the selected card with an option
- POST /rounds/{id}/abandon
- POST /resume                 continue the saved board

``choose`` answers ``result: null`` when nothing was selected or the
option is already matched; that call changes nothing.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from versepuzzle.api.deps import get_current_player, get_runtime
from versepuzzle.engine.matching import MatchRound
from versepuzzle.runtime import PuzzleRuntime
from versepuzzle.schemas import ApiResponse, Player

router = APIRouter()


class RevealRequest(BaseModel):
    card_id: int


class ChooseRequest(BaseModel):
    option_id: int


def board_view(rnd: MatchRound) -> dict[str, Any]:
    return {
        "round_id": rnd.round_id,
        "outcome": rnd.outcome,
        "score": rnd.score,
        "streak": rnd.streak,
        "selected_card": rnd.selected_card,
        "cards": [
            {
                "card_id": card.card_id,
                "reference": card.reference,
                "text": card.first_half,
                "matched": card.matched,
            }
            for card in rnd.cards
        ],
        "options": rnd.options(),
        "matched": rnd.matched_count,
        "accuracy": rnd.accuracy(),
        "achievements": rnd.achievements,
    }


@router.post("/rounds")
async def start_round(
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    rnd = await runtime.start_match(player.id)
    return ApiResponse(ok=True, data=board_view(rnd)).model_dump()


@router.get("/rounds/{round_id}")
async def get_round(
    round_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    rnd = runtime.get_match_round(round_id, player.id)
    return ApiResponse(ok=True, data=board_view(rnd)).model_dump()


@router.post("/rounds/{round_id}/reveal")
async def reveal_card(
    round_id: str,
    body: RevealRequest,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    applied = await runtime.reveal_card(round_id, player.id, body.card_id)
    rnd = runtime.get_match_round(round_id, player.id)
    return ApiResponse(ok=True, data={"applied": applied, "round": board_view(rnd)}).model_dump()


@router.post("/rounds/{round_id}/choose")
async def choose_option(
    round_id: str,
    body: ChooseRequest,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    result = await runtime.choose_option(round_id, player.id, body.option_id)
    rnd = runtime.get_match_round(round_id, player.id)
    return ApiResponse(ok=True, data={"result": result, "round": board_view(rnd)}).model_dump()


@router.post("/rounds/{round_id}/abandon")
async def abandon_round(
    round_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    applied = await runtime.abandon_match(round_id, player.id)
    rnd = runtime.get_match_round(round_id, player.id)
    return ApiResponse(ok=True, data={"applied": applied, "round": board_view(rnd)}).model_dump()


@router.post("/resume")
async def resume_round(
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    rnd = await runtime.resume_match(player.id)
    return ApiResponse(ok=True, data=board_view(rnd)).model_dump()
