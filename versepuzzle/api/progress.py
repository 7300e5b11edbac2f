"""Progress and content routes.

- GET    /progress              the player's resolved progress
- DELETE /progress/{mode_id}    reset one mode's record
- GET    /content/modes         available modes and their tuning
"""

from typing import Any

from fastapi import APIRouter, Depends

from versepuzzle.api.deps import get_current_player, get_runtime, unknown_mode
from versepuzzle.modes import (
    CHARACTER_LEVELS,
    CHARACTER_MODE,
    MATCH_MODE,
    MATCH_VERSES_PER_ROUND,
    MODE_MAP,
)
from versepuzzle.runtime import PuzzleRuntime
from versepuzzle.schemas import ApiResponse, Player

router = APIRouter()
content_router = APIRouter()


@router.get("")
async def get_progress(
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    progress = await runtime.get_progress(player.id)
    return ApiResponse(ok=True, data=progress.model_dump(mode="json")).model_dump()


@router.delete("/{mode_id}")
async def reset_progress(
    mode_id: str,
    player: Player = Depends(get_current_player),
    runtime: PuzzleRuntime = Depends(get_runtime),
) -> dict[str, Any]:
    try:
        progress = await runtime.reset_progress(player.id, mode_id)
    except KeyError:
        raise unknown_mode(mode_id)
    return ApiResponse(ok=True, data=progress.model_dump(mode="json")).model_dump()


@content_router.get("/modes")
async def list_modes() -> dict[str, Any]:
    """Public — no auth. The client builds its menu from this."""
    puzzles = [
        {
            "mode_id": mode.mode_id,
            "title": mode.title,
            "granularity": mode.granularity,
            "hint_budget": mode.hint_budget,
            "time_budget_seconds": mode.time_budget_seconds,
            "base_points": mode.scoring.base_points,
            "time_bonus_max": mode.scoring.time_bonus_max,
            "penalty_per_hint": mode.scoring.penalty_per_hint,
        }
        for mode in MODE_MAP.values()
    ]
    return ApiResponse(
        ok=True,
        data={
            "puzzles": puzzles,
            "character": {
                "mode_id": CHARACTER_MODE,
                "levels": [
                    {
                        "level": lvl.level,
                        "difficulty": lvl.difficulty,
                        "testament": lvl.testament,
                        "max_hints": lvl.max_hints,
                        "points_per_correct": lvl.points_per_correct,
                        "time_limit": lvl.time_limit,
                    }
                    for lvl in CHARACTER_LEVELS
                ],
            },
            "match": {"mode_id": MATCH_MODE, "verses_per_round": MATCH_VERSES_PER_ROUND},
        },
    ).model_dump()
