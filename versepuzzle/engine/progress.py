"""Player progress updates — applied once per finished round.

Every function takes a PlayerProgress and returns an updated copy; the
input is never mutated. The runtime persists whatever comes back.

Rules shared by all modes:
- the round's score is added to the mode and to the player total;
- a solved round moves the mode one level up and records the level it
  completed;
- the player's level is the highest level reached in any mode;
- achievements are kept once, in the order they were earned.
"""

from __future__ import annotations

from datetime import datetime, timezone

from versepuzzle.modes import CHARACTER_MODE, MATCH_MODE
from versepuzzle.schemas import (
    CharacterSnapshot,
    MatchSnapshot,
    ModeProgress,
    PlayerProgress,
    PuzzleSnapshot,
)

PERFECT_VERSE = "perfect_verse"
PERFECT_ANSWER = "perfect_answer"
STREAK_MASTER = "streak_master"
STREAK_MASTER_THRESHOLD = 5


def default_progress(player_id: str) -> PlayerProgress:
    """A brand-new player's record."""
    return PlayerProgress(player_id=player_id)


def _add_unique(existing: list[str], new: list[str]) -> list[str]:
    merged = list(existing)
    for item in new:
        if item not in merged:
            merged.append(item)
    return merged


def _apply(
    progress: PlayerProgress,
    mode_id: str,
    *,
    points: int,
    solved: bool,
    hints_used: int,
    streak: int,
    achievements: list[str],
    now: datetime | None,
) -> PlayerProgress:
    now = now or datetime.now(timezone.utc)
    updated = progress.model_copy(deep=True)
    mode = updated.modes.get(mode_id, ModeProgress()).model_copy(deep=True)

    mode.score += points
    mode.hints_used += hints_used
    mode.games_played += 1
    mode.last_played = now
    if solved:
        if mode.level not in mode.completed_levels:
            mode.completed_levels.append(mode.level)
        mode.level += 1
    mode.achievements = _add_unique(mode.achievements, achievements)
    updated.modes[mode_id] = mode

    updated.total_score += points
    updated.streak = streak
    updated.level = max(m.level for m in updated.modes.values())
    updated.completed_levels = sorted(
        {lvl for m in updated.modes.values() for lvl in m.completed_levels}
    )
    updated.achievements = _add_unique(updated.achievements, achievements)
    updated.updated_at = now
    return updated


def record_puzzle_result(
    progress: PlayerProgress,
    snapshot: PuzzleSnapshot,
    now: datetime | None = None,
) -> PlayerProgress:
    """Folds a finished tile puzzle into the player's progress."""
    solved = snapshot.outcome == "correct"
    streak = progress.streak + 1 if solved else 0
    earned: list[str] = []
    if solved and snapshot.hints_used == 0:
        earned.append(PERFECT_VERSE)
    if streak >= STREAK_MASTER_THRESHOLD:
        earned.append(STREAK_MASTER)
    return _apply(
        progress,
        snapshot.mode_id,
        points=snapshot.score or 0,
        solved=solved,
        hints_used=snapshot.hints_used,
        streak=streak,
        achievements=earned,
        now=now,
    )


def record_character_result(
    progress: PlayerProgress,
    snapshot: CharacterSnapshot,
    now: datetime | None = None,
) -> PlayerProgress:
    """Folds a finished Guess the Character round into the player's progress.

    The mode level follows the round's level, so a resumed ladder keeps
    its place even if the mode record was reset in between.
    """
    solved = snapshot.outcome == "correct"
    earned = [PERFECT_ANSWER] if solved and snapshot.hints_used == 0 else []
    base = progress.model_copy(deep=True)
    mode = base.modes.get(CHARACTER_MODE, ModeProgress())
    base.modes[CHARACTER_MODE] = mode.model_copy(update={"level": snapshot.level})
    return _apply(
        base,
        CHARACTER_MODE,
        points=snapshot.score or 0,
        solved=solved,
        hints_used=snapshot.hints_used,
        streak=progress.streak + 1 if solved else 0,
        achievements=earned,
        now=now,
    )


def record_match_result(
    progress: PlayerProgress,
    snapshot: MatchSnapshot,
    now: datetime | None = None,
) -> PlayerProgress:
    """Folds a finished Match the Verse board into the player's progress."""
    solved = snapshot.outcome == "correct"
    updated = _apply(
        progress,
        MATCH_MODE,
        points=snapshot.score if solved else 0,
        solved=solved,
        hints_used=0,
        streak=snapshot.streak if solved else 0,
        achievements=list(snapshot.achievements),
        now=now,
    )
    if solved:
        updated.matched_references = _add_unique(
            updated.matched_references, [card.reference for card in snapshot.cards]
        )
    return updated


def reset_mode(progress: PlayerProgress, mode_id: str) -> PlayerProgress:
    """Puts one mode back to its defaults; other modes and totals stay."""
    updated = progress.model_copy(deep=True)
    updated.modes[mode_id] = ModeProgress()
    updated.level = max((m.level for m in updated.modes.values()), default=1)
    updated.updated_at = datetime.now(timezone.utc)
    return updated
