"""Scoring rules for every game mode.

All results are whole, non-negative points. Fractions are floored before
the hint penalty is applied, matching how the bonuses were shown to
players.
"""

import math

from versepuzzle.modes import ScoringPolicy

MATCH_BASE_POINTS = 100
MATCH_SPEED_BONUS = 50
MATCH_SPEED_WINDOW_SECONDS = 5.0
MATCH_STREAK_BONUS = 25


def compute_score(
    outcome: str,
    time_remaining: int,
    time_budget: int,
    hints_used: int,
    hint_budget: int,
    policy: ScoringPolicy,
) -> int:
    """Scores a finished tile puzzle.

    Args:
        outcome: Terminal outcome; anything but "correct" scores 0.
        time_remaining: Seconds left on the clock at submit.
        time_budget: Seconds the session started with.
        hints_used: Hints spent this session.
        hint_budget: Hints allowed; usage beyond it isn't charged twice.
        policy: The mode's base, time bonus cap and per-hint penalty.

    Returns:
        ``base + floor(remaining / budget * bonus_max) - penalty * hints``,
        never below 0.
    """
    if outcome != "correct":
        return 0

    time_bonus = 0
    if time_budget > 0:
        fraction = min(max(time_remaining, 0), time_budget) / time_budget
        time_bonus = math.floor(fraction * policy.time_bonus_max)

    charged_hints = min(max(hints_used, 0), max(hint_budget, 0))
    penalty = policy.penalty_per_hint * charged_hints
    return max(0, policy.base_points + time_bonus - penalty)


def character_points(points_per_correct: int, max_hints: int, hints_used: int) -> int:
    """Guess the Character: each extra hint costs an equal slice of the prize."""
    if max_hints <= 0:
        return max(0, points_per_correct)
    penalty = (points_per_correct // max_hints) * hints_used
    return max(0, points_per_correct - penalty)


def match_points(seconds_taken: float, streak: int) -> int:
    """Match the Verse: flat points, a quick-answer bonus, and a streak bonus.

    ``streak`` is the streak including this match.
    """
    points = MATCH_BASE_POINTS
    if seconds_taken <= MATCH_SPEED_WINDOW_SECONDS:
        points += MATCH_SPEED_BONUS
    return points + max(streak, 0) * MATCH_STREAK_BONUS
