"""Core data models — shared Pydantic types for the Verse Puzzle service.

Every token, session snapshot, progress record and API response flows
through these types. Snapshots are what the persistence layer writes to
storage, so their shape is the on-disk format for resume.

This is a Tier 1 leaf module: it imports only from pydantic and the stdlib.
No project imports allowed — everything else imports from here.

Usage:
    from versepuzzle.schemas import Token, PuzzleSnapshot, PlayerProgress
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Outcome = Literal["in_progress", "correct", "incorrect", "timed_out", "abandoned"]
"""Round outcome. Everything except in_progress is terminal."""

TERMINAL_OUTCOMES: frozenset[str] = frozenset(
    {"correct", "incorrect", "timed_out", "abandoned"}
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Puzzle tokens
# ---------------------------------------------------------------------------


class Token(BaseModel):
    """A word or phrase cut from the source text.

    Frozen — tokens never change once extracted. ``index`` is the canonical
    0-based position, so two tokens with the same text are still distinct.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    index: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Session snapshots (local key-value storage, one per mode and player)
# ---------------------------------------------------------------------------


class PuzzleSnapshot(BaseModel):
    """Serialized state of one verse-arrangement attempt.

    Written after every mutation and on the terminal transition. Enough to
    rebuild the session exactly: both token lists, hints and the clock.
    """

    kind: Literal["puzzle"] = "puzzle"
    session_id: str
    player_id: str
    mode_id: str
    reference: str | None = None
    source_text: str
    tokens: list[Token]
    scrambled_pool: list[Token]
    arrangement: list[Token] = Field(default_factory=list)
    hints_used: int = 0
    hint_budget: int
    time_budget_seconds: int
    time_remaining_seconds: int
    outcome: Outcome = "in_progress"
    score: int | None = None
    saved_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def check_restorable(self) -> "PuzzleSnapshot":
        """Rejects snapshots that could not be played from.

        The pool and the arrangement together must hold every token exactly
        once, and no more hints can be used than the budget allows.
        """
        held = sorted((t.index, t.text) for t in self.scrambled_pool + self.arrangement)
        if held != sorted((t.index, t.text) for t in self.tokens):
            raise ValueError("scrambled_pool and arrangement must partition tokens")
        if not 0 <= self.hints_used <= self.hint_budget:
            raise ValueError(
                f"hints_used ({self.hints_used}) must be between 0 and "
                f"hint_budget ({self.hint_budget})"
            )
        return self


class CharacterSnapshot(BaseModel):
    """Serialized state of one Guess the Character round."""

    kind: Literal["character"] = "character"
    round_id: str
    player_id: str
    level: int
    character_name: str
    hints: list[str]
    revealed_hints: int = 1
    hints_used: int = 0
    max_hints: int
    points_per_correct: int
    wrong_guesses: int = 0
    time_budget_seconds: int
    time_remaining_seconds: int
    outcome: Outcome = "in_progress"
    score: int | None = None
    saved_at: datetime = Field(default_factory=_utcnow)


class MatchCard(BaseModel):
    """First half of a verse, waiting to be paired with its second half."""

    card_id: int
    reference: str
    first_half: str
    second_half: str
    matched: bool = False
    incorrect_attempts: int = 0


class MatchSnapshot(BaseModel):
    """Serialized state of one Match the Verse round."""

    kind: Literal["match"] = "match"
    round_id: str
    player_id: str
    cards: list[MatchCard]
    option_order: list[int]
    selected_card: int | None = None
    score: int = 0
    streak: int = 0
    best_streak: int = 0
    elapsed_seconds: float = 0.0
    outcome: Outcome = "in_progress"
    achievements: list[str] = Field(default_factory=list)
    saved_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Player progress (durable, keyed by player identity)
# ---------------------------------------------------------------------------


class ModeProgress(BaseModel):
    """Per-mode slice of a player's progress."""

    level: int = 1
    score: int = 0
    hints_used: int = 0
    games_played: int = 0
    completed_levels: list[int] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    last_played: datetime | None = None


class PlayerProgress(BaseModel):
    """Long-lived aggregate for one player.

    Mutable in the sense that the update functions in
    ``versepuzzle.engine.progress`` hand back modified copies after every
    finished round.
    """

    player_id: str
    level: int = 1
    total_score: int = 0
    streak: int = 0
    completed_levels: list[int] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    matched_references: list[str] = Field(default_factory=list)
    modes: dict[str, ModeProgress] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class Verse(BaseModel):
    """A verse as supplied by the content source."""

    model_config = ConfigDict(frozen=True)

    reference: str
    text: str


class Character(BaseModel):
    """A character with ordered hints (vaguest first)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    hints: list[str]
    difficulty: str = "easy"
    testament: str = "old"
    description: str | None = None


# ---------------------------------------------------------------------------
# Community reviews
# ---------------------------------------------------------------------------

GameType = Literal["Bible Verse Puzzle", "Guess the Character", "Match the Verse", "Other"]


class Review(BaseModel):
    """One player's rating of a game, shown in the community feed.

    Frozen. Likes change by replacing the review with a copy.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str
    player_id: str
    user_name: str = Field(min_length=1, max_length=80)
    game_type: GameType
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=2000)
    created_at: datetime = Field(default_factory=_utcnow)
    likes: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class Player(BaseModel):
    """Identity returned by the auth layer. Frozen."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


# ---------------------------------------------------------------------------
# API envelope
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    """Error detail inside ApiResponse.error.

    code is an uppercase string like "SESSION_NOT_FOUND" or
    "CONTENT_UNAVAILABLE". retryable tells the client to offer a retry.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    retryable: bool = False


class ApiResponse(BaseModel):
    """Universal response envelope — every API endpoint returns this shape."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    data: Any | None = None
    error: ApiError | None = None
