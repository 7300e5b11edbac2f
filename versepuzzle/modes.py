"""Game mode registry — single source of truth for per-mode tuning.

Every session resolves its scoring, hint budget, clock and tokenization
through this module. The engine itself holds no game-specific numbers;
a mode is just a ModeConfig handed to it.

Two layers:
  Layer 1: Verse-arrangement modes (MODE_MAP) — word tiles and phrase tiles
  Layer 2: Guess the Character level table (CHARACTER_LEVELS)

To retune a mode: change its MODE_MAP entry below. The snapshot key is
part of the stored data, so renaming it orphans saved sessions.
"""

from dataclasses import dataclass
from typing import Literal

Granularity = Literal["word", "phrase"]


# ---------------------------------------------------------------------------
# Scoring policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoringPolicy:
    """Points for a correct answer: base + time bonus - hint penalty.

    Tier 1 leaf — no project imports.
    """

    base_points: int
    time_bonus_max: int
    penalty_per_hint: int


# ---------------------------------------------------------------------------
# Layer 1: Verse-arrangement modes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModeConfig:
    """Everything the engine needs to run one verse-arrangement mode."""

    mode_id: str
    title: str
    granularity: Granularity
    scoring: ScoringPolicy
    hint_budget: int
    time_budget_seconds: int
    snapshot_key: str


VERSE_PUZZLE = "verse_puzzle"
FRAGMENT_PUZZLE = "fragment_puzzle"

MODE_MAP: dict[str, ModeConfig] = {
    # Word tiles: 50 base, up to 50 for speed, 10 off per hint.
    VERSE_PUZZLE: ModeConfig(
        mode_id=VERSE_PUZZLE,
        title="Bible Verse Puzzle",
        granularity="word",
        scoring=ScoringPolicy(base_points=50, time_bonus_max=50, penalty_per_hint=10),
        hint_budget=5,
        time_budget_seconds=30,
        snapshot_key="bibleVersePuzzle_session",
    ),
    # Phrase tiles: slower, pricier hints.
    FRAGMENT_PUZZLE: ModeConfig(
        mode_id=FRAGMENT_PUZZLE,
        title="Verse Fragments",
        granularity="phrase",
        scoring=ScoringPolicy(base_points=500, time_bonus_max=500, penalty_per_hint=100),
        hint_budget=3,
        time_budget_seconds=180,
        snapshot_key="verseFragments_session",
    ),
}


def resolve_mode(mode_id: str) -> ModeConfig:
    """Resolves a mode id to its ModeConfig.

    Args:
        mode_id: Mode identifier ("verse_puzzle", "fragment_puzzle").

    Returns:
        The ModeConfig for the given mode.

    Raises:
        KeyError: If the mode id is not found in MODE_MAP.
    """
    return MODE_MAP[mode_id]


# ---------------------------------------------------------------------------
# Layer 2: Guess the Character levels
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CharacterLevel:
    """One rung of the Guess the Character ladder."""

    level: int
    difficulty: str
    testament: str
    max_hints: int
    points_per_correct: int
    time_limit: int


CHARACTER_MODE = "guess_the_character"
CHARACTER_SNAPSHOT_KEY = "guessTheCharacter_progress"
USED_CHARACTERS_KEY = "guessTheVerse_usedCharacters"

MATCH_MODE = "match_the_verse"
MATCH_SNAPSHOT_KEY = "matchTheVerse_progress"
MATCH_VERSES_PER_ROUND = 5

CHARACTER_LEVELS: tuple[CharacterLevel, ...] = (
    CharacterLevel(1, "Easy", "Mixed", 3, 100, 60),
    CharacterLevel(2, "Easy", "Old Testament", 3, 100, 60),
    CharacterLevel(3, "Easy", "New Testament", 3, 100, 60),
    CharacterLevel(4, "Easy", "Mixed", 3, 120, 60),
    CharacterLevel(5, "Medium", "Mixed", 3, 120, 60),
    CharacterLevel(6, "Medium", "Old Testament", 3, 120, 60),
    CharacterLevel(7, "Medium", "New Testament", 3, 120, 60),
    CharacterLevel(8, "Medium", "Mixed", 3, 150, 60),
    CharacterLevel(9, "Hard", "Mixed", 3, 150, 60),
    CharacterLevel(10, "Hard", "Old Testament", 3, 150, 60),
    CharacterLevel(11, "Hard", "New Testament", 3, 150, 60),
    CharacterLevel(12, "Hard", "Mixed", 2, 200, 60),
    CharacterLevel(13, "Hard", "Mixed", 2, 200, 45),
    CharacterLevel(14, "Hard", "Old Testament Leaders", 2, 200, 45),
    CharacterLevel(15, "Hard", "New Testament Leaders", 1, 250, 45),
)


def character_level(level: int) -> CharacterLevel:
    """Returns the level entry, clamping past the last level to the last one.

    Raises:
        ValueError: If level is below 1.
    """
    if level < 1:
        raise ValueError(f"Character level must be >= 1, got {level}")
    return CHARACTER_LEVELS[min(level, len(CHARACTER_LEVELS)) - 1]


def known_mode_ids() -> tuple[str, ...]:
    """Every mode id that has a progress record."""
    return (*MODE_MAP, CHARACTER_MODE, MATCH_MODE)
