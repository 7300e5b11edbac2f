"""Guess the Character — free-text guessing with progressive hints.

One hint is visible when the round starts. Each further reveal counts as
a hint used and lowers the prize. A wrong guess doesn't end the round;
the player may try again until the clock runs out.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from versepuzzle.engine.errors import ContentUnavailable
from versepuzzle.engine.scoring import character_points
from versepuzzle.engine.validator import answer_matches
from versepuzzle.modes import CharacterLevel
from versepuzzle.schemas import TERMINAL_OUTCOMES, Character, CharacterSnapshot, Outcome

logger = logging.getLogger(__name__)


def pick_character(
    characters: Sequence[Character],
    used_names: Sequence[str] = (),
    rng: random.Random | None = None,
) -> Character:
    """Chooses a character the player hasn't seen yet.

    Once every character has been used, any character may come up again.

    Raises:
        ContentUnavailable: If there are no characters at all.
    """
    if not characters:
        raise ContentUnavailable("No characters are available.")
    rng = rng or random.Random()
    used = set(used_names)
    fresh = [c for c in characters if c.name not in used]
    return rng.choice(fresh or list(characters))


class CharacterRound:
    """One character to guess at a given level."""

    def __init__(
        self,
        *,
        round_id: str,
        player_id: str,
        character: Character,
        level: CharacterLevel,
    ) -> None:
        hints = [h for h in character.hints if h.strip()]
        if not hints or not character.name.strip():
            raise ContentUnavailable(f"Character {character.id!r} has no hints or name.")
        self.round_id = round_id
        self.player_id = player_id
        self.level = level.level
        self.character_name = character.name
        self.hints = hints
        self.max_hints = level.max_hints
        self.points_per_correct = level.points_per_correct
        self.time_budget_seconds = level.time_limit
        self._revealed = 1
        self._hints_used = 0
        self._wrong_guesses = 0
        self._time_remaining = level.time_limit
        self._outcome: str = "in_progress"
        self._score: int | None = None

    @classmethod
    def from_snapshot(cls, snapshot: CharacterSnapshot) -> CharacterRound:
        rnd = cls.__new__(cls)
        rnd.round_id = snapshot.round_id
        rnd.player_id = snapshot.player_id
        rnd.level = snapshot.level
        rnd.character_name = snapshot.character_name
        rnd.hints = list(snapshot.hints)
        rnd.max_hints = snapshot.max_hints
        rnd.points_per_correct = snapshot.points_per_correct
        rnd.time_budget_seconds = snapshot.time_budget_seconds
        rnd._revealed = snapshot.revealed_hints
        rnd._hints_used = snapshot.hints_used
        rnd._wrong_guesses = snapshot.wrong_guesses
        rnd._time_remaining = snapshot.time_remaining_seconds
        rnd._outcome = snapshot.outcome
        rnd._score = snapshot.score
        return rnd

    @property
    def outcome(self) -> Outcome:
        return self._outcome  # type: ignore[return-value]

    @property
    def is_active(self) -> bool:
        return self._outcome == "in_progress"

    @property
    def is_terminal(self) -> bool:
        return self._outcome in TERMINAL_OUTCOMES

    @property
    def score(self) -> int | None:
        return self._score

    @property
    def hints_used(self) -> int:
        return self._hints_used

    @property
    def wrong_guesses(self) -> int:
        return self._wrong_guesses

    @property
    def time_remaining_seconds(self) -> int:
        return self._time_remaining

    @property
    def visible_hints(self) -> list[str]:
        return self.hints[: self._revealed]

    def can_reveal(self) -> bool:
        return (
            self.is_active
            and self._hints_used < self.max_hints
            and self._revealed < len(self.hints)
        )

    def reveal_hint(self) -> str | None:
        """Shows the next hint, or None when none can be given."""
        if not self.can_reveal():
            return None
        hint = self.hints[self._revealed]
        self._revealed += 1
        self._hints_used += 1
        return hint

    def guess(self, answer: str) -> bool:
        """Checks a guess. A right answer ends the round as correct."""
        if not self.is_active:
            return False
        if answer_matches(answer, self.character_name):
            self._outcome = "correct"
            self._score = character_points(
                self.points_per_correct, self.max_hints, self._hints_used
            )
            logger.info(
                "Character round %s solved at level %d: score=%d",
                self.round_id, self.level, self._score,
            )
            return True
        self._wrong_guesses += 1
        return False

    def tick(self, seconds: int = 1) -> bool:
        if not self.is_active:
            return False
        self._time_remaining = max(0, self._time_remaining - seconds)
        if self._time_remaining == 0:
            self._outcome = "timed_out"
            self._score = 0
        return True

    def abandon(self) -> bool:
        if not self.is_active:
            return False
        self._outcome = "abandoned"
        self._score = 0
        return True

    def snapshot(self) -> CharacterSnapshot:
        return CharacterSnapshot(
            round_id=self.round_id,
            player_id=self.player_id,
            level=self.level,
            character_name=self.character_name,
            hints=list(self.hints),
            revealed_hints=self._revealed,
            hints_used=self._hints_used,
            max_hints=self.max_hints,
            points_per_correct=self.points_per_correct,
            wrong_guesses=self._wrong_guesses,
            time_budget_seconds=self.time_budget_seconds,
            time_remaining_seconds=self._time_remaining,
            outcome=self.outcome,
            score=self._score,
        )
