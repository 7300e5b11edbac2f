"""Match the Verse — pair each verse's first half with its second half.

The player reveals a card (first half), then picks one of the shuffled
second halves. Quick answers and streaks earn extra points; a miss
resets the streak and the card can be tried again later. The round is
solved once every card is matched.

Timing is passed in by the caller (``now`` in seconds from any monotonic
clock), which keeps this module free of wall-clock reads.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from versepuzzle.engine.errors import ContentUnavailable
from versepuzzle.engine.scoring import match_points
from versepuzzle.schemas import MatchCard, MatchSnapshot, Outcome, Verse

logger = logging.getLogger(__name__)

STREAK_MASTER = "Streak Master"
PERFECT_SCORE = "Perfect Score"
SPEED_RUNNER = "Speed Runner"

STREAK_MASTER_THRESHOLD = 5
SPEED_RUNNER_SECONDS = 60.0

_BREAK_MARKS = (",", ";", ":")


def split_verse(text: str) -> tuple[str, str]:
    """Splits a verse into two halves near the middle word.

    A clause mark within two words of the midpoint wins over the exact
    middle, so halves tend to read naturally.

    Raises:
        ContentUnavailable: If the verse has fewer than two words.
    """
    words = text.split()
    if len(words) < 2:
        raise ContentUnavailable(f"Verse too short to split: {text!r}")
    midpoint = len(words) // 2
    break_point = midpoint
    for i in range(midpoint - 2, min(midpoint + 3, len(words))):
        if i > 0 and any(mark in words[i - 1] for mark in _BREAK_MARKS):
            break_point = i
            break
    return " ".join(words[:break_point]), " ".join(words[break_point:])


class MatchRound:
    """One board of verse halves.

    Args:
        round_id: Unique id for this round.
        player_id: Owner of the round.
        verses: Verses to split into cards; at least one.
        rng: Random source for the option order.

    Raises:
        ContentUnavailable: If no verses are given or one can't be split.
    """

    def __init__(
        self,
        *,
        round_id: str,
        player_id: str,
        verses: Sequence[Verse],
        rng: random.Random | None = None,
    ) -> None:
        if not verses:
            raise ContentUnavailable("No verses are available to match.")
        rng = rng or random.Random()
        cards = []
        for card_id, verse in enumerate(verses):
            first, second = split_verse(verse.text)
            cards.append(
                MatchCard(
                    card_id=card_id,
                    reference=verse.reference,
                    first_half=first,
                    second_half=second,
                )
            )
        order = [card.card_id for card in cards]
        rng.shuffle(order)

        self.round_id = round_id
        self.player_id = player_id
        self._cards = cards
        self._option_order = order
        self._selected: int | None = None
        self._revealed_at: float | None = None
        self._score = 0
        self._streak = 0
        self._best_streak = 0
        self._elapsed = 0.0
        self._outcome: str = "in_progress"
        self._achievements: list[str] = []

    @classmethod
    def from_snapshot(cls, snapshot: MatchSnapshot) -> MatchRound:
        """Rebuilds a round. A card that was mid-reveal comes back unselected."""
        rnd = cls.__new__(cls)
        rnd.round_id = snapshot.round_id
        rnd.player_id = snapshot.player_id
        rnd._cards = [card.model_copy() for card in snapshot.cards]
        rnd._option_order = list(snapshot.option_order)
        rnd._selected = None
        rnd._revealed_at = None
        rnd._score = snapshot.score
        rnd._streak = snapshot.streak
        rnd._best_streak = snapshot.best_streak
        rnd._elapsed = snapshot.elapsed_seconds
        rnd._outcome = snapshot.outcome
        rnd._achievements = list(snapshot.achievements)
        return rnd

    # -- Views -------------------------------------------------------------

    @property
    def outcome(self) -> Outcome:
        return self._outcome  # type: ignore[return-value]

    @property
    def is_active(self) -> bool:
        return self._outcome == "in_progress"

    @property
    def is_terminal(self) -> bool:
        return not self.is_active

    @property
    def score(self) -> int:
        return self._score

    @property
    def streak(self) -> int:
        return self._streak

    @property
    def selected_card(self) -> int | None:
        return self._selected

    @property
    def cards(self) -> list[MatchCard]:
        return [card.model_copy() for card in self._cards]

    @property
    def achievements(self) -> list[str]:
        return list(self._achievements)

    @property
    def matched_count(self) -> int:
        return sum(1 for card in self._cards if card.matched)

    def options(self) -> list[dict[str, object]]:
        """Second halves in display order, keyed by option id."""
        by_id = {card.card_id: card for card in self._cards}
        return [
            {"option_id": cid, "text": by_id[cid].second_half, "matched": by_id[cid].matched}
            for cid in self._option_order
        ]

    def accuracy(self) -> int:
        """Percentage of first-try matches across all attempts."""
        attempts = sum(card.incorrect_attempts + 1 for card in self._cards)
        return round(len(self._cards) / attempts * 100)

    # -- Player actions ----------------------------------------------------

    def reveal(self, card_id: int, now: float) -> bool:
        """Selects an unmatched card. Other cards stay locked until answered."""
        if not self.is_active or self._selected is not None:
            return False
        card = self._card(card_id)
        if card is None or card.matched:
            return False
        self._selected = card_id
        self._revealed_at = now
        return True

    def choose(self, option_id: int, now: float) -> bool | None:
        """Answers the selected card with an option.

        Returns:
            True on a match, False on a miss, None when nothing was
            selected or the option is already matched (no-op).
        """
        if not self.is_active or self._selected is None:
            return None
        option = self._card(option_id)
        if option is None or option.matched:
            return None

        card = self._cards[self._selected]
        seconds_taken = max(0.0, now - (self._revealed_at if self._revealed_at is not None else now))
        self._elapsed += seconds_taken
        self._selected = None
        self._revealed_at = None

        if option_id == card.card_id:
            self._streak += 1
            self._best_streak = max(self._best_streak, self._streak)
            self._score += match_points(seconds_taken, self._streak)
            card.matched = True
            if self.matched_count == len(self._cards):
                self._complete()
            return True

        self._streak = 0
        card.incorrect_attempts += 1
        return False

    def abandon(self) -> bool:
        if not self.is_active:
            return False
        self._outcome = "abandoned"
        return True

    def snapshot(self) -> MatchSnapshot:
        return MatchSnapshot(
            round_id=self.round_id,
            player_id=self.player_id,
            cards=self.cards,
            option_order=list(self._option_order),
            selected_card=self._selected,
            score=self._score,
            streak=self._streak,
            best_streak=self._best_streak,
            elapsed_seconds=self._elapsed,
            outcome=self.outcome,
            achievements=list(self._achievements),
        )

    # -- Internals ---------------------------------------------------------

    def _card(self, card_id: int) -> MatchCard | None:
        if 0 <= card_id < len(self._cards):
            return self._cards[card_id]
        return None

    def _complete(self) -> None:
        self._outcome = "correct"
        if self._streak >= STREAK_MASTER_THRESHOLD:
            self._achievements.append(STREAK_MASTER)
        if self.accuracy() == 100:
            self._achievements.append(PERFECT_SCORE)
        if self._elapsed < SPEED_RUNNER_SECONDS:
            self._achievements.append(SPEED_RUNNER)
        logger.info(
            "Match round %s complete: score=%d accuracy=%d%%",
            self.round_id, self._score, self.accuracy(),
        )
