"""Puzzle session — the state machine for one verse-arrangement attempt.

States: idle -> active -> {correct, incorrect, timed_out, abandoned}.

The session is plain synchronous Python: the caller (``PuzzleRuntime``)
drives it from UI actions and countdown ticks, and persists
``snapshot()`` after every call that returns True. Terminal states are
sinks — every mutator returns False and the score never changes again.
A fresh attempt is always a fresh session.

Token and position errors from the arrangement are recovered here: the
call is logged, nothing changes, and the mutator returns False.
"""

from __future__ import annotations

import logging
import random

from versepuzzle.engine.arrangement import Arrangement
from versepuzzle.engine.errors import IndexOutOfRangeError, InvalidTokenError
from versepuzzle.engine.scoring import compute_score
from versepuzzle.engine.tokenizer import DEFAULT_PUNCTUATION, require_tokens
from versepuzzle.engine.validator import is_correct
from versepuzzle.modes import ModeConfig, resolve_mode
from versepuzzle.schemas import TERMINAL_OUTCOMES, Outcome, PuzzleSnapshot, Token

logger = logging.getLogger(__name__)


class PuzzleSession:
    """One attempt at arranging one verse.

    Args:
        session_id: Unique id for this attempt.
        player_id: Owner of the attempt.
        mode: Mode tuning (scoring, hints, clock, granularity).
        source_text: The canonical verse text.
        reference: Optional verse reference for display.
        punctuation: Characters stripped before tokenizing.
        rng: Random source for scrambling.

    Raises:
        ContentUnavailable: If the text has no tokens.
    """

    def __init__(
        self,
        *,
        session_id: str,
        player_id: str,
        mode: ModeConfig,
        source_text: str,
        reference: str | None = None,
        punctuation: str = DEFAULT_PUNCTUATION,
        rng: random.Random | None = None,
    ) -> None:
        tokens = require_tokens(source_text, punctuation=punctuation, granularity=mode.granularity)
        self.session_id = session_id
        self.player_id = player_id
        self.mode = mode
        self.source_text = source_text
        self.reference = reference
        self.hint_budget = mode.hint_budget
        self.time_budget_seconds = mode.time_budget_seconds
        self._arrangement = Arrangement(tokens, rng=rng)
        self._hints_used = 0
        self._time_remaining = mode.time_budget_seconds
        self._state: str = "idle"
        self._score: int | None = None

    @classmethod
    def from_snapshot(
        cls,
        snapshot: PuzzleSnapshot,
        *,
        rng: random.Random | None = None,
    ) -> PuzzleSession:
        """Rebuilds a session from a saved snapshot.

        The token lists, hints and clock come back exactly as saved. An
        in-progress snapshot resumes as active; a terminal one stays
        terminal with its score.

        Raises:
            KeyError: If the snapshot's mode is no longer registered.
        """
        session = cls.__new__(cls)
        session.session_id = snapshot.session_id
        session.player_id = snapshot.player_id
        session.mode = resolve_mode(snapshot.mode_id)
        session.source_text = snapshot.source_text
        session.reference = snapshot.reference
        session.hint_budget = snapshot.hint_budget
        session.time_budget_seconds = snapshot.time_budget_seconds
        session._arrangement = Arrangement(
            snapshot.tokens,
            pool=snapshot.scrambled_pool,
            placed=snapshot.arrangement,
            rng=rng,
        )
        session._hints_used = snapshot.hints_used
        session._time_remaining = snapshot.time_remaining_seconds
        if snapshot.outcome == "in_progress":
            session._state = "active"
            session._score = None
        else:
            session._state = snapshot.outcome
            session._score = snapshot.score if snapshot.score is not None else 0
        return session

    # -- Views -------------------------------------------------------------

    @property
    def state(self) -> str:
        """idle, active, or the terminal outcome."""
        return self._state

    @property
    def outcome(self) -> Outcome:
        if self._state in TERMINAL_OUTCOMES:
            return self._state  # type: ignore[return-value]
        return "in_progress"

    @property
    def is_active(self) -> bool:
        return self._state == "active"

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_OUTCOMES

    @property
    def score(self) -> int | None:
        return self._score

    @property
    def hints_used(self) -> int:
        return self._hints_used

    @property
    def hints_remaining(self) -> int:
        return max(0, self.hint_budget - self._hints_used)

    @property
    def time_remaining_seconds(self) -> int:
        return self._time_remaining

    @property
    def tokens(self) -> tuple[Token, ...]:
        return self._arrangement.tokens

    @property
    def arrangement(self) -> tuple[Token, ...]:
        return self._arrangement.placed

    @property
    def scrambled_pool(self) -> tuple[Token, ...]:
        return self._arrangement.pool

    # -- Lifecycle ---------------------------------------------------------

    def start(self) -> bool:
        """idle -> active. Returns False if already started."""
        if self._state != "idle":
            return False
        self._state = "active"
        return True

    def tick(self, seconds: int = 1) -> bool:
        """Advances the clock; reaching zero times the session out."""
        if not self.is_active:
            return False
        self._time_remaining = max(0, self._time_remaining - seconds)
        if self._time_remaining == 0:
            self._finish("timed_out")
        return True

    def submit(self) -> Outcome:
        """Validates the arrangement and scores the attempt.

        An incomplete arrangement is simply incorrect. Submitting a
        finished session returns its existing outcome unchanged.
        """
        if not self.is_active:
            return self.outcome
        correct = is_correct(self._arrangement.placed, self._arrangement.tokens)
        self._finish("correct" if correct else "incorrect")
        return self.outcome

    def abandon(self) -> bool:
        """Player left mid-round. Scores 0."""
        if not self.is_active:
            return False
        self._finish("abandoned")
        return True

    # -- Player actions ----------------------------------------------------

    def place(self, token_index: int, position: int | None = None) -> bool:
        """Places the pooled token with canonical ``token_index``."""
        if not self.is_active:
            return False
        try:
            token = self._arrangement.find_in_pool(token_index)
            self._arrangement.place(token, position)
        except (InvalidTokenError, IndexOutOfRangeError) as exc:
            return self._ignored("place", exc)
        return True

    def remove(self, position: int) -> bool:
        if not self.is_active:
            return False
        try:
            self._arrangement.remove(position)
        except IndexOutOfRangeError as exc:
            return self._ignored("remove", exc)
        return True

    def swap(self, position_a: int, position_b: int) -> bool:
        if not self.is_active:
            return False
        try:
            self._arrangement.swap(position_a, position_b)
        except IndexOutOfRangeError as exc:
            return self._ignored("swap", exc)
        return True

    def reset(self) -> bool:
        """Restart: every tile back to a freshly scrambled pool.

        Hints already spent stay spent, and the clock keeps running.
        """
        if not self.is_active:
            return False
        self._arrangement.reset()
        return True

    def use_hint(self) -> Token | None:
        """Places the next correct tile for the player.

        Returns the placed token, or None when no hint was given (budget
        spent, session over, or the needed word is already misplaced).
        Only a hint actually given is counted.
        """
        if not self.is_active or self._hints_used >= self.hint_budget:
            return None
        token = self._arrangement.next_hint()
        if token is None:
            return None
        self._arrangement.place(token)
        self._hints_used += 1
        return token

    # -- Persistence -------------------------------------------------------

    def snapshot(self) -> PuzzleSnapshot:
        """Captures the full session state for storage."""
        return PuzzleSnapshot(
            session_id=self.session_id,
            player_id=self.player_id,
            mode_id=self.mode.mode_id,
            reference=self.reference,
            source_text=self.source_text,
            tokens=list(self._arrangement.tokens),
            scrambled_pool=list(self._arrangement.pool),
            arrangement=list(self._arrangement.placed),
            hints_used=self._hints_used,
            hint_budget=self.hint_budget,
            time_budget_seconds=self.time_budget_seconds,
            time_remaining_seconds=self._time_remaining,
            outcome=self.outcome,
            score=self._score,
        )

    # -- Internals ---------------------------------------------------------

    def _finish(self, outcome: str) -> None:
        self._state = outcome
        self._score = compute_score(
            outcome,
            self._time_remaining,
            self.time_budget_seconds,
            self._hints_used,
            self.hint_budget,
            self.mode.scoring,
        )
        logger.info(
            "Session %s finished: %s score=%d", self.session_id, outcome, self._score
        )

    def _ignored(self, action: str, exc: Exception) -> bool:
        logger.info("Ignored %s on session %s: %s", action, self.session_id, exc)
        return False
