"""Puzzle runtime — owns live rounds, their countdowns and their storage.

The engine classes (PuzzleSession, CharacterRound, MatchRound) are plain
state machines. This module is what drives them for a running service:

- keeps rounds in memory, keyed by id, at most one per player and mode
  (starting a new one evicts the previous one, finished or not);
- runs one Countdown per timed round and cancels it on every way out of
  the active state: submit, timeout, abandon, discard, replacement and
  shutdown;
- writes a snapshot after every change and on the terminal transition;
- folds each finished round into the player's progress, exactly once.

Storage failures never reach the caller; the repositories absorb them.
Content failures (ContentUnavailable) and lookups of unknown or foreign
rounds (SessionNotFound) do propagate.

Tier 3 orchestration module: imports from engine/*, hooks/interfaces,
persistence, modes, schemas.
"""

from __future__ import annotations

import logging
import random
import time
import uuid
from collections.abc import Callable
from typing import TypeVar

from versepuzzle.engine.character import CharacterRound, pick_character
from versepuzzle.engine.errors import SessionNotFound
from versepuzzle.engine.matching import MatchRound
from versepuzzle.engine.progress import (
    record_character_result,
    record_match_result,
    record_puzzle_result,
    reset_mode,
)
from versepuzzle.engine.session import PuzzleSession
from versepuzzle.engine.timer import Countdown
from versepuzzle.engine.tokenizer import DEFAULT_PUNCTUATION
from versepuzzle.hooks.interfaces import ContentSource
from versepuzzle.modes import (
    CHARACTER_MODE,
    CHARACTER_SNAPSHOT_KEY,
    MATCH_MODE,
    MATCH_SNAPSHOT_KEY,
    MATCH_VERSES_PER_ROUND,
    USED_CHARACTERS_KEY,
    character_level,
    known_mode_ids,
    resolve_mode,
)
from versepuzzle.persistence import ProgressRepository, SnapshotRepository
from versepuzzle.schemas import (
    CharacterSnapshot,
    MatchSnapshot,
    PlayerProgress,
    PuzzleSnapshot,
    Token,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")


def _new_id() -> str:
    return uuid.uuid4().hex


class PuzzleRuntime:
    """Live rounds for every player of one service instance.

    Args:
        content: Where verses and characters come from.
        snapshots: Local snapshot storage.
        progress: Player progress storage.
        punctuation: Characters stripped before tokenizing.
        tick_interval: Real seconds between countdown ticks. Each tick
            takes one second off the round clock.
        rng: Random source for scrambling and picking content.
        clock: Monotonic clock used for Match the Verse answer times.
        id_factory: Produces round ids.
    """

    def __init__(
        self,
        *,
        content: ContentSource,
        snapshots: SnapshotRepository,
        progress: ProgressRepository,
        punctuation: str = DEFAULT_PUNCTUATION,
        tick_interval: float = 1.0,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._content = content
        self._snapshots = snapshots
        self._progress = progress
        self._punctuation = punctuation
        self._tick_interval = tick_interval
        self._rng = rng or random.Random()
        self._clock = clock
        self._new_id = id_factory

        self._puzzles: dict[str, PuzzleSession] = {}
        self._characters: dict[str, CharacterRound] = {}
        self._matches: dict[str, MatchRound] = {}
        self._timers: dict[str, Countdown] = {}
        # (player_id, mode_id) -> id of that player's latest round in the mode, finished
        # or not. Registering the next one evicts it.
        self._live: dict[tuple[str, str], str] = {}

    # -- Shared plumbing ---------------------------------------------------

    def _start_timer(self, round_id: str, on_tick) -> None:
        timer = Countdown(on_tick, interval=self._tick_interval, name=f"countdown-{round_id}")
        self._timers[round_id] = timer
        timer.start()

    def _stop_timer(self, round_id: str) -> None:
        timer = self._timers.pop(round_id, None)
        if timer is not None:
            timer.cancel()

    def timer_running(self, round_id: str) -> bool:
        """True while a countdown is ticking for the round."""
        timer = self._timers.get(round_id)
        return timer is not None and timer.running

    def _drop_live(self, player_id: str, mode_id: str) -> None:
        """Forgets the player's latest round in a mode, stopping its clock."""
        round_id = self._live.pop((player_id, mode_id), None)
        if round_id is None:
            return
        self._stop_timer(round_id)
        self._puzzles.pop(round_id, None)
        self._characters.pop(round_id, None)
        self._matches.pop(round_id, None)
        logger.info("Evicted round %s for player %s in %s", round_id, player_id, mode_id)

    def _live_round(self, rounds: dict[str, R], player_id: str, mode_id: str) -> R | None:
        round_id = self._live.get((player_id, mode_id))
        return rounds.get(round_id) if round_id is not None else None

    @staticmethod
    def _owned(rounds: dict[str, R], round_id: str, player_id: str) -> R:
        rnd = rounds.get(round_id)
        if rnd is None or rnd.player_id != player_id:  # type: ignore[attr-defined]
            raise SessionNotFound(f"Round {round_id!r} not found.")
        return rnd

    async def _update_progress(self, player_id: str, update) -> PlayerProgress:
        current = await self._progress.load(player_id)
        updated = update(current)
        await self._progress.save(updated)
        return updated

    # -- Verse puzzles -----------------------------------------------------

    def get_puzzle(self, session_id: str, player_id: str) -> PuzzleSession:
        """Raises SessionNotFound for unknown ids and other players' sessions."""
        return self._owned(self._puzzles, session_id, player_id)

    async def start_puzzle(
        self, player_id: str, mode_id: str, reference: str | None = None
    ) -> PuzzleSession:
        """Starts a fresh attempt, replacing any active one in the mode.

        Raises:
            KeyError: Unknown mode id.
            ContentUnavailable: No usable verse.
        """
        mode = resolve_mode(mode_id)
        if reference:
            verse = await self._content.get_verse(reference)
        else:
            verse = await self._content.random_verse()
        session = PuzzleSession(
            session_id=self._new_id(),
            player_id=player_id,
            mode=mode,
            source_text=verse.text,
            reference=verse.reference,
            punctuation=self._punctuation,
            rng=self._rng,
        )
        session.start()
        self._register_puzzle(session)
        await self._save_puzzle(session)
        logger.info(
            "Puzzle %s started for %s: %s (%s)",
            session.session_id, player_id, verse.reference, mode_id,
        )
        return session

    def _register_puzzle(self, session: PuzzleSession) -> None:
        self._drop_live(session.player_id, session.mode.mode_id)
        self._puzzles[session.session_id] = session
        self._live[(session.player_id, session.mode.mode_id)] = session.session_id
        self._start_timer(session.session_id, lambda: self._tick_puzzle(session.session_id))

    async def _tick_puzzle(self, session_id: str) -> bool:
        session = self._puzzles.get(session_id)
        if session is None or not session.is_active:
            return False
        session.tick()
        if session.is_terminal:
            await self._conclude_puzzle(session)
            return False
        await self._save_puzzle(session)
        return True

    async def _save_puzzle(self, session: PuzzleSession) -> None:
        await self._snapshots.save(session.mode.snapshot_key, session.player_id, session.snapshot())

    async def _conclude_puzzle(self, session: PuzzleSession) -> None:
        self._stop_timer(session.session_id)
        snapshot = session.snapshot()
        await self._snapshots.save(session.mode.snapshot_key, session.player_id, snapshot)
        await self._update_progress(
            session.player_id, lambda p: record_puzzle_result(p, snapshot)
        )

    async def _after_puzzle_action(self, session: PuzzleSession, applied: bool) -> bool:
        if applied:
            await self._save_puzzle(session)
        return applied

    async def place(
        self, session_id: str, player_id: str, token_index: int, position: int | None = None
    ) -> bool:
        session = self.get_puzzle(session_id, player_id)
        return await self._after_puzzle_action(session, session.place(token_index, position))

    async def remove(self, session_id: str, player_id: str, position: int) -> bool:
        session = self.get_puzzle(session_id, player_id)
        return await self._after_puzzle_action(session, session.remove(position))

    async def swap(self, session_id: str, player_id: str, position_a: int, position_b: int) -> bool:
        session = self.get_puzzle(session_id, player_id)
        return await self._after_puzzle_action(session, session.swap(position_a, position_b))

    async def reset(self, session_id: str, player_id: str) -> bool:
        session = self.get_puzzle(session_id, player_id)
        return await self._after_puzzle_action(session, session.reset())

    async def hint(self, session_id: str, player_id: str) -> Token | None:
        session = self.get_puzzle(session_id, player_id)
        token = session.use_hint()
        await self._after_puzzle_action(session, token is not None)
        return token

    async def submit(self, session_id: str, player_id: str) -> PuzzleSession:
        session = self.get_puzzle(session_id, player_id)
        if session.is_active:
            session.submit()
            await self._conclude_puzzle(session)
        return session

    async def abandon(self, session_id: str, player_id: str) -> bool:
        session = self.get_puzzle(session_id, player_id)
        if not session.abandon():
            return False
        await self._conclude_puzzle(session)
        return True

    async def resumable_puzzle(self, player_id: str, mode_id: str) -> PuzzleSnapshot | None:
        """The saved in-progress attempt for the mode, if there is one.

        Raises:
            KeyError: Unknown mode id.
        """
        mode = resolve_mode(mode_id)
        live = self._live_round(self._puzzles, player_id, mode_id)
        if live is not None and live.is_active:
            return live.snapshot()
        snapshot = await self._snapshots.load(mode.snapshot_key, player_id, PuzzleSnapshot)
        if snapshot is None or snapshot.outcome != "in_progress":
            return None
        if snapshot.mode_id != mode.mode_id:
            logger.warning(
                "Discarding %s snapshot for %s saved under mode %r",
                mode_id, player_id, snapshot.mode_id,
            )
            await self._snapshots.clear(mode.snapshot_key, player_id)
            return None
        return snapshot

    async def resume_puzzle(self, player_id: str, mode_id: str) -> PuzzleSession:
        """Continues the saved attempt with its clock running again.

        Raises:
            KeyError: Unknown mode id.
            SessionNotFound: Nothing to resume.
        """
        live = self._live_round(self._puzzles, player_id, mode_id)
        if live is not None and live.is_active:
            return live
        snapshot = await self.resumable_puzzle(player_id, mode_id)
        if snapshot is None:
            raise SessionNotFound(f"No saved {mode_id} session to resume.")
        session = PuzzleSession.from_snapshot(snapshot, rng=self._rng)
        self._register_puzzle(session)
        logger.info("Puzzle %s resumed for %s", session.session_id, player_id)
        return session

    async def discard_puzzle(self, player_id: str, mode_id: str) -> None:
        """Drops the active attempt and its saved snapshot without scoring it."""
        mode = resolve_mode(mode_id)
        self._drop_live(player_id, mode_id)
        await self._snapshots.clear(mode.snapshot_key, player_id)

    # -- Guess the Character ----------------------------------------------

    def get_character_round(self, round_id: str, player_id: str) -> CharacterRound:
        return self._owned(self._characters, round_id, player_id)

    async def start_character(self, player_id: str) -> CharacterRound:
        """Starts a round at the player's current character level.

        Raises:
            ContentUnavailable: No usable characters.
        """
        progress = await self._progress.load(player_id)
        mode_progress = progress.modes.get(CHARACTER_MODE)
        level = character_level(mode_progress.level if mode_progress else 1)
        characters = await self._content.list_characters()
        used = await self._snapshots.load_names(USED_CHARACTERS_KEY, player_id)
        if all(c.name in used for c in characters):
            used = []
        character = pick_character(characters, used, rng=self._rng)
        await self._snapshots.save_names(USED_CHARACTERS_KEY, player_id, used + [character.name])

        rnd = CharacterRound(
            round_id=self._new_id(),
            player_id=player_id,
            character=character,
            level=level,
        )
        self._register_character(rnd)
        await self._save_character(rnd)
        logger.info("Character round %s started for %s at level %d", rnd.round_id, player_id, rnd.level)
        return rnd

    def _register_character(self, rnd: CharacterRound) -> None:
        self._drop_live(rnd.player_id, CHARACTER_MODE)
        self._characters[rnd.round_id] = rnd
        self._live[(rnd.player_id, CHARACTER_MODE)] = rnd.round_id
        self._start_timer(rnd.round_id, lambda: self._tick_character(rnd.round_id))

    async def _tick_character(self, round_id: str) -> bool:
        rnd = self._characters.get(round_id)
        if rnd is None or not rnd.is_active:
            return False
        rnd.tick()
        if rnd.is_terminal:
            await self._conclude_character(rnd)
            return False
        await self._save_character(rnd)
        return True

    async def _save_character(self, rnd: CharacterRound) -> None:
        await self._snapshots.save(CHARACTER_SNAPSHOT_KEY, rnd.player_id, rnd.snapshot())

    async def _conclude_character(self, rnd: CharacterRound) -> None:
        self._stop_timer(rnd.round_id)
        snapshot = rnd.snapshot()
        await self._snapshots.save(CHARACTER_SNAPSHOT_KEY, rnd.player_id, snapshot)
        await self._update_progress(
            rnd.player_id, lambda p: record_character_result(p, snapshot)
        )

    async def reveal_character_hint(self, round_id: str, player_id: str) -> str | None:
        rnd = self.get_character_round(round_id, player_id)
        hint = rnd.reveal_hint()
        if hint is not None:
            await self._save_character(rnd)
        return hint

    async def guess_character(self, round_id: str, player_id: str, answer: str) -> bool:
        rnd = self.get_character_round(round_id, player_id)
        if not rnd.is_active:
            return False
        correct = rnd.guess(answer)
        if correct:
            await self._conclude_character(rnd)
        else:
            await self._save_character(rnd)
        return correct

    async def abandon_character(self, round_id: str, player_id: str) -> bool:
        rnd = self.get_character_round(round_id, player_id)
        if not rnd.abandon():
            return False
        await self._conclude_character(rnd)
        return True

    async def resume_character(self, player_id: str) -> CharacterRound:
        """Continues the saved in-progress round.

        Raises:
            SessionNotFound: Nothing to resume.
        """
        live = self._live_round(self._characters, player_id, CHARACTER_MODE)
        if live is not None and live.is_active:
            return live
        snapshot = await self._snapshots.load(CHARACTER_SNAPSHOT_KEY, player_id, CharacterSnapshot)
        if snapshot is None or snapshot.outcome != "in_progress":
            raise SessionNotFound("No saved character round to resume.")
        rnd = CharacterRound.from_snapshot(snapshot)
        self._register_character(rnd)
        return rnd

    # -- Match the Verse ---------------------------------------------------

    def get_match_round(self, round_id: str, player_id: str) -> MatchRound:
        return self._owned(self._matches, round_id, player_id)

    async def start_match(self, player_id: str) -> MatchRound:
        """Deals a board, preferring verses the player hasn't matched yet.

        Raises:
            ContentUnavailable: No usable verses.
        """
        progress = await self._progress.load(player_id)
        verses = await self._content.sample_verses(
            MATCH_VERSES_PER_ROUND, exclude=progress.matched_references
        )
        rnd = MatchRound(
            round_id=self._new_id(),
            player_id=player_id,
            verses=verses,
            rng=self._rng,
        )
        self._register_match(rnd)
        await self._save_match(rnd)
        logger.info("Match round %s started for %s with %d card(s)", rnd.round_id, player_id, len(verses))
        return rnd

    def _register_match(self, rnd: MatchRound) -> None:
        self._drop_live(rnd.player_id, MATCH_MODE)
        self._matches[rnd.round_id] = rnd
        self._live[(rnd.player_id, MATCH_MODE)] = rnd.round_id

    async def _save_match(self, rnd: MatchRound) -> None:
        await self._snapshots.save(MATCH_SNAPSHOT_KEY, rnd.player_id, rnd.snapshot())

    async def _conclude_match(self, rnd: MatchRound) -> None:
        snapshot = rnd.snapshot()
        await self._snapshots.save(MATCH_SNAPSHOT_KEY, rnd.player_id, snapshot)
        await self._update_progress(rnd.player_id, lambda p: record_match_result(p, snapshot))

    async def reveal_card(self, round_id: str, player_id: str, card_id: int) -> bool:
        rnd = self.get_match_round(round_id, player_id)
        applied = rnd.reveal(card_id, self._clock())
        if applied:
            await self._save_match(rnd)
        return applied

    async def choose_option(self, round_id: str, player_id: str, option_id: int) -> bool | None:
        rnd = self.get_match_round(round_id, player_id)
        result = rnd.choose(option_id, self._clock())
        if result is None:
            return None
        if rnd.is_terminal:
            await self._conclude_match(rnd)
        else:
            await self._save_match(rnd)
        return result

    async def abandon_match(self, round_id: str, player_id: str) -> bool:
        rnd = self.get_match_round(round_id, player_id)
        if not rnd.abandon():
            return False
        await self._conclude_match(rnd)
        return True

    async def resume_match(self, player_id: str) -> MatchRound:
        """Continues the saved in-progress board.

        Raises:
            SessionNotFound: Nothing to resume.
        """
        live = self._live_round(self._matches, player_id, MATCH_MODE)
        if live is not None and live.is_active:
            return live
        snapshot = await self._snapshots.load(MATCH_SNAPSHOT_KEY, player_id, MatchSnapshot)
        if snapshot is None or snapshot.outcome != "in_progress":
            raise SessionNotFound("No saved match round to resume.")
        rnd = MatchRound.from_snapshot(snapshot)
        self._register_match(rnd)
        return rnd

    # -- Progress ----------------------------------------------------------

    async def get_progress(self, player_id: str) -> PlayerProgress:
        return await self._progress.load(player_id)

    async def reset_progress(self, player_id: str, mode_id: str) -> PlayerProgress:
        """Puts one mode's progress back to defaults.

        Raises:
            KeyError: Unknown mode id.
        """
        if mode_id not in known_mode_ids():
            raise KeyError(mode_id)
        return await self._update_progress(player_id, lambda p: reset_mode(p, mode_id))

    # -- Lifecycle ---------------------------------------------------------

    async def shutdown(self) -> None:
        """Stops every countdown. Snapshots are already on disk."""
        for round_id in list(self._timers):
            self._stop_timer(round_id)
        logger.info(
            "Runtime stopped: %d puzzle(s), %d character round(s), %d match round(s) in memory",
            len(self._puzzles), len(self._characters), len(self._matches),
        )
