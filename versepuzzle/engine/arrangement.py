"""Arrangement state — the player's placed tiles and the remaining pool.

Tokens only ever move between the two lists, so the multiset
``pool + placed`` always equals the canonical tokens. Every operation
validates its arguments before touching either list; a failed call
leaves the state exactly as it was.
"""

from __future__ import annotations

import random
from collections.abc import Sequence

from versepuzzle.engine.errors import IndexOutOfRangeError, InvalidTokenError
from versepuzzle.engine.tokenizer import scramble
from versepuzzle.schemas import Token


class Arrangement:
    """Tracks the partial ordering of one puzzle's tokens.

    Args:
        tokens: Canonical token sequence (ground truth).
        pool: Initial pool order. Defaults to a scramble of ``tokens``.
        placed: Tokens already placed, for restoring a saved session.
        rng: Random source for scrambling.

    Raises:
        ValueError: If ``pool`` and ``placed`` together aren't exactly
            ``tokens``.
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        *,
        pool: Sequence[Token] | None = None,
        placed: Sequence[Token] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._tokens: tuple[Token, ...] = tuple(tokens)
        self._placed: list[Token] = list(placed or [])
        if pool is None:
            placed_set = set(self._placed)
            pool = scramble([t for t in self._tokens if t not in placed_set], self._rng)
        self._pool: list[Token] = list(pool)

        if sorted(self._pool + self._placed, key=_by_index) != sorted(self._tokens, key=_by_index):
            raise ValueError("pool and placed tokens must partition the canonical tokens")

    # -- Views -------------------------------------------------------------

    @property
    def tokens(self) -> tuple[Token, ...]:
        return self._tokens

    @property
    def pool(self) -> tuple[Token, ...]:
        return tuple(self._pool)

    @property
    def placed(self) -> tuple[Token, ...]:
        return tuple(self._placed)

    def is_complete(self) -> bool:
        return not self._pool

    def find_in_pool(self, index: int) -> Token:
        """Returns the pooled token with canonical ``index``.

        Raises:
            InvalidTokenError: If no pooled token has that index.
        """
        for token in self._pool:
            if token.index == index:
                return token
        raise InvalidTokenError(f"Token {index} is not in the pool.")

    # -- Mutations ---------------------------------------------------------

    def place(self, token: Token, position: int | None = None) -> None:
        """Moves ``token`` from the pool into the arrangement.

        Args:
            token: The token to place. Must currently be in the pool.
            position: Insert position; appended when None. Positions
                equal to the current length are allowed (append).

        Raises:
            InvalidTokenError: If the token isn't in the pool, e.g. a
                stale double-tap on a tile already placed.
            IndexOutOfRangeError: If position is outside 0..len(placed).
        """
        if token not in self._pool:
            raise InvalidTokenError(f"Token {token.index} ({token.text!r}) is not in the pool.")
        if position is not None and not 0 <= position <= len(self._placed):
            raise IndexOutOfRangeError(
                f"Cannot insert at {position}; arrangement has {len(self._placed)} tokens."
            )
        self._pool.remove(token)
        if position is None:
            self._placed.append(token)
        else:
            self._placed.insert(position, token)

    def remove(self, position: int) -> Token:
        """Moves the token at ``position`` back to the end of the pool.

        Raises:
            IndexOutOfRangeError: If position isn't a placed slot.
        """
        self._check_position(position)
        token = self._placed.pop(position)
        self._pool.append(token)
        return token

    def swap(self, position_a: int, position_b: int) -> None:
        """Exchanges two placed tokens. Same position is a no-op.

        Raises:
            IndexOutOfRangeError: If either position isn't a placed slot.
        """
        self._check_position(position_a)
        self._check_position(position_b)
        if position_a == position_b:
            return
        placed = self._placed
        placed[position_a], placed[position_b] = placed[position_b], placed[position_a]

    def reset(self) -> None:
        """Returns every token to the pool in a fresh random order."""
        self._placed = []
        self._pool = scramble(self._tokens, self._rng)

    def next_hint(self) -> Token | None:
        """The pooled token that belongs at the next open position.

        Matches by text, so any copy of a repeated word will do. Returns
        None when the arrangement is full or the needed word was already
        placed somewhere else.
        """
        position = len(self._placed)
        if position >= len(self._tokens):
            return None
        wanted = self._tokens[position].text
        for token in self._pool:
            if token.text == wanted:
                return token
        return None

    def _check_position(self, position: int) -> None:
        if not 0 <= position < len(self._placed):
            raise IndexOutOfRangeError(
                f"Position {position} is out of range; arrangement has {len(self._placed)} tokens."
            )


def _by_index(token: Token) -> int:
    return token.index
