"""Tokenizer and scrambler — turns verse text into movable tiles.

Tokenization is deterministic: the same text, punctuation set and
granularity always give the same tokens. Only ``scramble`` uses
randomness, and it takes an injectable ``random.Random`` for tests.

Tier 1 leaf module: imports from the stdlib, schemas and errors.
"""

from __future__ import annotations

import random
import re
from collections.abc import Sequence

from versepuzzle.engine.errors import ContentUnavailable
from versepuzzle.schemas import Token

DEFAULT_PUNCTUATION = ".,;:!?\"'()[]{}"

_MARKUP_RE = re.compile(r"<[^>]*>")
_CLAUSE_ENDINGS = (",", ";", ":", ".", "!", "?")

PHRASE_MIN_WORDS = 2
PHRASE_MAX_WORDS = 4


def strip_markup(text: str) -> str:
    """Removes HTML-style tags and surrounding whitespace."""
    return _MARKUP_RE.sub("", text).strip()


def _punctuation_re(punctuation: str) -> re.Pattern[str] | None:
    if not punctuation:
        return None
    return re.compile("[" + "".join(re.escape(ch) for ch in punctuation) + "]")


def _group_phrases(words: list[str]) -> list[list[str]]:
    """Groups raw words into 2-4 word phrases, closing at clause ends."""
    groups: list[list[str]] = []
    current: list[str] = []
    for word in words:
        current.append(word)
        if len(current) >= PHRASE_MIN_WORDS and (
            word.endswith(_CLAUSE_ENDINGS) or len(current) >= PHRASE_MAX_WORDS
        ):
            groups.append(current)
            current = []
    if current:
        groups.append(current)
    return groups


def tokenize(
    text: str,
    *,
    punctuation: str = DEFAULT_PUNCTUATION,
    granularity: str = "word",
) -> list[Token]:
    """Splits text into canonical-order tokens.

    Markup is stripped first, then every character in ``punctuation``.
    Empty pieces are discarded, so whitespace-only input gives ``[]``.

    Args:
        text: The verse text, possibly with markup.
        punctuation: Characters to remove before splitting.
        granularity: "word" for one token per word, "phrase" for 2-4 word
            fragments. Phrase boundaries are taken from the raw text, so
            a clause ending still closes a fragment after punctuation is
            removed.

    Returns:
        Tokens with 0-based canonical indexes.

    Raises:
        ValueError: If granularity is not "word" or "phrase".
    """
    if granularity not in ("word", "phrase"):
        raise ValueError(f"Unknown granularity: {granularity!r}")

    strip_re = _punctuation_re(punctuation)
    raw_words = strip_markup(text).split()

    def clean(word: str) -> str:
        return strip_re.sub("", word) if strip_re else word

    if granularity == "word":
        pieces = [clean(word) for word in raw_words]
    else:
        pieces = [
            " ".join(w for w in (clean(word) for word in group) if w)
            for group in _group_phrases(raw_words)
        ]

    texts = [piece for piece in pieces if piece.strip()]
    return [Token(text=piece, index=i) for i, piece in enumerate(texts)]


def require_tokens(
    text: str,
    *,
    punctuation: str = DEFAULT_PUNCTUATION,
    granularity: str = "word",
) -> list[Token]:
    """Like ``tokenize``, but an empty result is a content error.

    Raises:
        ContentUnavailable: If the text yields no tokens.
    """
    tokens = tokenize(text, punctuation=punctuation, granularity=granularity)
    if not tokens:
        raise ContentUnavailable("Source text is empty; cannot build a puzzle.")
    return tokens


def scramble(tokens: Sequence[Token], rng: random.Random | None = None) -> list[Token]:
    """Returns a uniformly random permutation of ``tokens``.

    When at least two distinct texts are present the draw is repeated
    until the text order differs from the canonical one, so even a
    two-word verse never starts solved.
    """
    rng = rng or random.Random()
    shuffled = list(tokens)
    rng.shuffle(shuffled)
    if len({token.text for token in tokens}) > 1:
        canonical = [token.text for token in tokens]
        while [token.text for token in shuffled] == canonical:
            rng.shuffle(shuffled)
    return shuffled
