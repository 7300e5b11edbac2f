"""Answer validators.

Two game modes, two rules, deliberately kept apart:
- tile puzzles compare token order exactly (case- and space-sensitive);
- Guess the Character compares free text, trimmed and case-insensitive.
"""

from collections.abc import Sequence

from versepuzzle.schemas import Token


def is_correct(arrangement: Sequence[Token], tokens: Sequence[Token]) -> bool:
    """True iff the arranged texts, space-joined, equal the canonical ones.

    Comparing joined text rather than indexes means swapping two copies
    of the same word still counts as correct.
    """
    return " ".join(t.text for t in arrangement) == " ".join(t.text for t in tokens)


def answer_matches(answer: str, expected: str) -> bool:
    """Free-text check: surrounding whitespace and case are ignored."""
    return answer.strip().lower() == expected.strip().lower()
