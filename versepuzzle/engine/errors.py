"""Puzzle engine error taxonomy.

Each error carries an uppercase ``code`` that the HTTP layer copies into
the ApiResponse envelope, so clients can branch on it without parsing
messages.

Recovery rules:
    ContentUnavailable      propagates to the caller (offer a retry)
    InvalidTokenError       recovered inside the session (no-op)
    IndexOutOfRangeError    recovered inside the session (no-op)
    PersistenceUnavailable  recovered by load_or_default / save_idempotent
    SessionNotFound         propagates (unknown or foreign session id)
    ReviewNotFound          propagates (unknown review id)

Tier 1 leaf module: stdlib only.
"""


class PuzzleError(Exception):
    """Base class for every engine error.

    Attributes:
        code: Machine-readable error code.
        message: Human-readable description.
        retryable: Whether retrying the same request may succeed.
    """

    code = "PUZZLE_ERROR"
    retryable = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ContentUnavailable(PuzzleError):
    """Source text or hint list was empty or malformed."""

    code = "CONTENT_UNAVAILABLE"
    retryable = True


class InvalidTokenError(PuzzleError):
    """An operation referenced a token that isn't in the expected pool."""

    code = "INVALID_TOKEN"


class IndexOutOfRangeError(PuzzleError):
    """A position-based operation was out of bounds."""

    code = "INDEX_OUT_OF_RANGE"


class PersistenceUnavailable(PuzzleError):
    """A storage read or write failed.

    Attributes:
        key: The storage key involved, when known.
    """

    code = "PERSISTENCE_UNAVAILABLE"
    retryable = True

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class SessionNotFound(PuzzleError):
    """No live round with this id belongs to the requesting player."""

    code = "SESSION_NOT_FOUND"


class ReviewNotFound(PuzzleError):
    """No review in the feed has this id."""

    code = "REVIEW_NOT_FOUND"
