"""Hook interfaces — abstract base classes for all swappable services.

These ABCs define the contracts between the puzzle engine and the outside
world: who the player is, where local state lives, where durable progress
lives, and where verses come from. Each one has a stub implementation that
lets the service run end-to-end without real infrastructure.

Tier 1 leaf module: imports only from abc (stdlib) and
versepuzzle.schemas (also Tier 1). No project services, no orchestration.

Storage adapters report failures by raising PersistenceUnavailable; they
never return defaults themselves. Falling back is the job of
versepuzzle.persistence.

TEAM: To implement a real service, subclass the relevant ABC and implement
every abstract method. Python will raise TypeError at instantiation if
any method is missing.

Usage:
    from versepuzzle.hooks.interfaces import AuthService, KeyValueStore
    from versepuzzle.hooks.interfaces import ProgressStore, ContentSource
"""

from abc import ABC, abstractmethod
from typing import Any

from versepuzzle.schemas import Character, Player, PlayerProgress, Verse


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class AuthService(ABC):
    """Resolves a bearer token to a Player.

    Sign-in, sign-up and password reset belong to the auth provider; the
    engine only ever asks "who is this?".
    """

    @abstractmethod
    async def validate_token(self, token: str) -> Player | None:
        """Validates an auth token and returns the associated player.

        Args:
            token: Auth token from the request.

        Returns:
            The Player if the token is valid, None otherwise.
        """
        ...


# ---------------------------------------------------------------------------
# Local key-value storage (device storage)
# ---------------------------------------------------------------------------


class KeyValueStore(ABC):
    """Local key-value storage for session snapshots and offline progress.

    Values are JSON-compatible dicts. Writes are whole-value overwrites,
    so repeating a write is harmless and the last write wins.
    """

    @abstractmethod
    async def get_item(self, key: str) -> dict[str, Any] | None:
        """Reads a value.

        Returns:
            The stored dict, or None if the key has never been written.

        Raises:
            PersistenceUnavailable: If the storage can't be read.
        """
        ...

    @abstractmethod
    async def set_item(self, key: str, value: dict[str, Any]) -> None:
        """Creates or overwrites a value.

        Raises:
            PersistenceUnavailable: If the storage can't be written.
        """
        ...

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Deletes a value. No-op if missing.

        Raises:
            PersistenceUnavailable: If the storage can't be written.
        """
        ...


# ---------------------------------------------------------------------------
# Durable progress store (remote document database)
# ---------------------------------------------------------------------------


class ProgressStore(ABC):
    """Durable player-progress records, keyed by player id."""

    @abstractmethod
    async def get_progress(self, player_id: str) -> PlayerProgress | None:
        """Returns the player's record, or None if they have none yet.

        Raises:
            PersistenceUnavailable: If the store can't be reached.
        """
        ...

    @abstractmethod
    async def save_progress(self, progress: PlayerProgress) -> None:
        """Creates or overwrites the record for progress.player_id.

        Raises:
            PersistenceUnavailable: If the store can't be reached.
        """
        ...

    @abstractmethod
    async def delete_progress(self, player_id: str) -> None:
        """Deletes the player's record. No-op if missing.

        Raises:
            PersistenceUnavailable: If the store can't be reached.
        """
        ...


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class ContentSource(ABC):
    """Supplies verses and characters.

    Implementations raise ContentUnavailable instead of returning empty
    content, so callers can offer a retry.
    """

    @abstractmethod
    async def random_verse(self, exclude: list[str] | None = None) -> Verse:
        """Returns a verse whose reference isn't in ``exclude`` when possible.

        Raises:
            ContentUnavailable: If there are no verses.
        """
        ...

    @abstractmethod
    async def get_verse(self, reference: str) -> Verse:
        """Returns the verse with this reference.

        Raises:
            ContentUnavailable: If the reference is unknown or empty.
        """
        ...

    @abstractmethod
    async def sample_verses(self, count: int, exclude: list[str] | None = None) -> list[Verse]:
        """Returns up to ``count`` distinct verses, unused ones first.

        Raises:
            ContentUnavailable: If there are no verses.
        """
        ...

    @abstractmethod
    async def list_characters(self) -> list[Character]:
        """Returns every character.

        Raises:
            ContentUnavailable: If there are no characters.
        """
        ...
