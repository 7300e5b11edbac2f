"""Persistence wrappers — the only place storage failures are absorbed.

Storage adapters raise PersistenceUnavailable. Everything above this
module calls storage through ``load_or_default`` / ``save_idempotent``
(or the repositories built on them), which log the failure and carry on
with in-memory state. A broken disk or an offline database never ends a
game.

Progress precedence:
    1. remote record exists      -> use it, mirror it locally
    2. remote reachable, empty   -> use the local copy (and push it up)
    3. remote unreachable        -> the local copy is authoritative
    4. nothing anywhere          -> defaults

Tier 2 service module: imports from hooks/interfaces, schemas, engine.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from versepuzzle.engine.errors import PersistenceUnavailable
from versepuzzle.engine.progress import default_progress
from versepuzzle.hooks.interfaces import KeyValueStore, ProgressStore
from versepuzzle.schemas import PlayerProgress, Review

logger = logging.getLogger("versepuzzle.persistence")

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

LOCAL_PROGRESS_KEY = "gameProgress"
REVIEWS_KEY = "reviews"


async def load_or_default(
    loader: Callable[[], Awaitable[T | None]],
    default: T,
    *,
    what: str,
) -> T:
    """Awaits ``loader``; on a miss or a storage failure returns ``default``.

    Args:
        loader: Zero-argument coroutine function doing the read.
        default: Returned when the value is missing or unreadable.
        what: Label for the log line.
    """
    try:
        value = await loader()
    except PersistenceUnavailable as exc:
        logger.warning("Could not load %s; using defaults: %s", what, exc.message)
        return default
    return default if value is None else value


async def save_idempotent(saver: Callable[[], Awaitable[None]], *, what: str) -> bool:
    """Awaits ``saver``; a storage failure is logged and reported as False.

    Savers must write whole values so that repeating one is harmless.
    """
    try:
        await saver()
    except PersistenceUnavailable as exc:
        logger.warning("Could not save %s: %s", what, exc.message)
        return False
    return True


def snapshot_key(mode_key: str, player_id: str) -> str:
    """Storage key for one player's snapshot in one mode."""
    return f"{mode_key}:{player_id}"


class SnapshotRepository:
    """Reads and writes round snapshots in local key-value storage."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def save(self, mode_key: str, player_id: str, snapshot: BaseModel) -> bool:
        key = snapshot_key(mode_key, player_id)
        data = snapshot.model_dump(mode="json")
        return await save_idempotent(lambda: self._store.set_item(key, data), what=key)

    async def load(self, mode_key: str, player_id: str, model: type[M]) -> M | None:
        """Returns the stored snapshot, or None if missing, unreadable or invalid.

        Invalid data is removed so it is never offered again.
        """
        key = snapshot_key(mode_key, player_id)
        data = await load_or_default(lambda: self._store.get_item(key), None, what=key)
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.warning("Discarding invalid snapshot %s: %d error(s)", key, exc.error_count())
            await self.clear(mode_key, player_id)
            return None

    async def clear(self, mode_key: str, player_id: str) -> bool:
        key = snapshot_key(mode_key, player_id)
        return await save_idempotent(lambda: self._store.remove_item(key), what=key)

    async def load_names(self, list_key: str, player_id: str) -> list[str]:
        """A stored list of names, empty when missing or unreadable."""
        key = snapshot_key(list_key, player_id)
        data = await load_or_default(lambda: self._store.get_item(key), {}, what=key)
        names = data.get("names")
        if not isinstance(names, list):
            return []
        return [name for name in names if isinstance(name, str)]

    async def save_names(self, list_key: str, player_id: str, names: list[str]) -> bool:
        key = snapshot_key(list_key, player_id)
        data = {"names": list(names)}
        return await save_idempotent(lambda: self._store.set_item(key, data), what=key)


class ProgressRepository:
    """Player progress across local storage and the remote store.

    Args:
        local: Device-side key-value storage.
        remote: Durable progress store.
    """

    def __init__(self, local: KeyValueStore, remote: ProgressStore) -> None:
        self._local = local
        self._remote = remote

    @staticmethod
    def _local_key(player_id: str) -> str:
        return snapshot_key(LOCAL_PROGRESS_KEY, player_id)

    async def _load_local(self, player_id: str) -> PlayerProgress | None:
        key = self._local_key(player_id)
        data = await load_or_default(lambda: self._local.get_item(key), None, what=key)
        if data is None:
            return None
        try:
            return PlayerProgress.model_validate(data)
        except ValidationError as exc:
            logger.warning("Discarding invalid local progress %s: %d error(s)", key, exc.error_count())
            return None

    async def _save_local(self, progress: PlayerProgress) -> bool:
        key = self._local_key(progress.player_id)
        data = progress.model_dump(mode="json")
        return await save_idempotent(lambda: self._local.set_item(key, data), what=key)

    async def _save_remote(self, progress: PlayerProgress) -> bool:
        return await save_idempotent(
            lambda: self._remote.save_progress(progress),
            what=f"remote progress for {progress.player_id}",
        )

    async def load(self, player_id: str) -> PlayerProgress:
        """Resolves the player's progress using the precedence above."""
        try:
            remote = await self._remote.get_progress(player_id)
        except PersistenceUnavailable as exc:
            logger.warning(
                "Remote progress for %s unavailable; using local copy: %s",
                player_id, exc.message,
            )
            local = await self._load_local(player_id)
            return local or default_progress(player_id)

        if remote is not None:
            await self._save_local(remote)
            return remote

        local = await self._load_local(player_id)
        if local is not None:
            await self._save_remote(local)
            return local
        return default_progress(player_id)

    async def save(self, progress: PlayerProgress) -> bool:
        """Writes local first, then remote. True only if both succeeded."""
        local_ok = await self._save_local(progress)
        remote_ok = await self._save_remote(progress)
        return local_ok and remote_ok


class ReviewRepository:
    """The community review feed, stored as one list under ``reviews``.

    Updates run one at a time, so two likes arriving together both count.
    When storage can't be read, the last feed seen is used instead, so a
    read failure never wipes the stored feed on the next write.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._lock = asyncio.Lock()
        self._last_seen: list[Review] = []

    async def load(self) -> list[Review]:
        try:
            data = await self._store.get_item(REVIEWS_KEY)
        except PersistenceUnavailable as exc:
            logger.warning("Could not load %s; using the last feed seen: %s", REVIEWS_KEY, exc.message)
            return list(self._last_seen)

        reviews: list[Review] = []
        for item in (data or {}).get("reviews", []):
            try:
                reviews.append(Review.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping invalid review in %s: %d error(s)", REVIEWS_KEY, exc.error_count())
        self._last_seen = reviews
        return list(reviews)

    async def save(self, reviews: list[Review]) -> bool:
        self._last_seen = list(reviews)
        data = {"reviews": [r.model_dump(mode="json") for r in reviews]}
        return await save_idempotent(lambda: self._store.set_item(REVIEWS_KEY, data), what=REVIEWS_KEY)

    async def update(self, change: Callable[[list[Review]], list[Review]]) -> list[Review]:
        """Loads the feed, applies ``change`` and saves the result.

        Exceptions raised by ``change`` propagate and nothing is saved.
        """
        async with self._lock:
            updated = change(await self.load())
            await self.save(updated)
        return updated
