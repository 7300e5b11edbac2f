"""In-memory progress store — development stub for ProgressStore.

Python dict-backed storage for player progress, standing in for the
remote document database. Data lives only in memory and is lost on
restart. Set ``online = False`` to simulate the store being unreachable;
every call then raises PersistenceUnavailable.

TEAM: Replace this with your real database. Subclass ProgressStore from
versepuzzle.hooks.interfaces and implement all three abstract methods.

Usage:
    from versepuzzle.hooks.database import InMemoryProgressStore

    db = InMemoryProgressStore()
    await db.save_progress(progress)
    await db.get_progress("player-1")
"""

from versepuzzle.engine.errors import PersistenceUnavailable
from versepuzzle.hooks.interfaces import ProgressStore
from versepuzzle.schemas import PlayerProgress


class InMemoryProgressStore(ProgressStore):
    """STUB — dict-backed progress records keyed by player id."""

    def __init__(self) -> None:
        self._records: dict[str, PlayerProgress] = {}
        self.online = True

    def _check_online(self, player_id: str) -> None:
        if not self.online:
            raise PersistenceUnavailable("Progress store is offline.", key=player_id)

    async def get_progress(self, player_id: str) -> PlayerProgress | None:
        self._check_online(player_id)
        record = self._records.get(player_id)
        return record.model_copy(deep=True) if record is not None else None

    async def save_progress(self, progress: PlayerProgress) -> None:
        self._check_online(progress.player_id)
        self._records[progress.player_id] = progress.model_copy(deep=True)

    async def delete_progress(self, player_id: str) -> None:
        self._check_online(player_id)
        self._records.pop(player_id, None)
