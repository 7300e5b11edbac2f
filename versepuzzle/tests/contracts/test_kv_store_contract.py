"""Contract tests for KeyValueStore — what every implementation must do.

Verifies that any KeyValueStore implementation satisfies:
- Missing keys read as None, never as an error
- Writes are whole-value overwrites (last write wins, repeats are harmless)
- Stored values are isolated from later mutation by the caller
- Removal is idempotent

Run against registered implementations:
    python -m pytest versepuzzle/tests/contracts/test_kv_store_contract.py -v
"""

import pytest


class TestKeyValueStoreContract:
    """Behavioral contract for KeyValueStore implementations."""

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self, kv_store) -> None:
        assert await kv_store.get_item("nothing-here") is None

    @pytest.mark.asyncio
    async def test_set_then_get(self, kv_store) -> None:
        await kv_store.set_item("gameProgress:player-1", {"level": 3, "modes": {"a": [1, 2]}})
        assert await kv_store.get_item("gameProgress:player-1") == {"level": 3, "modes": {"a": [1, 2]}}

    @pytest.mark.asyncio
    async def test_last_write_wins(self, kv_store) -> None:
        await kv_store.set_item("k", {"v": 1})
        await kv_store.set_item("k", {"v": 2})
        assert await kv_store.get_item("k") == {"v": 2}

    @pytest.mark.asyncio
    async def test_repeated_write_is_harmless(self, kv_store) -> None:
        await kv_store.set_item("k", {"v": 1})
        await kv_store.set_item("k", {"v": 1})
        assert await kv_store.get_item("k") == {"v": 1}

    @pytest.mark.asyncio
    async def test_caller_mutation_does_not_leak(self, kv_store) -> None:
        """Mutating the dict after set_item must not change what's stored."""
        value = {"items": [1]}
        await kv_store.set_item("k", value)
        value["items"].append(2)
        assert await kv_store.get_item("k") == {"items": [1]}

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, kv_store) -> None:
        await kv_store.set_item("snap:player-1", {"who": 1})
        await kv_store.set_item("snap:player-2", {"who": 2})
        assert (await kv_store.get_item("snap:player-1"))["who"] == 1
        assert (await kv_store.get_item("snap:player-2"))["who"] == 2

    @pytest.mark.asyncio
    async def test_remove(self, kv_store) -> None:
        await kv_store.set_item("k", {"v": 1})
        await kv_store.remove_item("k")
        assert await kv_store.get_item("k") is None

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self, kv_store) -> None:
        await kv_store.remove_item("never-written")
        assert await kv_store.get_item("never-written") is None
