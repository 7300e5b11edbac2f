"""Fixtures for contract tests — one parameterized fixture per hook interface.

Each fixture yields a fresh implementation instance. Key-value storage has
two stubs ("memory" and "file"); the others have one ("stub"). When the
team adds a real implementation (e.g., Firestore, Redis, a scripture API),
they add a param value and an elif branch.

TEAM: To test your implementation against the contracts:
    1. Add your param string (e.g., "firestore") to the params list.
    2. Add an elif branch that yields your implementation instance.
    3. Run: python -m pytest versepuzzle/tests/contracts/ -v
    All tests should pass. If any fail, your implementation doesn't satisfy
    the contract — read the failing test's docstring for what's expected.
"""

import random

import pytest_asyncio

from versepuzzle.hooks.auth import FakeAuthService
from versepuzzle.hooks.content import StaticContentSource
from versepuzzle.hooks.database import InMemoryProgressStore
from versepuzzle.hooks.storage import InMemoryKeyValueStore, JsonFileKeyValueStore
from versepuzzle.schemas import Character, Verse


@pytest_asyncio.fixture(params=["stub"])
async def auth_service(request):
    """Yields an AuthService implementation."""
    if request.param == "stub":
        yield FakeAuthService()


@pytest_asyncio.fixture(params=["memory", "file"])
async def kv_store(request, tmp_path):
    """Yields a KeyValueStore implementation.

    TEAM: Add your storage here:
        @pytest_asyncio.fixture(params=["memory", "file", "redis"])
        async def kv_store(request, tmp_path):
            ...
            elif request.param == "redis":
                store = YourRedisStore(test_url)
                yield store
                await store.flush()  # if needed
    """
    if request.param == "memory":
        yield InMemoryKeyValueStore()
    elif request.param == "file":
        yield JsonFileKeyValueStore(base_path=tmp_path / "kv")


@pytest_asyncio.fixture(params=["stub"])
async def progress_store(request):
    """Yields a ProgressStore implementation."""
    if request.param == "stub":
        yield InMemoryProgressStore()


@pytest_asyncio.fixture(params=["stub"])
async def content_source(request):
    """Yields a ContentSource holding three verses and two characters."""
    verses = [
        Verse(reference="Genesis 1:1", text="In the beginning God created the heaven and the earth."),
        Verse(reference="Psalm 23:1", text="The LORD is my shepherd; I shall not want."),
        Verse(reference="John 11:35", text="Jesus wept."),
    ]
    characters = [
        Character(id="1", name="Moses", hints=["Leader", "Egypt"]),
        Character(id="2", name="David", hints=["King", "Goliath"]),
    ]
    if request.param == "stub":
        yield StaticContentSource(verses, characters, rng=random.Random(0))


@pytest_asyncio.fixture(params=["stub"])
async def empty_content_source(request):
    """Yields a ContentSource with nothing in it."""
    if request.param == "stub":
        yield StaticContentSource()
