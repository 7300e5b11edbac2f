"""Shared test fixtures for the Verse Puzzle suite.

Factory-pattern fixtures that return callables accepting **overrides, so
each test states only what it cares about.

Fixtures:
    make_verse / make_character: content factories
    make_session: Factory for started PuzzleSession instances
    make_puzzle_snapshot: Factory for finished-puzzle snapshots
    content_source: StaticContentSource with a few verses and one character
    make_settings: Factory for Settings pointing at temp storage
    runtime: PuzzleRuntime on in-memory stores, shut down after the test
    wait_until: Polls an async predicate (for countdown-driven tests)
    make_app / client: FastAPI app with its own context, and an httpx client
"""

import asyncio
import random
from pathlib import Path
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport

from versepuzzle.config import PROJECT_ROOT, Settings
from versepuzzle.engine.session import PuzzleSession
from versepuzzle.engine.tokenizer import DEFAULT_PUNCTUATION
from versepuzzle.hooks.content import StaticContentSource
from versepuzzle.hooks.database import InMemoryProgressStore
from versepuzzle.hooks.storage import InMemoryKeyValueStore
from versepuzzle.main import create_app
from versepuzzle.modes import VERSE_PUZZLE, resolve_mode
from versepuzzle.persistence import ProgressRepository, SnapshotRepository
from versepuzzle.runtime import PuzzleRuntime
from versepuzzle.schemas import Character, PuzzleSnapshot, Token, Verse
from versepuzzle.state import AppContext, create_context

GENESIS = "In the beginning God created the heaven and the earth."
PSALM = "The LORD is my shepherd; I shall not want."
JOHN = "Jesus wept."


# ---------------------------------------------------------------------------
# Content factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_verse():
    def _make(**overrides) -> Verse:
        defaults = {"reference": "Genesis 1:1", "text": GENESIS}
        defaults.update(overrides)
        return Verse(**defaults)

    return _make


@pytest.fixture
def make_character():
    def _make(**overrides) -> Character:
        defaults = {
            "id": f"char-{uuid4().hex[:6]}",
            "name": "Moses",
            "hints": ["Leader", "Egypt", "Exodus", "Ten Commandments"],
            "difficulty": "easy",
            "testament": "old",
        }
        defaults.update(overrides)
        return Character(**defaults)

    return _make


@pytest.fixture
def content_source(make_verse, make_character) -> StaticContentSource:
    """Three verses and one character; seeded so picks are repeatable."""
    return StaticContentSource(
        verses=[
            make_verse(),
            make_verse(reference="Psalm 23:1", text=PSALM),
            make_verse(reference="Hebrews 11:1", text="Now faith is the substance of things hoped for."),
        ],
        characters=[make_character()],
        rng=random.Random(7),
    )


# ---------------------------------------------------------------------------
# Session factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_session():
    """Returns a factory for started sessions (state "active").

    Pass ``start=False`` for an idle session.
    """

    def _make(start: bool = True, **overrides) -> PuzzleSession:
        defaults = {
            "session_id": f"session-{uuid4().hex[:8]}",
            "player_id": "player-1",
            "mode": resolve_mode(VERSE_PUZZLE),
            "source_text": "In the beginning",
            "reference": "Genesis 1:1",
            "rng": random.Random(0),
        }
        defaults.update(overrides)
        session = PuzzleSession(**defaults)
        if start:
            session.start()
        return session

    return _make


@pytest.fixture
def make_puzzle_snapshot():
    """Returns a factory for a finished verse_puzzle snapshot."""

    def _make(**overrides) -> PuzzleSnapshot:
        tokens = [Token(text=w, index=i) for i, w in enumerate(["In", "the", "beginning"])]
        defaults = {
            "session_id": f"session-{uuid4().hex[:8]}",
            "player_id": "player-1",
            "mode_id": VERSE_PUZZLE,
            "reference": "Genesis 1:1",
            "source_text": "In the beginning",
            "tokens": tokens,
            "scrambled_pool": [],
            "arrangement": tokens,
            "hints_used": 0,
            "hint_budget": 5,
            "time_budget_seconds": 30,
            "time_remaining_seconds": 30,
            "outcome": "correct",
            "score": 100,
        }
        defaults.update(overrides)
        return PuzzleSnapshot(**defaults)

    return _make


def solve(session: PuzzleSession) -> None:
    """Places every pooled token in canonical order."""
    for token in session.tokens:
        session.place(token.index)


# ---------------------------------------------------------------------------
# Settings and runtime
# ---------------------------------------------------------------------------


@pytest.fixture
def make_settings(tmp_path: Path):
    """Returns a factory for Settings; timers effectively never tick."""

    def _make(**overrides) -> Settings:
        defaults = {
            "app_env": "test",
            "app_port": 8000,
            "log_level": "warning",
            "cors_origins": ["http://localhost:8081"],
            "content_dir": PROJECT_ROOT / "content",
            "data_dir": tmp_path / "data",
            "storage_backend": "memory",
            "tick_interval_seconds": 3600.0,
            "punctuation": DEFAULT_PUNCTUATION,
        }
        defaults.update(overrides)
        return Settings(**defaults)

    return _make


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def local_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def remote_store() -> InMemoryProgressStore:
    return InMemoryProgressStore()


@pytest_asyncio.fixture
async def make_runtime(content_source, local_store, remote_store, clock):
    """Returns a factory for runtimes sharing this test's stores.

    Every runtime built here is shut down after the test.
    """
    created: list[PuzzleRuntime] = []

    def _make(**overrides) -> PuzzleRuntime:
        defaults = {
            "content": content_source,
            "snapshots": SnapshotRepository(local_store),
            "progress": ProgressRepository(local_store, remote_store),
            "tick_interval": 3600.0,
            "rng": random.Random(3),
            "clock": clock,
        }
        defaults.update(overrides)
        rt = PuzzleRuntime(**defaults)
        created.append(rt)
        return rt

    yield _make
    for rt in created:
        await rt.shutdown()


@pytest_asyncio.fixture
async def runtime(make_runtime) -> PuzzleRuntime:
    return make_runtime()


@pytest.fixture
def wait_until():
    """Returns an async helper that polls ``predicate`` until true or timeout."""

    async def _wait(predicate, timeout: float = 2.0, interval: float = 0.005) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            if predicate():
                return True
            await asyncio.sleep(interval)
        return predicate()

    return _wait


# ---------------------------------------------------------------------------
# HTTP app
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def make_app(make_settings, content_source):
    """Returns a factory for apps with their own AppContext.

    Each app's runtime is shut down after the test (ASGITransport doesn't
    run the lifespan).
    """
    contexts: list[AppContext] = []

    def _make(content=None, **settings_overrides) -> FastAPI:
        settings = make_settings(**settings_overrides)
        context = create_context(
            settings,
            content=content if content is not None else content_source,
            rng=random.Random(0),
        )
        contexts.append(context)
        return create_app(settings, context)

    yield _make
    for context in contexts:
        await context.runtime.shutdown()


@pytest_asyncio.fixture
async def client(make_app):
    """Async test client wired to a fresh app."""
    transport = ASGITransport(app=make_app(), raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth(token: str = "player-1") -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
