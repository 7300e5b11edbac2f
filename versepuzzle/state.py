"""Application state — the one object that holds every service.

``create_context()`` builds the stores, the content source and the
runtime from Settings. ``create_app()`` attaches the result to
``app.state.context`` and route handlers reach it through the
dependencies in ``versepuzzle.api.deps``. Nothing here is a module-level
singleton, so two apps (e.g. two tests) never share state.

TEAM: This is the swap point for real services. Replace the stub on the
right side of each assignment in create_context(); handlers stay the same.

Tier 3 orchestration module: imports from config, hooks/*, persistence,
runtime.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from versepuzzle.config import Settings
from versepuzzle.hooks.auth import FakeAuthService
from versepuzzle.hooks.content import StaticContentSource
from versepuzzle.hooks.database import InMemoryProgressStore
from versepuzzle.hooks.interfaces import (
    AuthService,
    ContentSource,
    KeyValueStore,
    ProgressStore,
)
from versepuzzle.hooks.storage import InMemoryKeyValueStore, JsonFileKeyValueStore
from versepuzzle.persistence import ProgressRepository, ReviewRepository, SnapshotRepository
from versepuzzle.runtime import PuzzleRuntime

logger = logging.getLogger("versepuzzle")


@dataclass
class AppContext:
    """Everything a request handler may need."""

    settings: Settings
    auth: AuthService
    local_store: KeyValueStore
    progress_store: ProgressStore
    content: ContentSource
    runtime: PuzzleRuntime
    reviews: ReviewRepository


def _create_local_store(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "file":
        return JsonFileKeyValueStore(base_path=settings.data_dir)
    return InMemoryKeyValueStore()


def create_context(
    settings: Settings,
    *,
    content: ContentSource | None = None,
    rng: random.Random | None = None,
) -> AppContext:
    """Builds the application state from settings.

    Args:
        settings: Resolved configuration.
        content: Content source to use instead of the bundled files.
        rng: Shared random source (seed it in tests).
    """
    rng = rng or random.Random()

    # TEAM: Replace with your real implementations here.
    auth: AuthService = FakeAuthService()
    local_store = _create_local_store(settings)
    progress_store: ProgressStore = InMemoryProgressStore()
    if content is None:
        content = StaticContentSource.from_directory(settings.content_dir, rng=rng)

    runtime = PuzzleRuntime(
        content=content,
        snapshots=SnapshotRepository(local_store),
        progress=ProgressRepository(local_store, progress_store),
        punctuation=settings.punctuation,
        tick_interval=settings.tick_interval_seconds,
        rng=rng,
    )
    logger.info(
        "App context ready: env=%s storage=%s", settings.app_env, settings.storage_backend
    )
    return AppContext(
        settings=settings,
        auth=auth,
        local_store=local_store,
        progress_store=progress_store,
        content=content,
        runtime=runtime,
        reviews=ReviewRepository(local_store),
    )
