"""Static content source — verses and characters from bundled JSON files.

Stands in for the scripture API and the character list. ``load()`` reads
``verses.json`` and ``characters.json`` from a content directory and
validates every entry with pydantic. Invalid entries are logged and
skipped; a missing or unreadable file leaves that list empty. Nothing
here raises at load time — an empty source only fails when asked for
content, with ContentUnavailable, so the client can offer a retry.

File shapes:
    verses.json      {"verses": [{"reference": "...", "text": "..."}]}
    characters.json  {"characters": [{"id": "1", "name": "Moses", "hints": [...]}]}

TEAM: Replace with a client for your scripture API. Subclass
ContentSource from versepuzzle.hooks.interfaces.
"""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from versepuzzle.engine.errors import ContentUnavailable
from versepuzzle.engine.tokenizer import strip_markup
from versepuzzle.hooks.interfaces import ContentSource
from versepuzzle.schemas import Character, Verse

logger = logging.getLogger("versepuzzle.content")

VERSES_FILE = "verses.json"
CHARACTERS_FILE = "characters.json"


class StaticContentSource(ContentSource):
    """Serves verses and characters held in memory.

    Args:
        verses: Initial verses (e.g. in tests).
        characters: Initial characters.
        rng: Random source for verse selection.
    """

    def __init__(
        self,
        verses: Sequence[Verse] = (),
        characters: Sequence[Character] = (),
        rng: random.Random | None = None,
    ) -> None:
        self._verses: list[Verse] = list(verses)
        self._characters: list[Character] = list(characters)
        self._rng = rng or random.Random()

    @classmethod
    def from_directory(cls, content_dir: Path, rng: random.Random | None = None) -> StaticContentSource:
        source = cls(rng=rng)
        source.load(content_dir)
        return source

    # -- Loading -----------------------------------------------------------

    def load(self, content_dir: Path) -> None:
        """Replaces the content with whatever validates under content_dir."""
        self._verses = _load_entries(content_dir / VERSES_FILE, "verses", Verse)
        self._characters = _load_entries(content_dir / CHARACTERS_FILE, "characters", Character)
        logger.info(
            "Content loaded: %d verse(s), %d character(s)",
            len(self._verses),
            len(self._characters),
        )

    # -- ContentSource -----------------------------------------------------

    async def random_verse(self, exclude: list[str] | None = None) -> Verse:
        verses = await self.sample_verses(1, exclude)
        return verses[0]

    async def get_verse(self, reference: str) -> Verse:
        for verse in self._verses:
            if verse.reference == reference:
                if not strip_markup(verse.text):
                    raise ContentUnavailable(f"Verse {reference!r} has no text.")
                return verse
        raise ContentUnavailable(f"Verse {reference!r} was not found.")

    async def sample_verses(self, count: int, exclude: list[str] | None = None) -> list[Verse]:
        usable = [v for v in self._verses if strip_markup(v.text)]
        if not usable:
            raise ContentUnavailable("No verses are available.")
        excluded = set(exclude or [])
        fresh = [v for v in usable if v.reference not in excluded]
        used = [v for v in usable if v.reference in excluded]
        self._rng.shuffle(fresh)
        self._rng.shuffle(used)
        return (fresh + used)[: max(count, 0)]

    async def list_characters(self) -> list[Character]:
        if not self._characters:
            raise ContentUnavailable("No characters are available.")
        return list(self._characters)


def _load_entries(path: Path, field: str, model: type[BaseModel]) -> list[Any]:
    """Reads ``{field: [...]}`` from path, keeping only entries that validate."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("Content file %s is missing; starting empty", path)
        return []
    except (OSError, json.JSONDecodeError):
        logger.exception("Content file %s could not be read; starting empty", path)
        return []

    entries = raw.get(field, []) if isinstance(raw, dict) else []
    loaded = []
    for position, entry in enumerate(entries):
        try:
            loaded.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.error(
                "Invalid %s entry #%d in %s: %s", field, position, path, exc.errors()[0]["msg"]
            )
    return loaded
