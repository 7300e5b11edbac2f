"""App configuration — environment variable loading with typed defaults.

Loads settings from .env file (via python-dotenv) and os.environ.
Real environment variables take precedence over .env file values.

Relative CONTENT_DIR and DATA_DIR values are resolved against the project
root, so the service behaves the same from any working directory.

Usage:
    from versepuzzle.config import get_settings
    settings = get_settings()
    print(settings.storage_backend)  # "memory"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from versepuzzle.engine.tokenizer import DEFAULT_PUNCTUATION

# Only load .env from the project root — don't traverse parent directories.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DOTENV_PATH = PROJECT_ROOT / ".env"

STORAGE_BACKENDS: tuple[str, ...] = ("memory", "file")


@dataclass(frozen=True)
class Settings:
    """Typed configuration for the Verse Puzzle service.

    All fields have sensible defaults for local development.
    """

    # App
    app_env: str
    app_port: int
    log_level: str
    cors_origins: list[str]

    # Content and storage
    content_dir: Path
    data_dir: Path
    storage_backend: str

    # Engine
    tick_interval_seconds: float
    punctuation: str


def _resolve_backend(value: str) -> str:
    """Validates the STORAGE_BACKEND value.

    Raises:
        ValueError: If the value isn't one of STORAGE_BACKENDS.
    """
    if value in STORAGE_BACKENDS:
        return value
    valid = ", ".join(STORAGE_BACKENDS)
    raise ValueError(
        f"Invalid value for STORAGE_BACKEND: {value!r}. "
        f"Valid options: {valid}"
    )


def _resolve_path(value: str) -> Path:
    """Anchors relative paths at the project root."""
    path = Path(value)
    return path if path.is_absolute() else PROJECT_ROOT / path


def _split_csv(value: str) -> list[str]:
    """Splits a comma-separated string into a list of stripped, non-empty values."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_settings() -> Settings:
    """Loads configuration from .env file and environment variables.

    Returns:
        A fully resolved Settings instance.
    """
    load_dotenv(_DOTENV_PATH)

    return Settings(
        # App
        app_env=os.environ.get("APP_ENV", "development"),
        app_port=int(os.environ.get("APP_PORT", "8000")),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        cors_origins=_split_csv(
            os.environ.get("CORS_ORIGINS", "http://localhost:8081,http://localhost:19006")
        ),
        # Content and storage
        content_dir=_resolve_path(os.environ.get("CONTENT_DIR", "content")),
        data_dir=_resolve_path(os.environ.get("DATA_DIR", ".data")),
        storage_backend=_resolve_backend(os.environ.get("STORAGE_BACKEND", "memory")),
        # Engine
        tick_interval_seconds=float(os.environ.get("TICK_INTERVAL_SECONDS", "1.0")),
        punctuation=os.environ.get("PUNCTUATION", DEFAULT_PUNCTUATION),
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Returns the singleton Settings instance. Loads .env on first call."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings
