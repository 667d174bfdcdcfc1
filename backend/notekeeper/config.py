"""Runtime configuration, read from environment variables.

Values are looked up on each call so tests can monkeypatch the environment
before building an app.
"""
from __future__ import annotations

import os
from pathlib import Path

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def data_dir() -> Path:
    return Path(os.getenv("APP_DATA_DIR", str(DEFAULT_DATA_DIR)))


def page_size() -> int:
    return _int_env("NOTES_PAGE_SIZE", 50)


def max_page_size() -> int:
    return _int_env("NOTES_MAX_PAGE_SIZE", 500)


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
