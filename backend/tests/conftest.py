import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from notekeeper.main import create_app
from notekeeper.storage.notes_store import NotesStore


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> str:
        self.now += timedelta(seconds=1)
        return self.now.isoformat()


@pytest.fixture()
def ids():
    counter = itertools.count(1)
    return lambda: f"note-{next(counter)}"


@pytest.fixture()
def store(ids):
    return NotesStore(id_factory=ids, clock=FakeClock())


@pytest.fixture()
def client(tmp_path, monkeypatch):
    # isolate data dir per test
    monkeypatch.setenv("JWT_SECRET", "dev-secret-for-tests")
    monkeypatch.setenv("NOTES_PAGE_SIZE", "50")
    monkeypatch.setenv("NOTES_MAX_PAGE_SIZE", "500")
    return TestClient(create_app(data_dir=tmp_path))
