"""Application factory.

Nothing is built at import time. Serve with:

    uvicorn --factory notekeeper.main:create_app
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from notekeeper import config
from notekeeper.api import auth, notes
from notekeeper.api.errors import register_exception_handlers
from notekeeper.storage.event_log import EventLog
from notekeeper.storage.notes_store import NotesStore
from notekeeper.storage.users_store import UsersStore


def create_app(data_dir: Optional[Path] = None) -> FastAPI:
    """Build the API with its own stores rooted at ``data_dir``.

    Defaults to ``APP_DATA_DIR`` (see notekeeper.config).
    """
    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    base_dir = data_dir if data_dir is not None else config.data_dir()

    app = FastAPI(title="Notekeeper API")
    app.state.notes_store = NotesStore(base_dir)
    app.state.users_store = UsersStore(base_dir)
    app.state.event_log = EventLog(base_dir)

    register_exception_handlers(app)
    app.include_router(auth.router)
    app.include_router(notes.router)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app
