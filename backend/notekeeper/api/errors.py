"""Turn store errors into HTTP responses.

The body keeps FastAPI's ``{"detail": ...}`` shape, with the store's message
as the detail.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from notekeeper.errors import NoteError, NotOwner, StorageFailure

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NoteError)
    async def note_error_handler(request: Request, exc: NoteError) -> JSONResponse:
        if isinstance(exc, NotOwner):
            logger.info("ownership check rejected %s %s", request.method, request.url.path)
        elif isinstance(exc, StorageFailure):
            logger.error("storage failure on %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
