"""Errors raised by the note store.

Each carries a human-readable ``message`` and the HTTP status the API layer
answers with.
"""


class NoteError(Exception):
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(NoteError):
    """Title or content is empty, or pagination arguments are negative."""
    status_code = 422


class NotFound(NoteError):
    """No record with the requested id exists."""
    status_code = 404


class NotOwner(NoteError):
    """The record exists but belongs to another identity."""
    status_code = 403


class StorageFailure(NoteError):
    """The backing file could not be read or written."""
    status_code = 500
