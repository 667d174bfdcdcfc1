import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request

from notekeeper import config
from notekeeper.models.notes import NoteOut, NotePayload, TagsIn
from notekeeper.storage import event_log as events
from notekeeper.storage.event_log import Event, EventLog
from notekeeper.storage.notes_store import Note, NotesStore
from notekeeper.utils.jwt_auth import get_caller_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["notes"])


def get_store(request: Request) -> NotesStore:
    return request.app.state.notes_store


def get_event_log(request: Request) -> EventLog:
    return request.app.state.event_log


def _out(note: Note) -> NoteOut:
    return NoteOut(**note.to_dict())


def _audit(
    event_log: EventLog,
    event_type: str,
    user_id: str,
    note: Note,
    meta: Optional[dict[str, Any]] = None,
) -> None:
    # the store write is already committed; a lost audit line must not fail the request
    try:
        event_log.emit(Event(event_type=event_type, user_id=user_id, note_id=note.id, meta=meta))
    except OSError:
        logger.exception("could not record %s for note %s", event_type, note.id)


# Read-only routes. Fixed paths come before /{note_id} so they are not
# swallowed by it.

@router.get("", response_model=list[NoteOut])
def list_notes(
    offset: int = Query(default=0, ge=0),
    limit: Optional[int] = Query(default=None, ge=0),
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
) -> list[NoteOut]:
    limit = config.page_size() if limit is None else min(limit, config.max_page_size())
    return [_out(n) for n in store.list_notes(user_id=user_id, offset=offset, limit=limit)]


@router.get("/search", response_model=list[NoteOut])
def search_notes(
    q: str = "",
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
) -> list[NoteOut]:
    return [_out(n) for n in store.search_notes(user_id=user_id, query=q)]


# Tags are free text (empty, "/", ...), so the tag travels as a query value.
@router.get("/by-tag", response_model=list[NoteOut])
def list_notes_by_tag(
    tag: str = Query(),
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
) -> list[NoteOut]:
    return [_out(n) for n in store.list_notes_by_tag(user_id=user_id, tag=tag)]


@router.get("/{note_id}", response_model=NoteOut)
def get_note(
    note_id: str,
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
) -> NoteOut:
    return _out(store.get_note(user_id=user_id, note_id=note_id))


# Mutating routes: one store write each, then one audit event.

@router.post("", response_model=NoteOut, status_code=201)
def create_note(
    payload: NotePayload,
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
    event_log: EventLog = Depends(get_event_log),
) -> NoteOut:
    note = store.create_note(user_id=user_id, title=payload.title, content=payload.content)
    _audit(event_log, events.NOTE_CREATED, user_id, note)
    return _out(note)


@router.put("/{note_id}", response_model=NoteOut)
def update_note(
    note_id: str,
    payload: NotePayload,
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
    event_log: EventLog = Depends(get_event_log),
) -> NoteOut:
    note = store.update_note(user_id=user_id, note_id=note_id, title=payload.title, content=payload.content)
    _audit(event_log, events.NOTE_UPDATED, user_id, note)
    return _out(note)


@router.delete("/{note_id}", response_model=NoteOut)
def delete_note(
    note_id: str,
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
    event_log: EventLog = Depends(get_event_log),
) -> NoteOut:
    note = store.delete_note(user_id=user_id, note_id=note_id)
    _audit(event_log, events.NOTE_DELETED, user_id, note)
    return _out(note)


@router.post("/{note_id}/tags", response_model=NoteOut)
def add_tags(
    note_id: str,
    payload: TagsIn,
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
    event_log: EventLog = Depends(get_event_log),
) -> NoteOut:
    note = store.add_tags(user_id=user_id, note_id=note_id, tags=payload.tags)
    _audit(event_log, events.NOTE_TAGGED, user_id, note, meta={"added": payload.tags})
    return _out(note)


@router.post("/{note_id}/archive", response_model=NoteOut)
def archive_note(
    note_id: str,
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
    event_log: EventLog = Depends(get_event_log),
) -> NoteOut:
    note = store.archive_note(user_id=user_id, note_id=note_id)
    _audit(event_log, events.NOTE_ARCHIVED, user_id, note)
    return _out(note)


@router.post("/{note_id}/unarchive", response_model=NoteOut)
def unarchive_note(
    note_id: str,
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
    event_log: EventLog = Depends(get_event_log),
) -> NoteOut:
    note = store.unarchive_note(user_id=user_id, note_id=note_id)
    _audit(event_log, events.NOTE_UNARCHIVED, user_id, note)
    return _out(note)


@router.post("/{note_id}/favorite", response_model=NoteOut)
def favorite_note(
    note_id: str,
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
    event_log: EventLog = Depends(get_event_log),
) -> NoteOut:
    note = store.favorite_note(user_id=user_id, note_id=note_id)
    _audit(event_log, events.NOTE_FAVORITED, user_id, note)
    return _out(note)


@router.post("/{note_id}/unfavorite", response_model=NoteOut)
def unfavorite_note(
    note_id: str,
    user_id: str = Depends(get_caller_id),
    store: NotesStore = Depends(get_store),
    event_log: EventLog = Depends(get_event_log),
) -> NoteOut:
    note = store.unfavorite_note(user_id=user_id, note_id=note_id)
    _audit(event_log, events.NOTE_UNFAVORITED, user_id, note)
    return _out(note)
