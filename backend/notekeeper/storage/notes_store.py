import json
import logging
import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from notekeeper.errors import NotFound, NotOwner, StorageFailure, ValidationError
from notekeeper.storage.fs import atomic_write_json

logger = logging.getLogger(__name__)

STORE_FILENAME = "notes.json"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_note_id() -> str:
    return str(uuid.uuid4())


def check_payload(title: str, content: str) -> None:
    if not title or not title.strip():
        raise ValidationError("Empty title")
    if not content or not content.strip():
        raise ValidationError("Empty content")


@dataclass(frozen=True)
class Note:
    id: str
    owner: str
    title: str
    content: str
    created_at: str
    updated_at: Optional[str] = None
    tags: tuple[str, ...] = ()
    archived: bool = False
    favorite: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner": self.owner,
            "title": self.title,
            "content": self.content,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "tags": list(self.tags),
            "archived": self.archived,
            "favorite": self.favorite,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Note":
        return cls(
            id=str(raw["id"]),
            owner=str(raw["owner"]),
            title=raw["title"],
            content=raw["content"],
            created_at=raw["created_at"],
            updated_at=raw.get("updated_at"),
            tags=tuple(raw.get("tags") or ()),
            archived=bool(raw.get("archived", False)),
            favorite=bool(raw.get("favorite", False)),
        )


class NotesStore:
    """Ownership-checked note records keyed by id.

    Records live in an insertion-ordered dict; when ``base_dir`` is given the
    whole map is also written to ``<base_dir>/notes.json`` after every
    mutation. Filtering operations scan all records.

    Every method takes the calling identity as ``user_id``. Single-record
    operations check existence before ownership, so an unknown id is always
    ``NotFound`` whoever asks.
    """

    def __init__(
        self,
        base_dir: Optional[Path] = None,
        *,
        id_factory: Callable[[], str] = _new_note_id,
        clock: Callable[[], str] = _utc_now_iso,
    ):
        self.base_dir = base_dir
        self.id_factory = id_factory
        self.clock = clock
        self._lock = threading.Lock()
        self._notes: dict[str, Note] = self._load() if base_dir is not None else {}

    @property
    def path(self) -> Optional[Path]:
        if self.base_dir is None:
            return None
        return self.base_dir / STORE_FILENAME

    def _load(self) -> dict[str, Note]:
        path = self.path
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.exception("could not read %s", path)
            raise StorageFailure("Problem with loading notes") from exc
        if not isinstance(raw, dict):
            raise StorageFailure("Problem with loading notes")

        notes: dict[str, Note] = {}
        for item in raw.get("notes", []):
            try:
                note = Note.from_dict(item)
            except (KeyError, TypeError, ValueError):
                logger.warning("skipping corrupt note record in %s", path)
                continue
            notes[note.id] = note
        logger.info("loaded %d notes from %s", len(notes), path)
        return notes

    def _save(self, notes: dict[str, Note]) -> None:
        # the new map only becomes current once it is on disk
        if self.base_dir is not None:
            try:
                atomic_write_json(self.path, {"notes": [n.to_dict() for n in notes.values()]})
            except OSError as exc:
                logger.exception("could not write %s", self.path)
                raise StorageFailure("Problem with saving notes") from exc
        self._notes = notes

    def _upsert(self, note: Note) -> None:
        notes = dict(self._notes)
        notes[note.id] = note
        self._save(notes)

    def _owned(self, user_id: str, note_id: str, action: str) -> Note:
        note = self._notes.get(note_id)
        if note is None:
            raise NotFound(f"Couldn't {action} note with id={note_id}. Note not found")
        if note.owner != user_id:
            raise NotOwner("You are not the owner of this note")
        return note

    def _caller_notes(self, user_id: str) -> list[Note]:
        return [n for n in self._notes.values() if n.owner == user_id]

    # -- queries --

    def list_notes(self, user_id: str, offset: int = 0, limit: Optional[int] = None) -> list[Note]:
        if offset < 0:
            raise ValidationError("Offset must not be negative")
        if limit is not None and limit < 0:
            raise ValidationError("Limit must not be negative")
        with self._lock:
            notes = self._caller_notes(user_id)
        end = None if limit is None else offset + limit
        return notes[offset:end]

    def get_note(self, user_id: str, note_id: str) -> Note:
        with self._lock:
            note = self._notes.get(note_id)
        if note is None:
            raise NotFound(f"A note with id={note_id} not found")
        if note.owner != user_id:
            raise NotOwner("Not owner of note")
        return note

    def list_notes_by_tag(self, user_id: str, tag: str) -> list[Note]:
        with self._lock:
            return [n for n in self._caller_notes(user_id) if tag in n.tags]

    def search_notes(self, user_id: str, query: str) -> list[Note]:
        q = query.lower()
        with self._lock:
            return [
                n for n in self._caller_notes(user_id)
                if q in n.title.lower() or q in n.content.lower()
            ]

    # -- mutations --

    def create_note(self, user_id: str, title: str, content: str) -> Note:
        check_payload(title, content)
        with self._lock:
            note = Note(
                id=self.id_factory(),
                owner=user_id,
                title=title,
                content=content,
                created_at=self.clock(),
            )
            self._upsert(note)
        return note

    def update_note(self, user_id: str, note_id: str, title: str, content: str) -> Note:
        check_payload(title, content)
        with self._lock:
            note = self._owned(user_id, note_id, "update")
            updated = replace(note, title=title, content=content, updated_at=self.clock())
            self._upsert(updated)
        return updated

    def add_tags(self, user_id: str, note_id: str, tags: Iterable[str]) -> Note:
        if isinstance(tags, str):
            tags = [tags]
        with self._lock:
            note = self._owned(user_id, note_id, "add tags to")
            updated = replace(note, tags=note.tags + tuple(tags))
            self._upsert(updated)
        return updated

    def delete_note(self, user_id: str, note_id: str) -> Note:
        with self._lock:
            note = self._owned(user_id, note_id, "delete")
            notes = dict(self._notes)
            del notes[note_id]
            self._save(notes)
        return note

    def _set_flags(self, user_id: str, note_id: str, action: str, **flags: bool) -> Note:
        with self._lock:
            note = self._owned(user_id, note_id, action)
            updated = replace(note, **flags)
            self._upsert(updated)
        return updated

    def archive_note(self, user_id: str, note_id: str) -> Note:
        return self._set_flags(user_id, note_id, "archive", archived=True)

    def unarchive_note(self, user_id: str, note_id: str) -> Note:
        return self._set_flags(user_id, note_id, "unarchive", archived=False)

    def favorite_note(self, user_id: str, note_id: str) -> Note:
        return self._set_flags(user_id, note_id, "favorite", favorite=True)

    def unfavorite_note(self, user_id: str, note_id: str) -> Note:
        return self._set_flags(user_id, note_id, "unfavorite", favorite=False)
