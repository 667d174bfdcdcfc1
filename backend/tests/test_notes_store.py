import json

import pytest

from notekeeper.errors import NotFound, NotOwner, StorageFailure, ValidationError
from notekeeper.storage.notes_store import NotesStore


def test_create_sets_system_fields(store):
    note = store.create_note("U1", "Groceries", "milk, eggs")
    assert note.id == "note-1"
    assert note.owner == "U1"
    assert note.created_at
    assert note.updated_at is None
    assert note.tags == ()
    assert note.archived is False
    assert note.favorite is False


def test_create_then_get_roundtrip(store):
    created = store.create_note("U1", "t", "c")
    assert store.get_note("U1", created.id) == created


@pytest.mark.parametrize("title,content,message", [
    ("", "c", "Empty title"),
    ("   ", "c", "Empty title"),
    ("t", "", "Empty content"),
    ("t", "\n\t ", "Empty content"),
])
def test_create_rejects_blank_payload(store, title, content, message):
    with pytest.raises(ValidationError) as exc:
        store.create_note("U1", title, content)
    assert exc.value.message == message
    assert store.list_notes("U1") == []


def test_failed_create_does_not_consume_an_id(store):
    with pytest.raises(ValidationError):
        store.create_note("U1", "", "c")
    assert store.create_note("U1", "t", "c").id == "note-1"


def test_get_unknown_id_is_not_found_for_everyone(store):
    store.create_note("U1", "t", "c")
    for user in ("U1", "U2"):
        with pytest.raises(NotFound):
            store.get_note(user, "missing")


def test_other_user_gets_not_owner_and_note_is_unchanged(store):
    note = store.create_note("U1", "t", "c")
    operations = [
        lambda: store.get_note("U2", note.id),
        lambda: store.update_note("U2", note.id, "x", "y"),
        lambda: store.add_tags("U2", note.id, ["x"]),
        lambda: store.archive_note("U2", note.id),
        lambda: store.unarchive_note("U2", note.id),
        lambda: store.favorite_note("U2", note.id),
        lambda: store.unfavorite_note("U2", note.id),
        lambda: store.delete_note("U2", note.id),
    ]
    for op in operations:
        with pytest.raises(NotOwner):
            op()
    assert store.get_note("U1", note.id) == note


def test_every_single_record_operation_reports_not_found(store):
    operations = [
        lambda: store.update_note("U1", "nope", "x", "y"),
        lambda: store.add_tags("U1", "nope", ["x"]),
        lambda: store.archive_note("U1", "nope"),
        lambda: store.unarchive_note("U1", "nope"),
        lambda: store.favorite_note("U1", "nope"),
        lambda: store.unfavorite_note("U1", "nope"),
        lambda: store.delete_note("U1", "nope"),
    ]
    for op in operations:
        with pytest.raises(NotFound) as exc:
            op()
        assert "id=nope" in exc.value.message


def test_update_validates_before_lookup(store):
    note = store.create_note("U1", "t", "c")
    with pytest.raises(ValidationError):
        store.update_note("U2", note.id, " ", "c")
    with pytest.raises(ValidationError):
        store.update_note("U1", "missing", "t", "")


def test_update_replaces_text_and_sets_updated_at(store):
    note = store.create_note("U1", "Groceries", "milk, eggs")
    updated = store.update_note("U1", note.id, "Groceries", "milk, eggs, bread")
    assert updated.content == "milk, eggs, bread"
    assert updated.updated_at is not None
    assert updated.updated_at > updated.created_at
    assert updated.created_at == note.created_at
    assert updated.id == note.id and updated.owner == note.owner


def test_flag_and_tag_changes_do_not_touch_updated_at(store):
    note = store.create_note("U1", "t", "c")
    store.add_tags("U1", note.id, ["a"])
    store.archive_note("U1", note.id)
    assert store.favorite_note("U1", note.id).updated_at is None


def test_add_tags_appends_without_dedup(store):
    note = store.create_note("U1", "t", "c")
    store.add_tags("U1", note.id, ["x"])
    tagged = store.add_tags("U1", note.id, ["x", "y"])
    assert tagged.tags == ("x", "x", "y")


def test_archive_and_unarchive(store):
    note = store.create_note("U1", "t", "c")
    assert store.archive_note("U1", note.id).archived is True
    assert store.unarchive_note("U1", note.id).archived is False


def test_unfavorite_clears_the_flag(store):
    note = store.create_note("U1", "t", "c")
    assert store.favorite_note("U1", note.id).favorite is True
    assert store.unfavorite_note("U1", note.id).favorite is False
    assert store.get_note("U1", note.id).favorite is False


def test_delete_returns_previous_note_and_id_is_gone(store):
    note = store.create_note("U1", "t", "c")
    store.add_tags("U1", note.id, ["k"])
    deleted = store.delete_note("U1", note.id)
    assert deleted.tags == ("k",)
    with pytest.raises(NotFound):
        store.get_note("U1", note.id)
    assert store.create_note("U1", "t", "c").id != note.id


def test_list_paginates_after_owner_filtering(store):
    a = store.create_note("U1", "a", "a")
    store.create_note("U2", "other", "other")
    b = store.create_note("U1", "b", "b")
    c = store.create_note("U1", "c", "c")

    assert store.list_notes("U1") == [a, b, c]
    assert store.list_notes("U1", offset=1, limit=1) == [b]
    assert store.list_notes("U1", offset=0, limit=0) == []
    assert store.list_notes("U1", offset=10, limit=5) == []


def test_list_rejects_negative_window(store):
    with pytest.raises(ValidationError):
        store.list_notes("U1", offset=-1)
    with pytest.raises(ValidationError):
        store.list_notes("U1", limit=-1)


def test_update_keeps_store_order(store):
    a = store.create_note("U1", "a", "a")
    b = store.create_note("U1", "b", "b")
    store.update_note("U1", a.id, "a2", "a2")
    assert [n.id for n in store.list_notes("U1")] == [a.id, b.id]


def test_list_by_tag_is_exact_and_owner_scoped(store):
    mine = store.create_note("U1", "t", "c")
    other = store.create_note("U1", "t2", "c2")
    theirs = store.create_note("U2", "t", "c")
    store.add_tags("U1", mine.id, ["work"])
    store.add_tags("U1", other.id, ["Work", "workout"])
    store.add_tags("U2", theirs.id, ["work"])

    assert [n.id for n in store.list_notes_by_tag("U1", "work")] == [mine.id]


def test_search_is_case_insensitive_over_title_and_content(store):
    eggs = store.create_note("U1", "Groceries", "milk, eggs")
    title_hit = store.create_note("U1", "Egg recipes", "omelette")
    store.create_note("U1", "Work", "standup")
    store.create_note("U2", "eggs", "eggs")

    assert store.search_notes("U1", "egg") == [eggs, title_hit]
    assert store.search_notes("U1", "EGG") == [eggs, title_hit]
    assert store.search_notes("U1", "nothing") == []


def test_read_filters_are_repeatable(store):
    note = store.create_note("U1", "a", "b")
    store.add_tags("U1", note.id, ["x"])
    assert store.search_notes("U1", "a") == store.search_notes("U1", "a")
    assert store.list_notes_by_tag("U1", "x") == store.list_notes_by_tag("U1", "x")
    assert store.list_notes("U1") == store.list_notes("U1")


def test_notes_persist_across_store_instances(tmp_path):
    first = NotesStore(tmp_path)
    a = first.create_note("U1", "a", "a")
    b = first.create_note("U1", "b", "b")
    first.add_tags("U1", b.id, ["x", "x"])
    first.favorite_note("U1", a.id)

    reopened = NotesStore(tmp_path)
    assert reopened.list_notes("U1") == first.list_notes("U1")
    assert reopened.get_note("U1", b.id).tags == ("x", "x")


def test_corrupt_records_are_skipped_on_load(tmp_path):
    good = NotesStore(tmp_path).create_note("U1", "a", "a")
    raw = json.loads((tmp_path / "notes.json").read_text(encoding="utf-8"))
    raw["notes"].append({"id": "broken"})
    (tmp_path / "notes.json").write_text(json.dumps(raw), encoding="utf-8")

    assert NotesStore(tmp_path).list_notes("U1") == [good]


def test_unreadable_store_file_raises_storage_failure(tmp_path):
    (tmp_path / "notes.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageFailure):
        NotesStore(tmp_path)


def test_failed_write_leaves_store_unchanged(tmp_path, monkeypatch):
    store = NotesStore(tmp_path)
    note = store.create_note("U1", "t", "c")

    def boom(path, data):
        raise OSError("disk full")

    monkeypatch.setattr("notekeeper.storage.notes_store.atomic_write_json", boom)

    with pytest.raises(StorageFailure):
        store.update_note("U1", note.id, "x", "y")
    with pytest.raises(StorageFailure):
        store.delete_note("U1", note.id)
    with pytest.raises(StorageFailure):
        store.create_note("U1", "new", "note")

    assert store.list_notes("U1") == [note]
