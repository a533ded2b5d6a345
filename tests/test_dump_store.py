"""
Tests for capture-inbox operations (store/dump.py).
"""

from datetime import date

import pytest

from brain.errors import CorruptionError, InvalidInputError, NotFoundError
from brain.store import dump as dump_store
from brain.utils.ids import generate_item_id

TODAY = date(2026, 2, 11)


@pytest.fixture
def dump_path(tmp_path):
    path = tmp_path / dump_store.DUMP_FILE_NAME
    path.write_text(
        dump_store.DUMP_TEMPLATE
        + "- [ ] Fix bug #captured:2024-01-01\n"
        + "[Note] Meeting notes #captured:2024-03-05\n"
        + "    Line one\n"
        + "    Line two\n"
        + "- [ ] Call Bob\n",
        encoding="utf-8",
    )
    return path


def test_list_dump_entries(dump_path):
    entries = dump_store.list_dump(dump_path)
    assert [(e.type, e.content, e.timestamp) for e in entries] == [
        ("todo", "Fix bug", "2024-01-01"),
        ("note", "Meeting notes", "2024-03-05"),
        ("todo", "Call Bob", ""),
    ]
    assert [(e.item.start_line, e.item.end_line) for e in entries] == [(5, 5), (6, 8), (9, 9)]


def test_list_dump_ids(dump_path):
    mtime = int(dump_path.stat().st_mtime)
    task, note, _ = dump_store.list_dump(dump_path)
    assert task.id == generate_item_id(5, "- [ ] Fix bug #captured:2024-01-01", mtime)
    assert note.id == generate_item_id(6, "Meeting notes #captured:2024-03-05", mtime)


def test_missing_dump_is_empty(tmp_path):
    assert dump_store.list_dump(tmp_path / "missing.md") == []


def test_find_dump_item(dump_path):
    entries = dump_store.list_dump(dump_path)
    assert dump_store.find_dump_item(dump_path, entries[2].id).content == "Call Bob"
    with pytest.raises(NotFoundError):
        dump_store.find_dump_item(dump_path, "zzzzzz")


def test_entry_to_dict(dump_path):
    note = dump_store.list_dump(dump_path)[1]
    d = note.to_dict()
    assert d["type"] == "note"
    assert d["start_line"] == 6
    assert d["end_line"] == 8


# --- capture ---

def test_capture_task(dump_path):
    line = dump_store.capture_task(dump_path, "  Buy   milk ", today=TODAY)
    assert line == "- [ ] Buy milk #captured:2026-02-11"
    assert dump_path.read_text(encoding="utf-8").endswith(line + "\n")
    assert dump_store.list_dump(dump_path)[-1].content == "Buy milk"


def test_capture_empty_task_rejected(dump_path):
    with pytest.raises(InvalidInputError):
        dump_store.capture_task(dump_path, "   ")


def test_capture_note(dump_path):
    block = dump_store.capture_note(
        dump_path, "Idea", "# comment line\n\nfirst\n  second\n\n", today=TODAY
    )
    assert block == "[Note] Idea #captured:2026-02-11\n    first\n      second\n"
    entry = dump_store.list_dump(dump_path)[-1]
    assert entry.type == "note"
    assert entry.content == "Idea"
    assert dump_store.read_note_body(dump_path, entry.item) == "first\n  second"


def test_capture_note_empty_body_rejected(dump_path):
    before = dump_path.read_bytes()
    with pytest.raises(InvalidInputError):
        dump_store.capture_note(dump_path, "Idea", "# only comments\n")
    assert dump_path.read_bytes() == before


def test_clean_note_body():
    assert dump_store.clean_note_body("\n\n# hint\nbody\n\nmore  \n\n") == ["body", "", "more"]


# --- removal ---

def test_trash_note_removes_whole_block(dump_path):
    note = dump_store.list_dump(dump_path)[1]
    dump_store.trash_dump_item(dump_path, note.item)
    remaining = dump_store.list_dump(dump_path)
    assert [e.content for e in remaining] == ["Fix bug", "Call Bob"]
    assert "Line one" not in dump_path.read_text(encoding="utf-8")


def test_remove_span_out_of_range(dump_path):
    with pytest.raises(NotFoundError):
        dump_store.remove_dump_span(dump_path, 50, 51)


def test_remove_span_stale_line(dump_path):
    before = dump_path.read_bytes()
    with pytest.raises(CorruptionError):
        dump_store.remove_dump_span(dump_path, 5, 5, expected_line="- [ ] Something else")
    assert dump_path.read_bytes() == before


def test_expected_first_line(dump_path):
    task, note, _ = dump_store.list_dump(dump_path)
    assert dump_store.expected_first_line(task.item) == "- [ ] Fix bug #captured:2024-01-01"
    assert dump_store.expected_first_line(note.item) == "[Note] Meeting notes #captured:2024-03-05"
