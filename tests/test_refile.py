"""
Tests for moving dump items into projects (refile.py).
"""

from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest

from brain.api.handlers import handle_refile
from brain.errors import IOFailureError, RefileRemovalError
from brain.refile import refile
from brain.store import dump as dump_store
from brain.store.projects import TODO_TEMPLATE
from brain.workspace import Workspace

TODAY = date(2026, 2, 11)


def _make_brain(tmp_path: Path, dump_body: str):
    """Create a brain with one empty project 'api'. Returns (dump_path, project_dir)."""
    project_dir = tmp_path / "01_active" / "api"
    project_dir.mkdir(parents=True)
    dump_path = tmp_path / dump_store.DUMP_FILE_NAME
    dump_path.write_text(dump_body, encoding="utf-8")
    return dump_path, project_dir


def test_refile_task_creates_todo_file(tmp_path):
    dump_path, project_dir = _make_brain(
        tmp_path, "- [ ] Fix bug #captured:2024-01-01\n- [ ] Other #captured:2024-01-02\n"
    )
    entry = dump_store.list_dump(dump_path)[0]

    result = refile(entry.item, project_dir, dump_path)

    todo_file = project_dir / "todo.md"
    assert result.type == "todo"
    assert result.project == "api"
    assert result.destination == todo_file
    content = todo_file.read_text(encoding="utf-8")
    assert content == TODO_TEMPLATE + "- [ ] Fix bug #captured:2024-01-01\n"
    assert [e.content for e in dump_store.list_dump(dump_path)] == ["Other"]


def test_refile_task_appends_to_existing_todo(tmp_path):
    dump_path, project_dir = _make_brain(tmp_path, "- [ ] New thing\n")
    (project_dir / "todo.md").write_text("# Tasks\n- [ ] Existing", encoding="utf-8")

    refile(dump_store.list_dump(dump_path)[0].item, project_dir, dump_path)

    assert (project_dir / "todo.md").read_text(encoding="utf-8") == (
        "# Tasks\n- [ ] Existing\n- [ ] New thing\n"
    )
    assert dump_store.list_dump(dump_path) == []


def test_refile_note_writes_note_file(tmp_path):
    dump_path, project_dir = _make_brain(
        tmp_path,
        "[Note] Meeting notes #captured:2024-03-05\n    Line one\n    Line two\n- [ ] Stay\n",
    )
    note = dump_store.list_dump(dump_path)[0]

    result = refile(note.item, project_dir, dump_path)

    expected = project_dir / "notes" / "2024-03-05-meeting-notes.md"
    assert result.destination == expected
    assert expected.read_text(encoding="utf-8") == (
        "# Meeting notes\n\nCreated: 2024-03-05\n\nLine one\nLine two\n"
    )
    assert dump_path.read_text(encoding="utf-8") == "- [ ] Stay\n"


def test_refile_note_never_overwrites(tmp_path):
    dump_path, project_dir = _make_brain(
        tmp_path, "[Note] Meeting notes #captured:2024-03-05\n    body\n"
    )
    notes_dir = project_dir / "notes"
    notes_dir.mkdir()
    (notes_dir / "2024-03-05-meeting-notes.md").write_text("keep me", encoding="utf-8")

    result = refile(dump_store.list_dump(dump_path)[0].item, project_dir, dump_path)

    assert result.destination.name == "2024-03-05-meeting-notes-1.md"
    assert (notes_dir / "2024-03-05-meeting-notes.md").read_text(encoding="utf-8") == "keep me"


def test_refile_note_without_timestamp_uses_today(tmp_path):
    dump_path, project_dir = _make_brain(tmp_path, "[Note] Loose idea\n    body\n")
    result = refile(dump_store.list_dump(dump_path)[0].item, project_dir, dump_path, today=TODAY)
    assert result.destination.name == "2026-02-11-loose-idea.md"


def test_refile_note_with_only_timestamp_title(tmp_path):
    dump_path, project_dir = _make_brain(tmp_path, "[Note] #captured:2024-01-01\n    body line\n")

    result = refile(dump_store.list_dump(dump_path)[0].item, project_dir, dump_path)

    assert result.destination == project_dir / "notes" / "2024-01-01-note.md"
    assert result.destination.read_text(encoding="utf-8") == (
        "# \n\nCreated: 2024-01-01\n\nbody line\n"
    )
    assert dump_store.list_dump(dump_path) == []


def test_refile_into_dotted_project(tmp_path):
    dump_path, _ = _make_brain(tmp_path, "- [ ] Tag release #captured:2024-01-01\n")
    (tmp_path / "01_active" / "v1.2").mkdir()
    entry = dump_store.list_dump(dump_path)[0]

    result = handle_refile(Workspace(root=tmp_path), item_id=entry.id, project="v1.2")

    todo_file = tmp_path / "01_active" / "v1.2" / "todo.md"
    assert result["project"] == "v1.2"
    assert result["destination"] == str(todo_file)
    assert todo_file.read_text(encoding="utf-8").endswith("- [ ] Tag release #captured:2024-01-01\n")
    assert dump_store.list_dump(dump_path) == []


def test_removal_failure_keeps_item_in_both_places(tmp_path):
    dump_path, project_dir = _make_brain(tmp_path, "- [ ] Fix bug #captured:2024-01-01\n")
    item = dump_store.list_dump(dump_path)[0].item

    with patch("brain.refile.remove_dump_span", side_effect=IOFailureError("disk gone")):
        with pytest.raises(RefileRemovalError) as exc:
            refile(item, project_dir, dump_path)

    assert exc.value.error.details["destination"] == str(project_dir / "todo.md")
    assert exc.value.error.details["cause"] == "IO_FAILURE"
    assert "- [ ] Fix bug #captured:2024-01-01" in (project_dir / "todo.md").read_text(
        encoding="utf-8"
    )
    assert len(dump_store.list_dump(dump_path)) == 1


def test_stale_item_is_not_removed(tmp_path):
    dump_path, project_dir = _make_brain(tmp_path, "- [ ] Fix bug\n- [ ] Second\n")
    item = dump_store.list_dump(dump_path)[0].item
    dump_path.write_text("- [ ] Inserted\n- [ ] Fix bug\n- [ ] Second\n", encoding="utf-8")

    with pytest.raises(RefileRemovalError):
        refile(item, project_dir, dump_path)

    assert dump_path.read_text(encoding="utf-8") == "- [ ] Inserted\n- [ ] Fix bug\n- [ ] Second\n"
