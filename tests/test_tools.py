"""
Tests for api/tools.py.

Exercises the MCP tool functions directly against a temporary brain
(bypasses transport).
"""

import json
from pathlib import Path

import pytest

from brain.api.tools import register_tools
from brain.workspace import Workspace


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_brain(tmp_path: Path) -> Path:
    root = tmp_path / "brain"
    api = root / "01_active" / "api"
    api.mkdir(parents=True)
    (root / "01_active" / "web").mkdir()

    (root / "00_dump.md").write_text(
        "- [ ] Call Bob #captured:2024-01-01\n"
        "[Note] Standup #captured:2024-03-05\n"
        "    Went fine\n",
        encoding="utf-8",
    )
    (api / "todo.md").write_text(
        "- [ ] Write docs #p:2 #docs\n- [ ] Fix login #bug\n",
        encoding="utf-8",
    )
    return root


class _FakeMCP:
    """Minimal fake to capture tool registrations."""

    def __init__(self):
        self._tools = {}

    def tool(self, *args, **kwargs):
        """Decorator that records functions by name."""
        def decorator(fn):
            self._tools[fn.__name__] = fn
            return fn
        return decorator

    def get(self, name: str):
        return self._tools[name]


@pytest.fixture
def setup(tmp_path):
    root = _make_brain(tmp_path)
    mcp = _FakeMCP()
    register_tools(mcp, Workspace(root=root))
    return mcp, root


def _call(mcp, name, **kwargs):
    return json.loads(mcp.get(name)(**kwargs))


def test_all_tools_registered(setup):
    mcp, _ = setup
    assert set(mcp._tools) == {
        "todo_list", "todo_get", "todo_update", "todo_tag", "todo_delete", "tags_list",
        "dump_list", "dump_add", "dump_refile", "dump_trash",
        "project_list", "note_list", "note_get",
    }


# ---------------------------------------------------------------------------
# Todo tools
# ---------------------------------------------------------------------------

class TestTodoTools:
    def test_list(self, setup):
        mcp, _ = setup
        data = _call(mcp, "todo_list")
        assert [t["content"] for t in data] == ["Write docs", "Fix login"]

    def test_list_filtered(self, setup):
        mcp, _ = setup
        data = _call(mcp, "todo_list", tags="bug")
        assert [t["content"] for t in data] == ["Fix login"]

    def test_get_ambiguous_lists_candidates(self, setup):
        mcp, _ = setup
        data = _call(mcp, "todo_get", task="i")
        assert data["ok"] is False
        assert data["error"]["code"] == "AMBIGUOUS"
        candidates = data["error"]["details"]["candidates"]
        assert len(candidates) == 2
        assert all(": [open] " in c for c in candidates)

    def test_update(self, setup):
        mcp, _ = setup
        data = _call(mcp, "todo_update", task="login", status="done", priority="1", due="2026-03-01")
        assert data["status"] == "done"
        assert data["priority"] == 1
        assert data["due_date"] == "2026-03-01"

    def test_update_invalid_priority(self, setup):
        mcp, root = setup
        before = (root / "01_active" / "api" / "todo.md").read_bytes()
        data = _call(mcp, "todo_update", task="login", priority="7")
        assert data["error"]["code"] == "INVALID_INPUT"
        assert (root / "01_active" / "api" / "todo.md").read_bytes() == before

    def test_tag_add_and_remove(self, setup):
        mcp, _ = setup
        data = _call(mcp, "todo_tag", task="docs", add=["urgent"], remove=["docs"])
        assert data["tags"] == ["urgent"]
        assert data["priority"] == 2

    def test_tag_needs_tags(self, setup):
        mcp, _ = setup
        assert _call(mcp, "todo_tag", task="docs")["error"]["code"] == "INVALID_INPUT"

    def test_delete_requires_confirm(self, setup):
        mcp, _ = setup
        assert _call(mcp, "todo_delete", task="docs")["ok"] is False
        assert _call(mcp, "todo_delete", task="docs", confirm=True)["deleted"]["content"] == "Write docs"

    def test_tags_list(self, setup):
        mcp, _ = setup
        assert _call(mcp, "tags_list") == {"bug": 1, "docs": 1}


# ---------------------------------------------------------------------------
# Dump and project tools
# ---------------------------------------------------------------------------

class TestDumpTools:
    def test_add_and_list(self, setup):
        mcp, _ = setup
        written = _call(mcp, "dump_add", text="Buy milk")
        assert written["type"] == "todo"
        assert [d["content"] for d in _call(mcp, "dump_list")] == ["Call Bob", "Standup", "Buy milk"]

    def test_refile(self, setup):
        mcp, root = setup
        item = _call(mcp, "dump_list")[0]
        result = _call(mcp, "dump_refile", item_id=item["id"], project="web")
        assert result["project"] == "web"
        assert (root / "01_active" / "web" / "todo.md").exists()

    def test_refile_unknown_project(self, setup):
        mcp, _ = setup
        item = _call(mcp, "dump_list")[0]
        data = _call(mcp, "dump_refile", item_id=item["id"], project="ghost")
        assert data["error"]["code"] == "NOT_FOUND"

    def test_trash(self, setup):
        mcp, _ = setup
        note = _call(mcp, "dump_list")[1]
        assert _call(mcp, "dump_trash", item_id=note["id"])["trashed"]["content"] == "Standup"
        assert [d["content"] for d in _call(mcp, "dump_list")] == ["Call Bob"]


class TestProjectTools:
    def test_project_list(self, setup):
        mcp, _ = setup
        assert [p["name"] for p in _call(mcp, "project_list")] == ["api", "web"]

    def test_notes_after_refile(self, setup):
        mcp, _ = setup
        note = _call(mcp, "dump_list")[1]
        _call(mcp, "dump_refile", item_id=note["id"], project="api")

        notes = _call(mcp, "note_list", project="api")
        assert [n["title"] for n in notes] == ["Standup"]
        data = _call(mcp, "note_get", project="api", filename=notes[0]["filename"])
        assert data["content"].endswith("Went fine\n")
