"""
Unit tests for listing filters and sorts (store/query.py).
"""

from datetime import date
from pathlib import Path

import pytest

from brain.errors import InvalidInputError
from brain.models.todo import TodoItem
from brain.store.query import filter_todos, list_all_tags, matches_due, sort_todos

TODAY = date(2026, 2, 11)


def _todo(content, project="api", status="open", priority=None, due_date="", tags=()):
    return TodoItem(
        id=content[:6],
        file_path=Path(project) / "todo.md",
        line_number=1,
        status=status,
        content=content,
        project=project,
        priority=priority,
        due_date=due_date,
        tags=list(tags),
    )


@pytest.fixture
def todos():
    return [
        _todo("alpha", priority=2, due_date="2026-02-20", tags=["bug"]),
        _todo("bravo", project="web", status="in-progress", tags=["ui", "bug"]),
        _todo("charlie", priority=1, due_date="2026-02-11"),
        _todo("delta", project="docs", status="blocked", due_date="2026-02-01", tags=["ui"]),
        _todo("echo", priority=3, due_date="2026-02-17", tags=["Bug"]),
    ]


def _names(items):
    return [t.content for t in items]


# --- filters ---

def test_filter_priority(todos):
    assert _names(filter_todos(todos, priority=1)) == ["charlie"]


def test_filter_no_priority(todos):
    assert _names(filter_todos(todos, no_priority=True)) == ["bravo", "delta"]


def test_filter_status(todos):
    assert _names(filter_todos(todos, status="blocked")) == ["delta"]


def test_filter_tags_or_case_insensitive(todos):
    assert _names(filter_todos(todos, tags=["bug"])) == ["alpha", "bravo", "echo"]


def test_filter_tags_and(todos):
    assert _names(filter_todos(todos, tags=["#bug", "ui"], tag_mode="and")) == ["bravo"]


def test_filter_invalid_tag_mode(todos):
    with pytest.raises(InvalidInputError):
        filter_todos(todos, tags=["bug"], tag_mode="xor")


def test_filter_due_windows(todos):
    assert _names(filter_todos(todos, due="today", today=TODAY)) == ["charlie"]
    assert _names(filter_todos(todos, due="overdue", today=TODAY)) == ["delta"]
    assert _names(filter_todos(todos, due="this-week", today=TODAY)) == ["charlie", "echo"]


def test_filter_invalid_due(todos):
    with pytest.raises(InvalidInputError):
        filter_todos(todos, due="someday")


def test_unparseable_due_never_matches():
    todo = _todo("x", due_date="friday")
    assert not matches_due(todo, "overdue", TODAY)


def test_filters_combine(todos):
    result = filter_todos(todos, tags=["bug"], due="this-week", today=TODAY)
    assert _names(result) == ["echo"]


# --- sorts ---

def test_sort_priority(todos):
    assert _names(sort_todos(todos, "priority")) == ["charlie", "alpha", "echo", "bravo", "delta"]


def test_sort_deadline(todos):
    assert _names(sort_todos(todos, "deadline")) == ["delta", "charlie", "echo", "alpha", "bravo"]


def test_sort_project_is_stable(todos):
    assert _names(sort_todos(todos, "project")) == ["alpha", "charlie", "echo", "delta", "bravo"]


def test_sort_status(todos):
    assert _names(sort_todos(todos, "status")) == ["bravo", "alpha", "charlie", "echo", "delta"]


def test_default_sort_deadline_then_priority():
    items = [
        _todo("late", due_date="2026-03-01", priority=1),
        _todo("p3", due_date="2026-02-15", priority=3),
        _todo("p1", due_date="2026-02-15", priority=1),
        _todo("undated", priority=1),
    ]
    assert _names(sort_todos(items)) == ["p1", "p3", "late", "undated"]


def test_invalid_sort(todos):
    with pytest.raises(InvalidInputError):
        sort_todos(todos, "random")


# --- tags ---

def test_list_all_tags_counts(todos):
    assert list_all_tags(todos) == {"bug": 2, "ui": 2, "Bug": 1}
