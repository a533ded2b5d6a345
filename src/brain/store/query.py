"""Filtering and sorting of parsed TodoItems for listings."""

from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from brain.errors import InvalidInputError
from brain.models.todo import TodoItem
from brain.utils.dates import is_valid_iso_date

SORT_KEYS = ("priority", "deadline", "project", "status")
DUE_FILTERS = ("today", "this-week", "overdue")
TAG_MODES = ("or", "and")

STATUS_ORDER = {"in-progress": 1, "open": 2, "blocked": 3, "done": 4}


def list_all_tags(todos: Iterable[TodoItem]) -> Dict[str, int]:
    """Tag → number of tasks carrying it, most used first, then alphabetical."""
    counts = Counter(tag for todo in todos for tag in todo.tags)
    return dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))


def matches_tags(todo: TodoItem, required: List[str], mode: str = "or") -> bool:
    """Case-insensitive tag match; "and" needs every tag, "or" needs one."""
    if not required:
        return True
    have = {t.lower() for t in todo.tags}
    wanted = [t.lstrip("#").lower() for t in required]
    if mode == "and":
        return all(t in have for t in wanted)
    return any(t in have for t in wanted)


def matches_due(todo: TodoItem, due: str, today: Optional[date] = None) -> bool:
    """
    Due-date window check. Tasks without a parseable due date never match.

    "this-week" is today through the next six days.
    """
    if not is_valid_iso_date(todo.due_date):
        return False
    today = today or date.today()
    due_date = date.fromisoformat(todo.due_date)
    if due == "overdue":
        return due_date < today
    if due == "today":
        return due_date == today
    if due == "this-week":
        return today <= due_date < today + timedelta(days=7)
    return False


def filter_todos(
    todos: Iterable[TodoItem],
    priority: Optional[int] = None,
    no_priority: bool = False,
    status: Optional[str] = None,
    tags: Optional[List[str]] = None,
    tag_mode: str = "or",
    due: Optional[str] = None,
    today: Optional[date] = None,
) -> List[TodoItem]:
    """
    Apply listing filters. All given filters must hold.

    Args:
        priority: Only this priority (1-3)
        no_priority: Only tasks without a priority
        status: Only this status
        tags: Tag names to match (see tag_mode)
        tag_mode: "or" (any tag) or "and" (all tags)
        due: "today", "this-week" or "overdue"
        today: Reference date for due filters
    """
    if tag_mode not in TAG_MODES:
        raise InvalidInputError(f"Invalid tag mode: {tag_mode} (must be 'or' or 'and')")
    if due is not None and due not in DUE_FILTERS:
        raise InvalidInputError(
            f"Invalid due filter: {due} (must be one of: {', '.join(DUE_FILTERS)})"
        )

    result = []
    for todo in todos:
        if priority is not None and todo.priority != priority:
            continue
        if no_priority and todo.priority is not None:
            continue
        if status and todo.status != status:
            continue
        if tags and not matches_tags(todo, tags, tag_mode):
            continue
        if due and not matches_due(todo, due, today):
            continue
        result.append(todo)
    return result


def _priority_key(todo: TodoItem):
    return (todo.priority is None, todo.priority or 0)


def _deadline_key(todo: TodoItem):
    return (not todo.due_date, todo.due_date)


def sort_todos(todos: Iterable[TodoItem], sort_by: Optional[str] = None) -> List[TodoItem]:
    """
    Stable sort for listings.

    priority: P1, P2, P3, then unprioritized
    deadline: dated tasks first, earliest first
    project:  alphabetical by project
    status:   in-progress, open, blocked, done
    default:  deadline, ties broken by priority
    """
    todos = list(todos)
    if sort_by == "priority":
        return sorted(todos, key=_priority_key)
    if sort_by == "deadline":
        return sorted(todos, key=_deadline_key)
    if sort_by == "project":
        return sorted(todos, key=lambda t: t.project)
    if sort_by == "status":
        return sorted(todos, key=lambda t: STATUS_ORDER.get(t.status, 99))
    if sort_by:
        raise InvalidInputError(
            f"Invalid sort: {sort_by} (must be one of: {', '.join(SORT_KEYS)})"
        )
    return sorted(todos, key=lambda t: (_deadline_key(t), _priority_key(t)))
