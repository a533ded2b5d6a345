"""Handler functions shared by MCP tools and the REST API.

Each handler takes a Workspace, does one operation against the stores and
returns JSON-serializable data. Failures propagate as BrainError subclasses;
the REST routes and MCP tools translate them for their transport.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from brain.errors import InvalidInputError, NotFoundError
from brain.models.todo import TodoItem
from brain.parsers.metadata import validate_priority
from brain.refile import refile
from brain.store import dump as dump_store
from brain.store import notes as note_store
from brain.store import projects as project_store
from brain.store import query
from brain.store import todos as todo_store
from brain.utils.dates import parse_date
from brain.utils.fileutil import read_text

log = logging.getLogger(__name__)


def _split_csv(value: Union[str, List[str], None]) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [v.strip() for v in value if v.strip()]


def _resolve(workspace, task: str, include_completed: bool = True) -> TodoItem:
    todos = todo_store.parse_all_todos(workspace.active_dir, include_completed=include_completed)
    return todo_store.find_todo(todos, task)


def _reload(item: TodoItem) -> dict:
    """Re-parse the item's file and return the task now on its line."""
    for todo in todo_store.parse_todo_file(item.file_path, item.project, include_completed=True):
        if todo.line_number == item.line_number:
            return todo.to_dict()
    raise NotFoundError(f"Task at {item.ref} disappeared after update", {"ref": item.ref})


def parse_priority(value) -> Optional[int]:
    """Accept 1-3 (int or str); "clear", "" and None clear the priority."""
    if value is None or value == "" or value == "clear":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid priority: {value} (must be 1-3 or 'clear')") from None
    return validate_priority(number)


def parse_due(value: str) -> str:
    """Natural-language due date to ISO; "clear" and "" pass through as a clear."""
    value = value.strip()
    if value in ("", "clear"):
        return ""
    parsed = parse_date(value)
    if parsed is None:
        raise InvalidInputError(f"Invalid date: {value}", {"due_date": value})
    return parsed


# --- todos ---

def handle_todo_list(
    workspace,
    *,
    project: Optional[str] = None,
    status: Optional[str] = None,
    priority: Optional[int] = None,
    no_priority: bool = False,
    tags: Union[str, List[str], None] = None,
    tag_mode: str = "or",
    due: Optional[str] = None,
    sort: Optional[str] = None,
    include_completed: bool = False,
) -> list[dict]:
    todos = todo_store.parse_all_todos(
        workspace.active_dir, include_completed=include_completed or status == "done"
    )
    if project:
        todos = [t for t in todos if t.project == project]
    todos = query.filter_todos(
        todos,
        priority=priority,
        no_priority=no_priority,
        status=status,
        tags=_split_csv(tags),
        tag_mode=tag_mode,
        due=due,
    )
    return [t.to_dict() for t in query.sort_todos(todos, sort)]


def handle_todo_get(workspace, *, task: str) -> dict:
    return _resolve(workspace, task).to_dict()


def handle_todo_update(
    workspace,
    *,
    task: str,
    status: Optional[str] = None,
    priority=None,
    due: Optional[str] = None,
) -> dict:
    """
    Change status, priority and/or due date of one task.

    Only given fields change. priority="clear" and due="clear" remove them.
    All values are validated before anything is written.
    """
    if status is None and priority is None and due is None:
        raise InvalidInputError("Nothing to update (give status, priority or due)")
    if status is not None and status not in todo_store.VALID_STATUSES:
        raise InvalidInputError(
            f"Invalid status: {status} (must be: {', '.join(todo_store.VALID_STATUSES)})",
            {"status": status},
        )
    new_priority = parse_priority(priority) if priority is not None else None
    new_due = parse_due(due) if due is not None else None

    item = _resolve(workspace, task)
    if status is not None:
        todo_store.set_status(item, status)
    if priority is not None:
        todo_store.set_priority(item, new_priority)
    if due is not None:
        todo_store.set_due_date(item, new_due)
    return _reload(item)


def handle_tag_add(workspace, *, task: str, tags: Union[str, List[str]]) -> dict:
    item = _resolve(workspace, task)
    todo_store.add_tags(item, _split_csv(tags))
    return _reload(item)


def handle_tag_remove(workspace, *, task: str, tags: Union[str, List[str]]) -> dict:
    item = _resolve(workspace, task)
    todo_store.remove_tags(item, _split_csv(tags))
    return _reload(item)


def handle_tag_update(
    workspace,
    *,
    task: str,
    add: Union[str, List[str], None] = None,
    remove: Union[str, List[str], None] = None,
) -> dict:
    """Add then remove tags on one task in a single call."""
    add, remove = _split_csv(add), _split_csv(remove)
    if not add and not remove:
        raise InvalidInputError("Give tags to add or remove")
    item = _resolve(workspace, task)
    if add:
        todo_store.add_tags(item, add)
    if remove:
        todo_store.remove_tags(item, remove)
    return _reload(item)


def handle_todo_delete(workspace, *, task: str, confirm: bool = False) -> dict:
    """Delete a task line. Refuses unless confirm is true."""
    item = _resolve(workspace, task)
    if not confirm:
        raise InvalidInputError(
            f"Deleting '{item.content}' requires confirmation (confirm=true)",
            {"id": item.id},
        )
    todo_store.delete_todo(item)
    return {"deleted": item.to_dict()}


def handle_tags(workspace) -> dict:
    return query.list_all_tags(todo_store.parse_all_todos(workspace.active_dir))


# --- dump ---

def handle_dump_list(workspace) -> list[dict]:
    return [e.to_dict() for e in dump_store.list_dump(workspace.dump_path)]


def handle_dump_add(
    workspace,
    *,
    text: Optional[str] = None,
    title: Optional[str] = None,
    body: Optional[str] = None,
) -> dict:
    """Capture a task (text) or a note (title + body) into the dump."""
    if title is not None or body is not None:
        written = dump_store.capture_note(workspace.dump_path, title or "", body or "")
        return {"type": "note", "written": written}
    if text is None:
        raise InvalidInputError("Give either text (task) or title and body (note)")
    written = dump_store.capture_task(workspace.dump_path, text)
    return {"type": "todo", "written": written}


def handle_refile(workspace, *, item_id: str, project: str) -> dict:
    project_dir = workspace.require_project(project)
    entry = dump_store.find_dump_item(workspace.dump_path, item_id)
    return refile(entry.item, project_dir, workspace.dump_path).to_dict()


def handle_dump_trash(workspace, *, item_id: str) -> dict:
    entry = dump_store.find_dump_item(workspace.dump_path, item_id)
    dump_store.trash_dump_item(workspace.dump_path, entry.item)
    return {"trashed": entry.to_dict()}


# --- projects and notes ---

def handle_project_list(workspace) -> list[dict]:
    return [
        p.to_dict() for p in project_store.list_projects(workspace.active_dir, workspace.focus)
    ]


def handle_note_list(workspace, *, project: str) -> list[dict]:
    return [n.to_dict() for n in note_store.list_notes(workspace.require_project(project))]


def handle_note_get(workspace, *, project: str, filename: str) -> dict:
    path = workspace.require_project(project) / note_store.NOTES_DIR_NAME / Path(filename).name
    if not path.is_file():
        raise NotFoundError(f"Note not found: {filename}", {"project": project})
    note = note_store.parse_note_file(path, project)
    result = note.to_dict()
    result["content"] = read_text(path)
    return result
