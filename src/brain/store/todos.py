"""
Project task store.

Reads every project's todo.md under the active directory and rewrites single
task lines in place. Every mutator re-reads its file, checks that the target
line still exists and still matches the checkbox grammar, changes exactly one
category of the line, and writes the whole file back atomically. The
read-modify-write runs under the file's advisory lock so two processes never
lose each other's updates.

Items are snapshots: their id and line number are valid only until the file
changes. Re-parse after every mutation.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Union

from brain.errors import (
    AmbiguousMatchError,
    BrainError,
    CorruptionError,
    InvalidInputError,
    IOFailureError,
    NotFoundError,
)
from brain.models.todo import STATUS_GLYPHS, TodoItem
from brain.parsers import metadata
from brain.parsers.todo_parser import (
    TODO_FILE_NAME,
    TaskLine,
    is_task_line,
    parse_todo_content,
    split_task_line,
)
from brain.utils.fileutil import FileLock, atomic_write, file_mtime, read_text

log = logging.getLogger(__name__)

VALID_STATUSES = tuple(STATUS_GLYPHS)


# --- reading ---

def parse_todo_file(
    file_path: Path, project: str = "", include_completed: bool = False
) -> List[TodoItem]:
    """
    Parse one todo.md.

    Args:
        file_path: Path to the task file
        project: Owning project name (defaults to the parent directory name)
        include_completed: Also return done tasks

    Raises:
        IOFailureError: if the file cannot be read or stat'ed
    """
    file_path = Path(file_path)
    mtime = file_mtime(file_path)
    content = read_text(file_path)
    return parse_todo_content(
        content,
        file_path=file_path,
        project=project or file_path.parent.name,
        mtime=mtime,
        include_completed=include_completed,
    )


def parse_all_todos(active_dir: Path, include_completed: bool = False) -> List[TodoItem]:
    """
    Collect tasks from every non-hidden project directory, sorted by name.

    Projects without a todo.md are skipped silently. A project whose file
    fails to read is logged and skipped; the rest of the scan continues.

    Raises:
        IOFailureError: if active_dir itself cannot be listed
    """
    active_dir = Path(active_dir)
    try:
        entries = sorted(active_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise IOFailureError(
            f"Failed to read active directory {active_dir}: {e}",
            {"path": str(active_dir)},
        ) from e

    todos: List[TodoItem] = []
    for entry in entries:
        if entry.name.startswith(".") or not entry.is_dir():
            continue
        todo_file = entry / TODO_FILE_NAME
        if not todo_file.exists():
            continue
        try:
            todos.extend(parse_todo_file(todo_file, entry.name, include_completed))
        except BrainError as e:
            log.warning("Skipping project %s: %s", entry.name, e)
    return todos


# --- lookup ---

def find_todo_by_id(todos: List[TodoItem], item_id: str) -> Optional[TodoItem]:
    for todo in todos:
        if todo.id == item_id:
            return todo
    return None


def find_todos_by_pattern(todos: List[TodoItem], pattern: str) -> List[TodoItem]:
    """Case-insensitive substring match against display content."""
    needle = pattern.lower()
    return [t for t in todos if needle in t.content.lower()]


def find_todo(todos: List[TodoItem], query: str) -> TodoItem:
    """
    Resolve a user query to exactly one task: exact id first, then pattern.

    Raises:
        NotFoundError: nothing matches
        AmbiguousMatchError: the pattern matches more than one task
    """
    query = query.strip()
    if not query:
        raise InvalidInputError("Empty task query")

    todo = find_todo_by_id(todos, query)
    if todo is not None:
        return todo

    matches = find_todos_by_pattern(todos, query)
    if not matches:
        raise NotFoundError(f"No todo found matching: {query}", {"query": query})
    if len(matches) > 1:
        raise AmbiguousMatchError(query, matches)
    return matches[0]


def format_candidate(todo: TodoItem) -> str:
    """One-line disambiguation entry: "id: [status] content (project)"."""
    return f"{todo.id}: [{todo.status}] {todo.content} ({todo.project})"


# --- mutation ---

Target = Union[TodoItem, tuple]


def _target(item: Target):
    if isinstance(item, TodoItem):
        return Path(item.file_path), item.line_number
    file_path, line_number = item
    return Path(file_path), int(line_number)


def _load_task_line(lines: List[str], file_path: Path, line_number: int) -> TaskLine:
    if line_number < 1 or line_number > len(lines):
        raise NotFoundError(
            f"Invalid line number: {line_number} ({file_path} has {len(lines)} lines)",
            {"file": str(file_path), "line": line_number},
        )
    parts = split_task_line(lines[line_number - 1])
    if parts is None:
        raise CorruptionError(
            f"Line {line_number} of {file_path} is not a valid todo item",
            {"file": str(file_path), "line": line_number},
        )
    return parts


def _rewrite(
    item: Target,
    edit: Callable[[List[str], int, TaskLine], Optional[str]],
    category: str,
) -> Optional[str]:
    """
    Locked read-modify-write of one task line.

    edit receives (lines, index, parsed_line) and returns the replacement
    line, or None when the line is removed. Nothing is written if edit
    raises or if the replacement breaks the checkbox grammar.
    """
    file_path, line_number = _target(item)

    with FileLock(file_path):
        lines = read_text(file_path).split("\n")
        parts = _load_task_line(lines, file_path, line_number)
        new_line = edit(lines, line_number - 1, parts)

        if new_line is None:
            del lines[line_number - 1]
        else:
            if not is_task_line(new_line):
                raise CorruptionError(
                    f"Refusing to write {category} change: result is not a valid "
                    f"todo line: {new_line!r}",
                    {"file": str(file_path), "line": line_number},
                )
            if new_line == lines[line_number - 1]:
                log.debug("%s:%d unchanged (%s)", file_path, line_number, category)
                return new_line
            lines[line_number - 1] = new_line

        atomic_write(file_path, "\n".join(lines))

    log.info("Updated %s:%d (%s)", file_path, line_number, category)
    return new_line


def set_status(item: Target, status: str) -> str:
    """
    Swap the checkbox glyph for one of: open, in-progress, blocked, done.

    Raises:
        InvalidInputError: any other status name; the file is not touched
    """
    if status not in STATUS_GLYPHS:
        raise InvalidInputError(
            f"Invalid status: {status} (must be: {', '.join(VALID_STATUSES)})",
            {"status": status},
        )
    return _rewrite(item, lambda lines, i, parts: parts.with_status(status).render(), "status")


def set_priority(item: Target, priority: Optional[int]) -> str:
    """Set priority 1-3, or clear it with None."""
    priority = metadata.validate_priority(priority)

    def edit(lines, i, parts):
        return parts.with_content(metadata.inject_priority(parts.content, priority)).render()

    return _rewrite(item, edit, "priority")


def set_due_date(item: Target, due_date: Optional[str]) -> str:
    """
    Set the due date to a real YYYY-MM-DD date. "clear", "" and None remove it.

    Raises:
        InvalidInputError: malformed or impossible date; the file is not touched
    """
    due_date = metadata.normalize_due_date(due_date)

    def edit(lines, i, parts):
        return parts.with_content(metadata.inject_due_date(parts.content, due_date)).render()

    return _rewrite(item, edit, "due date")


def add_tags(item: Target, tags: List[str]) -> str:
    """Append tags that are not already on the line. Adding an existing tag is a no-op."""
    names = metadata.normalize_tag_names(tags)
    if not names:
        raise InvalidInputError("No tags given")

    def edit(lines, i, parts):
        return parts.with_content(metadata.add_tags(parts.content, names)).render()

    return _rewrite(item, edit, "tags")


def remove_tags(item: Target, tags: List[str]) -> str:
    """
    Remove the named tags.

    Raises:
        CorruptionError: the line would be left without content
    """
    names = metadata.normalize_tag_names(tags)
    if not names:
        raise InvalidInputError("No tags given")

    def edit(lines, i, parts):
        return parts.with_content(metadata.remove_tags(parts.content, names)).render()

    return _rewrite(item, edit, "tags")


def delete_todo(item: Target) -> None:
    """Remove the task's line from its file."""
    _rewrite(item, lambda lines, i, parts: None, "delete")
