"""
Line grammar for project todo.md files.

    ^\\s*- \\[( |>|-|x|X)\\] (.+)$

The bracket glyph selects the status; everything after it is content plus
inline metadata (see parsers.metadata).
"""

import re
from pathlib import Path
from typing import List, NamedTuple, Optional

from brain.models.todo import GLYPH_STATUS, STATUS_GLYPHS, TodoItem
from brain.parsers.metadata import parse_metadata
from brain.utils.ids import generate_item_id

TASK_LINE_RE = re.compile(r"^(\s*)- \[([ >xX-])\] (.+)$")
OPEN_TASK_RE = re.compile(r"^\s*- \[ \]")

TODO_FILE_NAME = "todo.md"


class TaskLine(NamedTuple):
    indent: str
    glyph: str
    content: str

    @property
    def status(self) -> str:
        return GLYPH_STATUS[self.glyph]

    def render(self) -> str:
        return f"{self.indent}- [{self.glyph}] {self.content}"

    def with_content(self, content: str) -> "TaskLine":
        return self._replace(content=content)

    def with_status(self, status: str) -> "TaskLine":
        return self._replace(glyph=STATUS_GLYPHS[status])


def split_task_line(line: str) -> Optional[TaskLine]:
    """Return the parts of a checkbox line, or None if it is not one."""
    m = TASK_LINE_RE.match(line)
    if not m:
        return None
    return TaskLine(indent=m.group(1), glyph=m.group(2), content=m.group(3))


def is_task_line(line: str) -> bool:
    return TASK_LINE_RE.match(line) is not None


def parse_todo_content(
    content: str,
    file_path: Path,
    project: str,
    mtime: int,
    include_completed: bool = False,
) -> List[TodoItem]:
    """
    Parse todo.md text into TodoItems.

    Args:
        content: Full file content
        file_path: Owning file (stored on each item)
        project: Owning project name
        mtime: File mtime in whole seconds, part of each item's id
        include_completed: Also return [x]/[X] lines

    Returns:
        Items in file order
    """
    todos: List[TodoItem] = []
    for line_num, line in enumerate(content.split("\n"), start=1):
        parts = split_task_line(line)
        if parts is None:
            continue
        status = parts.status
        if status == "done" and not include_completed:
            continue

        display, priority, due_date, tags = parse_metadata(parts.content)
        todos.append(
            TodoItem(
                id=generate_item_id(line_num, line, mtime),
                file_path=file_path,
                line_number=line_num,
                status=status,
                content=display,
                project=project,
                priority=priority,
                due_date=due_date,
                tags=tags,
                raw_line=line,
            )
        )
    return todos


def count_open_tasks(content: str) -> int:
    return sum(1 for line in content.split("\n") if OPEN_TASK_RE.match(line))
