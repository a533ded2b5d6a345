"""Parsers for the plain-text stores: dump inbox, todo.md lines and inline metadata."""

from .dump_parser import extract_note_body, parse_dump_content, parse_dump_file
from .metadata import (
    add_tags,
    extract_due_date,
    extract_priority,
    extract_tags,
    extract_timestamp,
    inject_due_date,
    inject_priority,
    inject_timestamp,
    parse_metadata,
    remove_tags,
)
from .todo_parser import (
    TASK_LINE_RE,
    TaskLine,
    count_open_tasks,
    is_task_line,
    parse_todo_content,
    split_task_line,
)

__all__ = [
    "TASK_LINE_RE",
    "TaskLine",
    "add_tags",
    "count_open_tasks",
    "extract_due_date",
    "extract_note_body",
    "extract_priority",
    "extract_tags",
    "extract_timestamp",
    "inject_due_date",
    "inject_priority",
    "inject_timestamp",
    "is_task_line",
    "parse_dump_content",
    "parse_dump_file",
    "parse_metadata",
    "parse_todo_content",
    "remove_tags",
    "split_task_line",
]
