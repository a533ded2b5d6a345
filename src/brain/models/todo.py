"""
Task data model.

A TodoItem is a snapshot of one checkbox line in a project's todo.md. It is
produced fresh on every parse; its id and line number are only valid until
the owning file changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Literal, Optional

Status = Literal["open", "in-progress", "blocked", "done"]

# Status → checkbox glyph (the character between the brackets)
STATUS_GLYPHS: Dict[str, str] = {
    "open": " ",
    "in-progress": ">",
    "blocked": "-",
    "done": "x",
}

# Checkbox glyph → status
GLYPH_STATUS: Dict[str, str] = {
    " ": "open",
    ">": "in-progress",
    "-": "blocked",
    "x": "done",
    "X": "done",
}


@dataclass
class TodoItem:
    """A single task line inside a project's todo.md."""

    id: str
    file_path: Path
    line_number: int
    status: Status
    content: str
    project: str = ""
    priority: Optional[int] = None
    due_date: str = ""
    tags: List[str] = field(default_factory=list)
    raw_line: str = ""

    @property
    def ref(self) -> str:
        """Editor reference in 'path:line' format."""
        return f"{self.file_path.as_posix()}:{self.line_number}"

    @property
    def checkbox(self) -> str:
        """Checkbox markdown for the current status (e.g. "[>]")."""
        return format_checkbox_state(self.status)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "file": str(self.file_path),
            "line": self.line_number,
            "status": self.status,
            "content": self.content,
            "project": self.project,
            "priority": self.priority,
            "due_date": self.due_date,
            "tags": list(self.tags),
        }


def format_checkbox_state(status: str) -> str:
    """
    Format status as checkbox markdown.

    Args:
        status: Task status

    Returns:
        Checkbox string (e.g., "[ ]", "[>]", "[-]", "[x]")
    """
    return f"[{STATUS_GLYPHS.get(status, ' ')}]"


def format_priority_badge(priority: Optional[int]) -> str:
    """Return "[P1]".."[P3]", or four spaces so unprioritized rows stay aligned."""
    if priority in (1, 2, 3):
        return f"[P{priority}]"
    return "    "
