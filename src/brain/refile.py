"""
Refile: move a dump item into its project.

A task is appended to the project's todo.md; a note becomes its own file
under notes/. Only after the destination is written is the item's span
removed from the dump. A failure between the two steps leaves the item in
both places, never in neither: refile is at-least-once. RefileRemovalError
reports that case so the caller can retry the removal alone.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from brain.errors import BrainError, RefileRemovalError
from brain.models.dump import DumpItem
from brain.parsers.metadata import extract_timestamp
from brain.store.dump import expected_first_line, read_note_body, remove_dump_span
from brain.store.notes import write_note
from brain.store.projects import ensure_todo_file
from brain.utils.fileutil import append_line

log = logging.getLogger(__name__)


@dataclass
class RefileResult:
    type: str
    project: str
    destination: Path

    def to_dict(self) -> dict:
        return {"type": self.type, "project": self.project, "destination": str(self.destination)}


def refile_task(item: DumpItem, project_dir: Path) -> Path:
    """Append "- [ ] {content}" to the project's todo.md; #captured: stays on the line."""
    todo_file = ensure_todo_file(project_dir)
    append_line(todo_file, f"- [ ] {item.content}\n")
    return todo_file


def refile_note(
    item: DumpItem, project_dir: Path, dump_path: Path, today: Optional[date] = None
) -> Path:
    """Write the note's body to notes/{captured}-{slug}.md and return its path."""
    title, captured = extract_timestamp(item.content)
    title = title.strip()
    captured = captured or (today or date.today()).isoformat()
    body = read_note_body(dump_path, item)
    return write_note(Path(project_dir) / "notes", title, captured, body)


def refile(
    item: DumpItem,
    project_dir: Path,
    dump_path: Path,
    today: Optional[date] = None,
) -> RefileResult:
    """
    Move one dump item into project_dir, then remove it from the dump.

    Args:
        item: A freshly parsed dump item
        project_dir: Existing destination project directory
        dump_path: The dump the item was parsed from

    Raises:
        RefileRemovalError: destination written, dump removal failed
        BrainError: destination write failed; the dump is untouched
    """
    project_dir = Path(project_dir)
    if item.type == "todo":
        destination = refile_task(item, project_dir)
    else:
        destination = refile_note(item, project_dir, dump_path, today)
    log.info("Refiled %s (dump lines %d-%d) to %s",
             item.type, item.start_line, item.end_line, destination)

    try:
        remove_dump_span(dump_path, item.start_line, item.end_line, expected_first_line(item))
    except BrainError as e:
        log.error("Refiled to %s but could not remove it from the dump: %s", destination, e)
        raise RefileRemovalError(
            f"Item was written to {destination} but removing it from the dump "
            f"failed: {e.error.message}",
            {
                "destination": str(destination),
                "start_line": item.start_line,
                "end_line": item.end_line,
                "cause": e.error.code,
            },
        ) from e

    return RefileResult(type=item.type, project=project_dir.name, destination=destination)
