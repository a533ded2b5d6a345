"""Standalone note files under a project's notes/ directory."""

import logging
import re
from pathlib import Path
from typing import List

from brain.errors import BrainError, IOFailureError, NotFoundError
from brain.models.note import NoteFile
from brain.utils.fileutil import atomic_write, read_text

log = logging.getLogger(__name__)

NOTES_DIR_NAME = "notes"
CREATED_RE = re.compile(r"Created:\s*(\d{4}-\d{2}-\d{2})")
SLUG_MAX_LENGTH = 40


def parse_note_file(path: Path, project: str = "") -> NoteFile:
    """
    Read a note's title and creation date.

    Title is the first line with a leading "# " removed; created is the first
    "Created: YYYY-MM-DD" marker after it, or "".
    """
    path = Path(path)
    try:
        mtime = path.stat().st_mtime
    except OSError as e:
        raise IOFailureError(f"Failed to stat {path}: {e}", {"path": str(path)}) from e

    lines = read_text(path).split("\n")
    first = lines[0] if lines else ""
    title = first[2:] if first.startswith("# ") else first

    created = ""
    for line in lines[1:]:
        m = CREATED_RE.search(line)
        if m:
            created = m.group(1)
            break

    return NoteFile(
        filename=path.name,
        path=path,
        title=title,
        created=created,
        project=project or path.parent.parent.name,
        mtime=mtime,
    )


def list_notes(project_dir: Path) -> List[NoteFile]:
    """Notes of one project, newest modification first. Unreadable files are skipped."""
    project_dir = Path(project_dir)
    notes_dir = project_dir / NOTES_DIR_NAME
    if not notes_dir.is_dir():
        return []

    notes = []
    for path in notes_dir.glob("*.md"):
        try:
            notes.append(parse_note_file(path, project_dir.name))
        except BrainError as e:
            log.warning("Skipping note %s: %s", path, e)
    notes.sort(key=lambda n: n.mtime, reverse=True)
    return notes


def delete_note(path: Path) -> None:
    path = Path(path)
    try:
        path.unlink()
    except FileNotFoundError as e:
        raise NotFoundError(f"Note not found: {path}", {"path": str(path)}) from e
    except OSError as e:
        raise IOFailureError(f"Failed to delete {path}: {e}", {"path": str(path)}) from e
    log.info("Deleted note %s", path)


def slugify(text: str) -> str:
    """
    Filesystem-safe slug from the first 40 characters of text.

    "Meeting: Q3 plan!" -> "meeting-q3-plan". Falls back to "note".
    """
    slug = text[:SLUG_MAX_LENGTH].lower().replace(" ", "-")
    slug = re.sub(r"[^a-z0-9-]+", "", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug or "note"


def unique_note_path(notes_dir: Path, created: str, slug: str) -> Path:
    """{created}-{slug}.md, or the first free {created}-{slug}-{n}.md."""
    path = notes_dir / f"{created}-{slug}.md"
    counter = 1
    while path.exists():
        path = notes_dir / f"{created}-{slug}-{counter}.md"
        counter += 1
    return path


def render_note(title: str, created: str, body: str) -> str:
    return f"# {title}\n\nCreated: {created}\n\n{body}\n"


def write_note(notes_dir: Path, title: str, created: str, body: str) -> Path:
    """
    Create a new note file; never overwrites an existing one.

    Returns:
        Path of the created file
    """
    notes_dir = Path(notes_dir)
    try:
        notes_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOFailureError(
            f"Failed to create notes directory {notes_dir}: {e}", {"path": str(notes_dir)}
        ) from e

    path = unique_note_path(notes_dir, created, slugify(title))
    atomic_write(path, render_note(title, created, body))
    log.info("Wrote note %s", path)
    return path
