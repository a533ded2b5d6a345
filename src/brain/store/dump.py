"""
Capture inbox (dump) operations: listing with identities, locked capture
appends, and span removal used by refile and trash.
"""

import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

from brain.errors import CorruptionError, InvalidInputError, NotFoundError
from brain.models.dump import DumpEntry, DumpItem
from brain.parsers.dump_parser import NOTE_INDENT, extract_note_body, parse_dump_content
from brain.parsers.metadata import extract_timestamp
from brain.utils.fileutil import (
    FileLock,
    append_line,
    atomic_write,
    file_mtime,
    read_text,
)
from brain.utils.ids import generate_item_id

log = logging.getLogger(__name__)

DUMP_FILE_NAME = "00_dump.md"
DUMP_TEMPLATE = "# Dump\n\nQuick capture landing zone. Process with `brain refile`.\n\n"


def _entries(items: List[DumpItem], mtime: int) -> List[DumpEntry]:
    entries = []
    for item in items:
        content, timestamp = extract_timestamp(item.content)
        entries.append(
            DumpEntry(
                id=generate_item_id(item.start_line, item.raw_line, mtime),
                item=item,
                content=content,
                timestamp=timestamp,
            )
        )
    return entries


def list_dump(dump_path: Path) -> List[DumpEntry]:
    """
    Parse the dump and attach identities.

    Task ids hash the full line, note ids hash the header title, both with
    the item's start line and the dump's mtime. A missing dump is empty.
    """
    dump_path = Path(dump_path)
    if not dump_path.exists():
        return []
    mtime = file_mtime(dump_path)
    return _entries(parse_dump_content(read_text(dump_path)), mtime)


def find_dump_item(dump_path: Path, item_id: str) -> DumpEntry:
    for entry in list_dump(dump_path):
        if entry.id == item_id:
            return entry
    raise NotFoundError(f"Dump item not found: {item_id}", {"id": item_id})


def capture_task(dump_path: Path, text: str, today: Optional[date] = None) -> str:
    """
    Append "- [ ] {text} #captured:{date}" to the dump.

    Returns:
        The line written
    """
    text = " ".join(text.split())
    if not text:
        raise InvalidInputError("Task text is empty")
    captured = (today or date.today()).isoformat()
    line = f"- [ ] {text} #captured:{captured}"
    append_line(Path(dump_path), line + "\n")
    log.info("Captured task to %s", dump_path)
    return line


def clean_note_body(text: str) -> List[str]:
    """Drop '#' comment lines and leading/trailing blank lines."""
    lines: List[str] = []
    for line in text.split("\n"):
        if line.startswith("#"):
            continue
        if line.strip() or lines:
            lines.append(line.rstrip())
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def capture_note(
    dump_path: Path, title: str, body: str, today: Optional[date] = None
) -> str:
    """
    Append a "[Note] {title} #captured:{date}" block with its body indented
    by four spaces.

    Returns:
        The block written
    """
    title = " ".join(title.split())
    if not title:
        raise InvalidInputError("Note title is empty")
    lines = clean_note_body(body)
    if not lines:
        raise InvalidInputError("Note body is empty")

    captured = (today or date.today()).isoformat()
    block = [f"[Note] {title} #captured:{captured}"]
    block.extend(NOTE_INDENT + line for line in lines)
    text = "\n".join(block) + "\n"
    append_line(Path(dump_path), text)
    log.info("Captured note %r to %s", title, dump_path)
    return text


def read_note_body(dump_path: Path, item: DumpItem) -> str:
    """Body of a note item, re-read from the dump by line span."""
    return extract_note_body(read_text(Path(dump_path)), item)


def remove_dump_span(
    dump_path: Path,
    start_line: int,
    end_line: int,
    expected_line: Optional[str] = None,
) -> None:
    """
    Delete lines [start_line, end_line] from the dump with a locked rewrite.

    Args:
        expected_line: If given, line start_line must still read exactly this;
            otherwise the dump changed since it was parsed and nothing is
            written.

    Raises:
        NotFoundError: span outside the file
        CorruptionError: expected_line no longer matches
    """
    dump_path = Path(dump_path)
    with FileLock(dump_path):
        lines = read_text(dump_path).split("\n")
        if start_line < 1 or end_line < start_line or end_line > len(lines):
            raise NotFoundError(
                f"Invalid dump span {start_line}-{end_line} ({len(lines)} lines)",
                {"start_line": start_line, "end_line": end_line},
            )
        if expected_line is not None and lines[start_line - 1] != expected_line:
            raise CorruptionError(
                f"Dump line {start_line} changed since it was read; re-list and retry",
                {"start_line": start_line, "expected": expected_line},
            )
        del lines[start_line - 1 : end_line]
        atomic_write(dump_path, "\n".join(lines))
    log.info("Removed dump lines %d-%d from %s", start_line, end_line, dump_path)


def expected_first_line(item: DumpItem) -> str:
    """The exact dump line an item starts on, for remove_dump_span's guard."""
    if item.type == "todo":
        return item.raw_line
    return f"[Note] {item.raw_line}"


def trash_dump_item(dump_path: Path, item: DumpItem) -> None:
    """Drop an item from the dump without refiling it."""
    remove_dump_span(dump_path, item.start_line, item.end_line, expected_first_line(item))
