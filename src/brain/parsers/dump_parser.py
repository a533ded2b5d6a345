"""
Capture-inbox (dump) parser.

Single forward scan. Line shapes, checked in this order:

  - 4-space indented line while a note is open: note body
  - blank line or markdown header: skipped (closes an open note)
  - "- [ ] text": task item
  - "[Note] title": opens a note block

Any line that is not note body closes the open note at the previous line.
End of file closes a still-open note at the last line.
"""

import re
from pathlib import Path
from typing import List, Optional

from brain.models.dump import DumpItem
from brain.utils.fileutil import read_text

DUMP_TASK_RE = re.compile(r"^\s*- \[ \] (.+)$")
NOTE_HEADER_RE = re.compile(r"^\[Note\] (.+)$")
HEADER_RE = re.compile(r"^#+")
NOTE_INDENT = "    "


def parse_dump_content(content: str) -> List[DumpItem]:
    """
    Parse dump text into items in file order.

    Args:
        content: Full dump file content

    Returns:
        DumpItems with 1-indexed inclusive line spans
    """
    items: List[DumpItem] = []
    lines = content.split("\n")
    # A trailing newline does not start another line
    if lines and lines[-1] == "":
        lines.pop()

    note_start = 0
    note_title: Optional[str] = None

    for line_num, line in enumerate(lines, start=1):
        if note_title is not None:
            if line.startswith(NOTE_INDENT):
                continue
            items.append(
                DumpItem(
                    type="note",
                    content=note_title,
                    start_line=note_start,
                    end_line=line_num - 1,
                    raw_line=note_title,
                )
            )
            note_title = None

        if not line.strip() or HEADER_RE.match(line):
            continue

        m = DUMP_TASK_RE.match(line)
        if m:
            items.append(
                DumpItem(
                    type="todo",
                    content=m.group(1),
                    start_line=line_num,
                    end_line=line_num,
                    raw_line=line,
                )
            )
            continue

        m = NOTE_HEADER_RE.match(line)
        if m:
            note_start = line_num
            note_title = m.group(1)

    if note_title is not None:
        items.append(
            DumpItem(
                type="note",
                content=note_title,
                start_line=note_start,
                end_line=len(lines),
                raw_line=note_title,
            )
        )

    return items


def parse_dump_file(path: Path) -> List[DumpItem]:
    """Read and parse a dump file. Raises IOFailureError if unreadable."""
    return parse_dump_content(read_text(path))


def extract_note_body(content: str, item: DumpItem) -> str:
    """
    Return a note's body text: the 4-space indented lines after its header,
    prefix removed, joined by newlines.
    """
    lines = content.split("\n")
    body = [
        line[len(NOTE_INDENT):]
        for line in lines[item.start_line : item.end_line]
        if line.startswith(NOTE_INDENT)
    ]
    return "\n".join(body)
