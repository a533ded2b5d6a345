"""Capture-inbox (dump) data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ItemType = Literal["todo", "note"]


@dataclass
class DumpItem:
    """
    An entry parsed from the dump file.

    For tasks start_line == end_line and raw_line is the whole line. For notes
    the span covers the [Note] header and its indented body, and raw_line is the
    header title (metadata still embedded), which is what the identity hashes.
    """

    type: ItemType
    content: str
    start_line: int
    end_line: int
    raw_line: str

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass
class DumpEntry:
    """A DumpItem as presented to callers: identity attached, timestamp split out."""

    id: str
    item: DumpItem
    content: str
    timestamp: str

    @property
    def type(self) -> ItemType:
        return self.item.type

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "type": self.item.type,
            "timestamp": self.timestamp,
            "start_line": self.item.start_line,
            "end_line": self.item.end_line,
        }
