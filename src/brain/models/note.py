"""Standalone note file model."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class NoteFile:
    """A markdown file under a project's notes/ directory."""

    filename: str
    path: Path
    title: str
    created: str
    project: str
    mtime: float = 0.0

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "path": str(self.path),
            "title": self.title,
            "created": self.created,
            "project": self.project,
        }
