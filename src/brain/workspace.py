"""Explicit workspace context passed into every store call."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from brain.errors import NotFoundError
from brain.parsers.todo_parser import TODO_FILE_NAME
from brain.store.dump import DUMP_FILE_NAME
from brain.store.notes import NOTES_DIR_NAME
from brain.store.projects import ACTIVE_DIR_NAME, ARCHIVE_DIR_NAME, check_project_lookup


@dataclass(frozen=True)
class Workspace:
    """A brain root plus the focused project name, if any."""

    root: Path
    focus: Optional[str] = None

    @property
    def dump_path(self) -> Path:
        return self.root / DUMP_FILE_NAME

    @property
    def active_dir(self) -> Path:
        return self.root / ACTIVE_DIR_NAME

    @property
    def archive_dir(self) -> Path:
        return self.root / ARCHIVE_DIR_NAME

    def project_dir(self, name: str) -> Path:
        return self.active_dir / check_project_lookup(name)

    def require_project(self, name: str) -> Path:
        path = self.project_dir(name)
        if not path.is_dir():
            raise NotFoundError(f"Project not found: {name}", {"project": name})
        return path

    def todo_file(self, name: str) -> Path:
        return self.project_dir(name) / TODO_FILE_NAME

    def notes_dir(self, name: str) -> Path:
        return self.project_dir(name) / NOTES_DIR_NAME

    @classmethod
    def from_config(cls, cfg) -> "Workspace":
        return cls(root=cfg.current_root(), focus=cfg.focused_project)
