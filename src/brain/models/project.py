"""Project summary model."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path


@dataclass(frozen=True)
class ProjectInfo:
    """Derived, read-only summary of a directory under 01_active/."""

    name: str
    path: Path
    focused: bool = False
    repo_count: int = 0
    task_count: int = 0

    def to_dict(self) -> dict:
        d = asdict(self)
        d["path"] = str(self.path)
        return d
