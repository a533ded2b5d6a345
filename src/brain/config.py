"""
Workspace configuration store.

A small JSON file mapping brain names to their root directories, the name of
the current brain and each brain's focused project:

    {
      "current": "work",
      "brains": {
        "work": {"path": "/home/me/work-brain", "created": "2024-01-21", "focus": "api"}
      }
    }

Location: $BRAIN_CONFIG_PATH, else ~/.config/brain/config.json. The
"active brain" symlink lives at $BRAIN_SYMLINK, else ~/brain.
"""

import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from brain.errors import InvalidInputError, IOFailureError, NotFoundError
from brain.utils.fileutil import atomic_write, expand_path, read_text

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.config/brain/config.json"
DEFAULT_SYMLINK_PATH = "~/brain"


def config_path() -> Path:
    return expand_path(os.environ.get("BRAIN_CONFIG_PATH") or DEFAULT_CONFIG_PATH)


def symlink_path() -> Path:
    return expand_path(os.environ.get("BRAIN_SYMLINK") or DEFAULT_SYMLINK_PATH)


class BrainInfo(BaseModel):
    path: str
    created: str = ""
    focus: Optional[str] = None


class BrainConfig(BaseModel):
    current: str = ""
    brains: Dict[str, BrainInfo] = Field(default_factory=dict)

    # --- lookup ---

    def get_brain(self, name: str) -> BrainInfo:
        info = self.brains.get(name)
        if info is None:
            raise NotFoundError(f"Brain '{name}' not found", {"brain": name})
        return info

    def list_brains(self) -> List[str]:
        return sorted(self.brains)

    def current_root(self) -> Path:
        """Root of the current brain, or the symlink path when none is set."""
        if not self.current:
            return symlink_path()
        return expand_path(self.get_brain(self.current).path)

    @property
    def focused_project(self) -> Optional[str]:
        info = self.brains.get(self.current)
        return info.focus if info else None

    # --- mutation ---

    def add_brain(self, name: str, path, today: Optional[date] = None) -> BrainInfo:
        if not name.strip():
            raise InvalidInputError("Brain name is empty")
        if name in self.brains:
            raise InvalidInputError(f"Brain '{name}' already exists", {"brain": name})
        info = BrainInfo(
            path=str(expand_path(path)),
            created=(today or date.today()).isoformat(),
        )
        self.brains[name] = info
        return info

    def set_current(self, name: str) -> None:
        self.get_brain(name)
        self.current = name

    def set_focus(self, project: Optional[str]) -> None:
        if not self.current:
            raise InvalidInputError("No current brain set (run 'brain init' first)")
        self.get_brain(self.current).focus = project or None

    def to_json(self) -> str:
        data = self.model_dump(exclude_none=True)
        return json.dumps(data, indent=2) + "\n"


def load_config(path: Optional[Path] = None) -> BrainConfig:
    """
    Read the config, creating an empty one on first use.

    Raises:
        IOFailureError: unreadable file or invalid JSON
    """
    path = Path(path) if path else config_path()
    if not path.exists():
        cfg = BrainConfig()
        save_config(cfg, path)
        return cfg

    try:
        return BrainConfig.model_validate(json.loads(read_text(path)))
    except (json.JSONDecodeError, ValidationError) as e:
        raise IOFailureError(f"Failed to parse config file {path}: {e}", {"path": str(path)}) from e


def save_config(cfg: BrainConfig, path: Optional[Path] = None) -> None:
    path = Path(path) if path else config_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOFailureError(
            f"Failed to create config directory {path.parent}: {e}", {"path": str(path)}
        ) from e
    atomic_write(path, cfg.to_json())
    log.debug("Saved config to %s", path)


def update_symlink(target: Path, link: Optional[Path] = None) -> Path:
    """
    Point the active-brain symlink at target.

    Raises:
        InvalidInputError: the link path exists and is not a symlink
    """
    link = Path(link) if link else symlink_path()
    if link.is_symlink():
        try:
            link.unlink()
        except OSError as e:
            raise IOFailureError(f"Failed to remove old symlink {link}: {e}") from e
    elif link.exists():
        raise InvalidInputError(
            f"{link} exists and is not a symlink; not replacing it", {"path": str(link)}
        )
    try:
        link.parent.mkdir(parents=True, exist_ok=True)
        link.symlink_to(Path(target), target_is_directory=True)
    except OSError as e:
        raise IOFailureError(f"Failed to create symlink {link}: {e}", {"path": str(link)}) from e
    log.info("Linked %s -> %s", link, target)
    return link
