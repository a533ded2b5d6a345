"""
External collaborators: fuzzy selector, editor, terminal multiplexer and VCS.

Each is an abstract interface with one subprocess-backed implementation, so
command code can be tested with fakes. Process failures surface as
IOFailureError; a cancelled selection is None, not an error.
"""

import logging
import os
import shlex
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from brain.errors import IOFailureError

log = logging.getLogger(__name__)

# fzf exits 130 on Esc/Ctrl-C and 1 when nothing matched
FZF_CANCEL_CODES = {1, 130}


def _run(cmd: List[str], **kwargs) -> subprocess.CompletedProcess:
    log.debug("Running %s", cmd)
    try:
        return subprocess.run(cmd, check=True, **kwargs)
    except FileNotFoundError as e:
        raise IOFailureError(f"{cmd[0]} not found", {"command": cmd[0]}) from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip() if isinstance(e.stderr, str) else ""
        raise IOFailureError(
            f"{' '.join(cmd[:2])} failed (exit {e.returncode}){': ' + stderr if stderr else ''}",
            {"command": cmd[0], "returncode": e.returncode},
        ) from e


class Selector(ABC):
    """Pick one entry from a list of strings."""

    @abstractmethod
    def select(self, items: List[str], header: str = "", preview: Optional[str] = None) -> Optional[str]:
        """
        Args:
            items: Entries in display order
            header: Text shown above the list
            preview: Shell command rendering a preview of "{}"

        Returns:
            The chosen entry, or None if the user cancelled
        """
        pass


class Editor(ABC):
    @abstractmethod
    def open(self, path: Path, line: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def edit_scratch(self, initial: str) -> str:
        """Open a temp file holding initial text; return what the user saved."""
        pass


class Multiplexer(ABC):
    @abstractmethod
    def session_exists(self, name: str) -> bool:
        pass

    @abstractmethod
    def create_session(self, name: str, cwd: Path) -> None:
        pass

    @abstractmethod
    def send_keys(self, target: str, text: str) -> None:
        pass

    @abstractmethod
    def new_window(self, session: str, index: int, name: str, cwd: Path) -> None:
        pass

    @abstractmethod
    def attach(self, name: str) -> None:
        pass


class VCSClient(ABC):
    @abstractmethod
    def verify_remote(self, url: str) -> None:
        pass

    @abstractmethod
    def clone(self, url: str, dest: Path) -> None:
        pass

    @abstractmethod
    def pull(self, path: Path) -> None:
        pass


class FzfSelector(Selector):
    def __init__(self, height: str = "40%"):
        self.height = height

    def select(self, items: List[str], header: str = "", preview: Optional[str] = None) -> Optional[str]:
        if not items:
            return None
        cmd = ["fzf", "--height", self.height, "--reverse"]
        if header:
            cmd += ["--header", header]
        if preview:
            cmd += ["--preview", preview]
        try:
            result = subprocess.run(
                cmd, input="\n".join(items), stdout=subprocess.PIPE, text=True
            )
        except FileNotFoundError as e:
            raise IOFailureError("fzf not found (install fzf for interactive selection)") from e
        if result.returncode in FZF_CANCEL_CODES:
            return None
        if result.returncode != 0:
            raise IOFailureError(f"fzf failed (exit {result.returncode})")
        choice = result.stdout.strip()
        return choice or None


class CommandEditor(Editor):
    """$EDITOR, else nvim or vim if installed, else vi."""

    def __init__(self, command: Optional[str] = None):
        command = command or os.environ.get("EDITOR") or shutil.which("nvim") or shutil.which("vim") or "vi"
        self.command = shlex.split(command)

    def open(self, path: Path, line: Optional[int] = None) -> None:
        cmd = list(self.command)
        if line:
            cmd.append(f"+{line}")
        _run(cmd + [str(path)])

    def edit_scratch(self, initial: str) -> str:
        fd, name = tempfile.mkstemp(prefix="brain-", suffix=".md")
        path = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(initial)
            _run(self.command + [str(path)])
            return path.read_text(encoding="utf-8")
        finally:
            path.unlink(missing_ok=True)


class TmuxClient(Multiplexer):
    def session_exists(self, name: str) -> bool:
        try:
            result = subprocess.run(
                ["tmux", "has-session", "-t", name],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise IOFailureError("tmux not found") from e
        return result.returncode == 0

    def create_session(self, name: str, cwd: Path) -> None:
        _run(["tmux", "new-session", "-d", "-s", name, "-c", str(cwd)], capture_output=True, text=True)

    def send_keys(self, target: str, text: str) -> None:
        _run(["tmux", "send-keys", "-t", target, text, "C-m"], capture_output=True, text=True)

    def new_window(self, session: str, index: int, name: str, cwd: Path) -> None:
        _run(
            ["tmux", "new-window", "-t", f"{session}:{index}", "-n", name, "-c", str(cwd)],
            capture_output=True,
            text=True,
        )

    def attach(self, name: str) -> None:
        # Inside tmux, attaching would nest sessions
        verb = "switch-client" if os.environ.get("TMUX") else "attach"
        _run(["tmux", verb, "-t", name])


class GitClient(VCSClient):
    def verify_remote(self, url: str) -> None:
        _run(["git", "ls-remote", url, "HEAD"], capture_output=True, text=True)

    def clone(self, url: str, dest: Path) -> None:
        _run(["git", "clone", url, str(dest)], capture_output=True, text=True)

    def pull(self, path: Path) -> None:
        _run(["git", "-C", str(path), "pull"], capture_output=True, text=True)
