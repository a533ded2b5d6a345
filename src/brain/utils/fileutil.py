"""
Crash-safe file replacement and a directory-based advisory lock.

atomic_write never exposes a partially written target: content goes to a
sibling temp file which is fsynced and renamed over the target. The lock is a
directory next to the target; mkdir either creates it or fails atomically.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional, TypeVar, Union

from brain.errors import IOFailureError, LockContentionError

log = logging.getLogger(__name__)

T = TypeVar("T")

TEMP_PREFIX = ".brain-tmp-"
DEFAULT_FILE_MODE = 0o644
DEFAULT_MAX_RETRIES = 5
DEFAULT_RETRY_DELAY = 1.0


def atomic_write(
    target_path: Path, content: Union[str, bytes], mode: Optional[int] = None
) -> None:
    """
    Replace target_path with content atomically.

    Args:
        target_path: File to create or replace
        content: New full file content (str is encoded as UTF-8)
        mode: Permission bits for the result. Defaults to the existing
            target's bits, or 0644 for a new file.

    Raises:
        IOFailureError: if any step fails; the target is left untouched and
            the temp file is removed.
    """
    target_path = Path(target_path)
    data = content.encode("utf-8") if isinstance(content, str) else content

    if mode is None:
        try:
            mode = stat.S_IMODE(target_path.stat().st_mode)
        except FileNotFoundError:
            mode = DEFAULT_FILE_MODE

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb", dir=target_path.parent, prefix=TEMP_PREFIX, delete=False
        ) as temp_file:
            temp_path = Path(temp_file.name)
            temp_file.write(data)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.chmod(temp_path, mode)
        os.replace(temp_path, target_path)
        temp_path = None
    except OSError as e:
        raise IOFailureError(
            f"Failed to write {target_path}: {e}", {"path": str(target_path)}
        ) from e
    finally:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                log.warning("Could not remove temp file %s", temp_path)


def read_text(path: Path) -> str:
    """Read a UTF-8 file, mapping OS errors to IOFailureError."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IOFailureError(f"Failed to read {path}: {e}", {"path": str(path)}) from e


def file_mtime(path: Path) -> int:
    """Whole-second modification time, as used by item identities."""
    try:
        return int(Path(path).stat().st_mtime)
    except OSError as e:
        raise IOFailureError(f"Failed to stat {path}: {e}", {"path": str(path)}) from e


def lock_dir_for(file_path: Path) -> Path:
    """Lock directory for a file: ".<name>.lock" beside it."""
    file_path = Path(file_path)
    return file_path.parent / f".{file_path.name}.lock"


class FileLock:
    """
    Advisory lock represented by the presence of a directory.

    Release is not token-checked: anyone holding the path may release it.
    Acquisition never blocks longer than max_retries * retry_delay.
    """

    def __init__(
        self,
        file_path: Path,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ) -> None:
        self.file_path = Path(file_path)
        self.lock_dir = lock_dir_for(self.file_path)
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

    def acquire(self) -> None:
        for attempt in range(1, self.max_retries + 1):
            try:
                os.mkdir(self.lock_dir, 0o755)
                return
            except FileExistsError:
                if attempt < self.max_retries:
                    log.debug(
                        "Lock %s held, retry %d/%d", self.lock_dir, attempt, self.max_retries
                    )
                    time.sleep(self.retry_delay)
            except OSError as e:
                raise IOFailureError(
                    f"Failed to create lock {self.lock_dir}: {e}",
                    {"path": str(self.file_path)},
                ) from e

        log.warning("Gave up on lock %s after %d attempts", self.lock_dir, self.max_retries)
        raise LockContentionError(
            f"Could not acquire lock for {self.file_path} after {self.max_retries} "
            "attempts (is another process writing?)",
            {"path": str(self.file_path), "lock": str(self.lock_dir)},
        )

    def release(self) -> None:
        try:
            os.rmdir(self.lock_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise IOFailureError(
                f"Failed to release lock {self.lock_dir}: {e}",
                {"path": str(self.file_path)},
            ) from e

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.release()
        except IOFailureError:
            # Never mask the body's own exception with a release failure
            if exc_type is None:
                raise
            log.warning("Failed to release lock %s", self.lock_dir)


def with_lock(
    file_path: Path,
    fn: Callable[[], T],
    max_retries: int = DEFAULT_MAX_RETRIES,
    retry_delay: float = DEFAULT_RETRY_DELAY,
) -> T:
    """Run fn while holding the lock for file_path; always release afterwards."""
    with FileLock(file_path, max_retries=max_retries, retry_delay=retry_delay):
        return fn()


def append_line(file_path: Path, text: str) -> None:
    """
    Append text to a file under its lock.

    A newline is inserted first when the file does not already end in one, so
    the appended text always starts on its own line.
    """
    file_path = Path(file_path)

    def _append() -> None:
        try:
            with open(file_path, "a+b") as f:
                f.seek(0, os.SEEK_END)
                prefix = b""
                if f.tell() > 0:
                    f.seek(-1, os.SEEK_END)
                    if f.read(1) != b"\n":
                        prefix = b"\n"
                f.seek(0, os.SEEK_END)
                f.write(prefix + text.encode("utf-8"))
        except OSError as e:
            raise IOFailureError(
                f"Failed to append to {file_path}: {e}", {"path": str(file_path)}
            ) from e

    with_lock(file_path, _append)


def expand_path(path: Union[str, Path]) -> Path:
    """Expand a leading ~ to the user's home directory."""
    return Path(os.path.expanduser(str(path)))
