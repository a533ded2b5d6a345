"""Project directories: listing, creation, archiving and linked repositories."""

import logging
import re
import shutil
from datetime import date
from pathlib import Path
from typing import List, Optional

from brain.errors import InvalidInputError, IOFailureError, NotFoundError
from brain.models.project import ProjectInfo
from brain.parsers.todo_parser import TODO_FILE_NAME, count_open_tasks
from brain.store.dump import DUMP_FILE_NAME, DUMP_TEMPLATE
from brain.utils.fileutil import FileLock, atomic_write, expand_path, read_text

log = logging.getLogger(__name__)

ACTIVE_DIR_NAME = "01_active"
AREAS_DIR_NAME = "02_areas"
RESOURCES_DIR_NAME = "03_resources"
ARCHIVE_DIR_NAME = "99_archive"
REPOS_FILE_NAME = ".repos"
PROJECT_NOTES_FILE = "notes.md"

PROJECT_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")

TODO_TEMPLATE = "# Tasks\n\n## Active\n\n## Completed\n"
NEW_PROJECT_TODO_TEMPLATE = (
    "# Tasks\n\n## Active\n\n"
    "- [ ] Define project goals\n"
    "- [ ] Set up development environment\n\n"
    "## Completed\n"
)

REPO_NAME_PATTERNS = [
    re.compile(r"/([^/]+)\.git$"),
    re.compile(r"/([^/]+)$"),
    re.compile(r":([^/]+)\.git$"),
]


def validate_project_name(name: str) -> str:
    if not name or not PROJECT_NAME_RE.match(name):
        raise InvalidInputError(
            f"Invalid project name: {name!r} (letters, digits, '-' and '_' only)",
            {"name": name},
        )
    return name


def check_project_lookup(name: str) -> str:
    """
    Looser check for naming an existing project: any single non-hidden
    directory name, so hand-made projects like "v1.2" resolve.
    """
    if not name or name.startswith(".") or "/" in name or "\\" in name:
        raise InvalidInputError(f"Invalid project name: {name!r}", {"name": name})
    return name


def _count_repos(project_dir: Path) -> int:
    try:
        text = (project_dir / REPOS_FILE_NAME).read_text(encoding="utf-8")
    except OSError:
        return 0
    return sum(1 for line in text.split("\n") if line.strip() and not line.strip().startswith("#"))


def _count_tasks(project_dir: Path) -> int:
    try:
        text = (project_dir / TODO_FILE_NAME).read_text(encoding="utf-8")
    except OSError:
        return 0
    return count_open_tasks(text)


def list_projects(active_dir: Path, focused: Optional[str] = None) -> List[ProjectInfo]:
    """Summaries of every non-hidden project directory, sorted by name."""
    active_dir = Path(active_dir)
    try:
        entries = sorted(active_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise IOFailureError(
            f"Failed to read active directory {active_dir}: {e}",
            {"path": str(active_dir)},
        ) from e

    return [
        ProjectInfo(
            name=entry.name,
            path=entry,
            focused=entry.name == focused,
            repo_count=_count_repos(entry),
            task_count=_count_tasks(entry),
        )
        for entry in entries
        if entry.is_dir() and not entry.name.startswith(".")
    ]


def ensure_todo_file(project_dir: Path) -> Path:
    """Create todo.md with the minimal template if it does not exist yet."""
    todo_file = Path(project_dir) / TODO_FILE_NAME
    if not todo_file.exists():
        with FileLock(todo_file):
            if not todo_file.exists():
                atomic_write(todo_file, TODO_TEMPLATE)
                log.info("Created %s", todo_file)
    return todo_file


def create_project(active_dir: Path, name: str, today: Optional[date] = None) -> Path:
    """
    Create a project directory with notes.md, todo.md and an empty .repos.

    Raises:
        InvalidInputError: bad name or the project already exists
    """
    validate_project_name(name)
    project_dir = Path(active_dir) / name
    if project_dir.exists():
        raise InvalidInputError(f"Project already exists: {name}", {"name": name})

    created = (today or date.today()).isoformat()
    try:
        project_dir.mkdir(parents=True)
    except OSError as e:
        raise IOFailureError(
            f"Failed to create {project_dir}: {e}", {"path": str(project_dir)}
        ) from e

    atomic_write(
        project_dir / PROJECT_NOTES_FILE,
        f"# {name}\n\nCreated: {created}\n\n## Overview\n\n[Description]\n\n## Notes\n",
    )
    atomic_write(project_dir / TODO_FILE_NAME, NEW_PROJECT_TODO_TEMPLATE)
    atomic_write(project_dir / REPOS_FILE_NAME, "")
    log.info("Created project %s", project_dir)
    return project_dir


def archive_project(workspace, name: str, today: Optional[date] = None) -> Path:
    """
    Move a project into 99_archive/{name}_{YYYYMMDD}.

    Returns:
        The archived path
    """
    project_dir = workspace.require_project(name)
    stamp = (today or date.today()).strftime("%Y%m%d")
    dest = workspace.archive_dir / f"{name}_{stamp}"
    if dest.exists():
        raise InvalidInputError(f"Archive already exists: {dest}", {"path": str(dest)})
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(project_dir), str(dest))
    except OSError as e:
        raise IOFailureError(f"Failed to archive {name}: {e}", {"name": name}) from e
    log.info("Archived project %s to %s", name, dest)
    return dest


def extract_repo_name(url: str) -> str:
    """
    Repository name from a git URL.

    "git@github.com:user/repo.git" and "https://github.com/user/repo" both
    give "repo".
    """
    for pattern in REPO_NAME_PATTERNS:
        m = pattern.search(url)
        if m:
            return m.group(1)
    trimmed = url.rstrip("/")
    if trimmed.endswith(".git"):
        trimmed = trimmed[: -len(".git")]
    return trimmed.rsplit("/", 1)[-1].rsplit(":", 1)[-1]


def read_repo_urls(project_dir: Path) -> List[str]:
    repos_file = Path(project_dir) / REPOS_FILE_NAME
    if not repos_file.exists():
        return []
    return [
        line.strip()
        for line in read_text(repos_file).split("\n")
        if line.strip() and not line.strip().startswith("#")
    ]


def get_linked_repos(project_dir: Path, dev_dir: Optional[Path] = None) -> List[Path]:
    """Local checkout paths ({dev_dir}/{repo name}) for the project's .repos entries."""
    dev_dir = Path(dev_dir) if dev_dir else expand_path("~/dev")
    return [dev_dir / extract_repo_name(url) for url in read_repo_urls(project_dir)]


def add_repo_link(project_dir: Path, url: str) -> bool:
    """
    Record a git URL in .repos.

    Returns:
        False if the URL was already linked
    """
    url = url.strip()
    if not url:
        raise InvalidInputError("Repository URL is empty")
    repos_file = Path(project_dir) / REPOS_FILE_NAME
    with FileLock(repos_file):
        existing = read_text(repos_file) if repos_file.exists() else ""
        if url in (line.strip() for line in existing.split("\n")):
            return False
        if existing and not existing.endswith("\n"):
            existing += "\n"
        atomic_write(repos_file, f"{existing}{url}\n")
    log.info("Linked %s to %s", url, Path(project_dir).name)
    return True


def init_workspace(root: Path) -> Path:
    """
    Create the brain directory structure. Existing files are kept, so an
    existing brain can be adopted.
    """
    root = expand_path(root)
    try:
        for name in (ACTIVE_DIR_NAME, AREAS_DIR_NAME, RESOURCES_DIR_NAME, ARCHIVE_DIR_NAME):
            (root / name).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOFailureError(f"Failed to create {root}: {e}", {"path": str(root)}) from e

    dump_path = root / DUMP_FILE_NAME
    if not dump_path.exists():
        atomic_write(dump_path, DUMP_TEMPLATE)
    log.info("Initialized brain at %s", root)
    return root
