"""
brain - plain-text capture, triage and task management

Usage:
    brain add [text...]
    brain dump ls [--json]
    brain todo ls [filters] [--json]
    brain todo done|reopen|delete <query>
    brain status <query> <open|in-progress|blocked|done>
    brain start|block|unblock <query>
    brain prio <query> <1-3|clear>
    brain due <query> <date|clear>
    brain tag <query> [+tag|-tag ...]
    brain tags
    brain refile [<id> <project>]
    brain note ls [project]
    brain project ls|new|select|current|archive|link
    brain go [project]
    brain sync [project]
    brain init <name> [--path PATH]
    brain switch <name>

Examples:
    brain add "Fix login redirect #bug"
    brain todo ls --priority 1 --due this-week
    brain prio a7f3c2 1
    brain due "login redirect" friday
    brain tag a7f3c2 +backend -bug
    brain refile 3be9d1 api
"""

import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path

from brain.config import load_config, save_config, update_symlink
from brain.errors import AmbiguousMatchError, BrainError, InvalidInputError, NotFoundError
from brain.external import CommandEditor, FzfSelector, GitClient, TmuxClient
from brain.models.todo import format_checkbox_state, format_priority_badge
from brain.refile import refile
from brain.store import dump as dump_store
from brain.store import notes as note_store
from brain.store import projects as project_store
from brain.store import query
from brain.store import todos as todo_store
from brain.utils.dates import parse_date
from brain.workspace import Workspace

log = logging.getLogger(__name__)

NOTE_TEMPLATE = (
    "# Write your note below. Lines starting with '#' are removed.\n"
    "# Save and close the editor when done.\n\n"
)
SKIP_OPTION = "[SKIP]"
TRASH_OPTION = "[TRASH]"


# --- helpers ---

def _workspace(args) -> Workspace:
    """--root / $BRAIN_ROOT override the configured current brain."""
    root = args.root or os.environ.get("BRAIN_ROOT")
    if root:
        return Workspace(root=Path(root).expanduser())
    return Workspace.from_config(load_config())


def _confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _find(args, query_text: str, include_completed: bool = True):
    todos = todo_store.parse_all_todos(args.ws.active_dir, include_completed=include_completed)
    return todo_store.find_todo(todos, query_text)


def _select_todo(args, header: str, include_completed: bool = False, status=None):
    """Interactive pick when no query is given; None if cancelled."""
    todos = todo_store.parse_all_todos(args.ws.active_dir, include_completed=include_completed)
    if status:
        todos = [t for t in todos if t.status == status]
    if not todos:
        print("No matching tasks.")
        return None
    lines = [format_todo_line(t) for t in query.sort_todos(todos, "priority")]
    choice = args.selector.select(lines, header=header)
    if choice is None:
        print("Cancelled")
        return None
    return todo_store.find_todo_by_id(todos, choice.split(" ", 1)[0])


def _resolve_todo(args, header: str, include_completed: bool = True, status=None):
    if getattr(args, 'query', None):
        return _find(args, args.query, include_completed)
    return _select_todo(args, header, include_completed, status)


def format_todo_line(todo, today: date = None) -> str:
    """Listing line: id, priority badge, checkbox, content, tags, project, due."""
    line = f"{todo.id} {format_priority_badge(todo.priority)} {format_checkbox_state(todo.status)} {todo.content}"
    if todo.tags:
        line += " " + " ".join(f"#{t}" for t in todo.tags)
    line += f" ({todo.project})"
    if todo.due_date:
        today = today or date.today()
        if todo.due_date < today.isoformat():
            line += f" [OVERDUE: {todo.due_date}]"
        else:
            line += f" [Due: {todo.due_date}]"
    return line


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


# --- capture ---

def add_cmd(args):
    """Capture a task, or a note via the editor when no text is given."""
    text = " ".join(args.text).strip()
    if text:
        dump_store.capture_task(args.ws.dump_path, text)
        print("OK: Added to dump")
        return

    title = input("Note title: ").strip()
    if not title:
        print("Aborted (no title)")
        return
    body = args.editor.edit_scratch(NOTE_TEMPLATE)
    if not dump_store.clean_note_body(body):
        print("Aborted (empty note)")
        return
    dump_store.capture_note(args.ws.dump_path, title, body)
    print("OK: Added note to dump")


def dump_ls(args):
    entries = dump_store.list_dump(args.ws.dump_path)
    if args.json:
        _print_json([e.to_dict() for e in entries])
        return
    if not entries:
        print("Dump is empty.")
        return
    for e in entries:
        kind = "[Note]" if e.type == "note" else "[ ]"
        stamp = f" ({e.timestamp})" if e.timestamp else ""
        print(f"{e.id} {kind} {e.content}{stamp}")


# --- todos ---

def todo_ls(args):
    due = None
    if args.overdue:
        due = "overdue"
    elif args.due_today:
        due = "today"
    elif args.due:
        due = args.due

    todos = todo_store.parse_all_todos(
        args.ws.active_dir, include_completed=args.show_all or args.status == "done"
    )
    if args.project:
        todos = [t for t in todos if t.project == args.project]
    todos = query.filter_todos(
        todos,
        priority=args.priority,
        no_priority=args.no_priority,
        status=args.status,
        tags=args.tag or [],
        tag_mode=args.tag_mode,
        due=due,
    )
    todos = query.sort_todos(todos, args.sort)

    if args.json:
        _print_json([t.to_dict() for t in todos])
        return
    if not todos:
        print("No tasks found matching filters.")
        return
    for todo in todos:
        print(format_todo_line(todo))


def todo_done(args):
    todo = _resolve_todo(args, "Select task to complete", include_completed=False)
    if todo is None:
        return
    if todo.status == "done":
        print(f"Task is already completed: {todo.content}")
        return
    todo_store.set_status(todo, "done")
    print(f"OK: Completed task: {todo.content} ({todo.project})")


def todo_reopen(args):
    todo = _resolve_todo(args, "Select completed task to reopen", status="done")
    if todo is None:
        return
    if todo.status == "open":
        print(f"Task is already open: {todo.content}")
        return
    todo_store.set_status(todo, "open")
    print(f"OK: Reopened task: {todo.content} ({todo.project})")


def todo_delete(args):
    todo = _resolve_todo(args, "Select task to DELETE")
    if todo is None:
        return
    print(f"About to delete: {todo.content} ({todo.project})")
    if not args.yes and not _confirm("Are you sure?"):
        print("Cancelled")
        return
    todo_store.delete_todo(todo)
    print(f"OK: Deleted task: {todo.content}")


def status_cmd(args):
    new_status = args.state
    if new_status not in todo_store.VALID_STATUSES:
        raise InvalidInputError(
            f"Invalid status: {new_status} (must be: {', '.join(todo_store.VALID_STATUSES)})"
        )
    todo = _resolve_todo(args, f"Select task to mark {new_status}")
    if todo is None:
        return
    if todo.status == new_status:
        print(f"Task is already {new_status}: {todo.content}")
        return
    todo_store.set_status(todo, new_status)
    print(f"OK: {todo.content} ({todo.project}) is now {new_status}")


def prio_cmd(args):
    value = args.priority.strip().lower()
    if value == "clear":
        priority = None
    elif value in ("1", "2", "3"):
        priority = int(value)
    else:
        raise InvalidInputError(f"Invalid priority: {args.priority} (must be 1-3 or 'clear')")

    todo = _find(args, args.query)
    todo_store.set_priority(todo, priority)
    if priority is None:
        print(f"OK: Cleared priority: {todo.content}")
    else:
        print(f"OK: Set priority P{priority}: {todo.content}")


def due_cmd(args):
    value = args.date.strip()
    if value.lower() == "clear":
        due_date = "clear"
    else:
        due_date = parse_date(value)
        if due_date is None:
            raise InvalidInputError(f"Unrecognized date: {value}")

    todo = _find(args, args.query)
    todo_store.set_due_date(todo, due_date)
    if due_date == "clear":
        print(f"OK: Cleared due date: {todo.content}")
    else:
        print(f"OK: Due {due_date}: {todo.content}")


def tag_cmd(args):
    """+name or bare name adds, -name removes."""
    add = [t[1:] if t.startswith("+") else t for t in args.tags if not t.startswith("-")]
    remove = [t[1:] for t in args.tags if t.startswith("-")]
    todo = _find(args, args.query)

    if not add and not remove:
        print(" ".join(f"#{t}" for t in todo.tags) or "(no tags)")
        return
    if add:
        todo_store.add_tags(todo, add)
    if remove:
        todo_store.remove_tags(todo, remove)
    print(f"OK: Updated tags: {todo.content}")


def tags_cmd(args):
    counts = query.list_all_tags(todo_store.parse_all_todos(args.ws.active_dir))
    if args.json:
        _print_json(counts)
        return
    if not counts:
        print("No tags found.")
        return
    for tag, count in counts.items():
        print(f"#{tag} ({count})")


# --- refile ---

def refile_cmd(args):
    ws = args.ws
    if args.id:
        if not args.project:
            raise InvalidInputError("Give both an item id and a project")
        entry = dump_store.find_dump_item(ws.dump_path, args.id)
        result = refile(entry.item, ws.require_project(args.project), ws.dump_path)
        print(f"Refiled to {result.project}")
        return

    projects = [p.name for p in project_store.list_projects(ws.active_dir, ws.focus)]
    if not projects:
        print(f"No projects found in {ws.active_dir}")
        return

    skipped = 0
    processed = 0
    while True:
        # Every removal shifts lines and changes the dump's mtime, so re-list
        entries = dump_store.list_dump(ws.dump_path)
        if skipped >= len(entries):
            break
        entry = entries[skipped]
        kind = "Note" if entry.type == "note" else "Task"
        choice = args.selector.select(
            projects + [SKIP_OPTION, TRASH_OPTION],
            header=f"{kind}: {entry.content}",
        )
        if choice is None:
            print("Cancelled")
            break
        if choice == SKIP_OPTION:
            skipped += 1
            continue
        if choice == TRASH_OPTION:
            dump_store.trash_dump_item(ws.dump_path, entry.item)
            print(f"Trashed: {entry.content}")
        else:
            refile(entry.item, ws.require_project(choice), ws.dump_path)
            print(f"Refiled to {choice}")
        processed += 1

    print(f"\nProcessed {processed} items")


# --- notes and projects ---

def note_ls(args):
    name = args.project or args.ws.focus
    if not name:
        raise InvalidInputError("No project given and no project focused (brain project select)")
    notes = note_store.list_notes(args.ws.require_project(name))
    if args.json:
        _print_json([n.to_dict() for n in notes])
        return
    if not notes:
        print(f"No notes in {name}.")
        return
    for note in notes:
        print(f"{note.created or '----------'}  {note.title}  ({note.filename})")


def project_ls(args):
    projects = project_store.list_projects(args.ws.active_dir, args.ws.focus)
    if args.json:
        _print_json([p.to_dict() for p in projects])
        return
    if not projects:
        print("No projects.")
        return
    for p in projects:
        marker = "*" if p.focused else " "
        print(f"{marker} {p.name}  ({p.task_count} open, {p.repo_count} repos)")


def project_new(args):
    path = project_store.create_project(args.ws.active_dir, args.name)
    print(f"OK: Created project {args.name} at {path}")


def project_select(args):
    name = args.name
    if not name:
        projects = [p.name for p in project_store.list_projects(args.ws.active_dir)]
        name = args.selector.select(projects, header="Select project to focus")
        if name is None:
            print("Cancelled")
            return
    args.ws.require_project(name)
    cfg = load_config()
    cfg.set_focus(name)
    save_config(cfg)
    print(f"OK: Focused {name}")


def project_current(args):
    if args.ws.focus:
        print(args.ws.focus)
    else:
        print("No project focused.")


def project_archive(args):
    print(f"About to archive project: {args.name}")
    if not args.yes and not _confirm("Are you sure?"):
        print("Cancelled")
        return
    dest = project_store.archive_project(args.ws, args.name)
    if args.ws.focus == args.name:
        cfg = load_config()
        cfg.set_focus(None)
        save_config(cfg)
    print(f"OK: Archived to {dest}")


def _project_for(args):
    name = args.project or args.ws.focus
    if not name:
        raise InvalidInputError("No project given and no project focused (brain project select)")
    return name, args.ws.require_project(name)


def project_link(args):
    name, project_dir = _project_for(args)
    args.vcs.verify_remote(args.url)
    if not project_store.add_repo_link(project_dir, args.url):
        print(f"Already linked: {args.url}")
        return
    print(f"OK: Linked {args.url} to {name}")

    if args.no_clone:
        return
    dest = Path(args.dev_dir).expanduser() / project_store.extract_repo_name(args.url)
    if dest.exists():
        print(f"Repository already at {dest}")
        return
    args.vcs.clone(args.url, dest)
    print(f"OK: Cloned to {dest}")


def sync_cmd(args):
    """Pull every linked repository, cloning the ones that are missing."""
    name, project_dir = _project_for(args)
    dev_dir = Path(args.dev_dir).expanduser()
    urls = project_store.read_repo_urls(project_dir)
    if not urls:
        print(f"No repositories linked to {name}.")
        return

    failures = 0
    for url in urls:
        dest = dev_dir / project_store.extract_repo_name(url)
        try:
            if dest.exists():
                args.vcs.pull(dest)
                print(f"OK: Pulled {dest.name}")
            else:
                args.vcs.clone(url, dest)
                print(f"OK: Cloned {dest.name}")
        except BrainError as e:
            failures += 1
            print(f"Error: {dest.name}: {e}")
    if failures:
        sys.exit(1)


def go_cmd(args):
    """Open (or attach to) a tmux session for a project."""
    name = args.project
    if not name:
        projects = [p.name for p in project_store.list_projects(args.ws.active_dir, args.ws.focus)]
        name = args.selector.select(projects, header="Select a project to jump to")
        if name is None:
            print("No project selected")
            return
    project_dir = args.ws.require_project(name)
    repos = [r for r in project_store.get_linked_repos(project_dir, Path(args.dev_dir).expanduser())
             if r.exists()]

    mux = args.mux
    session = f"brain-{name}"
    if not mux.session_exists(session):
        code_dir = repos[0] if repos else project_dir
        mux.create_session(session, code_dir)
        mux.new_window(session, 2, "notes", project_dir)
        mux.send_keys(f"{session}:2", f"{' '.join(args.editor.command)} todo.md")
        log.info("Created tmux session %s", session)
    mux.attach(session)


# --- brains ---

def init_cmd(args):
    cfg = load_config()
    path = Path(args.path).expanduser() if args.path else Path.home() / args.name
    project_store.init_workspace(path)
    cfg.add_brain(args.name, path)
    cfg.set_current(args.name)
    save_config(cfg)
    update_symlink(path)
    print(f"OK: Initialized brain '{args.name}' at {path}")


def switch_cmd(args):
    cfg = load_config()
    cfg.set_current(args.name)
    save_config(cfg)
    update_symlink(cfg.current_root())
    print(f"OK: Switched to brain '{args.name}'")


def brains_cmd(args):
    cfg = load_config()
    if not cfg.brains:
        print("No brains configured (brain init <name>).")
        return
    for name in cfg.list_brains():
        marker = "*" if name == cfg.current else " "
        print(f"{marker} {name}  {cfg.brains[name].path}")


# --- main ---

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='brain',
        description="Plain-text capture, triage and task management",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--root', help='Brain root directory (default: current brain)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # --- capture ---
    add_p = subparsers.add_parser('add', help='Capture a task (or a note when no text)')
    add_p.add_argument('text', nargs='*', help='Task text')
    add_p.set_defaults(func=add_cmd)

    dump_p = subparsers.add_parser('dump', help='Inspect the capture inbox')
    dump_sub = dump_p.add_subparsers(dest='dump_command', required=True)
    dump_ls_p = dump_sub.add_parser('ls', help='List dump items')
    dump_ls_p.add_argument('--json', action='store_true', help='JSON output')
    dump_ls_p.set_defaults(func=dump_ls)

    # --- todo ---
    todo_p = subparsers.add_parser('todo', help='List and complete tasks')
    todo_sub = todo_p.add_subparsers(dest='todo_command', required=True)

    ls_p = todo_sub.add_parser('ls', help='List tasks')
    ls_p.add_argument('--project', help='Only this project')
    ls_p.add_argument('--all', action='store_true', dest='show_all', help='Include completed tasks')
    ls_p.add_argument('--status', choices=list(todo_store.VALID_STATUSES), help='Filter by status')
    ls_p.add_argument('--priority', type=int, choices=[1, 2, 3], help='Filter by priority')
    ls_p.add_argument('--no-priority', action='store_true', help='Only unprioritized tasks')
    ls_p.add_argument('--tag', action='append', help='Filter by tag (repeatable)')
    ls_p.add_argument('--tag-mode', choices=['or', 'and'], default='or',
                      help='Match any tag (or) or all tags (and)')
    ls_p.add_argument('--due', choices=list(query.DUE_FILTERS), help='Filter by due date')
    ls_p.add_argument('--due-today', action='store_true', help='Same as --due today')
    ls_p.add_argument('--overdue', action='store_true', help='Same as --due overdue')
    ls_p.add_argument('--sort', choices=list(query.SORT_KEYS), help='Sort order')
    ls_p.add_argument('--json', action='store_true', help='JSON output')
    ls_p.set_defaults(func=todo_ls)

    done_p = todo_sub.add_parser('done', help='Complete a task')
    done_p.add_argument('query', nargs='?', help='Task id or text')
    done_p.set_defaults(func=todo_done)

    reopen_p = todo_sub.add_parser('reopen', help='Reopen a completed task')
    reopen_p.add_argument('query', nargs='?', help='Task id or text')
    reopen_p.set_defaults(func=todo_reopen)

    delete_p = todo_sub.add_parser('delete', help='Delete a task')
    delete_p.add_argument('query', nargs='?', help='Task id or text')
    delete_p.add_argument('-y', '--yes', action='store_true', help='Skip confirmation')
    delete_p.set_defaults(func=todo_delete)

    # --- status shortcuts ---
    status_p = subparsers.add_parser('status', help='Set task status')
    status_p.add_argument('query', help='Task id or text')
    status_p.add_argument('state', help='open, in-progress, blocked or done')
    status_p.set_defaults(func=status_cmd)

    for name, state in (('start', 'in-progress'), ('block', 'blocked'), ('unblock', 'open')):
        p = subparsers.add_parser(name, help=f'Mark a task {state}')
        p.add_argument('query', nargs='?', help='Task id or text')
        p.set_defaults(func=status_cmd, state=state)

    # --- metadata ---
    prio_p = subparsers.add_parser('prio', help='Set or clear priority')
    prio_p.add_argument('query', help='Task id or text')
    prio_p.add_argument('priority', help='1, 2, 3 or clear')
    prio_p.set_defaults(func=prio_cmd)

    due_p = subparsers.add_parser('due', help='Set or clear due date')
    due_p.add_argument('query', help='Task id or text')
    due_p.add_argument('date', help='YYYY-MM-DD, today, friday, +3d, ... or clear')
    due_p.set_defaults(func=due_cmd)

    tag_p = subparsers.add_parser('tag', help='Show, add (+tag) or remove (-tag) tags')
    tag_p.add_argument('query', help='Task id or text')
    tag_p.add_argument('tags', nargs=argparse.REMAINDER, help='+tag / -tag ...')
    tag_p.set_defaults(func=tag_cmd)

    tags_p = subparsers.add_parser('tags', help='List all tags with counts')
    tags_p.add_argument('--json', action='store_true', help='JSON output')
    tags_p.set_defaults(func=tags_cmd)

    # --- refile ---
    refile_p = subparsers.add_parser('refile', help='Move dump items into projects')
    refile_p.add_argument('id', nargs='?', help='Dump item id')
    refile_p.add_argument('project', nargs='?', help='Destination project')
    refile_p.set_defaults(func=refile_cmd)

    # --- notes ---
    note_p = subparsers.add_parser('note', help='Project notes')
    note_sub = note_p.add_subparsers(dest='note_command', required=True)
    note_ls_p = note_sub.add_parser('ls', help='List notes')
    note_ls_p.add_argument('project', nargs='?', help='Project (default: focused)')
    note_ls_p.add_argument('--json', action='store_true', help='JSON output')
    note_ls_p.set_defaults(func=note_ls)

    # --- projects ---
    project_p = subparsers.add_parser('project', help='Manage projects')
    project_sub = project_p.add_subparsers(dest='project_command', required=True)

    pls_p = project_sub.add_parser('ls', help='List projects')
    pls_p.add_argument('--json', action='store_true', help='JSON output')
    pls_p.set_defaults(func=project_ls)

    new_p = project_sub.add_parser('new', help='Create a project')
    new_p.add_argument('name', help='Project name')
    new_p.set_defaults(func=project_new)

    select_p = project_sub.add_parser('select', help='Focus a project')
    select_p.add_argument('name', nargs='?', help='Project name')
    select_p.set_defaults(func=project_select)

    current_p = project_sub.add_parser('current', help='Show the focused project')
    current_p.set_defaults(func=project_current)

    archive_p = project_sub.add_parser('archive', help='Move a project to 99_archive')
    archive_p.add_argument('name', help='Project name')
    archive_p.add_argument('-y', '--yes', action='store_true', help='Skip confirmation')
    archive_p.set_defaults(func=project_archive)

    link_p = project_sub.add_parser('link', help='Link a git repository')
    link_p.add_argument('url', help='Git URL')
    link_p.add_argument('--project', help='Project (default: focused)')
    link_p.add_argument('--no-clone', action='store_true', help='Only record the link')
    link_p.add_argument('--dev-dir', default='~/dev', help='Checkout directory (default: ~/dev)')
    link_p.set_defaults(func=project_link)

    go_p = subparsers.add_parser('go', help='Open a tmux session for a project')
    go_p.add_argument('project', nargs='?', help='Project name')
    go_p.add_argument('--dev-dir', default='~/dev', help='Checkout directory (default: ~/dev)')
    go_p.set_defaults(func=go_cmd)

    sync_p = subparsers.add_parser('sync', help="Pull a project's linked repositories")
    sync_p.add_argument('project', nargs='?', help='Project (default: focused)')
    sync_p.add_argument('--dev-dir', default='~/dev', help='Checkout directory (default: ~/dev)')
    sync_p.set_defaults(func=sync_cmd)

    # --- brains ---
    init_p = subparsers.add_parser('init', help='Create (or adopt) a brain and make it current')
    init_p.add_argument('name', help='Brain name')
    init_p.add_argument('--path', help='Directory (default: ~/<name>)')
    init_p.set_defaults(func=init_cmd, needs_workspace=False)

    switch_p = subparsers.add_parser('switch', help='Make another brain current')
    switch_p.add_argument('name', help='Brain name')
    switch_p.set_defaults(func=switch_cmd, needs_workspace=False)

    brains_p = subparsers.add_parser('brains', help='List configured brains')
    brains_p.set_defaults(func=brains_cmd, needs_workspace=False)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, 'func'):
        parser.print_help()
        sys.exit(1)

    level = "DEBUG" if args.verbose else os.environ.get("BRAIN_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    args.selector = FzfSelector()
    args.editor = CommandEditor()
    args.mux = TmuxClient()
    args.vcs = GitClient()

    try:
        if getattr(args, 'needs_workspace', True):
            args.ws = _workspace(args)
            if not args.ws.active_dir.is_dir():
                raise NotFoundError(
                    f"Not a brain directory: {args.ws.root} (run 'brain init <name>')"
                )
        args.func(args)
    except AmbiguousMatchError as e:
        print("Error: Multiple matches found. Be more specific or use ID:")
        for todo in e.candidates:
            print(f"  {todo_store.format_candidate(todo)}")
        sys.exit(1)
    except BrainError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
