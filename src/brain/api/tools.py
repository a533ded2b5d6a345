"""MCP tool registration for the brain workspace."""

import json
import logging
from typing import Callable, List, Optional

from mcp.server.fastmcp import FastMCP

from brain.api.handlers import (
    handle_dump_add,
    handle_dump_list,
    handle_dump_trash,
    handle_note_get,
    handle_note_list,
    handle_project_list,
    handle_refile,
    handle_tag_update,
    handle_tags,
    handle_todo_delete,
    handle_todo_get,
    handle_todo_list,
    handle_todo_update,
)
from brain.errors import AmbiguousMatchError, BrainError, error_response
from brain.store.todos import format_candidate

log = logging.getLogger(__name__)


def _run(fn: Callable, *args, **kwargs) -> str:
    """Call a handler and serialize its result, or the error envelope."""
    try:
        return json.dumps(fn(*args, **kwargs), indent=2)
    except AmbiguousMatchError as e:
        payload = error_response(e.error)
        payload["error"]["details"] = {
            **e.error.details,
            "candidates": [format_candidate(c) for c in e.candidates],
        }
        return json.dumps(payload, indent=2)
    except BrainError as e:
        log.info("%s failed: %s", getattr(fn, "__name__", fn), e)
        return json.dumps(error_response(e.error), indent=2)


def register_tools(mcp: FastMCP, workspace) -> None:
    """Register all MCP tools onto the FastMCP instance."""

    # ------------------------------------------------------------------
    # Todo tools
    # ------------------------------------------------------------------

    @mcp.tool()
    def todo_list(
        project: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[int] = None,
        no_priority: bool = False,
        tags: Optional[str] = None,
        tag_mode: str = "or",
        due: Optional[str] = None,
        sort: Optional[str] = None,
        include_completed: bool = False,
    ) -> str:
        """
        List tasks across all active projects.

        Args:
            project: Only tasks from this project
            status: "open", "in-progress", "blocked" or "done"
            priority: Only this priority (1 = high, 3 = low)
            no_priority: Only tasks without a priority
            tags: Comma-separated tag names (without '#')
            tag_mode: "or" (any tag matches) or "and" (all tags required)
            due: "today", "this-week" or "overdue"
            sort: "priority", "deadline", "project" or "status"
                  (default: deadline, then priority)
            include_completed: Also list done tasks

        Returns:
            JSON array of task objects. Ids are valid until the task's file
            next changes.
        """
        return _run(
            handle_todo_list,
            workspace,
            project=project,
            status=status,
            priority=priority,
            no_priority=no_priority,
            tags=tags,
            tag_mode=tag_mode,
            due=due,
            sort=sort,
            include_completed=include_completed,
        )

    @mcp.tool()
    def todo_get(task: str) -> str:
        """
        Get one task by 6-character id or by a unique content substring.

        Returns:
            JSON task object, or an error listing candidates when ambiguous
        """
        return _run(handle_todo_get, workspace, task=task)

    @mcp.tool()
    def todo_update(
        task: str,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        due: Optional[str] = None,
    ) -> str:
        """
        Update a task's status, priority or due date. Only given fields change.

        Args:
            task: Task id or unique content substring
            status: "open", "in-progress", "blocked" or "done"
            priority: "1", "2", "3" or "clear"
            due: ISO date, natural language ("friday", "+3d", "tomorrow") or "clear"

        Returns:
            Updated task JSON (with its new id) or an error object
        """
        return _run(
            handle_todo_update, workspace, task=task, status=status, priority=priority, due=due
        )

    @mcp.tool()
    def todo_tag(
        task: str, add: Optional[List[str]] = None, remove: Optional[List[str]] = None
    ) -> str:
        """
        Add and/or remove freeform tags on a task.

        Args:
            task: Task id or unique content substring
            add: Tags to add (already present tags are skipped)
            remove: Tags to remove

        Returns:
            Updated task JSON or an error object
        """
        return _run(handle_tag_update, workspace, task=task, add=add, remove=remove)

    @mcp.tool()
    def todo_delete(task: str, confirm: bool = False) -> str:
        """
        Delete a task line. Requires confirm=true.

        Returns:
            JSON with the deleted task, or an error object
        """
        return _run(handle_todo_delete, workspace, task=task, confirm=confirm)

    @mcp.tool()
    def tags_list() -> str:
        """
        List every freeform tag on open tasks with its usage count.

        Returns:
            JSON object mapping tag → count, most used first
        """
        return _run(handle_tags, workspace)

    # ------------------------------------------------------------------
    # Dump tools
    # ------------------------------------------------------------------

    @mcp.tool()
    def dump_list() -> str:
        """
        List items waiting in the capture inbox.

        Returns:
            JSON array of {id, content, type, timestamp, start_line, end_line}
        """
        return _run(handle_dump_list, workspace)

    @mcp.tool()
    def dump_add(
        text: Optional[str] = None, title: Optional[str] = None, body: Optional[str] = None
    ) -> str:
        """
        Capture a task (text) or a note (title + body) into the inbox.

        A #captured:YYYY-MM-DD tag with today's date is appended automatically.

        Returns:
            JSON with the written text
        """
        return _run(handle_dump_add, workspace, text=text, title=title, body=body)

    @mcp.tool()
    def dump_refile(item_id: str, project: str) -> str:
        """
        Move an inbox item into a project: tasks go to todo.md, notes become
        files under notes/.

        Args:
            item_id: Id from dump_list
            project: Existing project name

        Returns:
            JSON with the destination path
        """
        return _run(handle_refile, workspace, item_id=item_id, project=project)

    @mcp.tool()
    def dump_trash(item_id: str) -> str:
        """
        Drop an inbox item without refiling it.

        Returns:
            JSON with the removed item
        """
        return _run(handle_dump_trash, workspace, item_id=item_id)

    # ------------------------------------------------------------------
    # Project tools
    # ------------------------------------------------------------------

    @mcp.tool()
    def project_list() -> str:
        """
        List active projects with open task and linked repo counts.

        Returns:
            JSON array of {name, path, focused, repo_count, task_count}
        """
        return _run(handle_project_list, workspace)

    @mcp.tool()
    def note_list(project: str) -> str:
        """
        List a project's notes, newest first.

        Returns:
            JSON array of {filename, path, title, created, project}
        """
        return _run(handle_note_list, workspace, project=project)

    @mcp.tool()
    def note_get(project: str, filename: str) -> str:
        """
        Read one note file.

        Returns:
            JSON note object including its full content
        """
        return _run(handle_note_get, workspace, project=project, filename=filename)
