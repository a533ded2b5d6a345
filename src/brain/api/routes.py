"""REST API routes for the brain workspace."""

from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from brain.api.handlers import (
    handle_dump_add,
    handle_dump_list,
    handle_dump_trash,
    handle_note_get,
    handle_note_list,
    handle_project_list,
    handle_refile,
    handle_tag_add,
    handle_tag_remove,
    handle_tags,
    handle_todo_delete,
    handle_todo_get,
    handle_todo_list,
    handle_todo_update,
)
from brain.errors import BrainError

# Error code → HTTP status
STATUS_CODES = {
    "NOT_FOUND": 404,
    "AMBIGUOUS": 409,
    "INVALID_INPUT": 400,
    "LOCK_CONTENTION": 423,
    "CORRUPTION": 422,
    "IO_FAILURE": 500,
    "REFILE_REMOVAL": 500,
}


def _http_error(e: BrainError) -> HTTPException:
    return HTTPException(
        status_code=STATUS_CODES.get(e.error.code, 500), detail=e.error.to_dict()
    )


# ---------------------------------------------------------------------------
# Request body models
# ---------------------------------------------------------------------------


class TodoUpdateBody(BaseModel):
    status: Optional[str] = None
    priority: Optional[Union[int, str]] = None
    due: Optional[str] = None


class TagsBody(BaseModel):
    tags: List[str]


class CaptureBody(BaseModel):
    text: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None


class RefileBody(BaseModel):
    project: str


# ---------------------------------------------------------------------------
# Route registration
# ---------------------------------------------------------------------------


def register_routes(app_router: APIRouter, workspace) -> None:
    """Attach all REST routes for the given workspace."""

    # --- Todo routes ---

    @app_router.get("/todos")
    def list_todos(
        project: Optional[str] = Query(None),
        status: Optional[str] = Query(None),
        priority: Optional[int] = Query(None),
        no_priority: bool = Query(False),
        tags: Optional[str] = Query(None),
        tag_mode: str = Query("or"),
        due: Optional[str] = Query(None),
        sort: Optional[str] = Query(None),
        include_completed: bool = Query(False),
    ):
        try:
            return handle_todo_list(
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
        except BrainError as e:
            raise _http_error(e)

    @app_router.get("/todos/{task}")
    def get_todo(task: str):
        try:
            return handle_todo_get(workspace, task=task)
        except BrainError as e:
            raise _http_error(e)

    @app_router.patch("/todos/{task}")
    def update_todo(task: str, body: TodoUpdateBody):
        try:
            return handle_todo_update(workspace, task=task, **body.model_dump())
        except BrainError as e:
            raise _http_error(e)

    @app_router.delete("/todos/{task}")
    def delete_todo(task: str, confirm: bool = Query(False)):
        try:
            return handle_todo_delete(workspace, task=task, confirm=confirm)
        except BrainError as e:
            raise _http_error(e)

    @app_router.post("/todos/{task}/tags")
    def add_tags(task: str, body: TagsBody):
        try:
            return handle_tag_add(workspace, task=task, tags=body.tags)
        except BrainError as e:
            raise _http_error(e)

    @app_router.delete("/todos/{task}/tags")
    def remove_tags(task: str, tags: str = Query(...)):
        try:
            return handle_tag_remove(workspace, task=task, tags=tags)
        except BrainError as e:
            raise _http_error(e)

    @app_router.get("/tags")
    def list_tags():
        try:
            return handle_tags(workspace)
        except BrainError as e:
            raise _http_error(e)

    # --- Dump routes ---

    @app_router.get("/dump")
    def list_dump():
        try:
            return handle_dump_list(workspace)
        except BrainError as e:
            raise _http_error(e)

    @app_router.post("/dump", status_code=201)
    def capture(body: CaptureBody):
        try:
            return handle_dump_add(workspace, **body.model_dump())
        except BrainError as e:
            raise _http_error(e)

    @app_router.post("/dump/{item_id}/refile")
    def refile_item(item_id: str, body: RefileBody):
        try:
            return handle_refile(workspace, item_id=item_id, project=body.project)
        except BrainError as e:
            raise _http_error(e)

    @app_router.delete("/dump/{item_id}")
    def trash_item(item_id: str):
        try:
            return handle_dump_trash(workspace, item_id=item_id)
        except BrainError as e:
            raise _http_error(e)

    # --- Project routes ---

    @app_router.get("/projects")
    def list_projects():
        try:
            return handle_project_list(workspace)
        except BrainError as e:
            raise _http_error(e)

    @app_router.get("/projects/{project}/notes")
    def list_notes(project: str):
        try:
            return handle_note_list(workspace, project=project)
        except BrainError as e:
            raise _http_error(e)

    @app_router.get("/projects/{project}/notes/{filename}")
    def get_note(project: str, filename: str):
        try:
            return handle_note_get(workspace, project=project, filename=filename)
        except BrainError as e:
            raise _http_error(e)
