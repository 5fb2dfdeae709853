"""
api/routes/tasks.py -- Task collection endpoints.

Routes:
  GET    /alltask             -- every task, insertion order
  POST   /task                -- create a task (POST /alltask is an alias)
  GET    /tasks/{task_id}     -- one task
  DELETE /alltask/{task_id}   -- delete a task
  PATCH  /tasks/{task_id}/status -- set status to "complete"

Auth policy:
  All routes on `router` require a bearer token (router-level dependency).
  The status route is registered on `status_router`, whose guard honours
  Settings.protect_status_route.

Identifiers arrive as path strings. Anything that does not parse as a task ID
is reported exactly like an unknown ID: 404 "Task not found".
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import DeleteTaskResponse, InsertResultResponse, StatusUpdateResponse, TaskCreate
from auth.dependencies import guard_status_update, require_token
from core.errors import NotFoundError
from tasks.models import STATUS_COMPLETE
from tasks.store import TaskStore, parse_task_id

router = APIRouter(dependencies=[Depends(require_token)])
status_router = APIRouter(dependencies=[Depends(guard_status_update)])


def _task_id_or_404(raw: str) -> int:
    task_id = parse_task_id(raw)
    if task_id is None:
        raise NotFoundError("Task not found")
    return task_id


@router.get("/alltask")
def list_tasks(request: Request) -> list[dict]:
    """Return the whole task collection. No filtering or pagination."""
    task_store: TaskStore = request.app.state.task_store
    return [t.to_document() for t in task_store.find_all()]


@router.post("/task", response_model=InsertResultResponse)
@router.post("/alltask", response_model=InsertResultResponse)
def create_task(request: Request, body: TaskCreate) -> InsertResultResponse:
    task_store: TaskStore = request.app.state.task_store
    result = task_store.insert_one(body.to_document())
    return InsertResultResponse.from_result(result)


@router.get("/tasks/{task_id}")
def get_task(request: Request, task_id: str) -> dict:
    task_store: TaskStore = request.app.state.task_store
    task = task_store.find_by_id(_task_id_or_404(task_id))
    if task is None:
        raise NotFoundError("Task not found")
    return task.to_document()


@router.delete("/alltask/{task_id}", response_model=DeleteTaskResponse)
def delete_task(request: Request, task_id: str) -> DeleteTaskResponse:
    task_store: TaskStore = request.app.state.task_store
    result = task_store.delete_by_id(_task_id_or_404(task_id))
    if result.deleted_count == 0:
        raise NotFoundError("Task not found")
    return DeleteTaskResponse.from_result(result)


@status_router.patch("/tasks/{task_id}/status", response_model=StatusUpdateResponse)
def complete_task(request: Request, task_id: str) -> StatusUpdateResponse:
    """Mark a task complete. Repeating the call changes nothing and reports modifiedCount 0."""
    task_store: TaskStore = request.app.state.task_store
    result = task_store.update_status(_task_id_or_404(task_id), STATUS_COMPLETE)
    if result.matched_count == 0:
        raise NotFoundError("Task not found")
    return StatusUpdateResponse.from_result(result)
