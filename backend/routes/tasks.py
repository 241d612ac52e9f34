"""Generation task listing, admin actions, purge and the poller."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backend.routes.errors import http_error
from trackgen.errors import TrackgenError
from trackgen.schemas.models import GenerationTask, ProcessSummary, TaskListing, TaskOutcome, TaskStatus
from trackgen.schemas.requests import TaskActionRequest
from trackgen.service import GenerationService, get_service

router = APIRouter()


@router.get("/tasks", response_model=TaskListing)
def list_tasks(
    status_filter: TaskStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: GenerationService = Depends(get_service),
):
    return service.list_tasks(status_filter, limit, offset)


@router.get("/tasks/{task_id}", response_model=GenerationTask)
def get_task(task_id: str, service: GenerationService = Depends(get_service)):
    try:
        return service.get_task(task_id)
    except TrackgenError as e:
        raise http_error(e)


@router.patch("/tasks/{task_id}", response_model=GenerationTask)
def task_action(
    task_id: str, body: TaskActionRequest, service: GenerationService = Depends(get_service)
):
    """Admin action on one task: ``retry`` (FAILED only) or ``cancel`` (not DEPLOYED)."""
    action = body.action.lower()
    if action not in ("retry", "cancel"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown action: {body.action}")
    try:
        if action == "retry":
            return service.retry_task(task_id)
        return service.cancel_task(task_id)
    except TrackgenError as e:
        raise http_error(e)


@router.delete("/tasks")
def purge_failed(
    days: int | None = Query(None, ge=0), service: GenerationService = Depends(get_service)
):
    """Delete FAILED tasks older than ``days`` (default from settings)."""
    deleted = service.purge_old_failed_tasks(days)
    return {"success": True, "deleted": deleted}


@router.post("/tasks/process", response_model=ProcessSummary)
def process_tasks(
    limit: int | None = Query(None, ge=1, le=100), service: GenerationService = Depends(get_service)
):
    return service.process_tasks(limit)


@router.post("/tasks/{task_id}/poll", response_model=TaskOutcome)
def poll_task(task_id: str, service: GenerationService = Depends(get_service)):
    try:
        return service.poll_task(task_id)
    except TrackgenError as e:
        raise http_error(e)
