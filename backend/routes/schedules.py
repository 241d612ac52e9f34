"""Schedule CRUD, run-now and the periodic tick."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from backend.routes.errors import http_error
from trackgen.errors import TrackgenError
from trackgen.schemas.models import RunResult, Schedule, TickResult
from trackgen.schemas.requests import RunRequest, ScheduleCreate, ScheduleUpdate
from trackgen.service import GenerationService, get_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/schedules", response_model=list[Schedule])
def list_schedules(service: GenerationService = Depends(get_service)):
    return service.list_schedules()


@router.post("/schedules", response_model=Schedule, status_code=status.HTTP_201_CREATED)
def create_schedule(body: ScheduleCreate, service: GenerationService = Depends(get_service)):
    try:
        return service.create_schedule(body)
    except (TrackgenError, ValueError) as e:
        raise http_error(e)


@router.get("/schedules/{schedule_id}", response_model=Schedule)
def get_schedule(schedule_id: str, service: GenerationService = Depends(get_service)):
    try:
        return service.get_schedule(schedule_id)
    except TrackgenError as e:
        raise http_error(e)


@router.patch("/schedules/{schedule_id}", response_model=Schedule)
def update_schedule(
    schedule_id: str, patch: ScheduleUpdate, service: GenerationService = Depends(get_service)
):
    try:
        return service.update_schedule(schedule_id, patch)
    except (TrackgenError, ValueError) as e:
        raise http_error(e)


@router.delete("/schedules/{schedule_id}")
def delete_schedule(schedule_id: str, service: GenerationService = Depends(get_service)):
    try:
        service.delete_schedule(schedule_id)
    except TrackgenError as e:
        raise http_error(e)
    return {"success": True}


@router.post("/schedules/run", response_model=RunResult)
def run_schedule(body: RunRequest, service: GenerationService = Depends(get_service)):
    """Run a schedule (or an ad hoc config) now. Runs synchronously in the worker thread."""
    try:
        result = service.run_schedule_now(body.schedule_id, body.generate_config)
    except TrackgenError as e:
        raise http_error(e)
    if result.error and not result.rounds:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)
    return result


@router.post("/schedules/tick", response_model=TickResult)
def tick(service: GenerationService = Depends(get_service)):
    """Periodic trigger: run every due schedule this worker can claim."""
    return service.tick()
