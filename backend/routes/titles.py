"""Title pool status, refill and maintenance."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from backend.routes.errors import http_error
from trackgen.errors import TrackgenError
from trackgen.schemas.models import TitlePoolStatus
from trackgen.schemas.requests import TitleGenerateRequest, TitleMarkUsedRequest
from trackgen.service import GenerationService, get_service

router = APIRouter()


@router.get("/titles", response_model=TitlePoolStatus)
def title_status(
    category: str | None = None,
    include_titles: bool = Query(False),
    service: GenerationService = Depends(get_service),
):
    return service.title_status(category, include_titles)


@router.post("/titles/generate", response_model=TitlePoolStatus)
def generate_titles(body: TitleGenerateRequest, service: GenerationService = Depends(get_service)):
    try:
        service.generate_titles(body.category, body.mood, body.style, body.count)
    except TrackgenError as e:
        raise http_error(e)
    return service.title_status(body.category)


@router.post("/titles/mark-used")
def mark_used(body: TitleMarkUsedRequest, service: GenerationService = Depends(get_service)):
    return {"success": True, "marked": service.mark_titles_used(body.identifiers, body.category)}


@router.post("/titles/reset")
def reset_titles(category: str | None = None, service: GenerationService = Depends(get_service)):
    return {"success": True, "reset": service.reset_titles(category)}


@router.delete("/titles")
def clear_titles(category: str | None = None, service: GenerationService = Depends(get_service)):
    return {"success": True, "deleted": service.clear_titles(category)}
