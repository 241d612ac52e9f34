"""Music provider callback and credit check."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from backend.routes.errors import http_error
from trackgen.errors import TrackgenError
from trackgen.service import GenerationService, get_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/callback")
def callback_status():
    return {"success": True, "message": "Callback endpoint is active"}


@router.post("/callback")
def provider_callback(
    payload: dict[str, Any] = Body(...), service: GenerationService = Depends(get_service)
):
    """Completion callback from the music provider; applied like a poll result."""
    logger.info("Provider callback received: %s", (payload.get("data") or {}).get("callbackType"))
    summary = service.handle_callback(payload)
    return {"success": True, "message": "Callback received", "counts": summary.counts}


@router.get("/credits")
def credits(service: GenerationService = Depends(get_service)):
    try:
        return {"success": True, "credits": service.music_credits()}
    except TrackgenError as e:
        raise http_error(e)
