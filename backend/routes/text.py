"""Ad hoc text generation: titles, lyrics, keyword themes, music prompts."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.routes.errors import http_error
from trackgen.errors import TrackgenError
from trackgen.schemas.models import GeneratedText, TextKind
from trackgen.schemas.requests import TextGenerateRequest
from trackgen.service import GenerationService, get_service
from trackgen.titles.prompts import CATEGORY_THEMES, MOOD_WORDS

router = APIRouter()


@router.get("/text")
def text_options(service: GenerationService = Depends(get_service)):
    """What the generator accepts, and which provider it uses by default."""
    return {
        "provider": service.text_provider,
        "kinds": [k.value for k in TextKind],
        "moods": list(MOOD_WORDS),
        "categories": list(CATEGORY_THEMES),
    }


@router.post("/text", response_model=GeneratedText)
def generate_text(body: TextGenerateRequest, service: GenerationService = Depends(get_service)):
    try:
        return service.generate_text(body)
    except TrackgenError as e:
        raise http_error(e)
