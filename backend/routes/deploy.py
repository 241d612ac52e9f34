"""Deploy generated tracks into the catalog."""

from fastapi import APIRouter, Depends

from trackgen.schemas.models import DeployBatchResult
from trackgen.schemas.requests import DeployRequest
from trackgen.service import GenerationService, get_service

router = APIRouter()


@router.post("/deploy", response_model=DeployBatchResult)
def deploy_tracks(body: DeployRequest, service: GenerationService = Depends(get_service)):
    """Per-track failures are reported in ``results``; the request itself succeeds."""
    return service.deploy_tracks(body.tracks, body.category)
