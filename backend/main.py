"""FastAPI backend: admin surface for the scheduled music generation pipeline."""

import logging
import sys
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from trackgen import __version__
from trackgen.config import get_settings

settings = get_settings()

logger = logging.getLogger(__name__)
logging.basicConfig(level=getattr(logging, settings.trackgen_log_level.upper(), logging.INFO))

app = FastAPI(
    title="trackgen API",
    description="Scheduled AI music generation: schedules, generation tasks, title pool, catalog deploys.",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

cors_origins = settings.cors_origin_list
logger.info("CORS configured for origins: %s", cors_origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Generated audio and covers are written here by LocalMediaStorage
app.mount(
    settings.trackgen_media_base_url,
    StaticFiles(directory=str(settings.media_dir), check_dir=False),
    name="media",
)


# ---------------------------------------------------------------------------
# Health & root
# ---------------------------------------------------------------------------
class HealthResponse(BaseModel):
    status: str
    data_dir: str


@app.get("/health", response_model=HealthResponse)
@app.get("/api/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse(status="ok", data_dir=str(settings.data_dir))


@app.get("/api/")
async def root():
    """API root."""
    return {"message": "trackgen API", "version": __version__}


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
from backend.routes import deploy, provider, schedules, tasks, text, titles  # noqa: E402

app.include_router(schedules.router, prefix="/api", tags=["schedules"])
app.include_router(tasks.router, prefix="/api", tags=["tasks"])
app.include_router(deploy.router, prefix="/api", tags=["deploy"])
app.include_router(titles.router, prefix="/api", tags=["titles"])
app.include_router(text.router, prefix="/api", tags=["text"])
app.include_router(provider.router, prefix="/api", tags=["provider"])
