"""Serve the trackgen admin API with uvicorn."""

import os
import sys
from pathlib import Path

import uvicorn

sys.path.insert(0, str(Path(__file__).parent.parent))

from trackgen.config import get_settings  # noqa: E402

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "backend.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=settings.port,
        log_level=settings.trackgen_log_level.lower(),
        reload=os.environ.get("TRACKGEN_ENV", "production") == "development",
    )
