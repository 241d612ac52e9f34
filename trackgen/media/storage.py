"""Media storage: save bytes at a logical path, return a public URL."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class MediaStorage(Protocol):
    def save(self, data: bytes, relative_path: str) -> str:
        """Persist ``data`` and return the URL it is served from."""
        ...


class LocalMediaStorage:
    """Write files under a local directory that the backend serves as static files."""

    def __init__(self, root: Path | str, base_url: str = "/media"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def save(self, data: bytes, relative_path: str) -> str:
        relative_path = relative_path.lstrip("/")
        target = (self.root / relative_path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"Path escapes media root: {relative_path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Saved %d bytes to %s", len(data), target)
        return f"{self.base_url}/{relative_path}"
