"""Deploy generated tracks into the catalog.

A track is identified by a content fingerprint (provider id or the asset file
stem). If a catalog entry's stored file is named after it, only metadata
is refreshed; otherwise audio is downloaded, stored, measured and catalogued.
"""

from __future__ import annotations

import io
import logging
import re
from pathlib import PurePosixPath
from typing import Callable
from urllib.parse import urlparse

import httpx
import mutagen

from trackgen.catalog.base import Catalog
from trackgen.deploy.playlists import assign_to_playlists
from trackgen.errors import AssetDownloadFailed, error_message
from trackgen.media.storage import MediaStorage
from trackgen.presets import PresetConfig
from trackgen.schemas.models import (
    CatalogEntry,
    DeployBatchResult,
    DeployItemResult,
    DeploySummary,
    DeployTrack,
    TaskStatus,
    utcnow,
)
from trackgen.store.base import GenerationStore
from trackgen.tasks import state

logger = logging.getLogger(__name__)

Downloader = Callable[[str], bytes]

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_-]+")
_AUDIO_SUFFIXES = {".mp3", ".wav", ".m4a", ".ogg", ".flac"}


def http_download(url: str, timeout: float = 120.0) -> bytes:
    """GET ``url`` following redirects; any transport or status error becomes AssetDownloadFailed."""
    try:
        with httpx.Client(follow_redirects=True, timeout=timeout) as client:
            response = client.get(url)
            response.raise_for_status()
            return response.content
    except httpx.HTTPError as e:
        raise AssetDownloadFailed(url, str(e))


def extract_fingerprint(track_id: str | None, audio_url: str | None) -> str:
    """Stable identity of a generated asset.

    A UUID-shaped provider id wins; then the stem of an audio file in the URL
    path (e.g. the hex name of ``.../3fa2c1e9.mp3``); then the id. A URL that
    does not end in an audio file only identifies the asset when there is no id.
    """
    if track_id and _UUID_RE.match(track_id):
        return track_id.lower()
    stem = name = ""
    if audio_url:
        path = PurePosixPath(urlparse(audio_url).path)
        name = path.name
        if path.suffix.lower() in _AUDIO_SUFFIXES:
            stem = path.stem
    candidate = stem or track_id or name
    return _UNSAFE_RE.sub("-", candidate).strip("-")


def derive_duration(data: bytes, hint: float | None = None, bitrate: int | None = None) -> int:
    """Seconds of audio: provider hint, then container metadata, then bytes*8/bitrate, then 0."""
    if hint and hint > 0:
        return round(hint)
    if data:
        try:
            audio = mutagen.File(io.BytesIO(data))
        except Exception as e:
            logger.debug("Could not read audio metadata: %s", e)
            audio = None
        info = getattr(audio, "info", None)
        if info is not None:
            length = getattr(info, "length", 0) or 0
            if length > 0:
                return round(length)
            bitrate = bitrate or getattr(info, "bitrate", 0) or None
    if bitrate and data:
        return round(len(data) * 8 / bitrate)
    return 0


class Reconciler:
    def __init__(
        self,
        catalog: Catalog,
        storage: MediaStorage,
        presets: PresetConfig | None = None,
        downloader: Downloader = http_download,
        store: GenerationStore | None = None,
    ):
        self.catalog = catalog
        self.storage = storage
        self.presets = presets or PresetConfig()
        self.downloader = downloader
        self.store = store

    def deploy_track(self, track: DeployTrack, category: str | None = None) -> DeployItemResult:
        """Create or update the catalog entry for one track. Raises on failure."""
        fingerprint = extract_fingerprint(track.id, track.audio_url)
        if not fingerprint:
            raise ValueError(f"Cannot derive an asset fingerprint for track {track.id!r}")
        tags = [t for t in (track.style, track.mood, "ai-generated") if t]
        existing = self.catalog.find_by_asset_fingerprint(fingerprint)

        if existing is not None:
            entry = self.catalog.update(
                existing.id,
                title=track.title,
                thumbnail_url=track.image_url or existing.thumbnail_url,
                category=category or track.style or existing.category,
                mood=track.mood or existing.mood,
                tags=tags,
            )
            logger.info("Updated catalog entry %s for %s", entry.id, fingerprint)
            return DeployItemResult(
                success=True, id=track.id, title=track.title, action="updated", entry_id=entry.id
            )

        stamp = utcnow().strftime("%Y%m%d%H%M%S%f")
        audio = self.downloader(track.audio_url)
        file_url = self.storage.save(audio, f"tracks/{stamp}_{fingerprint}.mp3")
        duration = derive_duration(audio, hint=track.duration)
        cover_url = self._store_cover(track.image_url, f"covers/{stamp}_{fingerprint}.jpg")

        entry = self.catalog.create(
            CatalogEntry(
                title=track.title,
                file_url=file_url,
                thumbnail_url=cover_url,
                duration=duration,
                category=category or track.style,
                mood=track.mood,
                tags=tags,
            )
        )
        assignment = assign_to_playlists(
            self.catalog, self.presets, entry.id, track.style, track.mood
        )
        return DeployItemResult(
            success=True,
            id=track.id,
            title=track.title,
            action="created",
            entry_id=entry.id,
            playlists=assignment.names,
        )

    def _store_cover(self, image_url: str | None, relative_path: str) -> str | None:
        """Copy a remote cover locally; keep the original reference when it is not remote."""
        if not image_url:
            return None
        if not image_url.startswith(("http://", "https://")):
            return image_url
        try:
            return self.storage.save(self.downloader(image_url), relative_path)
        except Exception as e:
            logger.warning("Cover download failed for %s: %s", image_url, e)
            return image_url

    def deploy(self, tracks: list[DeployTrack], category: str | None = None) -> DeployBatchResult:
        """Deploy a batch; failures are itemized and never abort the rest."""
        results: list[DeployItemResult] = []
        for track in tracks:
            task = self._load_task(track.task_id)
            try:
                if task is not None:
                    self._save_task(state.advance(task, TaskStatus.DOWNLOADING))
                    self._save_task(state.advance(task, TaskStatus.DEPLOYING))
                item = self.deploy_track(track, category)
                if task is not None:
                    self._save_task(
                        state.advance(task, TaskStatus.DEPLOYED, catalog_entry_id=item.entry_id)
                    )
            except Exception as e:
                message = error_message(e)
                logger.error("Deploy of %s failed: %s", track.id, message)
                item = DeployItemResult(success=False, id=track.id, title=track.title, error=message)
                if task is not None and task.status != TaskStatus.DEPLOYED:
                    self._save_task(state.fail(task, message))
            results.append(item)

        summary = DeploySummary(
            total=len(results),
            created=sum(1 for r in results if r.action == "created"),
            updated=sum(1 for r in results if r.action == "updated"),
            failed=sum(1 for r in results if not r.success),
        )
        logger.info(
            "Deploy batch: %d total, %d created, %d updated, %d failed",
            summary.total, summary.created, summary.updated, summary.failed,
        )
        return DeployBatchResult(results=results, summary=summary)

    def _load_task(self, task_id: str | None):
        """Task to advance alongside the deploy; terminal tasks are left alone."""
        if not task_id or self.store is None:
            return None
        task = self.store.get_task(task_id)
        if task is None or state.is_terminal(task):
            return None
        return task

    def _save_task(self, task) -> None:
        if self.store is not None:
            self.store.update_task(task)
