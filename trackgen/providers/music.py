"""Suno music client (sunoapi.org v1) plus the built-in style tags and mood prompts."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from trackgen.errors import ProviderRejected, ProviderUnavailable
from trackgen.schemas.models import PollResult, PollStatus, ProviderTrack

logger = logging.getLogger(__name__)

# Appended to every built-in style so tracks come back at a consistent length
DURATION_HINT = ", 3-4 minutes long, extended composition"

STYLE_TAGS: dict[str, str] = {
    "piano": "Ambient, Relaxing, Piano, Soft, Peaceful" + DURATION_HINT,
    "nature": "Nature Sounds, Ambient, Birds, Water, Forest" + DURATION_HINT,
    "meditation": "Meditation, Tibetan Singing Bowls, Om, Drone, Peaceful" + DURATION_HINT,
    "sleep": "Sleep Music, Delta Waves, Soft, Dreamy, Ambient" + DURATION_HINT,
    "focus": "Lo-fi, Study, Chill, Minimal, Beats" + DURATION_HINT,
    "cafe": "Cafe Jazz, Acoustic, Warm, Cozy, Background" + DURATION_HINT,
    "classical": "Classical, Orchestra, Strings, Emotional, Cinematic" + DURATION_HINT,
    "lofi": "Lo-fi Hip Hop, Chill, Relaxed, Vinyl, Nostalgic" + DURATION_HINT,
}

MOOD_DESCRIPTIONS: dict[str, str] = {
    "calm": "Create a calming and peaceful atmosphere",
    "energetic": "Uplifting yet gentle energy",
    "dreamy": "Ethereal and dreamlike soundscape",
    "focus": "Clear and focused ambient sound",
    "melancholy": "Gentle, slightly melancholic beauty",
}

DEFAULT_PROMPT = "Peaceful healing music"

_SUCCEEDED = {"SUCCESS", "TEXT_SUCCESS"}
_RUNNING = {"RUNNING", "FIRST_SUCCESS"}


def style_tags_for(style: str | None) -> str:
    """Built-in tag string for a style, defaulting to the piano tags."""
    return STYLE_TAGS.get(style or "", STYLE_TAGS["piano"])


def mood_description(mood: str | None) -> str | None:
    return MOOD_DESCRIPTIONS.get(mood or "")


def map_status(raw: str | None) -> PollStatus:
    value = (raw or "").upper()
    if value in _SUCCEEDED:
        return PollStatus.SUCCEEDED
    if value in _RUNNING:
        return PollStatus.RUNNING
    if "FAIL" in value or value.endswith("ERROR"):
        return PollStatus.FAILED
    return PollStatus.PENDING


def parse_tracks(items: list[dict[str, Any]] | None) -> list[ProviderTrack]:
    """Normalize track dicts; V5 responses use camelCase, older ones snake_case."""
    tracks = []
    for item in items or []:
        duration = item.get("duration")
        tracks.append(
            ProviderTrack(
                provider_track_id=str(item.get("id") or ""),
                asset_url=(
                    item.get("audio_url")
                    or item.get("audioUrl")
                    or item.get("streamAudioUrl")
                    or item.get("stream_audio_url")
                    or ""
                ),
                image_url=item.get("image_url") or item.get("imageUrl") or None,
                duration_hint=float(duration) if isinstance(duration, (int, float)) else None,
                title=item.get("title") or "",
                tags=item.get("tags") or "",
            )
        )
    return tracks


def _tracks_from_data(data: dict[str, Any]) -> list[dict[str, Any]]:
    response = data.get("response") or {}
    return response.get("sunoData") or response.get("data") or data.get("data") or []


class SunoClient:
    """Music generation through sunoapi.org."""

    name = "Suno"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.sunoapi.org/api/v1",
        callback_url: str = "https://example.com/api/callback",
        default_model: str = "V5",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._callback_url = callback_url
        self._default_model = default_model
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _client(self) -> httpx.Client:
        if not self._api_key:
            raise ProviderUnavailable(self.name)
        return httpx.Client(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=self._timeout,
            transport=self._transport,
        )

    def _body(self, response: httpx.Response) -> dict[str, Any]:
        if response.status_code >= 400:
            raise ProviderRejected(
                self.name, f"{response.status_code} - {response.text}", response.status_code
            )
        try:
            body = response.json()
        except ValueError:
            raise ProviderRejected(self.name, f"invalid response: {response.text}")
        code = body.get("code")
        if code is not None and code != 200:
            raise ProviderRejected(self.name, body.get("msg") or f"code {code}", code)
        return body

    def submit(
        self,
        prompt: str,
        style_tags: str,
        title: str,
        instrumental: bool = True,
        model_version: str | None = None,
    ) -> str:
        """Start a generation; returns the provider task id (two variants per task)."""
        payload = {
            "customMode": bool(style_tags),
            "prompt": prompt,
            "style": style_tags or "Ambient, Relaxing, Piano",
            "title": title or "Generated Track",
            "instrumental": instrumental,
            "model": model_version or self._default_model,
            "callBackUrl": self._callback_url,
        }
        logger.info("Submitting music generation: title=%r model=%s", payload["title"], payload["model"])
        with self._client() as client:
            body = self._body(client.post("/generate", json=payload))
        task_id = (body.get("data") or {}).get("taskId")
        if not task_id:
            raise ProviderRejected(self.name, "no task ID in response")
        logger.info("Music task submitted: %s", task_id)
        return task_id

    def poll(self, provider_task_id: str) -> PollResult:
        with self._client() as client:
            body = self._body(
                client.get("/generate/record-info", params={"taskId": provider_task_id})
            )
        data = body.get("data") or {}
        status = map_status(data.get("status"))
        tracks = parse_tracks(_tracks_from_data(data)) if status == PollStatus.SUCCEEDED else []
        logger.debug("Poll %s: %s (%d track(s))", provider_task_id, status.value, len(tracks))
        return PollResult(
            provider_task_id=provider_task_id,
            status=status,
            tracks=tracks,
            error=data.get("errorMessage") if status == PollStatus.FAILED else None,
        )

    def credits(self) -> int:
        """Remaining generation credits. ``data`` is the bare number."""
        with self._client() as client:
            body = self._body(client.get("/generate/credit"))
        data = body.get("data")
        if isinstance(data, (int, float)):
            return int(data)
        if isinstance(data, dict):
            return int(data.get("credit") or 0)
        return 0
