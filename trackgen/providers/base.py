"""Generation provider protocols (music and image).

Music generation is two-phase: ``submit`` returns a provider task id
immediately; ``poll`` later reports progress and, once finished, the tracks.
``configured`` is False when no credential is set; callers check it before
spending any work on a run.
"""

from __future__ import annotations

from typing import Protocol

from trackgen.schemas.models import GeneratedImage, PollResult


class MusicProvider(Protocol):
    name: str

    @property
    def configured(self) -> bool: ...

    def submit(
        self,
        prompt: str,
        style_tags: str,
        title: str,
        instrumental: bool = True,
        model_version: str | None = None,
    ) -> str: ...

    def poll(self, provider_task_id: str) -> PollResult: ...

    def credits(self) -> int:
        """Remaining generation credits on the account."""
        ...


class ImageProvider(Protocol):
    name: str

    @property
    def configured(self) -> bool: ...

    def generate(
        self, prompt: str, aspect_ratio: str = "9:16", count: int = 1
    ) -> list[GeneratedImage]: ...
