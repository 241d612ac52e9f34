"""Pydantic models: Schedule, TitleEntry, GenerationTask, provider results, catalog records."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------

class ScheduleFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ONCE = "once"


class Schedule(BaseModel):
    """Recurrence rule plus the generation parameters a run uses."""

    id: str = ""
    name: str
    frequency: ScheduleFrequency
    interval_days: int = Field(default=1, ge=1)  # daily only
    run_time: str = "09:00"  # HH:MM, wall clock in the configured timezone
    count: int = Field(default=1, ge=1)  # submission rounds, 2 tracks each
    style: str = "piano"
    mood: str = "calm"
    template_id: str = ""
    auto_deploy: bool = False
    next_run: datetime | None = None
    last_run: datetime | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    claimed_until: datetime | None = None

    @property
    def is_recurring(self) -> bool:
        return self.frequency != ScheduleFrequency.ONCE


# ---------------------------------------------------------------------------
# Title pool
# ---------------------------------------------------------------------------

class TitleEntry(BaseModel):
    """One candidate title: localized primary text, translated secondary text, keyword hints."""

    primary: str
    secondary: str = ""
    keywords: str = ""
    used: bool = False
    used_at: datetime | None = None

    @property
    def display(self) -> str:
        """Title used for tracks (secondary/translated text when present)."""
        return self.secondary or self.primary


class TitlePoolStatus(BaseModel):
    category: str
    available: int = 0
    total: int = 0
    needs_generation: bool = True
    generated_at: datetime | None = None
    titles: list[TitleEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Generation tasks
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    PENDING = "PENDING"
    GENERATING = "GENERATING"
    GENERATED = "GENERATED"
    DOWNLOADING = "DOWNLOADING"
    DEPLOYING = "DEPLOYING"
    DEPLOYED = "DEPLOYED"
    FAILED = "FAILED"


class GenerationTask(BaseModel):
    """One individually deployable unit of generated audio.

    A music submission returns two variants, so two tasks (track_index 0 and 1)
    share one provider_task_id.
    """

    id: str = ""
    schedule_id: str | None = None
    provider_task_id: str
    track_index: int = Field(default=0, ge=0, le=1)
    title: str
    style: str | None = None
    mood: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    auto_deploy: bool = False
    retry_count: int = Field(default=0, ge=0)
    max_retries: int = Field(default=3, ge=0)
    error: str | None = None
    generated_cover_url: str | None = None
    audio_url: str | None = None
    image_url: str | None = None
    duration_hint: float | None = None
    catalog_entry_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_checked_at: datetime | None = None
    failed_at: datetime | None = None


class TaskSummary(BaseModel):
    total: int = 0
    deployed: int = 0
    pending: int = 0  # PENDING..DEPLOYING collapsed, reporting only
    failed: int = 0
    success_rate: str = "0.00"


class Pagination(BaseModel):
    total: int = 0
    limit: int = 50
    offset: int = 0
    has_more: bool = False


class TaskListing(BaseModel):
    tasks: list[GenerationTask] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
    summary: TaskSummary = Field(default_factory=TaskSummary)
    counts: dict[str, int] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Provider results
# ---------------------------------------------------------------------------

class PollStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ProviderTrack(BaseModel):
    """One audio variant returned by the music provider."""

    provider_track_id: str = ""
    asset_url: str = ""
    image_url: str | None = None
    duration_hint: float | None = None
    title: str = ""
    tags: str = ""


class PollResult(BaseModel):
    provider_task_id: str
    status: PollStatus
    tracks: list[ProviderTrack] = Field(default_factory=list)
    error: str | None = None


class GeneratedImage(BaseModel):
    data: bytes
    mime_type: str = "image/png"


# ---------------------------------------------------------------------------
# Orchestrator results
# ---------------------------------------------------------------------------

class RoundResult(BaseModel):
    iteration: int
    success: bool
    provider_task_id: str | None = None
    titles: list[str] = Field(default_factory=list)
    covers: list[str | None] = Field(default_factory=list)
    task_ids: list[str] = Field(default_factory=list)
    used_placeholders: bool = False
    error: str | None = None


class RunResult(BaseModel):
    schedule_id: str | None = None
    rounds: list[RoundResult] = Field(default_factory=list)
    total_generations: int = 0
    expected_tracks: int = 0
    next_run: datetime | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None and any(r.success for r in self.rounds)


# ---------------------------------------------------------------------------
# Deploy / catalog
# ---------------------------------------------------------------------------

class DeployTrack(BaseModel):
    """A generated track handed to the reconciler."""

    id: str  # provider track id or any caller-side identifier
    title: str
    audio_url: str
    image_url: str | None = None
    duration: float | None = None
    style: str | None = None
    mood: str | None = None
    task_id: str | None = None  # GenerationTask to advance, if any


class DeployItemResult(BaseModel):
    success: bool
    id: str
    title: str = ""
    action: Literal["created", "updated"] | None = None
    entry_id: str | None = None
    playlists: list[str] = Field(default_factory=list)
    error: str | None = None


class DeploySummary(BaseModel):
    total: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0


class DeployBatchResult(BaseModel):
    results: list[DeployItemResult] = Field(default_factory=list)
    summary: DeploySummary = Field(default_factory=DeploySummary)


class PlaylistAssignment(BaseModel):
    success: bool = True
    count: int = 0
    names: list[str] = Field(default_factory=list)


class CatalogEntry(BaseModel):
    id: str = ""
    title: str
    file_url: str
    thumbnail_url: str | None = None
    duration: int = 0
    category: str | None = None
    mood: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Collection(BaseModel):
    id: str
    name: str
    is_public: bool = True


# ---------------------------------------------------------------------------
# Poller outcomes
# ---------------------------------------------------------------------------

class TaskOutcome(BaseModel):
    task_id: str
    status: str  # a TaskStatus value, or "ERROR" when polling itself failed
    message: str = ""


class ProcessSummary(BaseModel):
    outcomes: list[TaskOutcome] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_outcomes(cls, outcomes: list[TaskOutcome]) -> "ProcessSummary":
        counts: dict[str, Any] = {"total": len(outcomes)}
        for o in outcomes:
            key = o.status.lower()
            counts[key] = counts.get(key, 0) + 1
        return cls(outcomes=outcomes, counts=counts)


class TickResult(BaseModel):
    """One pass of the periodic trigger."""

    due: int = 0
    executed: int = 0
    skipped: list[str] = Field(default_factory=list)  # due but claimed elsewhere
    runs: list[RunResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Ad hoc text generation
# ---------------------------------------------------------------------------

class TextKind(str, Enum):
    TITLE = "title"
    LYRICS = "lyrics"
    KEYWORDS = "keywords"
    MUSIC_PROMPT = "music-prompt"


class GeneratedText(BaseModel):
    """Raw model output plus the parsed form for list-shaped kinds."""

    kind: TextKind
    provider: str
    text: str
    titles: list[TitleEntry] = Field(default_factory=list)  # kind=title
    keywords: list[str] = Field(default_factory=list)  # kind=keywords, one theme set per line
