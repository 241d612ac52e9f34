"""Pydantic models shared across the pipeline."""

from trackgen.schemas.models import (
    CatalogEntry,
    Collection,
    DeployBatchResult,
    DeployItemResult,
    DeploySummary,
    DeployTrack,
    GeneratedImage,
    GenerationTask,
    Pagination,
    PlaylistAssignment,
    PollResult,
    PollStatus,
    ProcessSummary,
    ProviderTrack,
    RoundResult,
    RunResult,
    Schedule,
    ScheduleFrequency,
    TaskListing,
    TaskOutcome,
    TaskStatus,
    TaskSummary,
    TickResult,
    TitleEntry,
    TitlePoolStatus,
    utcnow,
)
from trackgen.schemas.requests import (
    DeployRequest,
    GenerateConfig,
    RunRequest,
    ScheduleCreate,
    ScheduleUpdate,
    TaskActionRequest,
    TitleGenerateRequest,
    TitleMarkUsedRequest,
)
