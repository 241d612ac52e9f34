"""Request bodies for admin operations (create/update schedule, ad hoc runs, deploys)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from trackgen.schemas.models import DeployTrack, ScheduleFrequency, TextKind


def _check_run_time(v: str | None) -> str | None:
    if v is None:
        return v
    from trackgen.scheduling.engine import parse_run_time

    parse_run_time(v)
    return v


class ScheduleCreate(BaseModel):
    name: str = Field(..., min_length=1)
    frequency: ScheduleFrequency
    count: int = Field(..., ge=1)
    interval_days: int = Field(default=1, ge=1)
    run_time: str = "09:00"
    style: str = "piano"
    mood: str = "calm"
    template_id: str = ""
    auto_deploy: bool = False
    next_run: datetime | None = None

    @field_validator("run_time")
    @classmethod
    def validate_run_time(cls, v):
        return _check_run_time(v)


class ScheduleUpdate(BaseModel):
    """Partial update; only fields that are set are applied.

    ``next_run`` is the only field that may be cleared with an explicit null.
    """

    name: str | None = Field(default=None, min_length=1)
    frequency: ScheduleFrequency | None = None
    interval_days: int | None = Field(default=None, ge=1)
    run_time: str | None = None
    count: int | None = Field(default=None, ge=1)
    style: str | None = None
    mood: str | None = None
    template_id: str | None = None
    auto_deploy: bool | None = None
    next_run: datetime | None = None
    is_active: bool | None = None

    @field_validator("run_time")
    @classmethod
    def validate_run_time(cls, v):
        return _check_run_time(v)

    @model_validator(mode="after")
    def reject_nulls(self):
        nulls = sorted(
            key for key in self.model_fields_set
            if key != "next_run" and getattr(self, key) is None
        )
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self


class GenerateConfig(BaseModel):
    """Ad hoc run parameters, or overrides applied on top of a schedule."""

    name: str | None = None
    style: str | None = None
    mood: str | None = None
    description: str = ""
    template_id: str | None = None
    instrumental: bool = True
    model: str | None = None
    count: int | None = Field(default=None, ge=1)
    auto_deploy: bool | None = None


class RunRequest(BaseModel):
    schedule_id: str | None = None
    generate_config: GenerateConfig | None = None


class DeployRequest(BaseModel):
    tracks: list[DeployTrack] = Field(..., min_length=1)
    category: str | None = None


class TitleGenerateRequest(BaseModel):
    category: str = "healing"
    mood: str = "calm"
    style: str = "piano"
    count: int = Field(default=50, ge=1, le=200)


class TitleMarkUsedRequest(BaseModel):
    category: str = "healing"
    identifiers: list[str] = Field(..., min_length=1)


class TaskActionRequest(BaseModel):
    action: str  # retry | cancel


class TextGenerateRequest(BaseModel):
    kind: TextKind
    keywords: str = ""
    mood: str = "calm"
    style: str = "piano"
    category: str = "healing"
    title: str = ""  # music-prompt only
    count: int = Field(default=5, ge=1, le=50)
    provider: str | None = None

    @model_validator(mode="after")
    def require_keywords(self):
        if self.kind in (TextKind.TITLE, TextKind.LYRICS) and not self.keywords.strip():
            raise ValueError(f"Keywords are required for {self.kind.value} generation")
        return self
