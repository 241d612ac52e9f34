"""Generation store protocol: one row per schedule, title entry and task."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from trackgen.schemas.models import GenerationTask, Schedule, TaskStatus, TitleEntry


class GenerationStore(Protocol):
    # -- schedules ---------------------------------------------------------
    def list_schedules(self) -> list[Schedule]: ...
    def get_schedule(self, schedule_id: str) -> Schedule | None: ...
    def create_schedule(self, schedule: Schedule) -> Schedule: ...
    def update_schedule(self, schedule: Schedule) -> None: ...
    def delete_schedule(self, schedule_id: str) -> bool: ...
    def find_due_schedules(self, now: datetime) -> list[Schedule]: ...
    def claim_schedule(self, schedule_id: str, now: datetime, until: datetime) -> bool: ...
    def release_schedule(self, schedule_id: str) -> None: ...

    # -- title pool --------------------------------------------------------
    def unused_titles(self, category: str, limit: int | None = None) -> list[TitleEntry]: ...
    def count_titles(self, category: str) -> tuple[int, int]: ...
    def pool_generated_at(self, category: str) -> datetime | None: ...
    def existing_primaries(self, category: str) -> set[str]: ...
    def insert_titles(self, category: str, entries: list[TitleEntry], at: datetime) -> int: ...
    def mark_titles_used(self, category: str, identifiers: list[str], at: datetime) -> int: ...
    def reset_titles(self, category: str) -> int: ...
    def delete_titles(self, category: str) -> int: ...

    # -- generation tasks --------------------------------------------------
    def create_task(self, task: GenerationTask) -> GenerationTask: ...
    def get_task(self, task_id: str) -> GenerationTask | None: ...
    def update_task(self, task: GenerationTask) -> None: ...
    def list_tasks(
        self, status: TaskStatus | None = None, limit: int = 50, offset: int = 0
    ) -> list[GenerationTask]: ...
    def count_tasks(self, status: TaskStatus | None = None) -> int: ...
    def count_tasks_by_status(self) -> dict[str, int]: ...
    def tasks_to_poll(self, limit: int) -> list[GenerationTask]: ...
    def tasks_for_provider_task(self, provider_task_id: str) -> list[GenerationTask]: ...
    def purge_failed_before(self, cutoff: datetime) -> int: ...
