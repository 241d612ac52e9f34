"""Admin operations over schedules, tasks, titles and deploys.

``GenerationService`` wires the store, providers, catalog and media storage
together; the HTTP routes and the CLI both call into it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from trackgen.catalog.base import Catalog
from trackgen.deploy.reconciler import Downloader, Reconciler, http_download
from trackgen.errors import NotFound
from trackgen.media.storage import MediaStorage
from trackgen.orchestrator import RunOrchestrator
from trackgen.presets import PresetConfig
from trackgen.providers.base import ImageProvider, MusicProvider
from trackgen.scheduling.engine import find_due, initial_next_run
from trackgen.schemas.models import (
    DeployBatchResult,
    DeployTrack,
    GeneratedText,
    GenerationTask,
    Pagination,
    ProcessSummary,
    RunResult,
    Schedule,
    TaskListing,
    TaskOutcome,
    TaskStatus,
    TickResult,
    TitleEntry,
    TitlePoolStatus,
    utcnow,
)
from trackgen.schemas.requests import GenerateConfig, ScheduleCreate, ScheduleUpdate, TextGenerateRequest
from trackgen.store.base import GenerationStore
from trackgen.tasks import state
from trackgen.tasks.poller import TaskPoller
from trackgen.titles.pool import TitlePool
from trackgen.titles.text import generate_text

logger = logging.getLogger(__name__)

_TIMING_FIELDS = {"frequency", "run_time", "interval_days"}


class GenerationService:
    def __init__(
        self,
        store: GenerationStore,
        catalog: Catalog,
        storage: MediaStorage,
        music: MusicProvider,
        image: ImageProvider | None = None,
        presets: PresetConfig | None = None,
        text_provider_factory: Callable[[], Any] | None = None,
        text_provider: str = "openai",
        downloader: Downloader = http_download,
        timezone_name: str = "UTC",
        title_category: str = "healing",
        lease_seconds: int = 600,
        failed_retention_days: int = 30,
        poll_batch_size: int = 10,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.catalog = catalog
        self.music = music
        self.presets = presets or PresetConfig()
        self.timezone_name = timezone_name
        self.title_category = title_category
        self.lease_seconds = lease_seconds
        self.failed_retention_days = failed_retention_days
        self.clock = clock
        self.text_provider = text_provider
        self._text_provider_factory = text_provider_factory

        self.titles = TitlePool(store, text_provider_factory)
        self.reconciler = Reconciler(catalog, storage, self.presets, downloader, store)
        self.poller = TaskPoller(store, music, self.reconciler, poll_batch_size)
        self.orchestrator = RunOrchestrator(
            store,
            self.titles,
            music,
            image,
            storage,
            self.presets,
            title_category=title_category,
            timezone_name=timezone_name,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    def list_schedules(self) -> list[Schedule]:
        return self.store.list_schedules()

    def get_schedule(self, schedule_id: str) -> Schedule:
        schedule = self.store.get_schedule(schedule_id)
        if schedule is None:
            raise NotFound(f"Schedule not found: {schedule_id}")
        return schedule

    def create_schedule(self, body: ScheduleCreate) -> Schedule:
        data = body.model_dump(exclude={"next_run"})
        next_run = body.next_run or initial_next_run(
            body.frequency, body.run_time, body.interval_days, now=self.clock(), tz=self.timezone_name
        )
        schedule = self.store.create_schedule(Schedule(**data, next_run=next_run, is_active=True))
        logger.info("Schedule created: %s (%s) next_run=%s", schedule.id, schedule.name, next_run)
        return schedule

    def update_schedule(self, schedule_id: str, patch: ScheduleUpdate) -> Schedule:
        current = self.get_schedule(schedule_id)
        changes = patch.model_dump(exclude_unset=True)
        # Raises pydantic.ValidationError (a ValueError) before anything is written
        schedule = Schedule.model_validate({**current.model_dump(), **changes})
        needs_next_run = (_TIMING_FIELDS & changes.keys()) or (
            changes.get("is_active") and schedule.next_run is None
        )
        if needs_next_run and "next_run" not in changes:
            schedule.next_run = initial_next_run(
                schedule.frequency, schedule.run_time, schedule.interval_days,
                now=self.clock(), tz=self.timezone_name,
            )
        self.store.update_schedule(schedule)
        return schedule

    def delete_schedule(self, schedule_id: str) -> None:
        if not self.store.delete_schedule(schedule_id):
            raise NotFound(f"Schedule not found: {schedule_id}")
        logger.info("Schedule deleted: %s", schedule_id)

    def run_schedule_now(
        self, schedule_id: str | None = None, config: GenerateConfig | None = None
    ) -> RunResult:
        schedule = self.get_schedule(schedule_id) if schedule_id else None
        return self.orchestrator.run(schedule, config)

    def tick(self, now: datetime | None = None) -> TickResult:
        """Run every due schedule this process manages to claim."""
        now = now or self.clock()
        due = find_due(self.store, now)
        result = TickResult(due=len(due))
        until = now + timedelta(seconds=self.lease_seconds)
        for schedule in due:
            if not self.store.claim_schedule(schedule.id, now, until):
                logger.info("Schedule %s already claimed, skipping", schedule.id)
                result.skipped.append(schedule.id)
                continue
            try:
                # Reload so the run sees the row as claimed
                claimed = self.store.get_schedule(schedule.id) or schedule
                result.runs.append(self.orchestrator.run(claimed))
                result.executed += 1
            except Exception as e:
                logger.exception("Schedule %s run failed: %s", schedule.id, e)
            finally:
                self.store.release_schedule(schedule.id)
        logger.info("Tick: %d due, %d executed, %d skipped", result.due, result.executed, len(result.skipped))
        return result

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def list_tasks(
        self, status: TaskStatus | None = None, limit: int = 50, offset: int = 0
    ) -> TaskListing:
        tasks = self.store.list_tasks(status, limit, offset)
        filtered_total = self.store.count_tasks(status)
        counts = self.store.count_tasks_by_status()
        return TaskListing(
            tasks=tasks,
            pagination=Pagination(
                total=filtered_total, limit=limit, offset=offset,
                has_more=offset + len(tasks) < filtered_total,
            ),
            summary=state.summarize(counts),
            counts=counts,
        )

    def get_task(self, task_id: str) -> GenerationTask:
        task = self.store.get_task(task_id)
        if task is None:
            raise NotFound(f"Task not found: {task_id}")
        return task

    def retry_task(self, task_id: str) -> GenerationTask:
        task = state.retry(self.get_task(task_id))
        self.store.update_task(task)
        logger.info("Task %s reset for retry", task_id)
        return task

    def cancel_task(self, task_id: str) -> GenerationTask:
        task = state.cancel(self.get_task(task_id))
        self.store.update_task(task)
        return task

    def purge_old_failed_tasks(self, days: int | None = None) -> int:
        days = self.failed_retention_days if days is None else days
        if days < 0:
            raise ValueError("days must be >= 0")
        deleted = self.store.purge_failed_before(self.clock() - timedelta(days=days))
        logger.info("Purged %d failed task(s) older than %d day(s)", deleted, days)
        return deleted

    def process_tasks(self, limit: int | None = None) -> ProcessSummary:
        return self.poller.process_pending(limit)

    def poll_task(self, task_id: str) -> TaskOutcome:
        return self.poller.poll_task(task_id)

    def handle_callback(self, payload: dict[str, Any]) -> ProcessSummary:
        return self.poller.handle_callback(payload)

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    def deploy_tracks(self, tracks: list[DeployTrack], category: str | None = None) -> DeployBatchResult:
        return self.reconciler.deploy(tracks, category)

    # ------------------------------------------------------------------
    # Title pool
    # ------------------------------------------------------------------

    def title_status(self, category: str | None = None, include_titles: bool = False) -> TitlePoolStatus:
        return self.titles.status(category or self.title_category, include_titles)

    def reserve_titles(self, count: int, category: str | None = None) -> list[TitleEntry]:
        return self.titles.reserve(category or self.title_category, count)

    def mark_titles_used(self, identifiers: list[str], category: str | None = None) -> int:
        return self.titles.mark_used(category or self.title_category, identifiers)

    def reset_titles(self, category: str | None = None) -> int:
        return self.titles.reset_used(category or self.title_category)

    def clear_titles(self, category: str | None = None) -> int:
        return self.titles.clear(category or self.title_category)

    def generate_titles(
        self, category: str | None = None, mood: str = "calm", style: str = "piano", count: int = 50
    ) -> int:
        return self.titles.generate(category or self.title_category, mood, style, count)

    def generate_text(self, request: TextGenerateRequest) -> GeneratedText:
        """Ad hoc title, lyrics, keyword-theme or music-prompt generation."""
        name = (request.provider or self.text_provider).lower()
        if self._text_provider_factory is not None:
            provider = self._text_provider_factory()
        else:
            from trackgen.llm import get_provider

            provider = get_provider(name)
        return generate_text(provider, request, name)

    def music_credits(self) -> int:
        return self.music.credits()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_service: GenerationService | None = None


def get_service() -> GenerationService:
    """Return singleton service built from settings."""
    global _service
    if _service is not None:
        return _service

    from trackgen.catalog import get_catalog
    from trackgen.config import get_settings
    from trackgen.media.storage import LocalMediaStorage
    from trackgen.presets import load_presets
    from trackgen.providers import get_image_provider, get_music_provider
    from trackgen.store import get_generation_store

    settings = get_settings()
    _service = GenerationService(
        store=get_generation_store(),
        catalog=get_catalog(),
        storage=LocalMediaStorage(settings.media_dir, settings.trackgen_media_base_url),
        music=get_music_provider(),
        image=get_image_provider(),
        presets=load_presets(settings.presets_path),
        text_provider=settings.trackgen_text_provider,
        timezone_name=settings.trackgen_timezone,
        title_category=settings.trackgen_title_category,
        lease_seconds=settings.trackgen_schedule_lease_seconds,
        failed_retention_days=settings.trackgen_failed_task_retention_days,
        poll_batch_size=settings.trackgen_poll_batch_size,
    )
    return _service
