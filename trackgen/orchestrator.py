"""Run orchestrator: execute one schedule (or an ad hoc request) end to end.

Per round: reserve two titles, generate both covers in parallel, submit one
music request, and record two PENDING tasks. Schedule bookkeeping (last_run,
next_run, deactivating ``once``) happens whatever the rounds did.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from trackgen.errors import ProviderUnavailable, error_message
from trackgen.fallbacks import first_available
from trackgen.media.storage import MediaStorage
from trackgen.presets import PresetConfig, PromptTemplate
from trackgen.providers.base import ImageProvider, MusicProvider
from trackgen.providers.image import build_artwork_prompt
from trackgen.providers.music import DEFAULT_PROMPT, mood_description, style_tags_for
from trackgen.scheduling.engine import compute_next_run
from trackgen.schemas.models import (
    GenerationTask,
    RoundResult,
    RunResult,
    Schedule,
    TitleEntry,
    utcnow,
)
from trackgen.schemas.requests import GenerateConfig
from trackgen.store.base import GenerationStore
from trackgen.titles.pool import TitlePool

logger = logging.getLogger(__name__)

TITLES_PER_ROUND = 2
DEFAULT_NAME = "Healing Music"
COVER_ASPECT_RATIO = "9:16"

_SAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9\s-]")


@dataclass
class RunPlan:
    """Resolved parameters shared by every round of one run."""

    name: str
    style: str
    mood: str
    description: str
    template: PromptTemplate | None
    preset_text: str | None
    instrumental: bool
    model: str | None
    count: int
    auto_deploy: bool

    @property
    def style_tags(self) -> str:
        # Templates and presets carry their own wording; the raw style is enough
        if self.template is not None or self.preset_text:
            return self.style
        return style_tags_for(self.style)

    def prompt_for(self, title: str, keywords: str) -> str:
        keywords = self.description or keywords
        return first_available(
            [
                ("template", lambda: self.template and self.template.render(title, self.mood, self.style, keywords)),
                ("preset", lambda: self.preset_text),
                ("description", lambda: self.description),
                ("mood", lambda: mood_description(self.mood)),
            ],
            default=DEFAULT_PROMPT,
            label="prompt",
        )


class RunOrchestrator:
    def __init__(
        self,
        store: GenerationStore,
        titles: TitlePool,
        music: MusicProvider,
        image: ImageProvider | None,
        storage: MediaStorage,
        presets: PresetConfig | None = None,
        title_category: str = "healing",
        timezone_name: str = "UTC",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.titles = titles
        self.music = music
        self.image = image
        self.storage = storage
        self.presets = presets or PresetConfig()
        self.title_category = title_category
        self.timezone_name = timezone_name
        self.clock = clock

    # -- planning ----------------------------------------------------------

    def plan(self, schedule: Schedule | None, config: GenerateConfig | None = None) -> RunPlan:
        config = config or GenerateConfig()
        style = config.style or (schedule.style if schedule else None) or "piano"
        mood = config.mood or (schedule.mood if schedule else None) or "calm"
        template_id = config.template_id or (schedule.template_id if schedule else None)
        template = self.presets.template(template_id)
        if template_id and template is None:
            logger.warning("Template %s not found, using fallback prompt", template_id)
        auto_deploy = config.auto_deploy
        if auto_deploy is None:
            auto_deploy = schedule.auto_deploy if schedule else False
        return RunPlan(
            name=config.name or (schedule.name if schedule else None) or DEFAULT_NAME,
            style=style,
            mood=mood,
            description=config.description or "",
            template=template,
            preset_text=self.presets.preset_text(style, mood),
            instrumental=config.instrumental,
            model=config.model,
            count=config.count or (schedule.count if schedule else 1),
            auto_deploy=auto_deploy,
        )

    # -- execution ---------------------------------------------------------

    def run(self, schedule: Schedule | None = None, config: GenerateConfig | None = None) -> RunResult:
        plan = self.plan(schedule, config)
        result = RunResult(
            schedule_id=schedule.id if schedule else None,
            expected_tracks=plan.count * TITLES_PER_ROUND,
        )
        logger.info(
            "Run %s: %d round(s), style=%s mood=%s template=%s",
            schedule.id if schedule else "ad hoc", plan.count, plan.style, plan.mood,
            plan.template.id if plan.template else None,
        )
        try:
            if not self.music.configured:
                raise ProviderUnavailable(self.music.name)
            for iteration in range(1, plan.count + 1):
                round_result = self._run_round(iteration, plan, schedule)
                result.rounds.append(round_result)
                if round_result.success:
                    result.total_generations += 1
        except ProviderUnavailable as e:
            # Nothing can be submitted this run; bookkeeping below still applies
            logger.error("Run aborted: %s", e)
            result.error = str(e)
        finally:
            if schedule is not None:
                result.next_run = self._finish_schedule(schedule)
        return result

    def _run_round(self, iteration: int, plan: RunPlan, schedule: Schedule | None) -> RoundResult:
        entries, placeholders = self._reserve_titles(plan.name)
        titles = [e.display for e in entries]
        covers = self._generate_covers(entries)
        prompt = plan.prompt_for(titles[0], entries[0].keywords)

        try:
            provider_task_id = self.music.submit(
                prompt=prompt,
                style_tags=plan.style_tags,
                title=titles[0],
                instrumental=plan.instrumental,
                model_version=plan.model,
            )
        except ProviderUnavailable:
            raise
        except Exception as e:
            logger.error("Round %d submission failed: %s", iteration, e)
            return RoundResult(
                iteration=iteration, success=False, titles=titles, covers=covers,
                used_placeholders=placeholders, error=error_message(e),
            )

        task_ids = []
        for index, (title, cover) in enumerate(zip(titles, covers)):
            task = self.store.create_task(
                GenerationTask(
                    schedule_id=schedule.id if schedule else None,
                    provider_task_id=provider_task_id,
                    track_index=index,
                    title=title,
                    style=plan.style,
                    mood=plan.mood,
                    auto_deploy=plan.auto_deploy,
                    generated_cover_url=cover,
                )
            )
            task_ids.append(task.id)
        logger.info("Round %d submitted as %s: %s", iteration, provider_task_id, titles)
        return RoundResult(
            iteration=iteration, success=True, provider_task_id=provider_task_id,
            titles=titles, covers=covers, task_ids=task_ids, used_placeholders=placeholders,
        )

    def _reserve_titles(self, name: str) -> tuple[list[TitleEntry], bool]:
        """Two titles marked used before submission; missing slots become placeholders."""
        try:
            entries = self.titles.reserve(self.title_category, TITLES_PER_ROUND)
        except Exception as e:
            logger.error("Title pool read failed: %s", e)
            entries = []
        if entries:
            self.titles.mark_used(self.title_category, [e.display for e in entries])
        shortfall = len(entries) < TITLES_PER_ROUND
        if shortfall:
            logger.warning(
                "Not enough titles in %s (%d/%d), using placeholders",
                self.title_category, len(entries), TITLES_PER_ROUND,
            )
            entries = entries + [
                TitleEntry(primary=f"{name} #{i}", secondary=f"{name} #{i}", keywords=name)
                for i in range(len(entries) + 1, TITLES_PER_ROUND + 1)
            ]
        return entries, shortfall

    def _generate_covers(self, entries: list[TitleEntry]) -> list[str | None]:
        if self.image is None or not self.image.configured:
            logger.info("Skipping cover generation, no image provider configured")
            return [None] * len(entries)
        return asyncio.run(self._gather_covers(entries))

    async def _gather_covers(self, entries: list[TitleEntry]) -> list[str | None]:
        results = await asyncio.gather(
            *(asyncio.to_thread(self._cover_for, e.display) for e in entries),
            return_exceptions=True,
        )
        covers: list[str | None] = []
        for entry, outcome in zip(entries, results):
            if isinstance(outcome, BaseException):
                logger.error("Cover generation failed for %r: %s", entry.display, outcome)
                covers.append(None)
            else:
                covers.append(outcome)
        logger.info("Cover images generated: %d/%d", sum(1 for c in covers if c), len(covers))
        return covers

    def _cover_for(self, title: str) -> str | None:
        images = self.image.generate(build_artwork_prompt(title), aspect_ratio=COVER_ASPECT_RATIO, count=1)
        if not images:
            logger.warning("No image generated for %r", title)
            return None
        image = images[0]
        ext = image.mime_type.split("/")[-1] or "png"
        safe = re.sub(r"\s+", "_", _SAFE_NAME_RE.sub("", title).strip())[:30] or "cover"
        stamp = utcnow().strftime("%Y%m%d%H%M%S%f")
        return self.storage.save(image.data, f"covers/{safe}_{stamp}.{ext}")

    def _finish_schedule(self, schedule: Schedule):
        now = self.clock()
        schedule.last_run = now
        schedule.next_run = compute_next_run(
            schedule.frequency, schedule.run_time, schedule.interval_days, now=now, tz=self.timezone_name
        )
        if not schedule.is_recurring:
            schedule.is_active = False
        self.store.update_schedule(schedule)
        logger.info(
            "Schedule %s: last_run=%s next_run=%s active=%s",
            schedule.id, now.isoformat(), schedule.next_run, schedule.is_active,
        )
        return schedule.next_run
