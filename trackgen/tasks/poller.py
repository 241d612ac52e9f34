"""Advance in-flight GenerationTasks from provider status (polling or callback)."""

from __future__ import annotations

import logging
from typing import Any

from trackgen.deploy.reconciler import Reconciler
from trackgen.errors import NotFound, error_message
from trackgen.providers.base import MusicProvider
from trackgen.providers.music import parse_tracks
from trackgen.schemas.models import (
    DeployTrack,
    GenerationTask,
    PollResult,
    PollStatus,
    ProcessSummary,
    TaskOutcome,
    TaskStatus,
    utcnow,
)
from trackgen.store.base import GenerationStore
from trackgen.tasks import state

logger = logging.getLogger(__name__)

PROVIDER_FAILED_MESSAGE = "Provider generation failed"


class TaskPoller:
    def __init__(
        self,
        store: GenerationStore,
        music: MusicProvider,
        reconciler: Reconciler | None = None,
        batch_size: int = 10,
    ):
        self.store = store
        self.music = music
        self.reconciler = reconciler
        self.batch_size = batch_size

    def process_pending(self, limit: int | None = None) -> ProcessSummary:
        """Poll the oldest PENDING/GENERATING tasks once per provider task."""
        tasks = self.store.tasks_to_poll(limit or self.batch_size)
        groups: dict[str, list[GenerationTask]] = {}
        for task in tasks:
            groups.setdefault(task.provider_task_id, []).append(task)

        outcomes: list[TaskOutcome] = []
        for provider_task_id, group in groups.items():
            try:
                result = self.music.poll(provider_task_id)
            except Exception as e:
                logger.error("Polling %s failed: %s", provider_task_id, e)
                message = error_message(e)
                outcomes.extend(TaskOutcome(task_id=t.id, status="ERROR", message=message) for t in group)
                continue
            outcomes.extend(self.apply_poll_result(group, result))

        summary = ProcessSummary.from_outcomes(outcomes)
        logger.info("Processed %d task(s): %s", len(outcomes), summary.counts)
        return summary

    def poll_task(self, task_id: str) -> TaskOutcome:
        task = self.store.get_task(task_id)
        if task is None:
            raise NotFound(f"Task not found: {task_id}")
        if state.is_terminal(task):
            return TaskOutcome(task_id=task.id, status=task.status.value, message="already terminal")
        result = self.music.poll(task.provider_task_id)
        return self.apply_poll_result([task], result)[0]

    def apply_poll_result(self, tasks: list[GenerationTask], result: PollResult) -> list[TaskOutcome]:
        outcomes = []
        now = utcnow()
        for task in tasks:
            if state.is_terminal(task):
                outcomes.append(TaskOutcome(task_id=task.id, status=task.status.value, message="already terminal"))
                continue

            if result.status in (PollStatus.PENDING, PollStatus.RUNNING):
                state.advance(task, TaskStatus.GENERATING, last_checked_at=now)
                self.store.update_task(task)
                outcomes.append(TaskOutcome(task_id=task.id, status=task.status.value, message=result.status.value))
                continue

            task.last_checked_at = now
            if result.status == PollStatus.FAILED:
                state.fail(task, result.error or PROVIDER_FAILED_MESSAGE)
                self.store.update_task(task)
                outcomes.append(TaskOutcome(task_id=task.id, status=task.status.value, message=task.error))
                continue

            outcomes.append(self._complete(task, result))
        return outcomes

    def _complete(self, task: GenerationTask, result: PollResult) -> TaskOutcome:
        track = result.tracks[task.track_index] if task.track_index < len(result.tracks) else None
        if track is None:
            state.fail(task, f"Track {task.track_index} not found in provider result")
        elif not track.asset_url:
            state.fail(task, "No audio URL in provider result")
        else:
            state.advance(
                task,
                TaskStatus.GENERATED,
                audio_url=track.asset_url,
                image_url=track.image_url,
                duration_hint=track.duration_hint,
            )
        self.store.update_task(task)

        if task.status == TaskStatus.GENERATED and task.auto_deploy:
            self._deploy(task, track.provider_track_id)
        return TaskOutcome(task_id=task.id, status=task.status.value, message=task.error or "")

    def _deploy(self, task: GenerationTask, provider_track_id: str) -> None:
        if self.reconciler is None:
            logger.warning("Task %s wants auto-deploy but no reconciler is configured", task.id)
            return
        try:
            self.store.update_task(state.advance(task, TaskStatus.DOWNLOADING))
            self.store.update_task(state.advance(task, TaskStatus.DEPLOYING))
            item = self.reconciler.deploy_track(
                DeployTrack(
                    id=provider_track_id or task.id,
                    title=task.title,
                    audio_url=task.audio_url,
                    image_url=task.generated_cover_url or task.image_url,
                    duration=task.duration_hint,
                    style=task.style,
                    mood=task.mood,
                    task_id=task.id,
                )
            )
            state.advance(task, TaskStatus.DEPLOYED, catalog_entry_id=item.entry_id)
            logger.info("Task %s deployed as %s (%s)", task.id, item.entry_id, item.action)
        except Exception as e:
            logger.error("Auto-deploy of task %s failed: %s", task.id, e)
            state.fail(task, f"Deploy failed: {error_message(e)}")
        self.store.update_task(task)

    def handle_callback(self, payload: dict[str, Any]) -> ProcessSummary:
        """Apply a provider completion callback. Non-final or unknown callbacks are ignored."""
        data = payload.get("data") or {}
        provider_task_id = data.get("task_id") or data.get("taskId")
        callback_type = (data.get("callbackType") or "").lower()
        if not provider_task_id:
            logger.info("Callback without task id ignored")
            return ProcessSummary.from_outcomes([])

        code = payload.get("code")
        if (code is not None and code != 200) or callback_type == "error":
            result = PollResult(
                provider_task_id=provider_task_id,
                status=PollStatus.FAILED,
                error=payload.get("msg") or PROVIDER_FAILED_MESSAGE,
            )
        elif callback_type == "complete":
            result = PollResult(
                provider_task_id=provider_task_id,
                status=PollStatus.SUCCEEDED,
                tracks=parse_tracks(data.get("data")),
            )
        else:
            logger.debug("Callback %r for %s ignored", callback_type, provider_task_id)
            return ProcessSummary.from_outcomes([])

        tasks = self.store.tasks_for_provider_task(provider_task_id)
        if not tasks:
            logger.info("Callback for unknown provider task %s ignored", provider_task_id)
            return ProcessSummary.from_outcomes([])
        return ProcessSummary.from_outcomes(self.apply_poll_result(tasks, result))
