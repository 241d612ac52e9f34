"""Tests for advancing generation tasks from provider polls and callbacks."""

import pytest

from trackgen.errors import NotFound, ProviderRejected
from trackgen.schemas.models import GenerationTask, PollResult, PollStatus, TaskStatus
from trackgen.tasks.poller import PROVIDER_FAILED_MESSAGE


def _pair(store, provider_task_id="suno-task-1", auto_deploy=False, status=TaskStatus.PENDING):
    return [
        store.create_task(
            GenerationTask(
                provider_task_id=provider_task_id,
                track_index=i,
                title=f"Title {i}",
                style="piano",
                mood="calm",
                auto_deploy=auto_deploy,
                status=status,
            )
        )
        for i in range(2)
    ]


class TestProcessPending:
    def test_polls_once_per_provider_task(self, service, store, music):
        _pair(store, "suno-task-1")
        _pair(store, "suno-task-2")
        polled = []
        original = music.poll
        music.poll = lambda pid: polled.append(pid) or original(pid)

        summary = service.process_tasks()

        assert sorted(polled) == ["suno-task-1", "suno-task-2"]
        assert summary.counts["total"] == 4
        assert summary.counts["generating"] == 4

    def test_success_without_auto_deploy_stops_at_generated(self, service, store, music):
        tasks = _pair(store)
        tracks = music.succeed("suno-task-1")

        service.process_tasks()

        for task, track in zip(tasks, tracks):
            saved = store.get_task(task.id)
            assert saved.status == TaskStatus.GENERATED
            assert saved.audio_url == track.asset_url
            assert saved.duration_hint == track.duration_hint

    def test_success_with_auto_deploy(self, service, store, catalog, music):
        tasks = _pair(store, auto_deploy=True)
        music.succeed("suno-task-1")

        summary = service.process_tasks()

        assert summary.counts["deployed"] == 2
        entries = {e.id for e in catalog.list_entries()}
        for task in tasks:
            saved = store.get_task(task.id)
            assert saved.status == TaskStatus.DEPLOYED
            assert saved.catalog_entry_id in entries

    def test_missing_track_fails_that_task_only(self, service, store, music):
        tasks = _pair(store)
        music.succeed("suno-task-1", count=1)

        service.process_tasks()

        assert store.get_task(tasks[0].id).status == TaskStatus.GENERATED
        second = store.get_task(tasks[1].id)
        assert second.status == TaskStatus.FAILED
        assert "Track 1" in second.error

    def test_provider_failure(self, service, store, music):
        tasks = _pair(store)
        music.results["suno-task-1"] = PollResult(provider_task_id="suno-task-1", status=PollStatus.FAILED)

        service.process_tasks()

        saved = store.get_task(tasks[0].id)
        assert saved.status == TaskStatus.FAILED
        assert saved.error == PROVIDER_FAILED_MESSAGE
        assert saved.retry_count == 0

    def test_poll_error_leaves_tasks_untouched(self, service, store, music):
        tasks = _pair(store)
        music.poll_errors["suno-task-1"] = ProviderRejected("Suno", "502 - Bad Gateway", 502)

        summary = service.process_tasks()

        assert summary.counts["error"] == 2
        assert store.get_task(tasks[0].id).status == TaskStatus.PENDING

    def test_poll_error_without_message_names_exception(self, service, store, music):
        _pair(store)
        music.poll_errors["suno-task-1"] = TimeoutError()

        summary = service.process_tasks()

        assert [o.message for o in summary.outcomes] == ["TimeoutError", "TimeoutError"]

    def test_deploy_failure_marks_task_failed(self, service, store, music, downloader):
        tasks = _pair(store, auto_deploy=True)
        tracks = music.succeed("suno-task-1")
        downloader.failing.add(tracks[0].asset_url)

        service.process_tasks()

        first = store.get_task(tasks[0].id)
        assert first.status == TaskStatus.FAILED
        assert first.error.startswith("Deploy failed:")
        assert store.get_task(tasks[1].id).status == TaskStatus.DEPLOYED

    def test_limit(self, service, store, music):
        _pair(store, "suno-task-1")
        _pair(store, "suno-task-2")
        summary = service.process_tasks(limit=2)
        assert summary.counts["total"] == 2


class TestPollTask:
    def test_terminal_task_is_noop(self, service, store, music):
        task = _pair(store, status=TaskStatus.DEPLOYED)[0]
        music.results["suno-task-1"] = PollResult(provider_task_id="suno-task-1", status=PollStatus.FAILED)

        outcome = service.poll_task(task.id)

        assert outcome.status == "DEPLOYED"
        assert store.get_task(task.id).status == TaskStatus.DEPLOYED

    def test_unknown_task(self, service):
        with pytest.raises(NotFound):
            service.poll_task("task_missing")


class TestCallback:
    def test_complete_callback(self, service, store):
        tasks = _pair(store)
        payload = {
            "code": 200,
            "msg": "All generated successfully.",
            "data": {
                "callbackType": "complete",
                "task_id": "suno-task-1",
                "data": [
                    {"id": "a1", "audio_url": "https://cdn/a1.mp3", "duration": 198.3},
                    {"id": "a2", "audio_url": "https://cdn/a2.mp3", "duration": 204.0},
                ],
            },
        }

        summary = service.handle_callback(payload)

        assert summary.counts["generated"] == 2
        assert store.get_task(tasks[1].id).audio_url == "https://cdn/a2.mp3"

    def test_error_callback(self, service, store):
        tasks = _pair(store)
        service.handle_callback(
            {"code": 531, "msg": "Generation failed", "data": {"callbackType": "error", "task_id": "suno-task-1"}}
        )
        saved = store.get_task(tasks[0].id)
        assert saved.status == TaskStatus.FAILED
        assert saved.error == "Generation failed"

    def test_intermediate_callback_ignored(self, service, store):
        tasks = _pair(store)
        summary = service.handle_callback({"code": 200, "data": {"callbackType": "text", "task_id": "suno-task-1"}})
        assert summary.counts["total"] == 0
        assert store.get_task(tasks[0].id).status == TaskStatus.PENDING

    def test_unknown_provider_task(self, service):
        summary = service.handle_callback({"code": 200, "data": {"callbackType": "complete", "task_id": "nope"}})
        assert summary.counts["total"] == 0
