"""Tests for the GenerationTask lifecycle."""

import pytest

from trackgen.errors import InvalidTransition
from trackgen.schemas.models import GenerationTask, TaskStatus
from trackgen.tasks import state


def _task(status=TaskStatus.PENDING, **kwargs):
    return GenerationTask(id="task_1", provider_task_id="suno-1", title="Piano in the Mist", status=status, **kwargs)


class TestAdvance:
    def test_forward_and_fields(self):
        task = state.advance(_task(), TaskStatus.GENERATING)
        assert task.status == TaskStatus.GENERATING
        state.advance(task, TaskStatus.GENERATED, audio_url="https://cdn/x.mp3")
        assert task.status == TaskStatus.GENERATED
        assert task.audio_url == "https://cdn/x.mp3"

    def test_may_skip_forward(self):
        assert state.advance(_task(), TaskStatus.GENERATED).status == TaskStatus.GENERATED

    def test_same_state_is_noop(self):
        task = _task(TaskStatus.GENERATING)
        state.advance(task, TaskStatus.GENERATING)
        assert task.status == TaskStatus.GENERATING

    def test_backward_rejected(self):
        task = _task(TaskStatus.DEPLOYING)
        with pytest.raises(InvalidTransition):
            state.advance(task, TaskStatus.PENDING)
        assert task.status == TaskStatus.DEPLOYING

    def test_failed_only_leaves_via_retry(self):
        task = _task(TaskStatus.FAILED, error="boom")
        with pytest.raises(InvalidTransition):
            state.advance(task, TaskStatus.GENERATING)

    def test_deployed_is_terminal(self):
        task = _task(TaskStatus.DEPLOYED)
        with pytest.raises(InvalidTransition):
            state.advance(task, TaskStatus.DEPLOYED, title="changed")
        assert task.title == "Piano in the Mist"


class TestFail:
    def test_records_error(self):
        task = state.fail(_task(TaskStatus.GENERATING), "timeout")
        assert task.status == TaskStatus.FAILED
        assert task.error == "timeout"
        assert task.failed_at is not None

    def test_requires_reason(self):
        with pytest.raises(ValueError):
            state.fail(_task(), "")

    def test_deployed_cannot_fail(self):
        task = _task(TaskStatus.DEPLOYED, catalog_entry_id="track_1")
        before = task.model_dump()
        with pytest.raises(InvalidTransition):
            state.fail(task, "late error")
        assert task.model_dump() == before


class TestRetryAndCancel:
    def test_retry_resets(self):
        task = _task(TaskStatus.FAILED, error="boom", retry_count=2)
        task.failed_at = task.created_at
        state.retry(task)
        assert task.status == TaskStatus.PENDING
        assert task.retry_count == 0
        assert task.error is None
        assert task.failed_at is None

    @pytest.mark.parametrize("status", [TaskStatus.PENDING, TaskStatus.GENERATED, TaskStatus.DEPLOYED])
    def test_retry_only_from_failed(self, status):
        with pytest.raises(InvalidTransition):
            state.retry(_task(status))

    def test_cancel(self):
        task = state.cancel(_task(TaskStatus.GENERATING))
        assert task.status == TaskStatus.FAILED
        assert task.error == state.CANCEL_MESSAGE

    def test_cancel_deployed_rejected(self):
        with pytest.raises(InvalidTransition):
            state.cancel(_task(TaskStatus.DEPLOYED))


class TestSummarize:
    def test_rate_and_collapsed_pending(self):
        counts = {"PENDING": 1, "GENERATING": 1, "DEPLOYING": 1, "DEPLOYED": 1, "FAILED": 0}
        summary = state.summarize(counts)
        assert summary.total == 4
        assert summary.pending == 3
        assert summary.deployed == 1
        assert summary.success_rate == "25.00"

    def test_empty(self):
        summary = state.summarize({})
        assert summary.total == 0
        assert summary.success_rate == "0.00"
