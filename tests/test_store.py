"""Tests for the SQLite generation store and the claimed tick."""

from datetime import datetime, timedelta, timezone

import pytest

from trackgen.schemas.models import GenerationTask, TaskStatus
from trackgen.schemas.requests import ScheduleCreate, ScheduleUpdate

from conftest import FIXED_NOW, make_schedule

UTC = timezone.utc


class TestSchedules:
    def test_round_trip(self, store):
        created = store.create_schedule(make_schedule(template_id="tmpl-rain", auto_deploy=True))
        assert created.id.startswith("schedule_")

        loaded = store.get_schedule(created.id)
        assert loaded.name == "Morning Calm"
        assert loaded.template_id == "tmpl-rain"
        assert loaded.auto_deploy is True
        assert loaded.next_run == created.next_run

    def test_delete(self, store):
        created = store.create_schedule(make_schedule())
        assert store.delete_schedule(created.id) is True
        assert store.delete_schedule(created.id) is False
        assert store.get_schedule(created.id) is None


class TestClaim:
    def test_claim_is_exclusive_until_released(self, store):
        s = store.create_schedule(make_schedule())
        until = FIXED_NOW + timedelta(minutes=10)

        assert store.claim_schedule(s.id, FIXED_NOW, until) is True
        assert store.claim_schedule(s.id, FIXED_NOW, until) is False

        store.release_schedule(s.id)
        assert store.claim_schedule(s.id, FIXED_NOW, until) is True

    def test_expired_lease_can_be_reclaimed(self, store):
        s = store.create_schedule(make_schedule())
        store.claim_schedule(s.id, FIXED_NOW, FIXED_NOW + timedelta(minutes=10))
        later = FIXED_NOW + timedelta(minutes=11)
        assert store.claim_schedule(s.id, later, later + timedelta(minutes=10)) is True

    def test_not_due_cannot_be_claimed(self, store):
        s = store.create_schedule(make_schedule(next_run=FIXED_NOW + timedelta(hours=1)))
        assert store.claim_schedule(s.id, FIXED_NOW, FIXED_NOW + timedelta(minutes=10)) is False


class TestTick:
    def test_runs_due_schedules_and_releases(self, service, store, music, seeded_titles):
        s = store.create_schedule(make_schedule())

        result = service.tick()

        assert result.due == 1
        assert result.executed == 1
        assert len(music.submissions) == 1
        saved = store.get_schedule(s.id)
        assert saved.claimed_until is None
        assert saved.next_run > FIXED_NOW
        # Advanced next_run means a second tick finds nothing
        assert service.tick().due == 0

    def test_claimed_elsewhere_is_skipped(self, service, store, music):
        s = store.create_schedule(make_schedule())
        store.claim_schedule(s.id, FIXED_NOW, FIXED_NOW + timedelta(minutes=10))

        result = service.tick()

        assert result.skipped == [s.id]
        assert result.executed == 0
        assert music.submissions == []


class TestScheduleService:
    def test_create_computes_next_run(self, service):
        s = service.create_schedule(ScheduleCreate(name="Nightly", frequency="daily", count=1, run_time="22:00"))
        assert s.is_active
        assert s.next_run == datetime(2026, 3, 3, 22, 0, tzinfo=UTC)

    def test_update_timing_recomputes_next_run(self, service):
        s = service.create_schedule(ScheduleCreate(name="Nightly", frequency="daily", count=1))
        updated = service.update_schedule(s.id, ScheduleUpdate(frequency="weekly"))
        assert updated.next_run == datetime(2026, 3, 9, 9, 0, tzinfo=UTC)

    def test_update_other_fields_keeps_next_run(self, service):
        s = service.create_schedule(ScheduleCreate(name="Nightly", frequency="daily", count=1))
        updated = service.update_schedule(s.id, ScheduleUpdate(mood="dreamy", is_active=False))
        assert updated.next_run == s.next_run
        assert service.get_schedule(s.id).is_active is False

    def test_update_rejects_null_required_field(self, service):
        s = service.create_schedule(ScheduleCreate(name="Nightly", frequency="daily", count=1))
        patch = ScheduleUpdate.model_construct(_fields_set={"name"}, name=None)

        with pytest.raises(ValueError):
            service.update_schedule(s.id, patch)
        assert service.get_schedule(s.id).name == "Nightly"

    def test_update_can_clear_next_run(self, service):
        s = service.create_schedule(ScheduleCreate(name="Nightly", frequency="daily", count=1))
        updated = service.update_schedule(s.id, ScheduleUpdate(next_run=None))
        assert updated.next_run is None
        assert service.get_schedule(s.id).next_run is None


class TestTasks:
    def _task(self, store, status, failed_at=None):
        task = GenerationTask(provider_task_id="suno-1", title="t", status=status, failed_at=failed_at)
        return store.create_task(task)

    def test_listing_pagination_and_summary(self, service, store):
        for _ in range(3):
            self._task(store, TaskStatus.PENDING)
        self._task(store, TaskStatus.DEPLOYED)

        listing = service.list_tasks(limit=2)
        assert len(listing.tasks) == 2
        assert listing.pagination.total == 4
        assert listing.pagination.has_more
        assert listing.summary.success_rate == "25.00"
        assert listing.counts == {"PENDING": 3, "DEPLOYED": 1}

        filtered = service.list_tasks(status=TaskStatus.DEPLOYED)
        assert filtered.pagination.total == 1
        assert not filtered.pagination.has_more

    def test_purge_failed_before_cutoff(self, service, store):
        old = self._task(store, TaskStatus.FAILED, failed_at=FIXED_NOW - timedelta(days=40))
        recent = self._task(store, TaskStatus.FAILED, failed_at=FIXED_NOW - timedelta(days=2))
        pending = self._task(store, TaskStatus.PENDING)

        assert service.purge_old_failed_tasks() == 1
        assert store.get_task(old.id) is None
        assert store.get_task(recent.id) is not None
        assert store.get_task(pending.id) is not None
