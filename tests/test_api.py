"""Tests for the admin HTTP API."""

import pytest
from fastapi.testclient import TestClient

from trackgen.schemas.models import GenerationTask, TaskStatus
from trackgen.service import get_service


@pytest.fixture
def client(service):
    from backend.main import app

    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client):
        assert client.get("/api/health").json()["status"] == "ok"


class TestScheduleRoutes:
    def test_crud(self, client):
        resp = client.post(
            "/api/schedules",
            json={"name": "Nightly", "frequency": "daily", "count": 1, "run_time": "22:00"},
        )
        assert resp.status_code == 201
        schedule = resp.json()
        assert schedule["next_run"].startswith("2026-03-03T22:00")

        assert [s["id"] for s in client.get("/api/schedules").json()] == [schedule["id"]]

        patched = client.patch(f"/api/schedules/{schedule['id']}", json={"mood": "dreamy"}).json()
        assert patched["mood"] == "dreamy"

        assert client.delete(f"/api/schedules/{schedule['id']}").status_code == 200
        assert client.get(f"/api/schedules/{schedule['id']}").status_code == 404

    def test_invalid_run_time(self, client):
        resp = client.post(
            "/api/schedules", json={"name": "Bad", "frequency": "daily", "count": 1, "run_time": "25:99"}
        )
        assert resp.status_code == 422

    @pytest.mark.parametrize("field", ["name", "template_id", "is_active", "run_time"])
    def test_patch_with_null_is_rejected(self, client, field):
        created = client.post(
            "/api/schedules", json={"name": "Nightly", "frequency": "daily", "count": 1}
        ).json()

        resp = client.patch(f"/api/schedules/{created['id']}", json={field: None})

        assert resp.status_code == 422
        saved = client.get(f"/api/schedules/{created['id']}").json()
        assert saved[field] == created[field]
        assert saved["name"] == "Nightly"

    def test_count_must_be_positive(self, client):
        resp = client.post("/api/schedules", json={"name": "Bad", "frequency": "daily", "count": 0})
        assert resp.status_code == 422

    def test_run_ad_hoc(self, client, seeded_titles):
        resp = client.post("/api/schedules/run", json={"generate_config": {"style": "piano", "mood": "calm"}})
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_generations"] == 1
        assert len(body["rounds"][0]["task_ids"]) == 2

    def test_run_without_credentials(self, client, music):
        music.configured = False
        resp = client.post("/api/schedules/run", json={})
        assert resp.status_code == 400

    def test_run_unknown_schedule(self, client):
        assert client.post("/api/schedules/run", json={"schedule_id": "schedule_missing"}).status_code == 404


class TestTaskRoutes:
    def _task(self, store, status):
        return store.create_task(GenerationTask(provider_task_id="suno-1", title="t", status=status))

    def test_list_with_filter(self, client, store):
        self._task(store, TaskStatus.PENDING)
        self._task(store, TaskStatus.FAILED)

        body = client.get("/api/tasks", params={"status": "FAILED"}).json()

        assert len(body["tasks"]) == 1
        assert body["pagination"]["total"] == 1
        assert body["summary"]["total"] == 2

    def test_cancel_then_retry(self, client, store):
        task = self._task(store, TaskStatus.GENERATING)

        cancelled = client.patch(f"/api/tasks/{task.id}", json={"action": "cancel"}).json()
        assert cancelled["status"] == "FAILED"
        assert cancelled["error"] == "Manually cancelled by admin"

        retried = client.patch(f"/api/tasks/{task.id}", json={"action": "retry"}).json()
        assert retried["status"] == "PENDING"
        assert retried["error"] is None

    def test_invalid_actions(self, client, store):
        deployed = self._task(store, TaskStatus.DEPLOYED)
        assert client.patch(f"/api/tasks/{deployed.id}", json={"action": "cancel"}).status_code == 400
        assert client.patch(f"/api/tasks/{deployed.id}", json={"action": "explode"}).status_code == 400
        assert client.patch("/api/tasks/task_missing", json={"action": "retry"}).status_code == 404

    def test_purge(self, client):
        assert client.delete("/api/tasks", params={"days": 7}).json() == {"success": True, "deleted": 0}

    def test_process(self, client, store):
        self._task(store, TaskStatus.PENDING)
        assert client.post("/api/tasks/process").json()["counts"]["generating"] == 1


class TestDeployAndProviderRoutes:
    def test_deploy(self, client):
        resp = client.post(
            "/api/deploy",
            json={
                "tracks": [
                    {"id": "suno-a", "title": "A", "audio_url": "https://cdn.example.com/a.mp3", "style": "piano", "mood": "calm"}
                ]
            },
        )
        assert resp.status_code == 200
        assert resp.json()["summary"] == {"total": 1, "created": 1, "updated": 0, "failed": 0}

    def test_deploy_requires_tracks(self, client):
        assert client.post("/api/deploy", json={"tracks": []}).status_code == 422

    def test_callback(self, client):
        resp = client.post("/api/callback", json={"code": 200, "data": {"callbackType": "text", "task_id": "x"}})
        assert resp.json()["success"] is True

    def test_credits(self, client):
        assert client.get("/api/credits").json() == {"success": True, "credits": 120}


class TestTitleRoutes:
    def test_status_and_mark_used(self, client, seeded_titles):
        assert client.get("/api/titles").json()["available"] == 6
        marked = client.post("/api/titles/mark-used", json={"identifiers": ["Piano in the Mist"]}).json()
        assert marked["marked"] == 1
        assert client.get("/api/titles").json()["available"] == 5

        assert client.post("/api/titles/reset").json()["reset"] == 6
        assert client.delete("/api/titles").json()["deleted"] == 6
