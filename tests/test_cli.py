"""Tests for the trackgen CLI."""

import json

import pytest
from typer.testing import CliRunner

from trackgen import cli
from trackgen.schemas.models import GenerationTask, TaskStatus

from conftest import make_schedule

runner = CliRunner()


@pytest.fixture(autouse=True)
def use_service(monkeypatch, service):
    monkeypatch.setattr(cli, "get_service", lambda: service)


class TestCli:
    def test_tick(self, store, music, seeded_titles):
        store.create_schedule(make_schedule())
        result = runner.invoke(cli.app, ["tick"])
        assert result.exit_code == 0
        assert "1 due, 1 executed, 0 skipped" in result.output
        assert len(music.submissions) == 1

    def test_run_schedule_aborts_without_credentials(self, music):
        music.configured = False
        result = runner.invoke(cli.app, ["run-schedule"])
        assert result.exit_code == 1
        assert "Run aborted" in result.output

    def test_retry_unknown_task(self):
        result = runner.invoke(cli.app, ["retry-task", "task_missing"])
        assert result.exit_code == 1

    def test_cancel_task(self, store):
        task = store.create_task(GenerationTask(provider_task_id="suno-1", title="t"))
        result = runner.invoke(cli.app, ["cancel-task", task.id])
        assert result.exit_code == 0
        assert store.get_task(task.id).status == TaskStatus.FAILED

    def test_deploy_file(self, tmp_path, catalog):
        path = tmp_path / "tracks.json"
        path.write_text(
            json.dumps([{"id": "suno-a", "title": "A", "audio_url": "https://cdn.example.com/a.mp3"}]),
            encoding="utf-8",
        )
        result = runner.invoke(cli.app, ["deploy", str(path)])
        assert result.exit_code == 0
        assert "1 created" in result.output
        assert len(catalog.list_entries()) == 1

    def test_title_status(self, seeded_titles):
        result = runner.invoke(cli.app, ["title-status"])
        assert "healing: 6/6 available" in result.output
