"""Pytest configuration and shared fixtures."""

import os
import tempfile
from datetime import datetime, timezone

import pytest

# Keep settings-driven paths (backend app import) out of the working tree
os.environ.setdefault("TRACKGEN_DATA_DIR", tempfile.mkdtemp(prefix="trackgen-test-"))

from trackgen.catalog.sqlite_catalog import SqliteCatalog
from trackgen.errors import AssetDownloadFailed, ProviderRejected
from trackgen.media.storage import LocalMediaStorage
from trackgen.presets import PresetConfig, PromptTemplate
from trackgen.schemas.models import (
    GeneratedImage,
    PollResult,
    PollStatus,
    ProviderTrack,
    Schedule,
    ScheduleFrequency,
    TitleEntry,
)
from trackgen.service import GenerationService
from trackgen.store.sqlite_store import SqliteGenerationStore

FIXED_NOW = datetime(2026, 3, 2, 9, 0, 30, tzinfo=timezone.utc)

SAMPLE_TITLES = [
    ("달빛이 머무는 곳", "Where Moonlight Rests", "달빛, 고요함, 평화"),
    ("안개 속 피아노", "Piano in the Mist", "안개, 피아노, 신비"),
    ("새벽의 첫 호흡", "First Breath of Dawn", "새벽, 호흡, 시작"),
    ("마음의 정원", "Garden of the Soul", "마음, 정원, 치유"),
    ("비 내리는 창가에서", "By the Rainy Window", "비, 창가, 사색"),
    ("별이 내리는 밤", "When Stars Fall", "별, 밤, 꿈"),
]


class FakeMusic:
    """In-memory music provider: records submissions, serves canned poll results."""

    name = "Suno"

    def __init__(self):
        self.configured = True
        self.submissions: list[dict] = []
        self.results: dict[str, PollResult] = {}
        self.poll_errors: dict[str, Exception] = {}
        self.submit_error: Exception | None = None
        self.credit_balance = 120

    def submit(self, prompt, style_tags, title, instrumental=True, model_version=None):
        if self.submit_error is not None:
            raise self.submit_error
        task_id = f"suno-task-{len(self.submissions) + 1}"
        self.submissions.append(
            {
                "task_id": task_id,
                "prompt": prompt,
                "style_tags": style_tags,
                "title": title,
                "instrumental": instrumental,
                "model_version": model_version,
            }
        )
        return task_id

    def poll(self, provider_task_id):
        if provider_task_id in self.poll_errors:
            raise self.poll_errors[provider_task_id]
        return self.results.get(
            provider_task_id,
            PollResult(provider_task_id=provider_task_id, status=PollStatus.PENDING),
        )

    def succeed(self, provider_task_id, count=2, prefix="https://cdn.example.com/audio"):
        tracks = [
            ProviderTrack(
                provider_track_id=f"{provider_task_id}-{i}",
                asset_url=f"{prefix}/{provider_task_id}-{i}.mp3",
                image_url=f"https://cdn.example.com/img/{provider_task_id}-{i}.jpeg",
                duration_hint=200.4 + i,
                title=f"Track {i}",
            )
            for i in range(count)
        ]
        self.results[provider_task_id] = PollResult(
            provider_task_id=provider_task_id, status=PollStatus.SUCCEEDED, tracks=tracks
        )
        return tracks

    def credits(self):
        return self.credit_balance


class FakeImage:
    """Image provider that fails for prompts mentioning any of ``fail_on``."""

    name = "Imagen"
    configured = True

    def __init__(self, fail_on=()):
        self.fail_on = tuple(fail_on)
        self.prompts: list[str] = []

    def generate(self, prompt, aspect_ratio="9:16", count=1):
        self.prompts.append(prompt)
        if any(word in prompt for word in self.fail_on):
            raise ProviderRejected("Imagen", "quota exceeded", 429)
        return [GeneratedImage(data=b"\x89PNG fake cover", mime_type="image/png")]


class FakeDownloader:
    """Serves bytes for known URLs; unknown or failing URLs raise AssetDownloadFailed."""

    def __init__(self, payload=b"\x00" * 32000):
        self.payload = payload
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def __call__(self, url):
        self.calls.append(url)
        if url in self.failing:
            raise AssetDownloadFailed(url, "503 Service Unavailable")
        return self.payload


class FakeText:
    """Text provider returning canned output; records prompts and call options."""

    def __init__(self, text=""):
        self.text = text
        self.prompts: list[str] = []
        self.options: list[dict] = []

    def complete(self, prompt, **kwargs):
        self.prompts.append(prompt)
        self.options.append(kwargs)
        return self.text


def make_schedule(**overrides) -> Schedule:
    data = {
        "name": "Morning Calm",
        "frequency": ScheduleFrequency.DAILY,
        "interval_days": 1,
        "run_time": "09:00",
        "count": 1,
        "style": "piano",
        "mood": "calm",
        "next_run": FIXED_NOW.replace(second=0),
    }
    data.update(overrides)
    return Schedule(**data)


@pytest.fixture
def store(tmp_path):
    return SqliteGenerationStore(tmp_path / "trackgen.db")


@pytest.fixture
def catalog(tmp_path):
    return SqliteCatalog(tmp_path / "catalog.db")


@pytest.fixture
def storage(tmp_path):
    return LocalMediaStorage(tmp_path / "media", "/media")


@pytest.fixture
def music():
    return FakeMusic()


@pytest.fixture
def image():
    return FakeImage()


@pytest.fixture
def text():
    return FakeText()


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def presets():
    return PresetConfig(
        templates=[
            PromptTemplate(
                id="tmpl-rain",
                name="Rainy piano",
                content="Soft {style} for a {mood} evening, {keywords}. Title: {title}",
            )
        ],
        presets={"nature_dreamy": "Forest ambience with distant chimes"},
    )


@pytest.fixture
def service(store, catalog, storage, music, image, text, downloader, presets):
    return GenerationService(
        store=store,
        catalog=catalog,
        storage=storage,
        music=music,
        image=image,
        presets=presets,
        text_provider_factory=lambda: text,
        downloader=downloader,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def seeded_titles(service):
    """Title pool with the sample titles in insertion order."""
    service.titles.append(
        "healing", [TitleEntry(primary=p, secondary=s, keywords=k) for p, s, k in SAMPLE_TITLES]
    )
    return service.titles
