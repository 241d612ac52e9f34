"""Tests for the Suno and Imagen HTTP clients against a mock transport."""

import base64
import json
import random

import httpx
import pytest

from trackgen.errors import ProviderRejected, ProviderUnavailable
from trackgen.providers.image import ImagenClient, build_artwork_prompt, detect_theme
from trackgen.providers.music import SunoClient, map_status, parse_tracks
from trackgen.schemas.models import PollStatus


def _suno(handler, api_key="test-key"):
    return SunoClient(
        api_key,
        base_url="https://suno.test/api/v1",
        callback_url="https://app.test/api/callback",
        transport=httpx.MockTransport(handler),
    )


class TestSunoClient:
    def test_submit(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"code": 200, "msg": "success", "data": {"taskId": "abc123"}})

        task_id = _suno(handler).submit("Calm piano", "Ambient, Piano", "Piano in the Mist")

        assert task_id == "abc123"
        assert seen["path"] == "/api/v1/generate"
        assert seen["auth"] == "Bearer test-key"
        assert seen["body"]["customMode"] is True
        assert seen["body"]["instrumental"] is True
        assert seen["body"]["model"] == "V5"
        assert seen["body"]["callBackUrl"] == "https://app.test/api/callback"

    def test_body_code_rejected(self):
        def handler(request):
            return httpx.Response(200, json={"code": 429, "msg": "Insufficient credits"})

        with pytest.raises(ProviderRejected, match="Insufficient credits"):
            _suno(handler).submit("p", "s", "t")

    def test_http_error_rejected(self):
        with pytest.raises(ProviderRejected) as exc:
            _suno(lambda r: httpx.Response(500, text="oops")).submit("p", "s", "t")
        assert exc.value.status_code == 500

    def test_missing_key(self):
        client = SunoClient(None)
        assert client.configured is False
        with pytest.raises(ProviderUnavailable):
            client.submit("p", "s", "t")

    def test_poll_success(self):
        def handler(request):
            assert request.url.params["taskId"] == "abc123"
            return httpx.Response(
                200,
                json={
                    "code": 200,
                    "data": {
                        "status": "SUCCESS",
                        "response": {
                            "sunoData": [
                                {"id": "t1", "audioUrl": "https://cdn/t1.mp3", "imageUrl": "https://cdn/t1.jpeg", "duration": 201.5},
                                {"id": "t2", "audioUrl": "https://cdn/t2.mp3", "duration": 187},
                            ]
                        },
                    },
                },
            )

        result = _suno(handler).poll("abc123")

        assert result.status == PollStatus.SUCCEEDED
        assert [t.asset_url for t in result.tracks] == ["https://cdn/t1.mp3", "https://cdn/t2.mp3"]
        assert result.tracks[0].duration_hint == 201.5

    def test_poll_failed(self):
        def handler(request):
            return httpx.Response(
                200, json={"code": 200, "data": {"status": "GENERATE_AUDIO_FAILED", "errorMessage": "bad prompt"}}
            )

        result = _suno(handler).poll("abc123")
        assert result.status == PollStatus.FAILED
        assert result.error == "bad prompt"
        assert result.tracks == []

    def test_credits(self):
        assert _suno(lambda r: httpx.Response(200, json={"code": 200, "data": 340})).credits() == 340


class TestStatusMapping:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("SUCCESS", PollStatus.SUCCEEDED),
            ("TEXT_SUCCESS", PollStatus.SUCCEEDED),
            ("FIRST_SUCCESS", PollStatus.RUNNING),
            ("PENDING", PollStatus.PENDING),
            ("CREATE_TASK_FAILED", PollStatus.FAILED),
            ("SENSITIVE_WORD_ERROR", PollStatus.FAILED),
            (None, PollStatus.PENDING),
        ],
    )
    def test_map_status(self, raw, expected):
        assert map_status(raw) == expected

    def test_parse_tracks_snake_case(self):
        tracks = parse_tracks([{"id": "x", "audio_url": "https://cdn/x.mp3", "image_url": "https://cdn/x.jpg"}])
        assert tracks[0].asset_url == "https://cdn/x.mp3"
        assert tracks[0].image_url == "https://cdn/x.jpg"
        assert tracks[0].duration_hint is None


class TestImagenClient:
    def test_generate_decodes_predictions(self):
        png = b"\x89PNG\r\n\x1a\nfake"
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"predictions": [{"bytesBase64Encoded": base64.b64encode(png).decode(), "mimeType": "image/png"}]},
            )

        client = ImagenClient("img-key", model="imagen-test", base_url="https://gl.test/v1beta", transport=httpx.MockTransport(handler))
        images = client.generate("a quiet lake", aspect_ratio="9:16")

        assert images[0].data == png
        assert "models/imagen-test:predict" in seen["url"]
        assert "key=img-key" in seen["url"]
        assert seen["body"]["parameters"] == {"sampleCount": 1, "aspectRatio": "9:16"}

    def test_error_body_rejected(self):
        def handler(request):
            return httpx.Response(400, json={"error": {"message": "prompt blocked"}})

        client = ImagenClient("img-key", transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderRejected, match="prompt blocked"):
            client.generate("x")

    def test_missing_key(self):
        with pytest.raises(ProviderUnavailable):
            ImagenClient(None).generate("x")


class TestArtworkPrompt:
    def test_theme_from_title(self):
        assert detect_theme("Lullaby of Snow") == "winter"
        assert detect_theme("Untitled") == "generic"

    def test_prompt_mentions_title(self):
        prompt = build_artwork_prompt("Where Moonlight Rests", rng=random.Random(1))
        assert '"Where Moonlight Rests"' in prompt
