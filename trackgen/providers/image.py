"""Imagen cover-art client (Gemini API) and the artwork prompt builder."""

from __future__ import annotations

import base64
import logging
import random
from typing import Any

import httpx

from trackgen.errors import ProviderRejected, ProviderUnavailable
from trackgen.schemas.models import GeneratedImage

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

PHOTO_STYLE = (
    "professional photograph, realistic and natural, high resolution DSLR photo, "
    "soft natural lighting, shallow depth of field, peaceful serene atmosphere, "
    "calming color tones, vertical composition for mobile wallpaper"
)

SCENES: dict[str, list[str]] = {
    "sky": [
        "vast open sky with soft clouds, peaceful blue horizon, serene atmosphere",
        "dramatic sunset sky with golden and pink clouds, peaceful twilight",
        "soft pastel sky at dawn, gentle gradient from pink to blue",
    ],
    "ocean": [
        "peaceful ocean horizon at golden hour, gentle waves, warm sky colors",
        "calm turquoise sea with gentle ripples, endless peaceful horizon",
        "serene beach at sunrise, soft waves, golden morning light",
    ],
    "forest": [
        "soft morning light through forest trees, sunbeams filtering through leaves",
        "serene bamboo forest path, soft diffused light, zen atmosphere",
        "misty forest at dawn, soft fog between trees, magical atmosphere",
    ],
    "mountain": [
        "misty mountain lake at sunrise, calm water reflection, fog rolling over peaks",
        "mountain meadow with wildflowers, soft clouds, peaceful landscape",
        "snow-capped mountain peaks at golden hour, serene alpine landscape",
    ],
    "water": [
        "calm river flowing through autumn forest, fallen leaves, tranquil mood",
        "misty waterfall in lush green forest, long exposure smooth water",
        "still pond with lotus flowers, perfect reflection, zen tranquility",
    ],
    "night": [
        "starry night sky over calm lake, milky way reflection, peaceful night",
        "crescent moon over calm ocean, stars reflected in water",
        "aurora borealis dancing over snowy landscape, magical night",
    ],
    "flower": [
        "cherry blossom trees by still pond, petals floating, spring serenity",
        "lavender field at sunset, rolling hills, dreamy purple haze",
        "meadow of wildflowers in soft morning light, gentle breeze",
    ],
    "winter": [
        "snow-covered pine forest, soft winter light, peaceful silence",
        "frozen lake surrounded by snowy mountains, crystalline beauty",
        "gentle snowfall in quiet forest, peaceful winter scene",
    ],
    "beach": [
        "sandy beach at dawn, pastel sky, calm sea, footprints in sand",
        "secluded cove with crystal clear water, golden sand, serenity",
    ],
    "zen": [
        "zen garden with raked sand patterns, single cherry blossom tree",
        "japanese temple garden with koi pond, peaceful contemplation",
        "minimalist stone garden, perfect balance, meditative calm",
    ],
    "generic": [
        "peaceful natural landscape, soft golden light, serene atmosphere",
        "dreamy nature scene, soft focus, calming colors, tranquil mood",
        "serene outdoor scene, gentle light, peaceful environment",
    ],
}

# Checked in insertion order; first keyword found in the title picks the theme
THEME_KEYWORDS: dict[str, str] = {
    "sky": "sky", "cloud": "sky", "heaven": "sky", "breeze": "sky",
    "하늘": "sky", "구름": "sky", "바람": "sky",
    "ocean": "ocean", "sea": "ocean", "wave": "ocean", "tide": "ocean",
    "바다": "ocean", "파도": "ocean",
    "forest": "forest", "tree": "forest", "wood": "forest", "leaf": "forest", "bamboo": "forest",
    "숲": "forest", "나무": "forest",
    "mountain": "mountain", "peak": "mountain", "hill": "mountain", "valley": "mountain",
    "산": "mountain", "계곡": "mountain",
    "river": "water", "stream": "water", "waterfall": "water", "pond": "water",
    "lake": "water", "rain": "water",
    "강": "water", "호수": "water", "폭포": "water", "비": "water",
    "night": "night", "star": "night", "moon": "night", "aurora": "night", "galaxy": "night",
    "밤": "night", "별": "night", "달": "night",
    "flower": "flower", "blossom": "flower", "bloom": "flower", "petal": "flower",
    "lotus": "flower", "lavender": "flower",
    "꽃": "flower", "벚꽃": "flower",
    "snow": "winter", "winter": "winter", "ice": "winter", "frost": "winter",
    "눈": "winter", "겨울": "winter",
    "beach": "beach", "sand": "beach", "shore": "beach", "coast": "beach",
    "해변": "beach", "모래": "beach",
    "zen": "zen", "temple": "zen", "meditation": "zen", "peace": "zen", "calm": "zen",
    "quiet": "zen", "명상": "zen", "고요": "zen", "평화": "zen",
}


def detect_theme(title: str) -> str:
    lowered = title.lower()
    for keyword, theme in THEME_KEYWORDS.items():
        if keyword in lowered:
            return theme
    return "generic"


def build_artwork_prompt(title: str, rng: random.Random | None = None) -> str:
    """Photo-style cover prompt whose scene follows keywords in the title."""
    theme = detect_theme(title)
    scene = (rng or random).choice(SCENES.get(theme) or SCENES["generic"])
    logger.debug("Artwork for %r: theme=%s", title, theme)
    return ", ".join(
        [
            PHOTO_STYLE,
            scene,
            f'capturing the essence of "{title}"',
            "ultra high quality",
            "photorealistic",
            "8K resolution",
        ]
    )


class ImagenClient:
    """Text-to-image through the Gemini ``:predict`` endpoint."""

    name = "Imagen"

    def __init__(
        self,
        api_key: str | None,
        model: str = "imagen-4.0-generate-preview-06-06",
        base_url: str = GEMINI_API_BASE,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def generate(
        self, prompt: str, aspect_ratio: str = "9:16", count: int = 1
    ) -> list[GeneratedImage]:
        if not self._api_key:
            raise ProviderUnavailable(self.name)
        payload = {
            "instances": [{"prompt": prompt}],
            "parameters": {"sampleCount": count, "aspectRatio": aspect_ratio},
        }
        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            response = client.post(
                f"{self._base_url}/models/{self._model}:predict",
                params={"key": self._api_key},
                json=payload,
            )
        body: dict[str, Any] = {}
        try:
            body = response.json()
        except ValueError:
            pass  # non-JSON error pages fall through to the status check
        if response.status_code >= 400 or body.get("error"):
            message = (body.get("error") or {}).get("message") or str(response.status_code)
            raise ProviderRejected(self.name, message, response.status_code)

        images = []
        for prediction in body.get("predictions") or []:
            encoded = prediction.get("bytesBase64Encoded")
            if not encoded:
                continue
            images.append(
                GeneratedImage(
                    data=base64.b64decode(encoded),
                    mime_type=prediction.get("mimeType") or "image/png",
                )
            )
        return images
