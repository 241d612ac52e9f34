"""Prompt templates, style x mood presets and playlist mapping, loaded from YAML.

Example ``presets.yaml``::

    templates:
      - id: tmpl-rain
        name: Rainy piano
        type: music
        content: "Soft {style} for a {mood} evening, {keywords}. Title: {title}"
    presets:
      piano_calm: "Gentle solo piano with warm reverb"
    playlist_mapping:
      piano_calm: [playlist-1, playlist-4]

A missing file or key yields an empty config; lookups return None.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PromptTemplate(BaseModel):
    id: str
    name: str = ""
    type: str = "music"
    content: str

    def render(self, title: str = "", mood: str = "", style: str = "", keywords: str = "") -> str:
        return (
            self.content.replace("{title}", title)
            .replace("{mood}", mood)
            .replace("{style}", style)
            .replace("{keywords}", keywords)
        )


class PresetConfig(BaseModel):
    templates: list[PromptTemplate] = Field(default_factory=list)
    presets: dict[str, str] = Field(default_factory=dict)
    playlist_mapping: dict[str, list[str]] = Field(default_factory=dict)

    def template(self, template_id: str | None) -> PromptTemplate | None:
        if not template_id:
            return None
        for t in self.templates:
            if t.id == template_id:
                return t
        return None

    def preset_text(self, style: str | None, mood: str | None) -> str | None:
        return self.presets.get(style_mood_key(style, mood))

    def collections_for(self, style: str | None, mood: str | None) -> list[str]:
        return list(self.playlist_mapping.get(style_mood_key(style, mood), []))


def style_mood_key(style: str | None, mood: str | None) -> str:
    return f"{style or ''}_{mood or ''}"


def load_presets(path: Path | str | None) -> PresetConfig:
    """Load presets YAML; absent file gives an empty config."""
    if path is None:
        return PresetConfig()
    path = Path(path)
    if not path.exists():
        logger.debug("No presets file at %s", path)
        return PresetConfig()
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    config = PresetConfig.model_validate(data)
    logger.info(
        "Loaded %d template(s), %d preset(s), %d playlist mapping(s) from %s",
        len(config.templates), len(config.presets), len(config.playlist_mapping), path,
    )
    return config
