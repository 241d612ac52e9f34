"""Batch title prompt and the ``primary | secondary | keywords`` line parser."""

from __future__ import annotations

import re

from trackgen.schemas.models import TitleEntry

CATEGORY_THEMES: dict[str, str] = {
    "healing": "healing, peace of mind, nature, meditation, rest, comfort, warmth, serenity",
    "focus": "concentration, flow, creativity, clarity, awakening",
    "sleep": "sleep, dreams, night, stars, moon, stillness, lullaby, coziness",
    "nature": "forest, sea, sky, rain, wind, birdsong, flowing water, valleys, fields",
    "cafe": "coffee, coziness, conversation, books, windows, afternoon, warm tea, jazz, rainy days",
    "meditation": "meditation, breath, mindfulness, inner calm, harmony, stillness",
}

MOOD_WORDS: dict[str, str] = {
    "calm": "calm and still",
    "energetic": "lively and vivid",
    "dreamy": "dreamy and mysterious",
    "focus": "clear and focusing",
    "melancholy": "lyrical and wistful",
    "uplifting": "hopeful and bright",
}

STYLE_WORDS: dict[str, str] = {
    "piano": "piano melodies",
    "nature": "sounds of nature",
    "meditation": "meditation music",
    "sleep": "sleep music",
    "focus": "focus music",
    "cafe": "cafe music",
    "classical": "classical",
    "lofi": "lo-fi",
}

# Generic phrases that make a title useless as a track name
BANNED_PHRASES = ("힐링 음악", "수면 음악", "healing music", "sleep music")

_NUMBERING_RE = re.compile(r"^\d+\.\s*")
_DIGIT_RE = re.compile(r"\d")


def build_titles_prompt(category: str, mood: str, style: str, count: int = 50) -> str:
    theme = CATEGORY_THEMES.get(category, CATEGORY_THEMES["healing"])
    return f"""You write poetic album and track titles for a Korean healing-music app,
at the level seen on Spotify, Apple Music or Melon.

Category: {category}
Related themes: {theme}
Mood: {MOOD_WORDS.get(mood, mood)}
Style: {STYLE_WORDS.get(style, style)}

Generate exactly {count} titles, one per line, in this format:

Korean title | English title | keyword1, keyword2, keyword3

Rules:
- Poetic, metaphorical titles drawn from nature, feelings, time and place
- Never use digits or literal phrases such as "힐링 음악" or "Healing Music"
- 2-5 words in each language
- 2-4 evocative keywords related to the title
- Every title unique

Good examples:
달빛이 머무는 곳 | Where Moonlight Rests | 달빛, 고요함, 평화
안개 속 피아노 | Piano in the Mist | 안개, 피아노, 신비
파도의 자장가 | Lullaby of Waves | 파도, 자장가, 바다

Bad examples (never produce these):
힐링 음악 1 | Healing Music 1 | 힐링, 음악
수면 음악 | Sleep Music | 수면

Now write the {count} titles:"""


def parse_titles(text: str) -> list[TitleEntry]:
    """Parse model output. Lines without ``|``, numbered-title noise and generic
    phrases are dropped; keywords default to the primary text."""
    entries: list[TitleEntry] = []
    for line in (text or "").strip().splitlines():
        if "|" not in line:
            continue
        parts = [p.strip() for p in line.split("|")]
        if len(parts) < 2:
            continue
        primary = _NUMBERING_RE.sub("", parts[0]).strip()
        secondary = parts[1]
        keywords = parts[2] if len(parts) > 2 and parts[2] else primary
        if not primary:
            continue
        lowered = f"{primary} {secondary}".lower()
        if any(p in lowered for p in BANNED_PHRASES) or _DIGIT_RE.search(primary):
            continue
        entries.append(TitleEntry(primary=primary, secondary=secondary, keywords=keywords))
    return entries
