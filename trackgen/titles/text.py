"""Ad hoc text generation for the admin: titles, lyrics, keyword themes, music prompts.

Each kind has its own prompt; ``title`` and ``keywords`` output is also parsed
into lists. Pool refills go through :mod:`trackgen.titles.pool` instead.
"""

from __future__ import annotations

import logging
import random
from typing import Any

from trackgen.schemas.models import GeneratedText, TextKind
from trackgen.schemas.requests import TextGenerateRequest
from trackgen.titles.prompts import CATEGORY_THEMES, MOOD_WORDS, STYLE_WORDS, parse_titles

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a creative assistant specializing in Korean healing music content."
TEMPERATURE = 0.8
MAX_TOKENS = 1000

MOOD_ADJECTIVES: dict[str, list[str]] = {
    "calm": ["serene", "peaceful", "tranquil", "gentle", "soothing"],
    "energetic": ["uplifting", "vibrant", "dynamic", "bright", "refreshing"],
    "dreamy": ["ethereal", "floating", "mystical", "otherworldly", "enchanting"],
    "focus": ["clear", "steady", "flowing", "focused", "ambient"],
    "melancholy": ["wistful", "nostalgic", "bittersweet", "tender", "emotional"],
    "uplifting": ["hopeful", "inspiring", "warm", "encouraging", "positive"],
}

STYLE_ELEMENTS: dict[str, str] = {
    "piano": "gentle piano melodies with soft sustain, delicate arpeggios",
    "nature": "ambient soundscapes with subtle nature elements, organic textures",
    "meditation": "slow tempo, drone-like backgrounds, tibetan singing bowls, breath-like rhythms",
    "sleep": "extremely soft dynamics, minimal movement, lullaby-like progressions",
    "focus": "steady rhythmic patterns, clean tones, lo-fi beats",
    "cafe": "warm jazz chords, acoustic guitar, soft percussion",
    "classical": "string arrangements, orchestral swells, romantic harmonies",
    "lofi": "vinyl crackle, muted drums, nostalgic samples, warm bass",
}

MOOD_FEELINGS: dict[str, str] = {
    "melancholy": "gentle melancholy and reflection",
    "calm": "deep peace and tranquility",
    "dreamy": "dreamlike wonder and mystery",
}


def keywords_prompt(category: str, mood: str, style: str, count: int) -> str:
    theme = CATEGORY_THEMES.get(category, CATEGORY_THEMES["healing"])
    return f"""You plan creative themes for a healing and meditation music app.

Category: {category}
Mood: {MOOD_WORDS.get(mood, mood)}
Style: {STYLE_WORDS.get(style, style)}
Related themes: {theme}

Write {count} original, poetic theme sets for new tracks.

Requirements:
- Each theme set is 2-4 evocative keywords separated by commas
- Abstract word pairings that still suggest a sound
- Mix seasons, times of day, natural phenomena and feelings
- Write in Korean

Output one theme set per line, for example:
새벽 안개, 고요한 숲
달빛 아래 호수, 잔잔한 물결
봄날의 산책, 벚꽃 흩날림

Now write the {count} theme sets:"""


def title_prompt(keywords: str, mood: str, style: str, category: str, count: int) -> str:
    return f"""You name albums and tracks for world-class healing music,
at the level seen on Spotify or Apple Music.

Theme/keywords: {keywords}
Mood: {MOOD_WORDS.get(mood, mood)}
Style: {STYLE_WORDS.get(style, style)}
Category: {category}

Write {count} titles, each in Korean and English, one per line:

Korean title | English Title

Requirements:
- Poetic, metaphorical titles drawn from nature, feelings, time and place
- No digits and no literal phrases such as "힐링 음악" or "Healing Music"
- 2-5 words in each language

Good examples:
달빛이 머무는 곳 | Where Moonlight Rests
안개 속 피아노 | Piano in the Mist
비 내리는 창가에서 | By the Rainy Window

Now write the {count} titles:"""


def lyrics_prompt(keywords: str, mood: str, style: str, category: str) -> str:
    return f"""You are a lyricist for healing and meditation music.

Write peaceful, healing Korean lyrics based on the following:

Context:
- Theme/Keywords: {keywords}
- Mood: {mood}
- Style: {style}
- Category: {category}

Requirements:
- 2-3 verses of 4-6 lines each, with an optional chorus
- Simple, comforting words that convey peace, hope and healing
- Avoid complex metaphors
- Suitable for meditation or relaxation music

Format:
[Verse 1]
(lyrics here)

[Verse 2]
(lyrics here)

[Chorus] (optional)
(lyrics here)

Write the lyrics:"""


def music_prompt(
    title: str, keywords: str, mood: str, style: str, category: str, rng: random.Random | None = None
) -> str:
    adjectives = MOOD_ADJECTIVES.get(mood, MOOD_ADJECTIVES["calm"])
    elements = STYLE_ELEMENTS.get(style, STYLE_ELEMENTS["piano"])
    adjective = (rng or random).choice(adjectives)
    feeling = MOOD_FEELINGS.get(mood, "emotional warmth and comfort")
    return f"""Write a creative music generation prompt based on:
Title: {title}
Keywords: {keywords}
Mood: {mood}
Style: {style}
Category: {category}

Create a {adjective} {category} music piece inspired by "{title}".

Theme: {keywords}
Mood: {mood} - {', '.join(adjectives)}
Musical elements: {elements}

The composition should evoke feelings of {feeling}.

Return ONLY the music prompt text, nothing else."""


def build_prompt(request: TextGenerateRequest, rng: random.Random | None = None) -> str:
    if request.kind == TextKind.KEYWORDS:
        return keywords_prompt(request.category, request.mood, request.style, request.count)
    if request.kind == TextKind.TITLE:
        return title_prompt(request.keywords, request.mood, request.style, request.category, request.count)
    if request.kind == TextKind.LYRICS:
        return lyrics_prompt(request.keywords, request.mood, request.style, request.category)
    return music_prompt(request.title, request.keywords, request.mood, request.style, request.category, rng)


def parse_output(kind: TextKind, text: str, provider: str) -> GeneratedText:
    text = (text or "").strip()
    result = GeneratedText(kind=kind, provider=provider, text=text)
    if kind == TextKind.TITLE:
        result.titles = parse_titles(text)
    elif kind == TextKind.KEYWORDS:
        result.keywords = [line.strip() for line in text.splitlines() if line.strip()]
    return result


def generate_text(provider: Any, request: TextGenerateRequest, provider_name: str) -> GeneratedText:
    """One completion for ``request`` through ``provider`` (anything with ``complete``)."""
    prompt = build_prompt(request)
    text = provider.complete(prompt, system=SYSTEM_PROMPT, temperature=TEMPERATURE, max_tokens=MAX_TOKENS)
    result = parse_output(request.kind, text, provider_name)
    logger.info(
        "Generated %s text with %s (%d chars, %d titles, %d keyword sets)",
        request.kind.value, provider_name, len(result.text), len(result.titles), len(result.keywords),
    )
    return result
