"""Title pool: per-category queue of unused titles, consumed oldest first."""

from __future__ import annotations

import logging
from typing import Callable

from trackgen.schemas.models import TitleEntry, TitlePoolStatus, utcnow
from trackgen.store.base import GenerationStore
from trackgen.titles.prompts import build_titles_prompt, parse_titles

logger = logging.getLogger(__name__)

# Below this many unused titles the pool asks for a refill
LOW_WATER_MARK = 10


class TitlePool:
    def __init__(
        self,
        store: GenerationStore,
        text_provider_factory: Callable[[], object] | None = None,
    ):
        self.store = store
        self._text_provider_factory = text_provider_factory

    def reserve(self, category: str, count: int) -> list[TitleEntry]:
        """Up to ``count`` unused entries, oldest first. Nothing is marked used."""
        if count <= 0:
            return []
        return self.store.unused_titles(category, limit=count)

    def mark_used(self, category: str, identifiers: list[str]) -> int:
        """Flip entries whose primary or secondary text matches. Idempotent."""
        identifiers = [i for i in identifiers if i]
        changed = self.store.mark_titles_used(category, identifiers, utcnow())
        logger.info("Marked %d title(s) used in %s", changed, category)
        return changed

    def append(self, category: str, entries: list[TitleEntry]) -> int:
        """Add entries, skipping exact duplicates of existing primary text."""
        seen = self.store.existing_primaries(category)
        fresh = []
        for entry in entries:
            if entry.primary in seen:
                continue
            seen.add(entry.primary)
            fresh.append(entry)
        added = self.store.insert_titles(category, fresh, utcnow())
        logger.info("Appended %d of %d title(s) to %s", added, len(entries), category)
        return added

    def reset_used(self, category: str) -> int:
        return self.store.reset_titles(category)

    def clear(self, category: str) -> int:
        return self.store.delete_titles(category)

    def status(self, category: str, include_titles: bool = False) -> TitlePoolStatus:
        available, total = self.store.count_titles(category)
        return TitlePoolStatus(
            category=category,
            available=available,
            total=total,
            needs_generation=available < LOW_WATER_MARK,
            generated_at=self.store.pool_generated_at(category),
            titles=self.store.unused_titles(category) if include_titles else [],
        )

    def generate(self, category: str, mood: str = "calm", style: str = "piano", count: int = 50) -> int:
        """Ask the text provider for a batch of titles and append the parsed result."""
        if self._text_provider_factory is None:
            from trackgen.llm import get_provider

            provider = get_provider()
        else:
            provider = self._text_provider_factory()
        prompt = build_titles_prompt(category, mood, style, count)
        text = provider.complete(prompt, temperature=0.9)
        parsed = parse_titles(text)
        logger.info("Parsed %d title(s) from text provider for %s", len(parsed), category)
        return self.append(category, parsed)
