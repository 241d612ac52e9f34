"""Tests for the title pool and the title line parser."""

from trackgen.schemas.models import TitleEntry
from trackgen.titles.pool import LOW_WATER_MARK, TitlePool
from trackgen.titles.prompts import build_titles_prompt, parse_titles

from conftest import SAMPLE_TITLES, FakeText


def _entries(n, prefix="Title"):
    return [TitleEntry(primary=f"{prefix} {chr(65 + i)}", secondary=f"Secondary {chr(65 + i)}") for i in range(n)]


class TestReserveAndMarkUsed:
    def test_reserve_is_oldest_first_and_does_not_consume(self, store):
        pool = TitlePool(store)
        pool.append("healing", _entries(5))

        first = pool.reserve("healing", 2)
        again = pool.reserve("healing", 2)

        assert [e.primary for e in first] == ["Title A", "Title B"]
        assert [e.primary for e in again] == ["Title A", "Title B"]
        assert pool.status("healing").available == 5

    def test_reservations_disjoint_after_mark_used(self, store):
        pool = TitlePool(store)
        pool.append("healing", _entries(5))

        first = pool.reserve("healing", 2)
        pool.mark_used("healing", [e.display for e in first])
        second = pool.reserve("healing", 3)

        assert {e.primary for e in first}.isdisjoint({e.primary for e in second})
        assert [e.primary for e in second] == ["Title C", "Title D", "Title E"]

    def test_shortfall_returns_what_is_left(self, store):
        pool = TitlePool(store)
        pool.append("healing", _entries(1))
        assert len(pool.reserve("healing", 2)) == 1

    def test_mark_used_idempotent(self, store):
        pool = TitlePool(store)
        pool.append("healing", _entries(3))

        assert pool.mark_used("healing", ["Title A"]) == 1
        assert pool.mark_used("healing", ["Title A"]) == 0
        assert pool.status("healing").available == 2

    def test_mark_used_matches_secondary_text(self, store):
        pool = TitlePool(store)
        pool.append("healing", _entries(2))
        assert pool.mark_used("healing", ["Secondary B"]) == 1
        assert [e.primary for e in pool.reserve("healing", 5)] == ["Title A"]

    def test_unknown_identifier_is_ignored(self, store):
        pool = TitlePool(store)
        pool.append("healing", _entries(2))
        assert pool.mark_used("healing", ["nope", ""]) == 0

    def test_categories_are_separate(self, store):
        pool = TitlePool(store)
        pool.append("healing", _entries(2))
        pool.append("sleep", _entries(2))
        pool.mark_used("healing", ["Title A"])
        assert pool.status("sleep").available == 2


class TestAppendResetClear:
    def test_append_skips_duplicate_primaries(self, store):
        pool = TitlePool(store)
        assert pool.append("healing", _entries(3)) == 3
        batch = _entries(4) + [TitleEntry(primary="Fresh"), TitleEntry(primary="Fresh")]
        assert pool.append("healing", batch) == 2
        assert pool.status("healing").total == 5

    def test_reset_used(self, store):
        pool = TitlePool(store)
        pool.append("healing", _entries(3))
        pool.mark_used("healing", ["Title A", "Title B"])
        pool.reset_used("healing")
        assert pool.status("healing").available == 3

    def test_clear(self, store):
        pool = TitlePool(store)
        pool.append("healing", _entries(3))
        assert pool.clear("healing") == 3
        status = pool.status("healing")
        assert status.total == 0
        assert status.generated_at is None


class TestStatus:
    def test_needs_generation_below_low_water_mark(self, store):
        pool = TitlePool(store)
        pool.append("healing", [TitleEntry(primary=f"T{chr(65 + i)}") for i in range(LOW_WATER_MARK - 1)])
        assert pool.status("healing").needs_generation is True

        pool.append("healing", [TitleEntry(primary="One more")])
        status = pool.status("healing")
        assert status.available == LOW_WATER_MARK
        assert status.needs_generation is False
        assert status.generated_at is not None

    def test_include_titles(self, store):
        pool = TitlePool(store)
        pool.append("healing", _entries(2))
        assert pool.status("healing").titles == []
        assert len(pool.status("healing", include_titles=True).titles) == 2


class TestParseTitles:
    def test_parses_three_parts(self):
        entries = parse_titles("달빛이 머무는 곳 | Where Moonlight Rests | 달빛, 고요함")
        assert entries[0].primary == "달빛이 머무는 곳"
        assert entries[0].secondary == "Where Moonlight Rests"
        assert entries[0].keywords == "달빛, 고요함"

    def test_strips_numbering_and_defaults_keywords(self):
        entries = parse_titles("1. 안개 속 피아노 | Piano in the Mist")
        assert entries[0].primary == "안개 속 피아노"
        assert entries[0].keywords == "안개 속 피아노"

    def test_drops_noise(self):
        text = "\n".join(
            [
                "Here are your titles:",
                "힐링 음악 1 | Healing Music 1 | 힐링",
                "수면 음악 | Sleep Music | 수면",
                "별 3개 | Three Stars | 별",
                "파도의 자장가 | Lullaby of Waves | 파도, 자장가",
            ]
        )
        assert [e.secondary for e in parse_titles(text)] == ["Lullaby of Waves"]

    def test_empty(self):
        assert parse_titles("") == []

    def test_prompt_mentions_count_and_theme(self):
        prompt = build_titles_prompt("sleep", "dreamy", "piano", 30)
        assert "30" in prompt
        assert "lullaby" in prompt


class TestGenerate:
    def test_generate_appends_parsed_titles(self, store):
        text = "\n".join(f"{p} | {s} | {k}" for p, s, k in SAMPLE_TITLES)
        provider = FakeText(text)
        pool = TitlePool(store, text_provider_factory=lambda: provider)

        assert pool.generate("healing", "calm", "piano", count=6) == len(SAMPLE_TITLES)
        assert "exactly 6 titles" in provider.prompts[0]
        # A second batch with the same titles adds nothing
        assert pool.generate("healing") == 0
