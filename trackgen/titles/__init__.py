from trackgen.titles.pool import LOW_WATER_MARK, TitlePool
from trackgen.titles.prompts import build_titles_prompt, parse_titles

__all__ = ["LOW_WATER_MARK", "TitlePool", "build_titles_prompt", "parse_titles"]
