"""Text provider protocol."""

from typing import Any, Protocol


class TextProvider(Protocol):
    """Protocol for text backends (OpenAI, Anthropic, Gemini). Output is free text."""

    def complete(self, prompt: str, **kwargs: Any) -> str:
        """Return raw text completion."""
        ...
