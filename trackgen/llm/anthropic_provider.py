"""Anthropic text completion (Messages API)."""

from typing import Any

from anthropic import Anthropic


class AnthropicProvider:
    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-3-haiku-20240307",
        max_tokens: int = 4096,
    ):
        self._client = Anthropic(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens

    def complete(self, prompt: str, **kwargs: Any) -> str:
        params: dict[str, Any] = {
            "model": kwargs.get("model") or self._model,
            "max_tokens": kwargs.get("max_tokens") or self._max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if kwargs.get("system"):
            params["system"] = kwargs["system"]
        if kwargs.get("temperature") is not None:
            params["temperature"] = kwargs["temperature"]
        response = self._client.messages.create(**params)
        # A long title batch can come back split over several text blocks
        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
