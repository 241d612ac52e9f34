"""OpenAI text completion."""

from typing import Any

from openai import OpenAI


class OpenAIProvider:
    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
    ):
        self._client = OpenAI(api_key=api_key)
        self._model = model

    def complete(self, prompt: str, **kwargs: Any) -> str:
        messages = []
        if kwargs.get("system"):
            messages.append({"role": "system", "content": kwargs["system"]})
        messages.append({"role": "user", "content": prompt})
        options = {k: kwargs[k] for k in ("temperature", "max_tokens") if kwargs.get(k) is not None}
        # Errors (RateLimitError, APIStatusError) propagate to the caller
        response = self._client.chat.completions.create(
            model=kwargs.get("model") or self._model,
            messages=messages,
            **options,
        )
        return response.choices[0].message.content or ""
