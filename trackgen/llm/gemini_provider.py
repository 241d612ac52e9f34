"""Gemini text completion via google-genai."""

from typing import Any

from google import genai
from google.genai import types


class GeminiProvider:
    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gemini-2.0-flash",
    ):
        self._client = genai.Client(api_key=api_key)
        self._model = model

    def complete(self, prompt: str, **kwargs: Any) -> str:
        config = None
        if any(k in kwargs for k in ("system", "temperature", "max_tokens")):
            config = types.GenerateContentConfig(
                system_instruction=kwargs.get("system"),
                temperature=kwargs.get("temperature"),
                max_output_tokens=kwargs.get("max_tokens"),
            )
        response = self._client.models.generate_content(
            model=kwargs.get("model") or self._model,
            contents=prompt,
            config=config,
        )
        return response.text or ""
