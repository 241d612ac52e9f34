"""Text adapter layer: OpenAI, Anthropic and Gemini behind a common protocol."""

from trackgen.config import get_settings
from trackgen.errors import ProviderUnavailable
from trackgen.llm.anthropic_provider import AnthropicProvider
from trackgen.llm.base import TextProvider
from trackgen.llm.gemini_provider import GeminiProvider
from trackgen.llm.openai_provider import OpenAIProvider


def get_provider(provider_name: str | None = None, **kwargs: object) -> TextProvider:
    """Return a text provider. provider_name: 'openai' | 'anthropic' | 'gemini'.

    Key and model default to settings; a missing key raises ProviderUnavailable.
    """
    settings = get_settings()
    name = (provider_name or settings.trackgen_text_provider).lower()
    api_key = kwargs.pop("api_key", None) or settings.text_api_key(name)
    if not api_key:
        raise ProviderUnavailable(name)
    model = kwargs.pop("model", None) or settings.text_model(name)
    if name == "anthropic":
        return AnthropicProvider(api_key=api_key, model=model, **kwargs)
    if name == "gemini":
        return GeminiProvider(api_key=api_key, model=model, **kwargs)
    return OpenAIProvider(api_key=api_key, model=model, **kwargs)


__all__ = ["TextProvider", "OpenAIProvider", "AnthropicProvider", "GeminiProvider", "get_provider"]
