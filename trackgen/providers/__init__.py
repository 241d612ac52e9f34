"""Music and image generation adapters."""

from trackgen.config import get_settings
from trackgen.providers.base import ImageProvider, MusicProvider
from trackgen.providers.image import ImagenClient, build_artwork_prompt
from trackgen.providers.music import SunoClient, mood_description, style_tags_for


def get_music_provider() -> SunoClient:
    settings = get_settings()
    return SunoClient(
        api_key=settings.suno_api_key,
        base_url=settings.suno_api_base,
        callback_url=settings.suno_callback_url,
        default_model=settings.suno_model,
    )


def get_image_provider() -> ImagenClient | None:
    """Imagen client, or None when cover generation is disabled."""
    settings = get_settings()
    if not settings.trackgen_image_enabled:
        return None
    return ImagenClient(api_key=settings.gemini_api_key, model=settings.trackgen_imagen_model)


__all__ = [
    "ImageProvider",
    "ImagenClient",
    "MusicProvider",
    "SunoClient",
    "build_artwork_prompt",
    "get_image_provider",
    "get_music_provider",
    "mood_description",
    "style_tags_for",
]
