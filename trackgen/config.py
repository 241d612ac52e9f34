"""Configuration loaded from environment (.env) and defaults."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Locate the project root .env file regardless of CWD
# (backend/ vs project root vs anywhere else)
_THIS_DIR = Path(__file__).resolve().parent          # trackgen/
_PROJECT_ROOT = _THIS_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Text provider for titles / lyrics: openai | anthropic | gemini
    trackgen_text_provider: str = "openai"

    # OpenAI
    openai_api_key: str | None = None
    trackgen_openai_model: str = "gpt-4o-mini"

    # Anthropic
    anthropic_api_key: str | None = None
    trackgen_anthropic_model: str = "claude-3-haiku-20240307"

    # Gemini (text completion and Imagen cover art share the key)
    gemini_api_key: str | None = None
    trackgen_gemini_model: str = "gemini-2.0-flash"
    trackgen_imagen_model: str = "imagen-4.0-generate-preview-06-06"
    trackgen_image_enabled: bool = True

    # Suno music provider
    suno_api_key: str | None = None
    suno_api_base: str = "https://api.sunoapi.org/api/v1"
    suno_callback_url: str = "https://example.com/api/callback"
    suno_model: str = "V5"

    # Data directory: SQLite stores, media files, presets
    trackgen_data_dir: str = "./data"

    # Postgres URL for the generation store; SQLite under data dir when unset
    trackgen_database_url: str | None = None

    # Public URL prefix for files written to the media directory
    trackgen_media_base_url: str = "/media"

    # Optional explicit presets file (defaults to <data_dir>/presets.yaml)
    trackgen_presets_path: str | None = None

    # Wall-clock timezone for schedule run times
    trackgen_timezone: str = "UTC"

    # Title pool category used by scheduled runs
    trackgen_title_category: str = "healing"

    # Lease held on a schedule while a tick executes it
    trackgen_schedule_lease_seconds: int = 600

    # Default age for purging FAILED tasks
    trackgen_failed_task_retention_days: int = 30

    # Max tasks examined per poller pass
    trackgen_poll_batch_size: int = 10

    trackgen_log_level: str = "INFO"

    # CORS origins (comma-separated). Defaults to localhost dev.
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Server port
    port: int = 8000

    @property
    def data_dir(self) -> Path:
        """Get data directory as Path.

        Relative paths are resolved against the project root (not CWD),
        so the backend works whether started from project root or backend/.
        """
        p = Path(self.trackgen_data_dir)
        if not p.is_absolute():
            return (_PROJECT_ROOT / p).resolve()
        return p.resolve()

    @property
    def media_dir(self) -> Path:
        """Root for saved audio and cover files."""
        return self.data_dir / "media"

    @property
    def sqlite_path(self) -> Path:
        return self.data_dir / "trackgen.db"

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / "catalog.db"

    @property
    def presets_path(self) -> Path:
        if self.trackgen_presets_path:
            return Path(self.trackgen_presets_path).resolve()
        return self.data_dir / "presets.yaml"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def text_api_key(self, provider: str | None = None) -> str | None:
        """API key for the given (or configured) text provider."""
        name = (provider or self.trackgen_text_provider).lower()
        if name == "anthropic":
            return self.anthropic_api_key
        if name == "gemini":
            return self.gemini_api_key
        return self.openai_api_key

    def text_model(self, provider: str | None = None) -> str:
        name = (provider or self.trackgen_text_provider).lower()
        if name == "anthropic":
            return self.trackgen_anthropic_model
        if name == "gemini":
            return self.trackgen_gemini_model
        return self.trackgen_openai_model

    def ensure_dirs(self) -> None:
        """Ensure all data directories exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.media_dir.mkdir(parents=True, exist_ok=True)


def get_settings() -> Settings:
    settings = Settings()
    settings.ensure_dirs()
    return settings
