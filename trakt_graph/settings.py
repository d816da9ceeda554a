from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    Enum-like values (week start, theme, content type, color scheme) are kept
    as plain strings; unknown values fall back to defaults where they are used.
    """

    trakt_api_key: str | None = None
    trakt_api_base_url: str = "https://api.trakt.tv"
    trakt_logo_url: str | None = (
        "https://trakt.tv/assets/logos/logomark.square.gradient-"
        "b644b16c38ff775861b4b1f58c1230f6a097a2466ab33ae00445a505c33fcb91.svg"
    )
    history_page_size: int = 100
    history_page_delay_seconds: float = 0.5

    week_start: str = "sunday"
    theme: str = "dark"
    content_type: str = "all"
    color_scheme: str = "linear"
    username_gradient: bool = True
    fonts_dir: str | None = None
    timezone: str | None = None

    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 30
    rate_limit_window_seconds: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
