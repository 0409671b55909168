"""Client configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # Client Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # CRM REST service
    API_BASE_URL: str = "http://localhost:8080"
    API_TOKEN: str = ""  # Bearer token; extraction from cookies happens upstream
    HTTP_TIMEOUT_SECONDS: float = 10.0
    HTTP_CONNECT_TIMEOUT_SECONDS: float = 5.0

    # Local preference store (field visibility, panel layout, pinned records)
    PREFERENCES_DATABASE_URL: str = "sqlite:///recordview_prefs.db"

    # Reference search
    SEARCH_MIN_QUERY_LENGTH: int = 2
    SEARCH_MAX_RESULTS: int = 10

    # Summary panels
    RECENT_NOTES_LIMIT: int = 2

    # Logging / error tracking (CLI only)
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str = ""

    @property
    def api_base_url(self) -> str:
        """Base URL without a trailing slash."""
        return self.API_BASE_URL.rstrip("/")

    @property
    def is_dev(self) -> bool:
        return self.ENV == "dev"


settings = Settings()
