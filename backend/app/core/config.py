"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DEV_API_KEY = "dev-secret-key"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "WellFin AI Agent API"
    app_version: str = "2.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "text"
    api_prefix: str = "/api/v1"
    port: int = 8080
    cors_allow_origins: list[str] = ["*"]

    # Shared secrets accepted in the X-API-Key header. Set DEV_API_KEY to an
    # empty string to disable the development default.
    wellfin_api_key: str | None = None
    dev_token: str | None = None
    api_key: str | None = None
    dev_api_key: str | None = DEFAULT_DEV_API_KEY

    google_cloud_project: str | None = None
    vertex_ai_location: str = "asia-northeast1"
    google_application_credentials: str | None = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_temperature: float = 0.1
    gemini_top_p: float = 0.8
    gemini_max_output_tokens: int = 1024
    response_preview_chars: int = 100

    # Planning defaults shared by the normalizers and the fallback engine.
    default_task_duration_min: int = 60
    default_schedule_hour: int = 9
    fallback_earliest_hour: int = 6
    fallback_latest_hour: int = 22
    schedule_timezone: str = "UTC"
    subtask_threshold_min: int = 120
    workday_minutes: int = 480
    baseline_efficiency: float = 0.7
    history_prompt_limit: int = 5
    default_work_style: str = "balanced"
    default_completion_rate: float = 0.8
    recommendation_improvement_floor: int = 15
    default_recommendation_timeframe: str = "1 week"

    database_url: str = "sqlite:///./wellfin.db"
    database_create_tables: bool = False

    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "wellfin-ai"

    notifications_provider: str = "fcm"
    firebase_credentials_path: str | None = None
    notification_history_page_size: int = 50

    @property
    def valid_api_keys(self) -> list[str]:
        """Configured API keys, in precedence order, without blanks."""
        candidates = (self.wellfin_api_key, self.dev_token, self.api_key, self.dev_api_key)
        return [key for key in candidates if key]


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
