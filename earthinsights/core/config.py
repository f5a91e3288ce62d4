# earthinsights/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from pathlib import Path

class Settings(BaseSettings):
    app_name: str = Field(default="Earth Insights API", alias="APP_NAME")
    app_env: str = Field(default="dev", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Keys
    nasa_api_key:          str | None = Field(default=None, alias="NASA_API_KEY")
    openai_api_key:        str | None = Field(default=None, alias="OPENAI_API_KEY")
    google_vision_api_key: str | None = Field(default=None, alias="GOOGLE_VISION_API_KEY")
    gnews_api_key:         str | None = Field(default=None, alias="GNEWS_API_KEY")

    # Email delivery
    smtp_host:     str = Field(default="smtp.gmail.com", alias="SMTP_HOST")
    smtp_port:     int = Field(default=587, alias="SMTP_PORT")
    smtp_username: str | None = Field(default=None, alias="SMTP_USERNAME")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    sender_email:  str | None = Field(default=None, alias="SENDER_EMAIL")

    # Bases
    nasa_base:          str = Field(default="https://api.nasa.gov", alias="NASA_BASE")
    epic_archive_base:  str = Field(default="https://epic.gsfc.nasa.gov/archive/natural", alias="EPIC_ARCHIVE_BASE")
    open_meteo_archive: str = Field(default="https://archive-api.open-meteo.com/v1/archive", alias="OPEN_METEO_ARCHIVE")
    gnews_base:         str = Field(default="https://gnews.io/api/v4", alias="GNEWS_BASE")
    vision_base:        str = Field(default="https://vision.googleapis.com/v1", alias="VISION_BASE")

    # Language model
    openai_model:        str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_vision_model: str = Field(default="gpt-4o", alias="OPENAI_VISION_MODEL")
    openai_max_retries:  int = Field(default=2, alias="OPENAI_MAX_RETRIES")

    # Timeouts (seconds) and sampling, tuned per source
    satellite_attempt_timeout: float = Field(default=10.0, alias="SATELLITE_ATTEMPT_TIMEOUT")
    recent_scan_timeout:       float = Field(default=5.0, alias="RECENT_SCAN_TIMEOUT")
    recent_scan_days:          int = Field(default=30, alias="RECENT_SCAN_DAYS")
    satellite_max_samples:     int = Field(default=10, alias="SATELLITE_MAX_SAMPLES")
    weather_timeout:           float = Field(default=15.0, alias="WEATHER_TIMEOUT")
    news_timeout:              float = Field(default=8.0, alias="NEWS_TIMEOUT")
    historical_timeout:        float = Field(default=15.0, alias="HISTORICAL_TIMEOUT")
    historical_max_days:       int = Field(default=30, alias="HISTORICAL_MAX_DAYS")
    vision_timeout:            float = Field(default=20.0, alias="VISION_TIMEOUT")
    llm_timeout:               float = Field(default=60.0, alias="LLM_TIMEOUT")

    # Request budgets (seconds)
    search_budget:      float = Field(default=60.0, alias="SEARCH_BUDGET")
    time_travel_budget: float = Field(default=45.0, alias="TIME_TRAVEL_BUDGET")
    context_budget:     float = Field(default=30.0, alias="CONTEXT_BUDGET")
    deadline_grace:     float = Field(default=2.0, alias="DEADLINE_GRACE")

    max_targets: int = Field(default=10, alias="MAX_TARGETS")

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[1] / ".env"),  # earthinsights/.env
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=("settings_",)
    )

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_username and self.smtp_password and self.sender_email)

settings = Settings()
