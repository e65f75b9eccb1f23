from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    app_name: str = "TripWeather"
    app_version: str = "0.1.0"
    app_env: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Caching: "auto" picks redis when redis_url is set, memory otherwise
    cache_backend: str = "auto"
    redis_url: Optional[str] = None

    # Upstream providers
    openweather_key: Optional[str] = None
    accuweather_key: Optional[str] = None
    tomorrow_key: Optional[str] = None
    openweather_base_url: str = "https://api.openweathermap.org"
    accuweather_base_url: str = "http://dataservice.accuweather.com"
    tomorrow_base_url: str = "https://api.tomorrow.io"

    http_timeout_s: float = 10.0
    retry_attempts: int = 3
    retry_base_delay_s: float = 1.0

    # .env support and prefix for clarity
    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
