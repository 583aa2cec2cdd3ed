"""Application configuration."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings for the lead-capture backend."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "local"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./homelead.db"
    redis_url: str = "redis://localhost:6379/0"
    cors_origins: list[str] = ["http://localhost:5173"]

    rate_limit_requests: int = 60
    rate_limit_window_seconds: int = 60
    rate_limit_trusted_proxies: list[str] = ["127.0.0.1/32"]
    rate_limit_ip_headers: list[str] = ["x-forwarded-for", "x-real-ip"]
    rate_limit_proxy_secret: str = ""

    admin_api_key: str = ""

    session_ttl_hours: int = 24
    enquiry_prompt_interval_seconds: float = 30.0
    session_read_failure_policy: Literal["insert", "defer"] = "insert"

    notification_limit: int = 1
    notification_remove_delay_ms: int = 1_000_000


settings = Settings()
