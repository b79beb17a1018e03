from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Grid routes are open when unset.
    api_key: str | None = None

    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"

    grid_ai_enabled: bool = True
    grid_ai_timeout_seconds: float = 60.0
    grid_ai_max_chars: int = 12000

    max_upload_bytes: int = 50 * 1024 * 1024


settings = Settings()
