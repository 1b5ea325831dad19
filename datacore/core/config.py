# datacore/core/config.py
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///:memory:"  # = DATACORE_DATABASE_URL

    default_page_limit: int = Field(default=10, ge=1)
    max_page_limit: int = Field(default=100, ge=1)

    retry_max_attempts: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=1.0, ge=0.0)
    retry_backoff_factor: float = Field(default=2.0, ge=1.0)

    # Replaces 5xx messages in client-facing responses
    generic_error_message: str = "Internal server error"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DATACORE_",
        extra="ignore",
    )


settings = Settings()
