from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = "dev"
    database_url: str = "sqlite:///./taskmaster.db"
    db_auto_migrate: bool = False

    # Optional shared bearer token checked in front of the X-User-Id header.
    local_auth_token: str = ""

    cors_origins: str = ""
    log_level: str = "INFO"

    search_limit: int = 20

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
