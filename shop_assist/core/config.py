from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Shop Assist API"
    app_env: str = "dev"
    log_level: str = "INFO"
    secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    database_url: str = "sqlite+aiosqlite:///./shop_assist.db"
    db_auto_create: bool = False
    cors_allow_origins: str = "http://localhost:3000"
    invitation_ttl_days: int = 7
    app_url: str = "http://localhost:3000"
    loops_api_key: str | None = None
    loops_api_url: str = "https://app.loops.so/api/v1/transactional"
    loops_invitation_template_id: str = "family-invitation"
    email_timeout_seconds: float = 10.0

    @property
    def cors_origins(self) -> list[str]:
        return [x.strip() for x in self.cors_allow_origins.split(",") if x.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
