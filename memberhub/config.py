"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent
PROJECT_DIR = BASE_DIR.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "MemberHub"
    app_env: Literal["development", "staging", "production"] = "development"
    app_secret_key: str
    app_base_url: str = "http://localhost:8000"
    app_debug: bool = False
    app_log_level: str = "INFO"

    # Database
    database_url: str
    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_dump_command: str = "pg_dump"

    # JWT Authentication
    jwt_secret_key: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 1440  # 24 hours
    csrf_token_expire_minutes: int = 120

    # Email (fallback defaults, transport config is stored per organization)
    email_from_address: str = "noreply@memberhub.local"
    email_from_name: str = "MemberHub"

    # File system layout
    themes_dir: Path = BASE_DIR / "themes"
    languages_dir: Path = PROJECT_DIR / "translations"
    data_dir: Path = PROJECT_DIR / "data"

    # Defaults
    default_language: str = "en"
    supported_languages: str = "en,de"

    @property
    def effective_jwt_secret(self) -> str:
        """Get the JWT secret key, falling back to app secret key."""
        return self.jwt_secret_key or self.app_secret_key

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def database_engine(self) -> str:
        """Get the database backend name (e.g. 'postgresql', 'sqlite')."""
        scheme = self.database_url.split(":", 1)[0]
        return scheme.split("+", 1)[0]

    @property
    def sync_database_url(self) -> str:
        """Get database URL without an async driver for Alembic and pg_dump."""
        url = self.database_url
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        for driver in ("+asyncpg", "+aiosqlite"):
            if driver in url:
                url = url.replace(driver, "", 1)
        return url

    @property
    def supported_languages_list(self) -> list[str]:
        """Get supported languages as a list."""
        return [lang.strip() for lang in self.supported_languages.split(",")]

    @property
    def mail_templates_dir(self) -> Path:
        return self.data_dir / "mail_templates"

    @property
    def ecard_templates_dir(self) -> Path:
        return self.data_dir / "ecard_templates"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
