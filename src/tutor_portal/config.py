"""Portal settings loaded from the environment."""
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = str(Path.home() / ".tutor_portal" / "portal.db")


class Settings(BaseSettings):
    """Settings read from ``TUTOR_*`` environment variables or ``.env``."""

    # Identity that may open the /admin tools; everyone else is a student.
    ADMIN_EMAIL: str = "admin@example.com"
    DB_PATH: str = DEFAULT_DB_PATH
    LOG_LEVEL: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="TUTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
