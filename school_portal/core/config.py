"""Application configuration settings."""

from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "School Portal"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Collection store
    DATABASE_URL: str = "sqlite:///school_portal.db"
    STORE_QUOTA_BYTES: int = 5 * 1024 * 1024

    # Finance
    DEFAULT_TERM_FEE: int = 15000

    # Academic calendar
    CURRENT_TERM: int = 1
    CURRENT_YEAR: int = 2024
    DEFAULT_TOTAL_DAYS: int = 70
    DEFAULT_DAYS_PRESENT: int = 68

    # School identity printed on report cards
    SCHOOL_NAME: str = "ST. PETERS CBC ACADEMY"
    SCHOOL_MOTTO: str = "Knowledge is Light"
    SCHOOL_BOX: str = "P.O. BOX 12345-00100, Nairobi"
    SCHOOL_EMAIL: str = "info@stpeters.edu.ke"
    SCHOOL_PHONE: str = "+254 700 123 456"
    SCHOOL_LOGO: str = "https://picsum.photos/id/119/200/200"

    # Remark generation (Gemini)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"
    REMARK_TIMEOUT_SECONDS: float = 20.0

    @field_validator("CURRENT_TERM")
    @classmethod
    def validate_term(cls, v: Any) -> Any:
        if not 1 <= int(v) <= 3:
            raise ValueError("CURRENT_TERM must be 1, 2 or 3")
        return v

    @property
    def is_sqlite(self) -> bool:
        """Whether the collection store runs on SQLite."""
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
