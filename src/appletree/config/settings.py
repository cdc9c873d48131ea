from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import to_uppercase, to_lowercase


class Settings(BaseSettings):
    """
    Application settings loaded from environment.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Database configuration
    POSTGRES_DRIVER: Literal["psycopg", "asyncpg"] = "psycopg"
    POSTGRES_USERNAME: str = "appletree"
    POSTGRES_PASSWORD: str = "appletree"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "appletree"

    # Test database configuration
    TEST_POSTGRES_DB: str | None = None
    TESTING: bool = False

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False

    # Every repository statement is cancelled after this many seconds
    DB_QUERY_TIMEOUT: float = Field(default=3.0, gt=0)

    # Listing defaults
    DEFAULT_PAGE_SIZE: int = Field(default=20, ge=1, le=100)

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/appletree")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> str:
        """
        Build the SQLAlchemy async URL.

        When `TESTING` is on and `TEST_POSTGRES_DB` is set, the test database name
        replaces `POSTGRES_DB` so test runs never touch the real schools table.
        """
        database = self.POSTGRES_DB
        if self.TESTING and self.TEST_POSTGRES_DB:
            database = self.TEST_POSTGRES_DB

        return (
            f"postgresql+{self.POSTGRES_DRIVER}://"
            f"{self.POSTGRES_USERNAME}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{database}"
        )

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | None) -> str | None:
        # logging expects upper-case level names ("DEBUG", "INFO", ...)
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", "ENV", mode="before")
    @classmethod
    def normalize_lowercase(cls, v: str | None) -> str | None:
        return to_lowercase(v)

    model_config = SettingsConfigDict(
        # .env sits next to the package root (src/appletree/.env)
        env_file=str(Path(__file__).parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Settings are read once per process; tests call get_settings.cache_clear()
# after patching the environment.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
