from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
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
    DATABASE_URL: str = "sqlite+aiosqlite:///./common_repository.db"

    # Test database configuration
    TEST_DATABASE_URL: str | None = None
    TESTING: bool = False

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/common-repository")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # --- Derived settings ---
    @property
    def database_url(self) -> str:
        """
        Return the database URL the engine should connect to.

        When `TESTING=True` and `TEST_DATABASE_URL` is provided, the test database is
        used so test runs never touch the regular database.
        """
        if self.TESTING and self.TEST_DATABASE_URL:
            return self.TEST_DATABASE_URL
        return self.DATABASE_URL

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize the LOG_LEVEL environment variable value to uppercase.

        The logging module expects level names in uppercase ("DEBUG", "INFO"),
        so "debug" in the environment is accepted as well.
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", mode="before")
    def normalize_log_format(cls, v: str | None) -> str | None:
        return to_lowercase(v)

    # Load environment variables from the .env file next to the package
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

# get_settings() takes no arguments and always returns the same settings from the environment,
# so it is cached with @lru_cache(). Call get_settings.cache_clear() after changing the environment.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
