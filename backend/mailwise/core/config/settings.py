"""Application settings loaded from environment variables."""

from typing import Optional

from pydantic import PostgresDsn, computed_field, field_validator
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

from mailwise.core.config.enums import Environment, UsageStoreBackendType


class Settings(BaseSettings):
    """Settings for the Mailwise backend.

    Values are read from the process environment first, then from a local
    ``.env`` file. Field names are upper-case to match the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "Mailwise"
    ENVIRONMENT: Environment = Environment.LOCAL
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "mailwise"
    POSTGRES_PASSWORD: str = "mailwise"
    POSTGRES_DB: str = "mailwise"
    POSTGRES_SSLMODE: Optional[str] = None
    db_pool_size: int = 20
    db_pool_max_overflow: int = 40

    # Usage metering
    USAGE_STORE_BACKEND: UsageStoreBackendType = UsageStoreBackendType.POSTGRES
    USAGE_TX_MAX_ATTEMPTS: int = 5

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("USAGE_TX_MAX_ATTEMPTS")
    @classmethod
    def _positive_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("USAGE_TX_MAX_ATTEMPTS must be at least 1")
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_ASYNC_DATABASE_URI(self) -> PostgresDsn:
        """Async SQLAlchemy connection URI built from the POSTGRES_* fields."""
        return MultiHostUrl.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )
