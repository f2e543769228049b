"""Application settings loaded from the environment."""

from typing import Optional

from pydantic import PostgresDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from formwise.core.config.enums import Environment


class Settings(BaseSettings):
    """Formwise backend settings.

    Values come from environment variables, falling back to a ``.env`` file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=False)

    ENVIRONMENT: Environment = Environment.LOCAL
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "formwise"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "formwise"
    POSTGRES_SSLMODE: Optional[str] = None

    db_pool_size: int = 20
    db_pool_max_overflow: int = 40

    # Usage accounting
    USAGE_LAZY_ROLLOVER: bool = True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_ASYNC_DATABASE_URI(self) -> PostgresDsn:
        """Async SQLAlchemy connection string (asyncpg driver)."""
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD or None,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )
