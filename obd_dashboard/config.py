"""Configuration module for the OBD dashboard API.

Every field can be overridden with an environment variable of the same
name (case-insensitive) or a ``.env`` file in the working directory.
``DATABASE_URL`` takes precedence over the individual ``DB_*`` fields.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = {
        "env_prefix": "",
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # -- API metadata -------------------------------------------------------
    app_name: str = "OBD Diagnostic Dashboard API"
    app_version: str = "0.1.0"

    # -- database -----------------------------------------------------------
    db_host: str = "postgres"
    db_port: int = 5432
    db_name: str = "obd_dashboard"
    db_user: str = "obd_app_user"
    db_password: str = ""
    database_url_override: Optional[str] = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full SQLAlchemy URL; wins over the DB_* fields",
    )
    db_pool_size: int = Field(default=10, description="SQLAlchemy pool size")

    # -- security -----------------------------------------------------------
    secret_key: str = Field(
        default="change-me-in-production",
        description="HMAC key used to sign access tokens",
    )
    access_token_expire_minutes: int = 60 * 12

    # -- query cache --------------------------------------------------------
    query_cache_ttl_seconds: float = 60.0
    query_cache_max_size: int = 100

    # -- uploads ------------------------------------------------------------
    max_import_file_size: int = 10 * 1024 * 1024  # 10 MB

    # -- HTTP ---------------------------------------------------------------
    cors_origins: List[str] = ["http://127.0.0.1:3000", "http://localhost:3000"]

    # -- logging ------------------------------------------------------------
    log_level: str = "INFO"
    log_format: str = Field(
        default="console",
        description="Log output format: 'console' or 'json'",
    )

    @property
    def database_url(self) -> str:
        """Construct database connection URL.

        Returns:
            Database connection string for SQLAlchemy.
        """
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


# Global settings instance
settings = Settings()
