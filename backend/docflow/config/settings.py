"""
Application settings loaded from environment variables.

Usage:
    from docflow.config.settings import get_settings

    settings = get_settings()
    settings.jwt_expires_minutes  # 1440
"""

import os
import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_DEV_JWT_SECRET = "docflow-dev-secret-change-me"


class Settings(BaseModel):
    """Runtime configuration for the DocFlow backend."""
    env: str = "development"
    database_url: Optional[str] = None
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "docflow"
    jwt_expires_minutes: int = Field(default=1440, ge=1)
    upload_dir: str = "uploads/documents"
    ingestion_webhook_secret: Optional[str] = None
    ingestion_step_delay_seconds: float = Field(default=0.2, ge=0)
    cors_origins: List[str] = Field(default_factory=list)

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        Raises:
            ValueError: If JWT_SECRET is missing in production
        """
        env = os.getenv("ENV", "development")

        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            if env == "production":
                raise ValueError("JWT_SECRET environment variable is required")
            logger.warning(
                "JWT_SECRET not set, using development secret",
                extra={"env": env},
            )
            jwt_secret = _DEV_JWT_SECRET

        database_url = os.getenv("DATABASE_URL")
        # SQLAlchemy requires postgresql://
        if database_url and database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)

        cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "").split(",")
            if origin.strip()
        ]

        return cls(
            env=env,
            database_url=database_url,
            jwt_secret=jwt_secret,
            jwt_issuer=os.getenv("JWT_ISSUER", "docflow"),
            jwt_expires_minutes=int(os.getenv("JWT_EXPIRES_MINUTES", "1440")),
            upload_dir=os.getenv("UPLOAD_DIR", "uploads/documents"),
            ingestion_webhook_secret=os.getenv("INGESTION_WEBHOOK_SECRET") or None,
            ingestion_step_delay_seconds=float(
                os.getenv("INGESTION_STEP_DELAY_SECONDS", "0.2")
            ),
            cors_origins=cors_origins,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    return Settings.from_env()
