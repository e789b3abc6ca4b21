"""
Application configuration.

Settings are loaded from environment variables (and a `.env` file) and
passed explicitly into the application factory. Nothing here is cached
at module level; every component receives the values it needs.
"""

import logging
import secrets
from pathlib import Path
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Base directory of the project (parent of 'jobmarket')
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # ==========================================================================
    # Environment
    # ==========================================================================

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # ==========================================================================
    # API Server
    # ==========================================================================

    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    trusted_hosts: str = "localhost,127.0.0.1"
    enable_docs: bool = True
    enable_hsts: bool = False

    # ==========================================================================
    # Database
    # ==========================================================================

    database_url: str = f"sqlite+aiosqlite:///{BASE_DIR / 'db' / 'jobmarket.db'}"
    sql_debug: bool = False

    # ==========================================================================
    # Authentication
    # ==========================================================================

    # Access and refresh tokens are signed with different secrets so a leak
    # of one cannot be used to forge the other.
    jwt_access_secret: str = ""
    jwt_refresh_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=30, ge=1)
    refresh_token_expire_days: int = Field(default=7, ge=1)
    token_issuer: str = "jobmarket-api"
    token_audience: str = "jobmarket-client"

    # Hardening switches, both off to keep the documented behavior
    rotate_refresh_tokens: bool = False
    max_sessions_per_user: Optional[int] = Field(default=None, ge=1)

    # Argon2id parameters
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536
    argon2_parallelism: int = 4

    # ==========================================================================
    # Uploads
    # ==========================================================================

    upload_dir: Path = BASE_DIR / "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def trusted_hosts_list(self) -> list[str]:
        return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @model_validator(mode="after")
    def ensure_jwt_secrets(self) -> "Settings":
        """Fill in per-process secrets for development and refuse shared ones."""
        if not self.jwt_access_secret or not self.jwt_refresh_secret:
            if self.is_production:
                raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set in production")
            logger.warning(
                "Using auto-generated JWT secrets. Set JWT_ACCESS_SECRET and "
                "JWT_REFRESH_SECRET in production!"
            )
            if not self.jwt_access_secret:
                self.jwt_access_secret = secrets.token_urlsafe(32)
            if not self.jwt_refresh_secret:
                self.jwt_refresh_secret = secrets.token_urlsafe(32)

        if secrets.compare_digest(self.jwt_access_secret, self.jwt_refresh_secret):
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")
        return self

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    """Load settings from the environment."""
    return Settings()
