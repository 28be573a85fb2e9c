# backend/app/core/settings.py
"""
CoverOps - Configuration Management with pydantic-settings

- Loads from environment and root .env
- Validates and normalizes values
- Cached singleton via get_settings()
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# backend/app/core/settings.py -> <repo>/.env
_ENV_FILE = Path(__file__).resolve().parent.parent.parent.parent / ".env"


class Settings(BaseSettings):
    """
    Application settings with validation.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===================
    # Application Settings
    # ===================
    PROJECT_NAME: str = "CoverOps"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    ENVIRONMENT: str = Field(default="development", description="Deployment environment")

    # ===================
    # Database Settings
    # ===================
    DB_HOST: str = Field(default="localhost", description="PostgreSQL host")
    DB_PORT: int = Field(default=5432, description="PostgreSQL port")
    DB_NAME: str = Field(default="coverops", description="Database name")
    DB_USER: str = Field(default="postgres", description="Database user")
    DB_PASSWORD: str = Field(default="postgres", description="Database password")
    DATABASE_URL: Optional[str] = Field(
        default=None, description="Full database URL (overrides DB_* settings)"
    )
    DB_STATEMENT_TIMEOUT_MS: int = Field(
        default=30000, description="Per-statement timeout; also bounds row-lock waits"
    )

    @property
    def database_url(self) -> str:
        """Build PostgreSQL database URL from components or use explicit URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    # ===================
    # Security Settings
    # ===================
    SECRET_KEY: str = Field(
        default="change-this-to-a-random-secret-key-in-production",
        description="JWT signing key - MUST change in production",
    )
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=30, description="JWT token expiration in minutes"
    )

    @field_validator("SECRET_KEY")
    @classmethod
    def warn_default_secret(cls, v: str) -> str:
        """Fail in prod if default secret; warn in dev."""
        if "change-this" in v.lower():
            import warnings
            import os

            if os.getenv("ENVIRONMENT", "development").lower() == "production":
                raise ValueError(
                    "Default SECRET_KEY detected in production. Set a secure SECRET_KEY."
                )
            warnings.warn(
                "WARNING: Using default SECRET_KEY. Do not use this in production.",
                UserWarning,
                stacklevel=2,
            )
        return v

    # Roles allowed to approve orders and drive the print queue
    QUEUE_ROLES: List[str] = Field(default=["Super Admin", "Admin", "Office Employee"])
    # Roles allowed to run maintenance and diagnostics
    MAINTENANCE_ROLES: List[str] = Field(default=["Super Admin", "Admin"])

    @field_validator("QUEUE_ROLES", "MAINTENANCE_ROLES", mode="before")
    @classmethod
    def parse_role_list(cls, v):
        if isinstance(v, str):
            return [role.strip() for role in v.split(",") if role.strip()]
        return v

    # ===================
    # CORS Settings
    # ===================
    ALLOWED_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="Allowed CORS origins",
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    FRONTEND_URL: str = Field(
        default="http://localhost:3000", description="Frontend URL for redirects"
    )

    @model_validator(mode="after")
    def add_frontend_url_to_cors(self):
        """Ensure FRONTEND_URL is allowed for CORS."""
        if self.FRONTEND_URL and self.FRONTEND_URL not in self.ALLOWED_ORIGINS:
            self.ALLOWED_ORIGINS = list(self.ALLOWED_ORIGINS) + [self.FRONTEND_URL]
        return self

    # ===================
    # Logging
    # ===================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text
    LOG_FILE: Optional[str] = None

    # ===================
    # Print Queue
    # ===================
    PRINT_QUEUE_BATCH_SIZE: int = Field(default=4, ge=1, description="Labels per printable sheet")
    PRINT_QUEUE_RETENTION_DAYS: int = Field(
        default=30, ge=1, description="Printed rows older than this are removed by cleanup"
    )
    PRINT_QUEUE_EMERGENCY_RETENTION_DAYS: int = Field(default=7, ge=1)
    PRINT_QUEUE_PAGE_SIZE: int = Field(default=1000, ge=1)

    # Health check / diagnostics thresholds
    PRINT_QUEUE_SIZE_WARNING: int = 20000
    PRINT_QUEUE_SIZE_CRITICAL: int = 50000
    PRINT_QUEUE_LARGE_QUEUE: int = 10000
    PRINT_QUEUE_ORPHAN_WARNING: int = 0
    PRINT_QUEUE_ORPHAN_HEALTH_WARNING: int = 100
    PRINT_QUEUE_OLD_PRINTED_WARNING: int = 1000
    PRINT_QUEUE_AGE_WARNING_HOURS: int = 336
    PRINT_QUEUE_SLOW_AGE_HOURS: int = 168

    # ===================
    # PO Validation
    # ===================
    PO_DUPLICATE_POLICY: str = Field(
        default="warn", description="warn: surface duplicates as warnings; block: reject approval"
    )
    PO_NUMBER_MAX_LENGTH: int = 100

    @field_validator("PO_DUPLICATE_POLICY")
    @classmethod
    def check_po_policy(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("warn", "block"):
            raise ValueError("PO_DUPLICATE_POLICY must be 'warn' or 'block'")
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def blocks_duplicate_po(self) -> bool:
        return self.PO_DUPLICATE_POLICY == "block"


@lru_cache
def get_settings() -> Settings:
    """Singleton settings loader (cached)."""
    return Settings()


settings = get_settings()
