"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Expose retention and pagination limits used by the document services

Collaborators:
  - container.py: decides in-memory vs PostgreSQL adapters
  - infrastructure/db/pool.py: pool sizing and statement timeout
  - interfaces/api/http/dependencies.py: JWT secret and cookie name

Constraints:
  - Lives in API/infrastructure layer, NOT in domain
  - No business logic, pure configuration

Notes:
  - Singleton via lru_cache
  - Production refuses default secrets and a missing DATABASE_URL
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Minimum HIPAA retention window for soft-deleted documents.
MIN_RETENTION_YEARS = 6


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: development | production | test
        database_url: PostgreSQL connection string (required in production)
        db_pool_min_size / db_pool_max_size: connection pool bounds
        db_statement_timeout_ms: per-statement timeout applied on connect
        jwt_secret: HS256 secret used to verify bearer tokens
        jwt_cookie_name: cookie fallback when no Authorization header is sent
        log_level / log_json: logger configuration
        document_retention_years: years between soft delete and purge (default: 8)
        documents_default_limit / documents_max_limit: document listing page size
        grants_default_limit: grant listing page size (default: 20)
        max_upload_bytes: maximum accepted upload size (default: 10MB)
        download_url_ttl_seconds: lifetime of signed download URLs (default: 24h)
        s3_*: S3-compatible blob storage (in-memory storage when s3_bucket is empty)
        fake_ocr: use the deterministic OCR double outside tests
    """

    # Environment
    app_env: str = "development"

    # Database
    database_url: str = ""
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # Security - JWT (verification only)
    jwt_secret: str = "dev-secret"
    jwt_cookie_name: str = "access_token"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Storage - S3/MinIO (vacío = blob storage en memoria)
    s3_endpoint_url: str = ""
    s3_bucket: str = ""
    s3_access_key: str = ""
    s3_secret_key: str = ""
    s3_region: str = ""

    # OCR (el proveedor real es un colaborador externo)
    fake_ocr: bool = False

    # Documents
    document_retention_years: int = 8
    documents_default_limit: int = 10
    documents_max_limit: int = 100
    grants_default_limit: int = 20
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB
    download_url_ttl_seconds: int = 24 * 60 * 60

    @field_validator("document_retention_years")
    @classmethod
    def retention_must_cover_minimum(cls, v: int) -> int:
        if v < MIN_RETENTION_YEARS:
            raise ValueError(
                f"document_retention_years must be >= {MIN_RETENTION_YEARS}"
            )
        return v

    @field_validator("documents_default_limit", "documents_max_limit", "grants_default_limit")
    @classmethod
    def limits_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("pagination limits must be greater than 0")
        return v

    @field_validator("max_upload_bytes", "download_url_ttl_seconds")
    @classmethod
    def must_be_positive(cls, v: int, info) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be greater than 0")
        return v

    @model_validator(mode="after")
    def validate_limits(self):
        if self.documents_default_limit > self.documents_max_limit:
            raise ValueError(
                "documents_default_limit must not exceed documents_max_limit"
            )
        if self.db_pool_min_size > self.db_pool_max_size:
            raise ValueError("db_pool_min_size must not exceed db_pool_max_size")
        return self

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        if not self.database_url.strip():
            raise ValueError("DATABASE_URL is required in production")

        insecure_secrets = {"dev-secret", "changeme", "change-me", "password"}
        jwt_secret = (self.jwt_secret or "").strip()
        if not jwt_secret or jwt_secret in insecure_secrets:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        if not self.s3_bucket.strip():
            raise ValueError("S3_BUCKET is required in production")

        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test(self) -> bool:
        return self.app_env.strip().lower() in {"test", "testing", "ci"}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are missing or invalid
    """
    return Settings()
