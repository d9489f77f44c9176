"""Application settings and configuration.

This module defines all configuration options for the blog gateway.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BYTES_PER_GB = 1024 * 1024 * 1024
# Backends with an INSERT ... ON CONFLICT DO UPDATE construct in SQLAlchemy.
SUPPORTED_DATABASE_BACKENDS = ("sqlite", "postgresql")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Blog Gateway", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./blog.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis backs both the shared session store and the page cache
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    session_cookie_name: str = Field(default="session_id", alias="SESSION_COOKIE_NAME")
    cache_enabled: bool = Field(default=True, alias="CACHE_ENABLED")
    cache_ttl: int = Field(default=300, alias="CACHE_TTL")

    # Roles
    admin_role: str = Field(default="admin", alias="ADMIN_ROLE")
    owner_role: str = Field(default="owner", alias="OWNER_ROLE")

    # Pagination
    default_page_size: int = Field(default=10, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=100, alias="MAX_PAGE_SIZE")

    # Upload limits
    max_file_size: int = Field(default=50 * 1024 * 1024, alias="MAX_FILE_SIZE")
    free_tier_limit_gb: int = Field(default=10, alias="FREE_TIER_LIMIT_GB")

    # External storage service
    storage_base_url: str = Field(default="https://api.localhost", alias="STORAGE_BASE_URL")
    storage_bucket: str = Field(default="blog-media", alias="STORAGE_BUCKET")
    storage_http_timeout_seconds: float = Field(
        default=30.0,
        alias="STORAGE_HTTP_TIMEOUT_SECONDS",
    )
    api_access_client_id: str | None = Field(default=None, alias="API_ACCESS_CLIENT_ID")
    api_access_client_secret: str | None = Field(
        default=None,
        alias="API_ACCESS_CLIENT_SECRET",
    )
    # Older deployments still ship the CF_ACCESS_* names.
    cf_access_client_id: str | None = Field(default=None, alias="CF_ACCESS_CLIENT_ID")
    cf_access_client_secret: str | None = Field(default=None, alias="CF_ACCESS_CLIENT_SECRET")
    service_token_secret: str | None = Field(default=None, alias="SERVICE_TOKEN_SECRET")
    service_token_audience: str = Field(default="blog-media", alias="SERVICE_TOKEN_AUDIENCE")
    service_token_ttl_seconds: int = Field(default=60, alias="SERVICE_TOKEN_TTL_SECONDS")
    service_instance_id: str = Field(default="blog", alias="SERVICE_INSTANCE_ID")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def _check_database_backend(cls, value: str) -> str:
        backend = value.split("://", 1)[0].split("+", 1)[0]
        if backend not in SUPPORTED_DATABASE_BACKENDS:
            raise ValueError(
                f"Unsupported database backend {backend!r}; use one of {', '.join(SUPPORTED_DATABASE_BACKENDS)}"
            )
        return value

    @property
    def quota_limit_bytes(self) -> int:
        """Return the per-account storage ceiling in bytes."""
        return self.free_tier_limit_gb * BYTES_PER_GB

    @property
    def access_client_id(self) -> str | None:
        """Return the service access client id, honouring the legacy name."""
        return self.api_access_client_id or self.cf_access_client_id

    @property
    def access_client_secret(self) -> str | None:
        """Return the service access client secret, honouring the legacy name."""
        return self.api_access_client_secret or self.cf_access_client_secret

    @property
    def privileged_roles(self) -> frozenset[str]:
        """Roles allowed to author and manage posts."""
        return frozenset({self.admin_role, self.owner_role})


settings = Settings()
