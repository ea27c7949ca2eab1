"""Application settings and configuration.

This module defines all configuration options for the forum content service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Forum Content Service", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./forum.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # User directory (profile enrichment, optional)
    user_service_url: str = Field(default="http://localhost:5001", alias="USER_SERVICE_URL")
    user_service_timeout_seconds: float = Field(
        default=5.0,
        alias="USER_SERVICE_TIMEOUT_SECONDS",
    )
    user_cache_ttl_seconds: float = Field(default=300.0, alias="USER_CACHE_TTL_SECONDS")
    user_cache_max_entries: int = Field(default=10_000, alias="USER_CACHE_MAX_ENTRIES")

    # File store (uploads are required when files are submitted)
    file_service_url: str = Field(default="http://localhost:5004", alias="FILE_SERVICE_URL")
    file_service_timeout_seconds: float = Field(
        default=10.0,
        alias="FILE_SERVICE_TIMEOUT_SECONDS",
    )

    # Pagination
    posts_page_size: int = Field(default=10, alias="POSTS_PAGE_SIZE")
    replies_page_size: int = Field(default=20, alias="REPLIES_PAGE_SIZE")
    max_page_size: int = Field(default=100, alias="MAX_PAGE_SIZE")
    top_posts_max: int = Field(default=10, alias="TOP_POSTS_MAX")
    reply_tree_max_depth: int = Field(default=32, alias="REPLY_TREE_MAX_DEPTH")
    history_page_size: int = Field(default=20, alias="HISTORY_PAGE_SIZE")

    # Repeat views of one post inside this window refresh a single history row
    view_dedup_seconds: int = Field(default=60, alias="VIEW_DEDUP_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
