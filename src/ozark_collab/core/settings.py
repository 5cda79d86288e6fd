"""Application settings and configuration.

This module defines all configuration options for the Ozark collaboration service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Ozark Collaboration", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(default="dev-secret-change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./ozark_collab.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Content limits (mirrors the column sizes of the stored text)
    post_max_length: int = Field(default=500, alias="POST_MAX_LENGTH")
    comment_max_length: int = Field(default=500, alias="COMMENT_MAX_LENGTH")

    # Notification behaviour
    upvote_notification_window_minutes: int = Field(
        default=10,
        alias="UPVOTE_NOTIFICATION_WINDOW_MINUTES",
    )
    notification_preview_length: int = Field(default=50, alias="NOTIFICATION_PREVIEW_LENGTH")

    # Realtime fan-out
    realtime_send_timeout_seconds: float = Field(default=2.0, alias="REALTIME_SEND_TIMEOUT_SECONDS")

    # Chat groups
    default_group_name: str = Field(default="Main Organization Chat", alias="DEFAULT_GROUP_NAME")
    default_group_description: str = Field(
        default="Official organization-wide channel",
        alias="DEFAULT_GROUP_DESCRIPTION",
    )
    bootstrap_admin_username: str = Field(default="admin", alias="BOOTSTRAP_ADMIN_USERNAME")
    bootstrap_on_startup: bool = Field(default=True, alias="BOOTSTRAP_ON_STARTUP")
    # Owners may delete their own (non-default) groups only when enabled.
    group_owner_can_delete: bool = Field(default=False, alias="GROUP_OWNER_CAN_DELETE")

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

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
