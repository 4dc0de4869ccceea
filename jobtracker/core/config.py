"""Application configuration management."""

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Appwrite backend
    appwrite_endpoint: str
    appwrite_project_id: str
    appwrite_database_id: str
    appwrite_admin_user_id: str
    appwrite_applications_collection: str = "applications"
    appwrite_timeout: float = Field(default=30.0, gt=0)

    # Auth snapshot cache
    redis_url: str = "redis://localhost:6379/0"
    auth_cache_ttl_seconds: int = Field(
        default=300,
        ge=1,
        description="How long a cached auth snapshot is trusted",
    )
    auth_revalidate_delay: float = Field(default=0.1, ge=0)
    login_confirm_timeout: float = Field(default=5.0, gt=0)
    login_confirm_initial_delay: float = Field(default=0.1, ge=0)
    login_confirm_max_delay: float = Field(default=1.0, ge=0)

    # Browser session cookie
    session_cookie_name: str = "jobtracker_session"
    session_ttl_seconds: int = Field(default=86400, ge=60)
    cookie_secure: bool = False

    # Query cache
    applications_stale_seconds: int = Field(default=300, ge=0)
    application_stale_seconds: int = Field(default=600, ge=0)
    query_retry: int = Field(default=1, ge=0, le=5)
    mutation_retry: int = Field(default=1, ge=0, le=5)
    retry_max_delay: float = Field(default=30.0, ge=0)

    # List view
    page_size: int = Field(default=5, ge=1, le=100)

    # Connectivity
    connectivity_probe_enabled: bool = True
    connectivity_probe_interval_seconds: int = Field(default=30, ge=1)

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
