"""Application settings loaded from environment variables."""

from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class IsolationLevel(str, Enum):
    """Transaction isolation levels accepted by the write coordinator."""

    SERIALIZABLE = "SERIALIZABLE"
    REPEATABLE_READ = "REPEATABLE READ"
    READ_COMMITTED = "READ COMMITTED"


class WriteCoordinatorConfig(BaseModel):
    """Configuration for the booking/contract write path.

    Controls retry behaviour on serialization failures, the per-attempt
    transaction timeout, and the conflict policy switches.
    """

    # Retry
    max_attempts: int = 3
    """Total validate-then-commit attempts for retryable storage failures."""

    backoff_initial_seconds: float = 0.05
    """First backoff delay between attempts."""

    backoff_max_seconds: float = 1.0
    """Upper bound on a single backoff delay."""

    # Transaction
    timeout_seconds: float = 10.0
    """Bound on one attempt's transaction; exceeded attempts roll back."""

    isolation_level: IsolationLevel = IsolationLevel.SERIALIZABLE
    """Isolation level for write transactions."""

    set_rls_session_variables: bool = True
    """Set app.current_tenant_id / app.current_role on PostgreSQL sessions."""

    # Policy
    inquiry_overlap_blocks: bool = False
    """Treat an overlap between two provisional bookings as blocking."""

    allow_empty_contract: bool = False
    """Keep a contract alive after its last member is cancelled."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./venuebook.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    # Runtime
    ENVIRONMENT: Literal["development", "test", "staging", "production"] = "development"
    DEBUG: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Write path
    write: WriteCoordinatorConfig = WriteCoordinatorConfig()

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
