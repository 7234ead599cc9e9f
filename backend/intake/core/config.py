"""Application configuration loaded from environment variables.

Settings for the member API, draft persistence, autosave timing and the
HTTP surface. Uses pydantic-settings for validation and .env file support.
"""

from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # CORS (Security)
    # Default allows localhost:3000 for the Next.js member portal
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Member API (remote entity store)
    members_api_base_url: str = "http://localhost:8000"
    members_api_path: str = "/api/v1/members/me"
    # None disables the client timeout; failures surface as rejections only
    members_api_timeout: float | None = None

    # Drafts
    draft_namespace: str = "swimbuddz"
    # None keeps drafts in process memory
    draft_storage_dir: Path | None = None
    autosave_delay_ms: int = 250

    # Sessions
    session_ttl_minutes: int = 60

    @property
    def members_api_url(self) -> str:
        """Absolute URL of the current member resource."""
        return f"{self.members_api_base_url.rstrip('/')}{self.members_api_path}"

    @property
    def autosave_delay_seconds(self) -> float:
        """Autosave debounce delay in seconds."""
        return self.autosave_delay_ms / 1000

    @model_validator(mode="after")
    def check_settings(self) -> "Settings":
        """Validate configuration invariants.

        Checks:
        - Autosave delay must be positive
        - Session TTL must be positive
        - CORS must not use wildcard origin (incompatible with credentials)
        - Member API base URL must be set in production
        """
        if self.autosave_delay_ms <= 0:
            msg = f"AUTOSAVE_DELAY_MS must be positive. Got: {self.autosave_delay_ms}"
            raise ValueError(msg)

        if self.session_ttl_minutes <= 0:
            msg = (
                "SESSION_TTL_MINUTES must be positive. "
                f"Got: {self.session_ttl_minutes}"
            )
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "Member sessions are bound to credentials, which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.environment == "production" and not self.members_api_base_url:
            msg = "MEMBERS_API_BASE_URL must be set in production."
            raise ValueError(msg)

        return self


settings = Settings()
