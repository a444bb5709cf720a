"""
Configuration Management Module

This module handles all application configuration using Pydantic Settings.
Configuration is loaded from environment variables with strong typing and validation.

Design Decisions:
- Use Pydantic Settings for automatic environment variable loading
- Provide sensible defaults for optional settings
- Validate configuration at startup (fail-fast approach)
- Support a personal access token or GitHub App credentials
- Expose list-like settings as immutable tuples/frozensets so they can be
  passed straight into the diff engine
"""

from functools import lru_cache
from pathlib import Path
from typing import FrozenSet, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DEPENDENCY_SECTIONS = (
    "bundledDependencies,dependencies,devDependencies,"
    "optionalDependencies,peerDependencies"
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All sensitive values are loaded from environment variables only,
    never hardcoded or logged.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # =========================================================================
    # GitHub Credentials
    # =========================================================================
    github_webhook_secret: str = Field(
        description="Webhook secret for signature verification"
    )

    github_user: Optional[str] = Field(
        default=None,
        description="GitHub user name for Basic auth (used with GITHUB_TOKEN)"
    )

    github_token: Optional[str] = Field(
        default=None,
        description="GitHub personal access token"
    )

    github_app_id: Optional[str] = Field(
        default=None,
        description="GitHub App ID, used when no personal token is set"
    )

    github_private_key_path: Optional[str] = Field(
        default=None,
        description="Path to GitHub App private key .pem file"
    )

    github_private_key: Optional[str] = Field(
        default=None,
        description="GitHub App private key content (alternative to path)"
    )

    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API origin"
    )

    github_rate_limit: int = Field(
        default=5000,
        ge=100,
        description="GitHub API rate limit per hour"
    )

    # =========================================================================
    # Dependency Diff
    # =========================================================================
    dependency_sections: str = Field(
        default=DEFAULT_DEPENDENCY_SECTIONS,
        description="Comma-separated package.json sections to compare, in report order"
    )

    valid_actions: str = Field(
        default="opened,synchronize",
        description="Comma-separated pull_request actions that trigger a diff"
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port to bind the server"
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    log_json_format: bool = Field(
        default=True,
        description="Enable JSON logging format"
    )

    log_requests: bool = Field(
        default=False,
        description="Enable request/response logging"
    )

    # =========================================================================
    # Feature Flags
    # =========================================================================
    enable_github_comments: bool = Field(
        default=True,
        description="Post commit comments; when disabled every event is a dry run"
    )

    # =========================================================================
    # Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("dependency_sections", "valid_actions")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Reject lists that would disable the bot entirely."""
        if not [item for item in v.split(",") if item.strip()]:
            raise ValueError("At least one value is required")
        return v

    @field_validator("github_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # =========================================================================
    # Computed Properties
    # =========================================================================
    @property
    def dependency_sections_tuple(self) -> Tuple[str, ...]:
        """Get the recognized dependency sections in canonical order."""
        return tuple(
            section.strip()
            for section in self.dependency_sections.split(",")
            if section.strip()
        )

    @property
    def valid_actions_set(self) -> FrozenSet[str]:
        """Get the accepted pull_request actions."""
        return frozenset(
            action.strip()
            for action in self.valid_actions.split(",")
            if action.strip()
        )

    @property
    def uses_personal_token(self) -> bool:
        """True when requests authenticate with GITHUB_TOKEN."""
        return bool(self.github_token)

    def get_private_key(self) -> str:
        """
        Get the GitHub App private key content.

        Supports two modes:
        1. Direct content via GITHUB_PRIVATE_KEY env var
        2. File path via GITHUB_PRIVATE_KEY_PATH env var

        Returns:
            Private key content as string

        Raises:
            ValueError: If neither option is configured or file doesn't exist
        """
        # Direct content takes precedence
        if self.github_private_key:
            # Handle newline escaping in env vars
            return self.github_private_key.replace("\\n", "\n")

        if self.github_private_key_path:
            key_path = Path(self.github_private_key_path)
            if not key_path.exists():
                raise ValueError(f"Private key file not found: {key_path}")
            return key_path.read_text()

        raise ValueError(
            "GitHub private key not configured. "
            "Set either GITHUB_PRIVATE_KEY or GITHUB_PRIVATE_KEY_PATH"
        )

    def validate_credentials(self) -> None:
        """
        Check that some form of GitHub credentials is configured.

        Raises:
            ValueError: If neither a token nor complete App credentials exist
        """
        if self.uses_personal_token:
            return

        if not self.github_app_id:
            raise ValueError(
                "GitHub credentials not configured. "
                "Set GITHUB_TOKEN or GITHUB_APP_ID with a private key"
            )

        self.get_private_key()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once,
    which is important for performance and consistency.

    Returns:
        Settings instance
    """
    return Settings()
