"""Bridge configuration using pydantic-settings.

This module defines the BridgeSettings class that reads configuration from
environment variables. The variable names match the Lambda deployment:
BUILD_PROJECT, SSM_GITHUB_USERNAME, SSM_GITHUB_ACCESS_TOKEN,
SSM_GITHUB_SECRET_TOKEN and AWS_DEFAULT_REGION must be set for the handlers
to start.
"""

import re
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


REGION_PATTERN = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d+$")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class BridgeSettings(BaseSettings):
    """Bridge configuration from environment variables.

    Required fields (must be set via environment variables):
    - build_project: CodeBuild project started for every pull request
    - ssm_github_username: SSM parameter holding the GitHub username
    - ssm_github_access_token: SSM parameter holding the GitHub access token
    - ssm_github_secret_token: SSM parameter holding the webhook secret
    - aws_default_region: Region used to build console links
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # CodeBuild Configuration
    # -------------------------------------------------------------------------
    build_project: str

    # -------------------------------------------------------------------------
    # Parameter Store Names
    # -------------------------------------------------------------------------
    ssm_github_username: str
    ssm_github_access_token: str
    ssm_github_secret_token: str

    # -------------------------------------------------------------------------
    # AWS Configuration
    # -------------------------------------------------------------------------
    # Only used for human-facing console URLs
    aws_default_region: str

    # -------------------------------------------------------------------------
    # GitHub Configuration
    # -------------------------------------------------------------------------
    # Context name shown next to the commit status
    status_context: str = "CodeBuild"

    # Base URL for GitHub API (supports GitHub Enterprise)
    github_base_url: str = "https://api.github.com"

    # -------------------------------------------------------------------------
    # Observability
    # -------------------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = True
    prometheus_gateway_url: Optional[str] = None

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator(
        "build_project",
        "ssm_github_username",
        "ssm_github_access_token",
        "ssm_github_secret_token",
        "status_context",
    )
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        """Validate that names are not empty."""
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v.strip()

    @field_validator("aws_default_region")
    @classmethod
    def validate_region(cls, v: str) -> str:
        """Validate that the region looks like an AWS region code."""
        v = v.strip()
        if not REGION_PATTERN.match(v):
            raise ValueError(f"aws_default_region is not a region code: {v!r}")
        return v

    @field_validator("github_base_url")
    @classmethod
    def validate_github_base_url(cls, v: str) -> str:
        """Validate that the GitHub base URL is an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("github_base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the log level is a standard level name."""
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level


def get_settings() -> BridgeSettings:
    """Create and return BridgeSettings instance.

    Returns:
        BridgeSettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    return BridgeSettings()
