"""
Shared configuration management for the Meeting Access Gateway.
"""

from typing import Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .logging import get_logger


DEFAULT_DOOTASK_TIMEOUT = 10


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)

    # Logging
    log_level: str = Field(default="info")
    log_format: str = Field(default="json")
    log_output: str = Field(default="stdout")
    log_file_path: str = Field(default="logs/app.log")


class MeetingsConfig(BaseConfig):
    """Configuration for the meetings gateway."""

    # Meeting SDK signing
    zoom_api_key: str = Field(default="")
    zoom_api_secret: str = Field(default="")

    # Server-To-Server OAuth
    zoom_account_id: str = Field(default="")
    zoom_client_id: str = Field(default="")
    zoom_client_secret: str = Field(default="")

    # Feature switches
    disable_join_meeting: bool = Field(default=False)

    # DooTask identity service
    dootask_url: str = Field(default="http://nginx")
    dootask_timeout: int = Field(default=DEFAULT_DOOTASK_TIMEOUT)
    disable_dootask_auth: bool = Field(default=False)
    dootask_strict_principal: bool = Field(default=True)

    @field_validator("dootask_timeout", mode="before")
    @classmethod
    def _fallback_timeout(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_DOOTASK_TIMEOUT
        try:
            timeout = int(value)
        except (TypeError, ValueError):
            get_logger("config").warning(
                "Invalid DOOTASK_TIMEOUT value, falling back to default",
                value=value,
            )
            return DEFAULT_DOOTASK_TIMEOUT
        if timeout <= 0:
            return DEFAULT_DOOTASK_TIMEOUT
        return timeout

    @property
    def oauth_configured(self) -> bool:
        """True when every Server-To-Server OAuth credential is set."""
        return bool(self.zoom_account_id and self.zoom_client_id and self.zoom_client_secret)

    def missing_oauth_settings(self) -> List[str]:
        missing = []
        if not self.zoom_account_id:
            missing.append("ZOOM_ACCOUNT_ID")
        if not self.zoom_client_id:
            missing.append("ZOOM_CLIENT_ID")
        if not self.zoom_client_secret:
            missing.append("ZOOM_CLIENT_SECRET")
        return missing

    def validate_startup(self) -> None:
        """Fail fast on settings the enabled features cannot run without.

        Signing credentials are mandatory unless the join-meeting feature is
        switched off. Missing OAuth credentials only disable meeting creation,
        so they are reported as a warning.
        """
        if not self.disable_join_meeting:
            missing = []
            if not self.zoom_api_key:
                missing.append("ZOOM_API_KEY")
            if not self.zoom_api_secret:
                missing.append("ZOOM_API_SECRET")
            if missing:
                raise ConfigurationError(
                    "ZOOM_API_KEY and ZOOM_API_SECRET must be set",
                    details={"missing": missing},
                )

        if not self.oauth_configured:
            get_logger("config").warning(
                "Server-To-Server OAuth is not configured; meeting creation is unavailable",
                missing=self.missing_oauth_settings(),
            )


def get_config(**overrides: Any) -> MeetingsConfig:
    """Load the gateway configuration from the environment."""
    return MeetingsConfig(**overrides)
