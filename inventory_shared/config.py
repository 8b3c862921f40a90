"""
Shared configuration management for the IT Asset Inventory toolkit.
"""

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="INVENTORY_",
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Inventory REST backend
    api_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("INVENTORY_API_URL", "NEXT_PUBLIC_API_URL", "api_url"),
    )
    request_timeout: float = Field(default=10.0)
    max_retries: int = Field(default=3)
    retry_base_delay: float = Field(default=1.0)
    retry_max_delay: float = Field(default=10.0)

    # Session persistence
    runtime_dir: Path = Field(default=Path.home() / ".inventory")
    session_file: str = Field(default="session.json")
    token_refresh_threshold_seconds: int = Field(default=5 * 60)

    # Security
    jwt_secret: str = Field(default="change-this-in-env")
    jwt_algorithm: str = Field(default="HS256")

    # Import / export limits
    max_import_file_size: int = Field(default=10 * 1024 * 1024)
    import_preview_rows: int = Field(default=5)
    unique_values_limit: int = Field(default=100)

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def effective_log_level(self) -> str:
        """Production builds only emit warnings and above unless overridden."""
        if self.is_production and self.log_level.lower() in {"debug", "info"}:
            return "warning"
        return self.log_level

    @property
    def session_path(self) -> Path:
        return Path(self.runtime_dir) / self.session_file


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)


def get_client_config(api_url: Optional[str] = None) -> BaseConfig:
    """Get configuration for API client usage outside of a service."""
    if api_url:
        return BaseConfig(api_url=api_url)
    return BaseConfig()
