"""
Shared configuration management for the Edge Authorizer.

Settings are read once at startup from the environment (prefix
``AUTHORIZER_``) or a local ``.env`` file and are immutable afterwards.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="AUTHORIZER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Identity provider
    user_pool_url: str = Field(
        default="",
        description="Expected token issuer; also the base URL of the key-set endpoint.",
    )
    identity_pool_id: str = Field(
        default="",
        description="Identity pool the verified tokens are exchanged against (region:uuid).",
    )

    # Key-set endpoint HTTP client
    jwks_http_timeout: float = 5.0


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)

    @property
    def identity_region(self) -> str:
        """AWS region encoded as the prefix of the identity pool id."""
        return self.identity_pool_id.split(":")[0]


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
