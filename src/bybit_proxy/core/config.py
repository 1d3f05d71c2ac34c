"""Application configuration management.

This module provides configuration management using Pydantic settings
with environment variable support. Settings are read once at startup and
are immutable afterwards; components receive them through their
constructors instead of reading the process environment themselves.
"""

from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class AuthPolicy(str, Enum):
    """What the proxy-token gate does when no token is configured."""

    STRICT = "strict"
    PERMISSIVE = "permissive"


class CredentialPolicy(str, Enum):
    """What happens when an environment has no complete key/secret pair."""

    STRICT = "strict"
    PERMISSIVE = "permissive"


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden using environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application settings
    app_name: str = Field(default="Bybit Signing Proxy", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    deployment: str = Field(default="development", description="Deployment (development, staging, production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=3000, description="Port to bind to")
    workers: int = Field(default=1, description="Number of worker processes")
    reload: bool = Field(default=False, description="Enable auto-reload")

    # Proxy access settings
    proxy_token: Optional[SecretStr] = Field(default=None, description="Shared token required from proxy callers")
    auth_policy: AuthPolicy = Field(
        default=AuthPolicy.STRICT,
        description="Behaviour when no proxy token is configured (strict refuses, permissive allows)",
    )

    # Bybit credentials
    credential_policy: CredentialPolicy = Field(
        default=CredentialPolicy.STRICT,
        description="Behaviour when an environment has no API key/secret (strict fails, permissive forwards unsigned)",
    )
    bybit_mainnet_api_key: Optional[str] = Field(default=None, description="Mainnet API key")
    bybit_mainnet_api_secret: Optional[SecretStr] = Field(default=None, description="Mainnet API secret")
    bybit_demo_api_key: Optional[str] = Field(default=None, description="Demo API key")
    bybit_demo_api_secret: Optional[SecretStr] = Field(default=None, description="Demo API secret")
    recv_window: str = Field(default="5000", description="X-BAPI-RECV-WINDOW value in milliseconds")

    # Routing settings
    default_environment: str = Field(default="mainnet", description="Environment used when the request names none")
    route_prefix: str = Field(default="/proxy", description="Path prefix of the forwarding route")
    env_header: str = Field(default="X-Bybit-Env", description="Header selecting the upstream environment")
    env_query_param: str = Field(default="bybit_env", description="Query parameter selecting the upstream environment")

    # Forwarding settings
    forward_headers: str = Field(
        default="accept,accept-language,cache-control",
        description="Client headers relayed upstream",
    )
    allow_presigned: bool = Field(default=True, description="Relay client-signed X-BAPI-* headers verbatim")
    upstream_timeout: Optional[float] = Field(default=None, description="Upstream request timeout in seconds")
    upstream_user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent sent upstream")
    max_body_size: int = Field(default=1024 * 1024, description="Maximum accepted request body in bytes")

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    log_max_size: str = Field(default="10MB", description="Maximum log file size")
    log_backup_count: int = Field(default=5, description="Number of backup log files")

    # Monitoring settings
    metrics_enabled: bool = Field(default=True, description="Enable Prometheus metrics")

    @field_validator("deployment")
    @classmethod
    def validate_deployment(cls, v):
        """Validate deployment value."""
        allowed = ["development", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Deployment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        allowed = ["json", "text"]
        if v not in allowed:
            raise ValueError(f"Log format must be one of {allowed}")
        return v

    @field_validator("recv_window")
    @classmethod
    def validate_recv_window(cls, v):
        """The receive window is sent as a bare decimal string."""
        v = v.strip()
        if not v.isdigit():
            raise ValueError("Receive window must be a positive integer string")
        return v

    @field_validator("default_environment")
    @classmethod
    def validate_default_environment(cls, v):
        """Validate default environment value."""
        allowed = ["mainnet", "demo"]
        v = v.strip().lower()
        if v not in allowed:
            raise ValueError(f"Default environment must be one of {allowed}")
        return v

    @field_validator("route_prefix")
    @classmethod
    def validate_route_prefix(cls, v):
        """Normalize route prefix to '/segment' form."""
        v = "/" + v.strip("/")
        if v == "/":
            raise ValueError("Route prefix must not be empty")
        return v

    @field_validator(
        "bybit_mainnet_api_key",
        "bybit_demo_api_key",
        "bybit_mainnet_api_secret",
        "bybit_demo_api_secret",
        "proxy_token",
        mode="before",
    )
    @classmethod
    def blank_as_missing(cls, v):
        """Treat empty environment variables as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.deployment == "production"

    @property
    def forward_headers_list(self) -> List[str]:
        """Get relayed header names as a lowercase list."""
        return [h.strip().lower() for h in self.forward_headers.split(",") if h.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
