"""Enhanced Context configuration module.

Provides environment-driven settings for every component. All settings
support environment variable overrides with the ENHANCED_CONTEXT_ prefix.

The static configuration documents (query-type mappings, server config and
the context combination catalog) are loaded separately by
``enhanced_context.catalog.ConfigLoader`` from ``config_dir``.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DATA = Path(__file__).parent / "data"

# Default paths
WAMA_HOME = Path.home() / ".wama"
BUNDLED_CONTENT = PACKAGE_DATA / "wama"
BUNDLED_CONFIG = PACKAGE_DATA / "config"


class BlobSettings(BaseModel):
    """Settings for the remote object storage backend."""

    url: str | None = Field(
        default=None,
        description="Base URL of the blob store API",
    )
    token: str | None = Field(
        default=None,
        description="Bearer token for read/write access",
    )
    prefix: str = Field(
        default="wama",
        description="Key prefix under which all content lives",
    )
    timeout: float = Field(
        default=10.0,
        description="Per-request timeout in seconds",
    )


class CacheSettings(BaseModel):
    """Settings for agent and read-through caching."""

    backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Cache backend for agent profiles",
    )
    redis_url: str | None = Field(
        default=None,
        description="Redis connection URL (used when backend is redis)",
    )
    agent_ttl: int = Field(
        default=3600,
        description="Agent profile cache TTL in seconds",
    )
    read_ttl: int = Field(
        default=300,
        description="Content store read cache TTL in seconds (0 disables)",
    )


class EnhancedContextSettings(BaseSettings):
    """Enhanced Context server configuration.

    All settings can be overridden via environment variables with the
    ENHANCED_CONTEXT_ prefix. For example, ENHANCED_CONTEXT_SERVER_PORT=8080
    sets server_port to 8080 and ENHANCED_CONTEXT_CACHE__BACKEND=redis
    selects the Redis cache.
    """

    model_config = SettingsConfigDict(
        env_prefix="ENHANCED_CONTEXT_",
        env_nested_delimiter="__",
    )

    # Content roots
    home: Path = Field(
        default=WAMA_HOME,
        description="Writable content directory (checked first)",
    )
    fallback_dir: Path = Field(
        default=BUNDLED_CONTENT,
        description="Read-only content shipped with the package",
    )
    config_dir: Path = Field(
        default=BUNDLED_CONFIG,
        description="Directory holding the JSON configuration documents",
    )

    # Overrides storage.mode from server-config.json when set
    storage_backend: Literal["local", "blob"] | None = Field(
        default=None,
        description="Content store backend override",
    )

    # Server settings
    server_host: str = Field(
        default="127.0.0.1",
        description="HTTP server host",
    )
    server_port: int = Field(
        default=3000,
        description="HTTP server port",
    )
    request_timeout: float | None = Field(
        default=30.0,
        description="Seconds allowed for one load_enhanced_context call (unset for no limit)",
    )
    log_level: str = Field(
        default="info",
        description="Logging level (debug, info, warning, error)",
    )
    log_format: Literal["json", "console"] = Field(
        default="json",
        description="Log output format",
    )

    # Nested settings
    blob: BlobSettings = Field(default_factory=BlobSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)


# Module-level singleton
settings = EnhancedContextSettings()
