"""Application settings and configuration management.

This module provides Pydantic-based settings management that loads
configuration from environment variables or a .env file. Settings include
the listening port, the GeoServer base URL, the outbound request timeout,
CORS origins, and the default image sizes used when building WMS requests.

Example:
    Settings can be accessed via the cached get_settings() function:
        >>> from app.core.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.geoserver_base_url)

    Environment variables can override defaults:
        >>> PORT=8000
        >>> GEOSERVER_BASE_URL=http://geoserver:8080/geoserver
        >>> UPSTREAM_TIMEOUT_SECONDS=10
"""

import functools

import pydantic
import pydantic_settings


class Settings(pydantic_settings.BaseSettings):
    """Runtime configuration pulled from environment variables or defaults.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        host: Interface the gateway listens on.
        port: Port the gateway listens on.
        geoserver_base_url: Base URL of the upstream GeoServer, without the
            workspace or service path (e.g. ``http://host/geoserver``).
        upstream_timeout_seconds: Upper bound for every outbound request.
        allow_origins: List of allowed CORS origins (["*"] allows all).
        map_width: Default GetMap image width in pixels.
        map_height: Default GetMap image height in pixels.
        legend_width: Default GetLegendGraphic width in pixels.
        legend_height: Default GetLegendGraphic height in pixels.
        max_features: Optional feature cap for attribute lookups.
        log_level: Root logging level used by the process entry point.

    Example:
        Create settings with custom values:
            >>> settings = Settings(
            ...     geoserver_base_url="http://geoserver:8080/geoserver",
            ...     upstream_timeout_seconds=5,
            ... )
    """

    host: str = "0.0.0.0"
    port: int = 3000
    geoserver_base_url: str = "http://localhost:8080/geoserver"
    upstream_timeout_seconds: float = pydantic.Field(default=30.0, gt=0)
    allow_origins: list[str] = ["*"]
    map_width: int = pydantic.Field(default=768, gt=0)
    map_height: int = pydantic.Field(default=666, gt=0)
    legend_width: int = pydantic.Field(default=20, gt=0)
    legend_height: int = pydantic.Field(default=20, gt=0)
    max_features: int | None = pydantic.Field(default=None, gt=0)
    log_level: str = "INFO"

    model_config = pydantic_settings.SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @pydantic.field_validator("geoserver_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@functools.lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded from environment variables or .env file and cached
    for the lifetime of the application. Subsequent calls return the same
    cached instance.

    Returns:
        Settings instance with all configuration values populated.
    """
    return Settings()
