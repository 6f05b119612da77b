"""Core configuration - centralized config for the meshmap package.

All environment-based configuration should flow through this module.

Usage:
    from meshmap.core.config import get_config
    config = get_config()

    url = config.topology_url
    timeout = config.fetch_timeout
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MapSettings(BaseSettings):
    """Configuration settings for meshmap.

    Settings can be configured via environment variables with the
    MESHMAP_ prefix or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # TOPOLOGY SOURCE SETTINGS
    # ==========================================================================

    topology_url: str | None = Field(
        default=None,
        description="URL that serves the topology snapshot as JSON",
        validation_alias="MESHMAP_TOPOLOGY_URL",
    )
    fetch_timeout: float = Field(
        default=10.0,
        description="Seconds before an in-flight topology fetch is cancelled",
        validation_alias="MESHMAP_FETCH_TIMEOUT",
    )

    # ==========================================================================
    # MAP VIEW SETTINGS
    # ==========================================================================

    bound_sw: str = Field(
        default="37.97152,23.72664",
        description="South-west corner of the initial view as 'lat,lon'",
        validation_alias="MESHMAP_BOUND_SW",
    )
    bound_ne: str = Field(
        default="37.97152,23.72664",
        description="North-east corner of the initial view as 'lat,lon'",
        validation_alias="MESHMAP_BOUND_NE",
    )
    center: str | None = Field(
        default=None,
        description="Explicit initial center as 'lat,lon' (defaults to the bounds center)",
        validation_alias="MESHMAP_CENTER",
    )
    initial_zoom: int = Field(
        default=10,
        description="Zoom level of the initial view",
        validation_alias="MESHMAP_INITIAL_ZOOM",
    )
    max_zoom_levels: int = Field(
        default=20,
        description="Number of zoom levels offered by the map",
        validation_alias="MESHMAP_MAX_ZOOM_LEVELS",
    )
    focus_zoom: int = Field(
        default=15,
        description="Zoom level used when focusing on a node",
        validation_alias="MESHMAP_FOCUS_ZOOM",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="MESHMAP_LOG_LEVEL",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
        validation_alias="MESHMAP_LOG_FORMAT",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
        validation_alias="MESHMAP_LOG_FILE",
    )


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: MapSettings | None = None


def get_config() -> MapSettings:
    """Get the global configuration instance.

    Returns:
        The singleton MapSettings instance.
    """
    global _config
    if _config is None:
        _config = MapSettings()
    return _config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
