"""meshmap core - configuration, logging and the exception hierarchy."""

from .config import MapSettings, clear_config_cache, get_config
from .exceptions import (
    ConfigException,
    FocusTargetNotFound,
    MalformedDataError,
    MeshMapException,
    NetworkError,
)

__all__ = [
    "MapSettings",
    "get_config",
    "clear_config_cache",
    "MeshMapException",
    "NetworkError",
    "MalformedDataError",
    "FocusTargetNotFound",
    "ConfigException",
]
