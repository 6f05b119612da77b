# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Initial map view computed from configured bounds."""

from __future__ import annotations

from dataclasses import dataclass

from ..core.config import MapSettings, get_config
from ..core.exceptions import ConfigException


def parse_lat_lon(value: str, setting: str) -> tuple[float, float]:
    """Parse a ``"lat,lon"`` setting.

    Raises:
        ConfigException: If the value is not two numbers in WGS84 range
    """
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2:
        raise ConfigException(f"Expected 'lat,lon' but got {value!r}", setting=setting)
    try:
        lat, lon = float(parts[0]), float(parts[1])
    except ValueError:
        raise ConfigException(f"Expected 'lat,lon' but got {value!r}", setting=setting) from None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise ConfigException(f"Coordinates out of range: {value!r}", setting=setting)
    return lat, lon


@dataclass(frozen=True)
class MapView:
    """Bounds, center and zoom of the map before any focus request."""

    bound_sw: tuple[float, float]
    bound_ne: tuple[float, float]
    explicit_center: tuple[float, float] | None = None
    zoom: int = 10
    num_zoom_levels: int = 20

    @property
    def center(self) -> tuple[float, float]:
        """The explicit center, or the middle of the bounds."""
        if self.explicit_center is not None:
            return self.explicit_center
        return (
            (self.bound_sw[0] + self.bound_ne[0]) / 2,
            (self.bound_sw[1] + self.bound_ne[1]) / 2,
        )

    @classmethod
    def from_settings(cls, settings: MapSettings | None = None) -> MapView:
        settings = settings or get_config()
        center = None
        if settings.center:
            center = parse_lat_lon(settings.center, "MESHMAP_CENTER")
        return cls(
            bound_sw=parse_lat_lon(settings.bound_sw, "MESHMAP_BOUND_SW"),
            bound_ne=parse_lat_lon(settings.bound_ne, "MESHMAP_BOUND_NE"),
            explicit_center=center,
            zoom=settings.initial_zoom,
            num_zoom_levels=settings.max_zoom_levels,
        )
