# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Rendering surface interface and a GeoJSON reference implementation.

The controller only talks to a surface through ``RenderingSurface``; a map
widget, a web socket bridge or ``GeoJSONSurface`` can stand behind it.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from .transform import RenderableFeature

NODES_LAYER = "nodes"
LINKS_LAYER = "links"


@runtime_checkable
class RenderingSurface(Protocol):
    """Commands the topology controller issues to whatever draws the map."""

    def replace_features(self, layer_name: str, features: Sequence[RenderableFeature]) -> None:
        """Replace every feature of a layer."""
        ...

    def clear_popup(self) -> None:
        """Close the node detail popup, if one is open."""
        ...

    def center_and_zoom(self, lat: float, lon: float, zoom: int) -> None:
        """Center the view on WGS84 coordinates at a zoom level."""
        ...

    def redraw(self, layer_name: str) -> None:
        """Force a repaint of a layer."""
        ...


class GeoJSONSurface:
    """In-memory surface that keeps each layer as a GeoJSON FeatureCollection.

    Also records the view position and how often each layer was redrawn,
    which makes it usable for exports and as a test double.
    """

    def __init__(
        self,
        center: tuple[float, float] | None = None,
        zoom: int | None = None,
    ):
        self.layers: dict[str, list[RenderableFeature]] = {NODES_LAYER: [], LINKS_LAYER: []}
        self.center = center
        self.zoom = zoom
        self.popup: Any = None
        self.redraws: Counter[str] = Counter()

    def replace_features(self, layer_name: str, features: Sequence[RenderableFeature]) -> None:
        self.layers[layer_name] = list(features)

    def clear_popup(self) -> None:
        self.popup = None

    def open_popup(self, content: Any) -> None:
        self.popup = content

    def center_and_zoom(self, lat: float, lon: float, zoom: int) -> None:
        self.center = (lat, lon)
        self.zoom = zoom

    def redraw(self, layer_name: str) -> None:
        self.redraws[layer_name] += 1

    def feature_collection(self, layer_name: str) -> dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [feature.to_geojson() for feature in self.layers.get(layer_name, [])],
        }

    def to_dict(self) -> dict[str, Any]:
        """All layers plus the current view."""
        return {
            "view": {
                "center": list(self.center) if self.center else None,
                "zoom": self.zoom,
            },
            "layers": {name: self.feature_collection(name) for name in self.layers},
        }
