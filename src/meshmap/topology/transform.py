# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Conversion of topology records into renderable features.

Every feature keeps the raw attributes of its record and adds the derived
display attributes (``color``, and ``links_summary`` for nodes).
Coordinates stay in WGS84 degrees; projection is up to the surface.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .models import Link, Node, NodeType, TopologySnapshot

SELECTED_COLOR = "#000000"

NODE_COLORS: Mapping[str, str] = {
    NodeType.P2P.value: "#f5c70c",
    NodeType.P2P_AP.value: "#f5c70c",
    NodeType.AP.value: "#61d961",
    NodeType.CLIENT.value: "#5858ff",
    NodeType.UNLINKED.value: "#ff3f4f",
}

LINK_ACTIVE_COLOR = "#00ff00"
LINK_INACTIVE_COLOR = "#ff0000"


def node_color(node: Node) -> str | None:
    """Color of a node; None for unknown types lets the surface use its default."""
    if node.selected:
        return SELECTED_COLOR
    return NODE_COLORS.get(node.type)


def link_color(link: Link) -> str:
    return LINK_ACTIVE_COLOR if link.is_active else LINK_INACTIVE_COLOR


def links_summary(node: Node) -> str:
    """Total link count with a breakdown of the non-zero kinds.

    >>> links_summary(Node("n", "ap", "", 0, 0, total_p2p=3, total_ap_subscriptions=2))
    '5 (PtP: 3, AP client: 2)'
    """
    summary = str(node.total_links)
    breakdown = []
    if node.total_p2p > 0:
        breakdown.append(f"PtP: {node.total_p2p}")
    if node.total_clients > 0:
        breakdown.append(f"Clients: {node.total_clients}")
    if node.total_ap_subscriptions > 0:
        breakdown.append(f"AP client: {node.total_ap_subscriptions}")
    if breakdown:
        summary += " (" + ", ".join(breakdown) + ")"
    return summary


@dataclass(frozen=True)
class RenderableFeature:
    """Display-only geometry plus attributes derived from a node or link.

    ``coordinates`` holds ``(lat, lon)`` pairs: one for a point, two for a
    link path.
    """

    id: str
    coordinates: tuple[tuple[float, float], ...]
    color: str | None
    properties: Mapping[str, Any] = field(default_factory=dict)
    links_summary: str | None = None

    @property
    def geometry_type(self) -> str:
        return "Point" if len(self.coordinates) == 1 else "LineString"

    def to_geojson(self) -> dict[str, Any]:
        """GeoJSON Feature; positions are emitted as ``[lon, lat]``."""
        positions = [[lon, lat] for lat, lon in self.coordinates]
        properties = dict(self.properties)
        properties["color"] = self.color
        if self.links_summary is not None:
            properties["links_summary"] = self.links_summary
        return {
            "type": "Feature",
            "id": self.id,
            "geometry": {
                "type": self.geometry_type,
                "coordinates": positions[0] if self.geometry_type == "Point" else positions,
            },
            "properties": properties,
        }


@dataclass(frozen=True)
class TransformedTopology:
    """Feature sets for the node and link layers."""

    node_features: tuple[RenderableFeature, ...] = ()
    link_features: tuple[RenderableFeature, ...] = ()


def node_feature(node: Node) -> RenderableFeature:
    return RenderableFeature(
        id=node.id,
        coordinates=((node.lat, node.lon),),
        color=node_color(node),
        properties=node.to_dict(),
        links_summary=links_summary(node),
    )


def link_feature(link: Link) -> RenderableFeature:
    return RenderableFeature(
        id=link.id,
        coordinates=((link.lat1, link.lon1), (link.lat2, link.lon2)),
        color=link_color(link),
        properties=link.to_dict(),
    )


class FeatureTransformer:
    """Turns a snapshot into the feature sets of both layers."""

    def transform(self, snapshot: TopologySnapshot) -> TransformedTopology:
        return TransformedTopology(
            node_features=tuple(node_feature(node) for node in snapshot.nodes.values()),
            link_features=tuple(link_feature(link) for link in snapshot.links),
        )
