# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Data models for a network topology snapshot.

A snapshot is produced atomically by one fetch and never mutated; the next
fetch replaces it wholesale. Parsing is strict about the fields the map
needs (coordinates, counters) and raises ``MalformedDataError`` otherwise.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..core.exceptions import MalformedDataError


# =============================================================================
# ENUMS
# =============================================================================


class NodeType(str, Enum):
    """Known node types. Unknown types are kept as plain strings."""
    P2P = "p2p"            # Backbone node with point-to-point links only
    P2P_AP = "p2p-ap"      # Backbone node that also serves clients
    AP = "ap"              # Access point
    CLIENT = "client"      # Client subscribed to an access point
    UNLINKED = "unlinked"  # Node without any links


class LinkStatus(str, Enum):
    """Status of a link."""
    ACTIVE = "active"
    INACTIVE = "inactive"


# =============================================================================
# FIELD PARSING
# =============================================================================


def _require(data: Mapping[str, Any], key: str, context: str) -> Any:
    if key not in data or data[key] is None:
        raise MalformedDataError(f"{context} is missing '{key}'", field=key)
    return data[key]


def _coordinate(data: Mapping[str, Any], key: str, context: str, limit: float) -> float:
    raw = _require(data, key, context)
    if isinstance(raw, bool):
        raise MalformedDataError(f"{context} has a non-numeric '{key}'", field=key, value=raw)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise MalformedDataError(f"{context} has a non-numeric '{key}'", field=key, value=raw) from None
    if not math.isfinite(value) or abs(value) > limit:
        raise MalformedDataError(f"{context} has an out of range '{key}'", field=key, value=raw)
    return value


def _counter(data: Mapping[str, Any], key: str, context: str) -> int:
    raw = data.get(key, 0)
    if raw is None:
        return 0
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise MalformedDataError(f"{context} has a non-integer '{key}'", field=key, value=raw)
    if isinstance(raw, float):
        # Also rejects inf and nan, which json parses from 1e999 and NaN
        if not raw.is_integer():
            raise MalformedDataError(f"{context} has a non-integer '{key}'", field=key, value=raw)
        value = int(raw)
    elif isinstance(raw, str):
        try:
            value = int(raw)
        except ValueError:
            raise MalformedDataError(f"{context} has a non-integer '{key}'", field=key, value=raw) from None
    else:
        value = raw
    if value < 0:
        raise MalformedDataError(f"{context} has a negative '{key}'", field=key, value=raw)
    return value


# =============================================================================
# NODES AND LINKS
# =============================================================================


_NODE_FIELDS = frozenset({
    "id", "type", "name", "lat", "lon", "area", "url", "selected",
    "total_p2p", "total_ap_subscriptions", "total_clients",
})

_LINK_FIELDS = frozenset({"id", "lat1", "lon1", "lat2", "lon2", "status"})


@dataclass(frozen=True)
class Node:
    """A network node positioned at WGS84 coordinates."""

    id: str
    type: str
    name: str
    lat: float
    lon: float
    area: str | None = None
    url: str | None = None
    selected: bool = False
    total_p2p: int = 0
    total_ap_subscriptions: int = 0
    total_clients: int = 0
    # Attributes the endpoint sends that the map does not interpret
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def total_links(self) -> int:
        return self.total_p2p + self.total_ap_subscriptions + self.total_clients

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the wire shape, including unknown attributes."""
        data: dict[str, Any] = dict(self.extra)
        data.update({
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "lat": self.lat,
            "lon": self.lon,
            "total_p2p": self.total_p2p,
            "total_ap_subscriptions": self.total_ap_subscriptions,
            "total_clients": self.total_clients,
        })
        if self.area is not None:
            data["area"] = self.area
        if self.url is not None:
            data["url"] = self.url
        if self.selected:
            data["selected"] = True
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], node_id: str | None = None) -> Node:
        """Parse one node record.

        Args:
            data: The raw node record
            node_id: Key the record was stored under, used when the record
                carries no ``id`` of its own

        Raises:
            MalformedDataError: If a required field is missing or invalid
        """
        if not isinstance(data, Mapping):
            raise MalformedDataError("Node record is not an object", value=data)
        raw_id = data.get("id", node_id)
        if raw_id is None:
            raise MalformedDataError("Node record is missing 'id'", field="id")
        context = f"Node {raw_id}"
        area = data.get("area")
        url = data.get("url")
        return cls(
            id=str(raw_id),
            type=str(_require(data, "type", context)),
            name=str(data.get("name") or ""),
            lat=_coordinate(data, "lat", context, 90.0),
            lon=_coordinate(data, "lon", context, 180.0),
            area=str(area) if area else None,
            url=str(url) if url else None,
            # Presence of the key marks the selected node, whatever its value
            selected="selected" in data,
            total_p2p=_counter(data, "total_p2p", context),
            total_ap_subscriptions=_counter(data, "total_ap_subscriptions", context),
            total_clients=_counter(data, "total_clients", context),
            extra=MappingProxyType({k: v for k, v in data.items() if k not in _NODE_FIELDS}),
        )


@dataclass(frozen=True)
class Link:
    """A link between two coordinate pairs.

    Endpoints are copies of the node coordinates, not node references.
    """

    id: str
    lat1: float
    lon1: float
    lat2: float
    lon2: float
    status: str = LinkStatus.INACTIVE.value
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == LinkStatus.ACTIVE.value

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data.update({
            "id": self.id,
            "lat1": self.lat1,
            "lon1": self.lon1,
            "lat2": self.lat2,
            "lon2": self.lon2,
            "status": self.status,
        })
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], position: int = 0) -> Link:
        """Parse one link record; ``position`` names links without an id."""
        if not isinstance(data, Mapping):
            raise MalformedDataError("Link record is not an object", value=data)
        raw_id = data.get("id", position)
        context = f"Link {raw_id}"
        return cls(
            id=str(raw_id),
            lat1=_coordinate(data, "lat1", context, 90.0),
            lon1=_coordinate(data, "lon1", context, 180.0),
            lat2=_coordinate(data, "lat2", context, 90.0),
            lon2=_coordinate(data, "lon2", context, 180.0),
            status=str(data.get("status") or LinkStatus.INACTIVE.value),
            extra=MappingProxyType({k: v for k, v in data.items() if k not in _LINK_FIELDS}),
        )


# =============================================================================
# SNAPSHOT
# =============================================================================


@dataclass(frozen=True)
class TopologySnapshot:
    """One complete pull of nodes, links and metadata."""

    nodes: Mapping[str, Node] = field(default_factory=lambda: MappingProxyType({}))
    links: tuple[Link, ...] = ()
    selected: str | None = None

    def get_node(self, node_id: Any) -> Node | None:
        return self.nodes.get(str(node_id))

    def to_dict(self) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        if self.selected is not None:
            meta["selected"] = self.selected
        return {
            "nodes": {node_id: node.to_dict() for node_id, node in self.nodes.items()},
            "links": [link.to_dict() for link in self.links],
            "meta": meta,
        }

    @classmethod
    def from_dict(cls, data: Any) -> TopologySnapshot:
        """Parse a topology payload.

        ``nodes`` may be an object keyed by node id or a list of node
        records; ``links`` must be a list; ``meta`` is optional.

        Raises:
            MalformedDataError: If the payload does not have the snapshot shape
        """
        if not isinstance(data, Mapping):
            raise MalformedDataError("Topology payload is not an object", value=type(data).__name__)

        raw_nodes = _require(data, "nodes", "Topology")
        nodes: dict[str, Node] = {}
        if isinstance(raw_nodes, Mapping):
            for key, record in raw_nodes.items():
                node = Node.from_dict(record, node_id=str(key))
                nodes[str(key)] = node
        elif isinstance(raw_nodes, list):
            for record in raw_nodes:
                node = Node.from_dict(record)
                nodes[node.id] = node
        else:
            raise MalformedDataError("Topology 'nodes' is not an object or list", field="nodes")

        raw_links = data.get("links")
        if raw_links is None:
            raw_links = []
        if not isinstance(raw_links, list):
            raise MalformedDataError("Topology 'links' is not a list", field="links")
        links = tuple(Link.from_dict(record, position=i) for i, record in enumerate(raw_links))

        meta = data.get("meta") or {}
        if not isinstance(meta, Mapping):
            raise MalformedDataError("Topology 'meta' is not an object", field="meta")
        selected = meta.get("selected")

        return cls(
            nodes=MappingProxyType(nodes),
            links=links,
            selected=str(selected) if selected is not None else None,
        )
