"""
meshmap topology - synchronization and filtering pipeline.

Fetches topology snapshots, turns them into renderable features, applies
the category filter and keeps toggle controls in sync with it.
"""

from meshmap.topology.binding import FilterControlBinding, ToggleControl, ToggleGroup
from meshmap.topology.controller import (
    ControllerState,
    FocusResult,
    RefreshResult,
    TopologyController,
)
from meshmap.topology.details import NodeDetails, describe_node
from meshmap.topology.filters import (
    CATEGORY_LABELS,
    CATEGORY_ORDER,
    DEFAULT_FILTER,
    Category,
    FilterState,
    FilterUpdate,
)
from meshmap.topology.models import Link, LinkStatus, Node, NodeType, TopologySnapshot
from meshmap.topology.outcomes import Outcome
from meshmap.topology.source import HTTPTopologySource, TopologySource, build_topology_url
from meshmap.topology.surface import (
    LINKS_LAYER,
    NODES_LAYER,
    GeoJSONSurface,
    RenderingSurface,
)
from meshmap.topology.transform import (
    FeatureTransformer,
    RenderableFeature,
    TransformedTopology,
    links_summary,
    node_color,
)
from meshmap.topology.view import MapView, parse_lat_lon

__all__ = [
    # Models
    "Node",
    "NodeType",
    "Link",
    "LinkStatus",
    "TopologySnapshot",
    # Filter
    "Category",
    "CATEGORY_ORDER",
    "CATEGORY_LABELS",
    "DEFAULT_FILTER",
    "FilterState",
    "FilterUpdate",
    # Transform
    "FeatureTransformer",
    "RenderableFeature",
    "TransformedTopology",
    "links_summary",
    "node_color",
    # Source
    "TopologySource",
    "HTTPTopologySource",
    "build_topology_url",
    # Surface
    "RenderingSurface",
    "GeoJSONSurface",
    "NODES_LAYER",
    "LINKS_LAYER",
    # Controller
    "TopologyController",
    "ControllerState",
    "RefreshResult",
    "FocusResult",
    "Outcome",
    # Controls
    "FilterControlBinding",
    "ToggleControl",
    "ToggleGroup",
    # View and details
    "MapView",
    "parse_lat_lon",
    "NodeDetails",
    "describe_node",
]
