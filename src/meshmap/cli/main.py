#!/usr/bin/env python3
"""
meshmap CLI - fetch a network topology and export it as map layers.

Commands:
  meshmap fetch             Fetch the topology and print the GeoJSON layers
  meshmap node <id>         Show the details of one node

Examples:
  # Export the default categories to a file
  meshmap fetch --url "https://net.example.org/map?api=topology" --output map.json

  # Include unlinked nodes, leave out clients
  meshmap fetch --filter p2p,ap,unlinked

  # Inspect a node
  meshmap node 1234 --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from ..core.config import get_config
from ..core.exceptions import MeshMapException
from ..core.logging import configure_logging
from ..topology.controller import TopologyController
from ..topology.details import describe_node
from ..topology.filters import CATEGORY_ORDER, FilterState
from ..topology.source import HTTPTopologySource
from ..topology.surface import GeoJSONSurface
from ..topology.view import MapView

logger = logging.getLogger(__name__)


def parse_filter(value: str) -> dict[str, bool]:
    """Turn ``"p2p,ap"`` into a complete category mapping."""
    requested = {part.strip() for part in value.split(",") if part.strip()}
    unknown = requested.difference(CATEGORY_ORDER)
    if unknown:
        raise argparse.ArgumentTypeError(
            f"unknown categories: {', '.join(sorted(unknown))} (choose from {', '.join(CATEGORY_ORDER)})"
        )
    return {category: category in requested for category in CATEGORY_ORDER}


def build_controller(args: argparse.Namespace) -> tuple[TopologyController, GeoJSONSurface]:
    """Create a controller wired to a GeoJSON surface at the configured view."""
    config = get_config()
    url = args.url or config.topology_url
    if not url:
        raise MeshMapException("No topology URL given. Use --url or set MESHMAP_TOPOLOGY_URL.")

    view = MapView.from_settings(config)
    surface = GeoJSONSurface(center=view.center, zoom=view.zoom)
    source = HTTPTopologySource(url, timeout=args.timeout)
    controller = TopologyController(
        source=source,
        surface=surface,
        filter_state=FilterState(args.filter) if args.filter else None,
    )
    return controller, surface


def _emit(data: dict[str, Any], output: Path | None) -> None:
    text = json.dumps(data, indent=2)
    if output is not None:
        output.write_text(text + "\n", encoding="utf-8")
        print(f"Wrote {output}", file=sys.stderr)
    else:
        print(text)


async def cmd_fetch(args: argparse.Namespace) -> int:
    """Fetch the topology once and print the rendered layers."""
    try:
        controller, surface = build_controller(args)
    except MeshMapException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = await controller.refresh(focus_selected=not args.no_focus)
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    data = surface.to_dict()
    data["filter"] = controller.get_filter()
    if result.focus is not None:
        data["focus"] = {"node_id": result.focus.node_id, "outcome": result.focus.outcome.value}
    _emit(data, args.output)
    return 0


async def cmd_node(args: argparse.Namespace) -> int:
    """Fetch the topology and show one node."""
    try:
        controller, surface = build_controller(args)
    except MeshMapException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = await controller.refresh(focus_selected=False)
    if not result.ok:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    focus = controller.focus_at_node(args.node_id)
    if not focus.found:
        print(f"Error: node {args.node_id} not found", file=sys.stderr)
        return 1

    details = describe_node(focus.node)
    surface.open_popup(details)

    if args.json:
        print(json.dumps(details.to_dict(), indent=2))
        return 0

    print(f"{details.title} {details.label} [{details.css_class}]")
    if details.area:
        print(f"  {details.area}")
    for key, value in details.attributes:
        print(f"  {key}: {value}")
    if details.url:
        print(f"  Node info: {details.url}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="meshmap",
        description="Fetch a network topology and export it as map layers",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )

    # Options shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--url",
        help="Topology URL (default: MESHMAP_TOPOLOGY_URL)",
    )
    common.add_argument(
        "--filter",
        type=parse_filter,
        help=f"Comma-separated categories to show (from {', '.join(CATEGORY_ORDER)})",
    )
    common.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Fetch timeout in seconds (default: MESHMAP_FETCH_TIMEOUT)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    fetch_parser = subparsers.add_parser(
        "fetch",
        parents=[common],
        help="Fetch the topology and print the map layers",
    )
    fetch_parser.add_argument(
        "--no-focus",
        action="store_true",
        help="Do not center the view on the selected node",
    )
    fetch_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Write the layers to a file instead of stdout",
    )

    node_parser = subparsers.add_parser(
        "node",
        parents=[common],
        help="Show the details of one node",
    )
    node_parser.add_argument("node_id", help="Node id")
    node_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    return parser


async def async_main(args: argparse.Namespace) -> int:
    """Async main entry point."""
    configure_logging(level="DEBUG" if args.verbose else None)

    if args.command == "fetch":
        return await cmd_fetch(args)
    elif args.command == "node":
        return await cmd_node(args)
    else:
        create_parser().print_help()
        return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    return asyncio.run(async_main(args))


if __name__ == "__main__":
    sys.exit(main())
