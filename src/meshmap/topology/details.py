# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Content of the node detail popup, independent of any markup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .models import Node
from .transform import links_summary


@dataclass(frozen=True)
class NodeDetails:
    """What the popup shows for one node."""

    title: str
    label: str
    css_class: str
    attributes: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    area: str | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "label": self.label,
            "class": self.css_class,
            "area": self.area,
            "attributes": dict(self.attributes),
            "url": self.url,
        }


def describe_node(node: Node) -> NodeDetails:
    return NodeDetails(
        title=node.name,
        label=f"#{node.id}",
        css_class=node.type,
        attributes=(("Links", links_summary(node)),),
        area=node.area,
        url=node.url,
    )
