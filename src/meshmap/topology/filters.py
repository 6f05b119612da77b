# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Node category visibility filter.

The filter is a complete ``category -> bool`` mapping over a fixed set of
categories. Updates are merged against the defaults, never against the
previous state: ``set({"client": False})`` after ``set({"unlinked": True})``
leaves ``unlinked`` back at its default.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .outcomes import Outcome

logger = logging.getLogger(__name__)


class Category(str, Enum):
    """Visibility bucket a node belongs to."""
    P2P = "p2p"
    AP = "ap"
    CLIENT = "client"
    UNLINKED = "unlinked"


# Query parameter order; must stay stable
CATEGORY_ORDER: tuple[str, ...] = tuple(c.value for c in Category)

DEFAULT_FILTER: Mapping[str, bool] = {
    Category.P2P.value: True,
    Category.AP.value: True,
    Category.CLIENT.value: True,
    Category.UNLINKED.value: False,
}

CATEGORY_LABELS: Mapping[str, str] = {
    Category.P2P.value: "Backbone",
    Category.AP.value: "AP",
    Category.CLIENT.value: "Clients",
    Category.UNLINKED.value: "Unlinked",
}


@dataclass
class FilterUpdate:
    """What a ``FilterState.set`` call did with each key it was given."""

    state: dict[str, bool]
    outcomes: dict[str, Outcome] = field(default_factory=dict)

    @property
    def ignored(self) -> list[str]:
        return [key for key, outcome in self.outcomes.items() if outcome == Outcome.IGNORED]


class FilterState:
    """Current set of enabled node categories."""

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._state: dict[str, bool] = dict(DEFAULT_FILTER)
        if initial:
            self.set(initial)

    def get(self) -> dict[str, bool]:
        """Return a copy of the complete category mapping."""
        return dict(self._state)

    def set(self, partial: Mapping[str, Any]) -> FilterUpdate:
        """Replace the state with ``defaults`` overridden by ``partial``.

        Keys that are not known categories are ignored and reported as
        ``Outcome.IGNORED`` in the returned update.
        """
        state = dict(DEFAULT_FILTER)
        outcomes: dict[str, Outcome] = {}
        for key, value in partial.items():
            category = key.value if isinstance(key, Category) else str(key)
            if category in state:
                state[category] = bool(value)
                outcomes[category] = Outcome.APPLIED
            else:
                outcomes[category] = Outcome.IGNORED

        self._state = state
        update = FilterUpdate(state=dict(state), outcomes=outcomes)
        if update.ignored:
            logger.debug(f"Ignored unknown filter categories: {', '.join(update.ignored)}")
        return update

    def enabled(self) -> list[str]:
        """Enabled categories in query parameter order."""
        return [category for category in CATEGORY_ORDER if self._state[category]]

    def to_query_parameters(self) -> str:
        """Comma-joined enabled categories, e.g. ``"p2p,ap,client"``."""
        return ",".join(self.enabled())

    def __repr__(self) -> str:
        return f"FilterState({self._state!r})"
