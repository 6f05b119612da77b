# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Two-way sync between a category toggle control and the controller filter."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .filters import CATEGORY_LABELS, CATEGORY_ORDER

if TYPE_CHECKING:
    from .controller import RefreshResult, TopologyController

logger = logging.getLogger(__name__)


@runtime_checkable
class ToggleControl(Protocol):
    """A set of on/off buttons, one per category."""

    def set_active(self, category: str, active: bool) -> None:
        ...

    def is_active(self, category: str) -> bool:
        ...


class ToggleGroup:
    """Plain in-memory toggle control with a display label per category."""

    def __init__(self, categories: Iterable[str] = CATEGORY_ORDER):
        self.labels = {category: CATEGORY_LABELS.get(category, category) for category in categories}
        self._active = {category: False for category in self.labels}

    def set_active(self, category: str, active: bool) -> None:
        self._active[category] = bool(active)

    def is_active(self, category: str) -> bool:
        return self._active.get(category, False)

    def active_categories(self) -> list[str]:
        return [category for category, active in self._active.items() if active]


class FilterControlBinding:
    """Keeps a toggle control and the controller's filter consistent.

    Holds no filter state of its own: the control is initialized from the
    controller, and every interaction pushes the complete mapping back.
    """

    def __init__(self, controller: TopologyController, control: ToggleControl):
        self.controller = controller
        self.control = control
        self.load_state()

    def load_state(self) -> None:
        """Set every toggle to the controller's current filter."""
        for category, enabled in self.controller.get_filter().items():
            self.control.set_active(category, enabled)

    async def save_state(self) -> RefreshResult:
        """Send the complete mapping read from the toggles to the controller."""
        mapping = {
            category: self.control.is_active(category)
            for category in self.controller.get_filter()
        }
        return await self.controller.set_filter(mapping)

    async def on_toggle(self, category: str) -> RefreshResult:
        """Handle a click on one category toggle."""
        self.control.set_active(category, not self.control.is_active(category))
        logger.debug(f"Toggled {category} to {self.control.is_active(category)}")
        return await self.save_state()
