# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""
Topology Controller - keeps the map in sync with the remote topology.

This module manages:
- The fetch -> transform -> render cycle
- The node category filter and its round trips
- Focusing the view on a node of the current snapshot
- Dropping responses of superseded refreshes

Collaborators (topology source, rendering surface) are injected so they
can be swapped for test doubles.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..core.config import get_config
from ..core.exceptions import FocusTargetNotFound, MeshMapException
from ..core.logging import refresh_context
from .filters import FilterState, FilterUpdate
from .models import Node, TopologySnapshot
from .outcomes import Outcome
from .source import HTTPTopologySource, TopologySource
from .surface import LINKS_LAYER, NODES_LAYER, RenderingSurface
from .transform import FeatureTransformer

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[MeshMapException], Any]


class ControllerState(str, Enum):
    """Lifecycle state of the controller."""
    IDLE = "idle"          # Nothing fetched yet
    FETCHING = "fetching"  # A refresh is in flight
    READY = "ready"        # Latest refresh rendered
    ERROR = "error"        # Latest refresh failed


@dataclass
class FocusResult:
    """Outcome of a focus request."""

    node_id: str
    outcome: Outcome
    node: Node | None = None

    @property
    def found(self) -> bool:
        return self.outcome == Outcome.FOCUSED

    def raise_if_missing(self) -> None:
        """Promote a missing focus target to an error for strict callers.

        Raises:
            FocusTargetNotFound: If the node was not in the snapshot
        """
        if self.outcome == Outcome.NOT_FOUND:
            raise FocusTargetNotFound(self.node_id)


@dataclass
class RefreshResult:
    """Outcome of one refresh cycle."""

    outcome: Outcome
    sequence: int = 0
    snapshot: TopologySnapshot | None = None
    error: MeshMapException | None = None
    focus: FocusResult | None = None
    filter_update: FilterUpdate | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.RENDERED


class TopologyController:
    """
    Owns the current snapshot and filter and drives the rendering surface.

    Every ``refresh()`` is independent. Responses are numbered with a
    monotonic sequence and only the latest issued refresh may touch the
    snapshot; older responses are dropped.
    """

    def __init__(
        self,
        source: TopologySource | None,
        surface: RenderingSurface,
        filter_state: FilterState | None = None,
        transformer: FeatureTransformer | None = None,
        on_error: ErrorCallback | None = None,
        focus_zoom: int | None = None,
    ):
        """
        Initialize the TopologyController.

        Args:
            source: Where snapshots come from; None disables refreshing
            surface: Rendering surface receiving features and view commands
            filter_state: Initial filter (defaults to the default categories)
            transformer: Snapshot to feature converter
            on_error: Called with the error when a refresh fails
            focus_zoom: Zoom level used by focus_at_node
        """
        self.source = source
        self.surface = surface
        self.filter_state = filter_state or FilterState()
        self.transformer = transformer or FeatureTransformer()
        self.on_error = on_error
        self.focus_zoom = focus_zoom if focus_zoom is not None else get_config().focus_zoom

        self._state = ControllerState.IDLE
        self._snapshot: TopologySnapshot | None = None
        self._last_error: MeshMapException | None = None
        self._sequence = 0

    @classmethod
    def from_config(
        cls,
        surface: RenderingSurface,
        on_error: ErrorCallback | None = None,
    ) -> TopologyController:
        """Build a controller with an HTTP source taken from settings."""
        return cls(
            source=HTTPTopologySource.from_config(),
            surface=surface,
            on_error=on_error,
        )

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def snapshot(self) -> TopologySnapshot | None:
        return self._snapshot

    @property
    def last_error(self) -> MeshMapException | None:
        return self._last_error

    @property
    def sequence(self) -> int:
        """Number of the most recently issued refresh."""
        return self._sequence

    # -------------------------------------------------------------------------
    # Filter
    # -------------------------------------------------------------------------

    def get_filter(self) -> dict[str, bool]:
        return self.filter_state.get()

    async def set_filter(self, partial: Mapping[str, Any]) -> RefreshResult:
        """Replace the filter (merged against defaults) and refetch.

        Never refocuses: the focused node may not survive the new filter.
        """
        update = self.filter_state.set(partial)
        logger.info(f"Filter set to {self.filter_state.to_query_parameters() or '(none)'}")
        result = await self.refresh(focus_selected=False)
        result.filter_update = update
        return result

    # -------------------------------------------------------------------------
    # Refresh cycle
    # -------------------------------------------------------------------------

    async def refresh(self, focus_selected: bool = True) -> RefreshResult:
        """
        Fetch the topology for the current filter and render it.

        The surface is cleared before the fetch is issued so a stale view
        is never shown during a refetch.

        Args:
            focus_selected: Focus the snapshot's selected node, if any

        Returns:
            RefreshResult describing what happened. Fetch errors are
            reported here and through ``on_error``, never raised.
        """
        if self.source is None:
            logger.debug("No topology source configured, skipping refresh")
            return RefreshResult(outcome=Outcome.SKIPPED)

        self._sequence += 1
        sequence = self._sequence

        query = self.filter_state.to_query_parameters()
        with refresh_context(sequence, query):
            self._clear_surface()
            self._state = ControllerState.FETCHING
            logger.debug("Refresh started")

            try:
                snapshot = await self.source.fetch(query)
            except MeshMapException as e:
                if sequence != self._sequence:
                    logger.warning(f"Refresh #{sequence} failed after being superseded: {e}")
                    return RefreshResult(outcome=Outcome.STALE, sequence=sequence, error=e)
                return self._fail(sequence, e)
            except BaseException as e:
                # Unexpected errors propagate, but the latest refresh must not stay in Fetching
                if sequence == self._sequence:
                    self._abort(sequence, e)
                raise

            if sequence != self._sequence:
                logger.warning(
                    f"Dropping response of refresh #{sequence}, refresh #{self._sequence} is newer"
                )
                return RefreshResult(outcome=Outcome.STALE, sequence=sequence, snapshot=snapshot)

            self._snapshot = snapshot
            self._last_error = None
            self._render(snapshot)
            self._state = ControllerState.READY
            logger.info(
                f"Rendered {len(snapshot.nodes)} nodes and {len(snapshot.links)} links",
                extra={"extra_data": {"nodes": len(snapshot.nodes), "links": len(snapshot.links)}},
            )

            focus = None
            if focus_selected and snapshot.selected is not None:
                focus = self.focus_at_node(snapshot.selected)

            return RefreshResult(
                outcome=Outcome.RENDERED,
                sequence=sequence,
                snapshot=snapshot,
                focus=focus,
            )

    def _clear_surface(self) -> None:
        self.surface.replace_features(NODES_LAYER, [])
        self.surface.replace_features(LINKS_LAYER, [])
        self.surface.clear_popup()

    def _render(self, snapshot: TopologySnapshot) -> None:
        # Transform fully before touching the surface so it never holds half a topology
        features = self.transformer.transform(snapshot)
        self.surface.replace_features(NODES_LAYER, features.node_features)
        self.surface.replace_features(LINKS_LAYER, features.link_features)

    def _restore_previous(self) -> None:
        self._state = ControllerState.ERROR
        # The surface was cleared for the fetch; put the previous topology back
        if self._snapshot is not None:
            self._render(self._snapshot)

    def _abort(self, sequence: int, error: BaseException) -> None:
        logger.error(f"Refresh #{sequence} aborted by {type(error).__name__}: {error}")
        self._restore_previous()

    def _fail(self, sequence: int, error: MeshMapException) -> RefreshResult:
        """Enter the error state, restore the previous view and report."""
        self._last_error = error
        logger.error(f"Refresh #{sequence} failed: {error}")
        self._restore_previous()

        if self.on_error is not None:
            self.on_error(error)

        return RefreshResult(
            outcome=Outcome.FAILED,
            sequence=sequence,
            snapshot=self._snapshot,
            error=error,
        )

    # -------------------------------------------------------------------------
    # Focus
    # -------------------------------------------------------------------------

    def focus_at_node(self, node_id: Any) -> FocusResult:
        """
        Center the view on a node of the current snapshot.

        A node missing from the snapshot is not an error: nothing is sent
        to the surface and the result carries ``Outcome.NOT_FOUND``.
        """
        node = self._snapshot.get_node(node_id) if self._snapshot is not None else None
        if node is None:
            logger.warning(f"Cannot focus on node {node_id}: not in current topology")
            return FocusResult(node_id=str(node_id), outcome=Outcome.NOT_FOUND)

        self.surface.center_and_zoom(node.lat, node.lon, self.focus_zoom)
        # Some surfaces do not repaint after a programmatic center change
        self.surface.redraw(NODES_LAYER)
        self.surface.redraw(LINKS_LAYER)
        return FocusResult(node_id=node.id, outcome=Outcome.FOCUSED, node=node)
