"""
Tests for TopologyController.

Tests cover:
- Refresh cycle (clear, fetch, render, focus)
- Filter round trips
- Focus on present and missing nodes
- Error state and restoring the previous view
- Dropping responses of superseded refreshes
"""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import call

import pytest

from meshmap.core.exceptions import FocusTargetNotFound, MalformedDataError, NetworkError
from meshmap.topology.controller import ControllerState, TopologyController
from meshmap.topology.models import TopologySnapshot
from meshmap.topology.outcomes import Outcome
from meshmap.topology.surface import LINKS_LAYER, NODES_LAYER, GeoJSONSurface

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def other_snapshot():
    return TopologySnapshot.from_dict({
        "nodes": {"z": {"id": "z", "type": "ap", "name": "Other", "lat": 38.0, "lon": 24.0}},
        "links": [],
    })


def make_controller(source, surface, **kwargs) -> TopologyController:
    kwargs.setdefault("focus_zoom", 15)
    return TopologyController(source=source, surface=surface, **kwargs)


# =============================================================================
# Refresh
# =============================================================================


class TestRefresh:
    """Tests for the fetch -> transform -> render cycle."""

    @pytest.mark.asyncio
    async def test_refresh_renders_and_focuses_selected(self, snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(snapshot), mock_surface)

        result = await controller.refresh()

        assert result.ok
        assert result.outcome == Outcome.RENDERED
        assert controller.state == ControllerState.READY
        assert controller.snapshot is snapshot
        mock_surface.center_and_zoom.assert_called_once_with(37.98, 23.73, 15)
        assert mock_surface.redraw.call_args_list == [call(NODES_LAYER), call(LINKS_LAYER)]
        assert result.focus.outcome == Outcome.FOCUSED

    @pytest.mark.asyncio
    async def test_refresh_clears_before_fetch(self, snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(snapshot), mock_surface)

        await controller.refresh()

        calls = mock_surface.mock_calls
        assert calls[0] == call.replace_features(NODES_LAYER, [])
        assert calls[1] == call.replace_features(LINKS_LAYER, [])
        assert calls[2] == call.clear_popup()

    @pytest.mark.asyncio
    async def test_surface_cleared_while_fetching(self, snapshot, fake_source_factory):
        surface = GeoJSONSurface()
        pending = asyncio.get_running_loop().create_future()
        controller = make_controller(fake_source_factory(snapshot, pending), surface)
        await controller.refresh()
        surface.open_popup("details")

        task = asyncio.create_task(controller.refresh())
        await asyncio.sleep(0)

        assert controller.state == ControllerState.FETCHING
        assert surface.layers[NODES_LAYER] == []
        assert surface.layers[LINKS_LAYER] == []
        assert surface.popup is None

        pending.set_result(snapshot)
        await task
        assert len(surface.layers[NODES_LAYER]) == 3

    @pytest.mark.asyncio
    async def test_refresh_replaces_features(self, snapshot, other_snapshot, fake_source_factory):
        surface = GeoJSONSurface()
        controller = make_controller(fake_source_factory(snapshot, other_snapshot), surface)

        await controller.refresh()
        await controller.refresh()

        assert [f.id for f in surface.layers[NODES_LAYER]] == ["z"]
        assert surface.layers[LINKS_LAYER] == []

    @pytest.mark.asyncio
    async def test_refresh_without_focus(self, snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(snapshot), mock_surface)

        result = await controller.refresh(focus_selected=False)

        assert result.focus is None
        mock_surface.center_and_zoom.assert_not_called()
        mock_surface.redraw.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_no_selected_node(self, other_snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(other_snapshot), mock_surface)

        result = await controller.refresh()

        assert result.focus is None
        mock_surface.center_and_zoom.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_selected_missing_from_nodes(self, mock_surface, fake_source_factory):
        snapshot = TopologySnapshot.from_dict({
            "nodes": {"a": {"type": "ap", "lat": 1, "lon": 2}},
            "meta": {"selected": "ghost"},
        })
        controller = make_controller(fake_source_factory(snapshot), mock_surface)

        result = await controller.refresh()

        assert result.ok
        assert result.focus.outcome == Outcome.NOT_FOUND
        mock_surface.center_and_zoom.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_sends_filter_query(self, snapshot, mock_surface, fake_source_factory):
        source = fake_source_factory(snapshot)
        controller = make_controller(source, mock_surface)

        await controller.refresh()

        assert source.queries == ["p2p,ap,client"]

    @pytest.mark.asyncio
    async def test_render_logged_with_counts(self, snapshot, mock_surface, fake_source_factory, caplog):
        caplog.set_level(logging.INFO, logger="meshmap.topology.controller")
        controller = make_controller(fake_source_factory(snapshot), mock_surface)

        await controller.refresh()

        rendered = [r for r in caplog.records if r.getMessage().startswith("Rendered")]
        assert rendered[0].extra_data == {"nodes": 3, "links": 2}

    @pytest.mark.asyncio
    async def test_refresh_without_source_is_skipped(self, mock_surface):
        controller = make_controller(None, mock_surface)

        result = await controller.refresh()

        assert result.outcome == Outcome.SKIPPED
        assert controller.state == ControllerState.IDLE
        mock_surface.replace_features.assert_not_called()

    def test_initial_state(self, mock_surface):
        controller = make_controller(None, mock_surface)
        assert controller.state == ControllerState.IDLE
        assert controller.snapshot is None
        assert controller.sequence == 0

    def test_focus_zoom_from_config(self, clean_env, monkeypatch, mock_surface):
        monkeypatch.setenv("MESHMAP_FOCUS_ZOOM", "12")
        controller = TopologyController(source=None, surface=mock_surface)
        assert controller.focus_zoom == 12


# =============================================================================
# Filter
# =============================================================================


class TestFilter:
    """Tests for get_filter / set_filter."""

    def test_get_filter_defaults(self, mock_surface):
        controller = make_controller(None, mock_surface)
        assert controller.get_filter() == {"p2p": True, "ap": True, "client": True, "unlinked": False}

    @pytest.mark.asyncio
    async def test_set_filter_refetches_without_focus(self, snapshot, mock_surface, fake_source_factory):
        source = fake_source_factory(snapshot)
        controller = make_controller(source, mock_surface)

        result = await controller.set_filter({"unlinked": True, "client": False})

        assert source.queries == ["p2p,ap,unlinked"]
        assert result.ok
        assert result.focus is None
        mock_surface.center_and_zoom.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_filter_merges_against_defaults(self, snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(snapshot, snapshot), mock_surface)

        await controller.set_filter({"unlinked": True})
        await controller.set_filter({"client": False})

        assert controller.get_filter() == {"p2p": True, "ap": True, "client": False, "unlinked": False}

    @pytest.mark.asyncio
    async def test_set_filter_reports_ignored_keys(self, snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(snapshot), mock_surface)

        result = await controller.set_filter({"mesh": True})

        assert result.filter_update.ignored == ["mesh"]
        assert controller.get_filter() == {"p2p": True, "ap": True, "client": True, "unlinked": False}


# =============================================================================
# Focus
# =============================================================================


class TestFocus:
    """Tests for focus_at_node."""

    @pytest.mark.asyncio
    async def test_focus_present_node(self, snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(snapshot), mock_surface)
        await controller.refresh(focus_selected=False)

        result = controller.focus_at_node("n2")

        assert result.found
        assert result.node.name == "Square"
        mock_surface.center_and_zoom.assert_called_once_with(37.97, 23.72, 15)
        assert mock_surface.redraw.call_count == 2

    @pytest.mark.asyncio
    async def test_focus_missing_node_is_noop(self, snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(snapshot), mock_surface)
        await controller.refresh(focus_selected=False)
        mock_surface.reset_mock()
        state_before = controller.state

        result = controller.focus_at_node("missing")

        assert result.outcome == Outcome.NOT_FOUND
        assert controller.state == state_before
        assert controller.snapshot is snapshot
        assert mock_surface.mock_calls == []

    def test_focus_before_any_fetch(self, mock_surface):
        controller = make_controller(None, mock_surface)

        result = controller.focus_at_node("n1")

        assert result.outcome == Outcome.NOT_FOUND
        mock_surface.center_and_zoom.assert_not_called()

    def test_strict_callers_can_raise(self, mock_surface):
        controller = make_controller(None, mock_surface)

        with pytest.raises(FocusTargetNotFound) as exc_info:
            controller.focus_at_node("n9").raise_if_missing()

        assert exc_info.value.node_id == "n9"

    @pytest.mark.asyncio
    async def test_found_does_not_raise(self, snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(snapshot), mock_surface)
        await controller.refresh(focus_selected=False)

        controller.focus_at_node("n1").raise_if_missing()


# =============================================================================
# Errors
# =============================================================================


class TestErrors:
    """Tests for failed refreshes."""

    @pytest.mark.asyncio
    async def test_failure_reported_not_raised(self, mock_surface, fake_source_factory):
        error = NetworkError("https://net.example.org", status=500)
        errors = []
        controller = make_controller(fake_source_factory(error), mock_surface, on_error=errors.append)

        result = await controller.refresh()

        assert result.outcome == Outcome.FAILED
        assert result.error is error
        assert errors == [error]
        assert controller.state == ControllerState.ERROR
        assert controller.last_error is error

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_snapshot_visible(self, snapshot, fake_source_factory):
        surface = GeoJSONSurface()
        source = fake_source_factory(snapshot, MalformedDataError("bad payload"))
        controller = make_controller(source, surface)
        await controller.refresh()

        result = await controller.refresh()

        assert result.outcome == Outcome.FAILED
        assert controller.snapshot is snapshot
        assert result.snapshot is snapshot
        assert [f.id for f in surface.layers[NODES_LAYER]] == ["n1", "n2", "n3"]
        assert len(surface.layers[LINKS_LAYER]) == 2

    @pytest.mark.asyncio
    async def test_failure_without_previous_snapshot_leaves_empty_surface(self, fake_source_factory):
        surface = GeoJSONSurface()
        controller = make_controller(fake_source_factory(NetworkError("u")), surface)

        await controller.refresh()

        assert surface.layers[NODES_LAYER] == []
        assert controller.snapshot is None

    @pytest.mark.asyncio
    async def test_recovery_after_error(self, snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(NetworkError("u"), snapshot), mock_surface)

        await controller.refresh()
        result = await controller.refresh()

        assert result.ok
        assert controller.state == ControllerState.READY
        assert controller.last_error is None

    @pytest.mark.asyncio
    async def test_unexpected_exceptions_propagate(self, snapshot, fake_source_factory):
        surface = GeoJSONSurface()
        errors = []
        controller = make_controller(
            fake_source_factory(snapshot, RuntimeError("bug")), surface, on_error=errors.append
        )
        await controller.refresh()

        with pytest.raises(RuntimeError):
            await controller.refresh()

        assert controller.state == ControllerState.ERROR
        assert controller.snapshot is snapshot
        assert [f.id for f in surface.layers[NODES_LAYER]] == ["n1", "n2", "n3"]
        assert len(surface.layers[LINKS_LAYER]) == 2
        assert errors == []

    @pytest.mark.asyncio
    async def test_cancelled_refresh_does_not_stay_fetching(self, mock_surface, fake_source_factory):
        pending = asyncio.get_running_loop().create_future()
        controller = make_controller(fake_source_factory(pending), mock_surface)

        task = asyncio.create_task(controller.refresh())
        await asyncio.sleep(0)
        assert controller.state == ControllerState.FETCHING
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert controller.state == ControllerState.ERROR


# =============================================================================
# Concurrent refreshes
# =============================================================================


class TestStaleResponses:
    """Only the most recently issued refresh may update the snapshot."""

    @pytest.mark.asyncio
    async def test_slow_earlier_response_dropped(self, snapshot, other_snapshot, fake_source_factory):
        loop = asyncio.get_running_loop()
        slow, fast = loop.create_future(), loop.create_future()
        surface = GeoJSONSurface()
        controller = make_controller(fake_source_factory(slow, fast), surface)

        first = asyncio.create_task(controller.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(controller.refresh())
        await asyncio.sleep(0)

        fast.set_result(other_snapshot)
        second_result = await second
        slow.set_result(snapshot)
        first_result = await first

        assert second_result.outcome == Outcome.RENDERED
        assert first_result.outcome == Outcome.STALE
        assert controller.snapshot is other_snapshot
        assert [f.id for f in surface.layers[NODES_LAYER]] == ["z"]
        assert surface.center is None

    @pytest.mark.asyncio
    async def test_stale_failure_does_not_enter_error(self, other_snapshot, fake_source_factory):
        loop = asyncio.get_running_loop()
        slow, fast = loop.create_future(), loop.create_future()
        errors = []
        controller = make_controller(
            fake_source_factory(slow, fast), GeoJSONSurface(), on_error=errors.append
        )

        first = asyncio.create_task(controller.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(controller.refresh())
        await asyncio.sleep(0)

        fast.set_result(other_snapshot)
        await second
        slow.set_result(NetworkError("u"))
        first_result = await first

        assert first_result.outcome == Outcome.STALE
        assert controller.state == ControllerState.READY
        assert errors == []

    @pytest.mark.asyncio
    async def test_sequence_increments(self, snapshot, mock_surface, fake_source_factory):
        controller = make_controller(fake_source_factory(snapshot, snapshot), mock_surface)

        first = await controller.refresh()
        second = await controller.refresh()

        assert (first.sequence, second.sequence) == (1, 2)
        assert controller.sequence == 2
