"""Global test fixtures for the meshmap test suite."""

from __future__ import annotations

import asyncio
import os
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from meshmap.core.config import clear_config_cache
from meshmap.topology.models import TopologySnapshot

# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_config():
    """Drop the cached settings around every test."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove all MESHMAP_ environment variables and any .env file."""
    for key in list(os.environ.keys()):
        if key.startswith("MESHMAP_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


# ============================================================================
# Topology Payloads
# ============================================================================


@pytest.fixture
def topology_payload() -> dict[str, Any]:
    """A small topology as served by the endpoint."""
    return {
        "nodes": {
            "n1": {
                "id": "n1",
                "type": "p2p",
                "name": "Hilltop",
                "lat": 37.98,
                "lon": 23.73,
                "area": "Acropolis",
                "url": "https://net.example.org/node/n1",
                "selected": True,
                "total_p2p": 3,
                "total_ap_subscriptions": 0,
                "total_clients": 2,
            },
            "n2": {
                "id": "n2",
                "type": "ap",
                "name": "Square",
                "lat": 37.97,
                "lon": 23.72,
                "total_p2p": 1,
                "total_ap_subscriptions": 0,
                "total_clients": 4,
            },
            "n3": {
                "id": "n3",
                "type": "client",
                "name": "Rooftop",
                "lat": 37.96,
                "lon": 23.71,
                "total_p2p": 0,
                "total_ap_subscriptions": 1,
                "total_clients": 0,
            },
        },
        "links": [
            {"id": "l1", "lat1": 37.98, "lon1": 23.73, "lat2": 37.97, "lon2": 23.72, "status": "active"},
            {"id": "l2", "lat1": 37.97, "lon1": 23.72, "lat2": 37.96, "lon2": 23.71, "status": "inactive"},
        ],
        "meta": {"selected": "n1"},
    }


@pytest.fixture
def snapshot(topology_payload) -> TopologySnapshot:
    return TopologySnapshot.from_dict(topology_payload)


# ============================================================================
# Collaborator Doubles
# ============================================================================


class FakeSource:
    """Topology source returning queued results.

    Each queued item is a snapshot, an exception to raise, or an
    ``asyncio.Future`` resolved later by the test to control ordering.
    """

    def __init__(self, *results: Any):
        self.results = list(results)
        self.queries: list[str] = []

    async def fetch(self, query_parameters: str) -> TopologySnapshot:
        self.queries.append(query_parameters)
        result = self.results.pop(0)
        if isinstance(result, asyncio.Future):
            result = await result
        if isinstance(result, BaseException):
            raise result
        return result


@pytest.fixture
def mock_surface():
    """A rendering surface recording every command."""
    surface = MagicMock()
    surface.replace_features = MagicMock()
    surface.clear_popup = MagicMock()
    surface.center_and_zoom = MagicMock()
    surface.redraw = MagicMock()
    return surface


@pytest.fixture
def fake_source_factory():
    return FakeSource


def make_mock_session(status: int = 200, payload: Any = None, get_side_effect: BaseException | None = None):
    """Build an aiohttp.ClientSession double for ``async with`` use."""
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=payload)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = MagicMock()
    if get_side_effect is not None:
        mock_session.get = MagicMock(side_effect=get_side_effect)
    else:
        mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session, mock_response


@pytest.fixture
def mock_session_factory():
    return make_mock_session
