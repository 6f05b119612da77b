# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Topology Source - pulls topology snapshots from the remote endpoint.

The endpoint answers ``GET <topology_url>&filter=<categories>`` with a JSON
snapshot. Failures surface as ``NetworkError`` or ``MalformedDataError``;
there are no retries here, retry policy belongs to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol, runtime_checkable

import aiohttp

from ..core.config import get_config
from ..core.exceptions import ConfigException, MalformedDataError, NetworkError
from .models import TopologySnapshot

logger = logging.getLogger(__name__)


@runtime_checkable
class TopologySource(Protocol):
    """Anything that can produce a snapshot for a filter query."""

    async def fetch(self, query_parameters: str) -> TopologySnapshot:
        """Fetch the snapshot for a comma-joined category list."""
        ...


def build_topology_url(topology_url: str, query_parameters: str) -> str:
    """Append the filter parameter to the topology URL.

    The configured URL usually already carries a query string; when it
    does not, the parameter starts one.
    """
    separator = "&" if "?" in topology_url else "?"
    return f"{topology_url}{separator}filter={query_parameters}"


class HTTPTopologySource:
    """Fetches topology snapshots over HTTP with aiohttp."""

    def __init__(self, topology_url: str, timeout: float | None = None):
        if not topology_url:
            raise ConfigException("No topology URL configured", setting="MESHMAP_TOPOLOGY_URL")
        self.topology_url = topology_url
        self.timeout = timeout if timeout is not None else get_config().fetch_timeout

    @classmethod
    def from_config(cls) -> HTTPTopologySource | None:
        """Build a source from settings; None when no URL is configured."""
        config = get_config()
        if not config.topology_url:
            return None
        return cls(config.topology_url, timeout=config.fetch_timeout)

    async def fetch(self, query_parameters: str) -> TopologySnapshot:
        """Fetch and parse one snapshot.

        Args:
            query_parameters: Comma-joined enabled categories

        Returns:
            The parsed TopologySnapshot

        Raises:
            NetworkError: On connection failure, timeout or non-2xx status
            MalformedDataError: If the body is not a valid snapshot
        """
        url = build_topology_url(self.topology_url, query_parameters)
        logger.debug(f"Fetching topology from {url}")

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as response:
                    if not 200 <= response.status < 300:
                        raise NetworkError(url, status=response.status)
                    data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise NetworkError(url, detail=str(e) or type(e).__name__) from e
        except TimeoutError as e:
            raise NetworkError(url, detail=f"timed out after {self.timeout}s") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedDataError(f"Topology from {url} is not valid JSON: {e}") from e

        snapshot = TopologySnapshot.from_dict(data)
        logger.debug(f"Fetched {len(snapshot.nodes)} nodes and {len(snapshot.links)} links")
        return snapshot
