# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Tagged outcomes for operations that tolerate bad input.

Unknown filter categories and missing focus targets are not errors, but
callers still need to see that nothing happened. Each permissive
operation returns one of these values instead of silently returning None.
"""

from __future__ import annotations

from enum import Enum


class Outcome(str, Enum):
    """Result tag of a permissive operation."""
    APPLIED = "applied"      # Input was used
    IGNORED = "ignored"      # Input was not recognised and had no effect
    FOCUSED = "focused"      # View was centered on the requested node
    NOT_FOUND = "not_found"  # Requested node is not in the current snapshot
    RENDERED = "rendered"    # Fetched snapshot was handed to the surface
    STALE = "stale"          # Response belonged to a superseded refresh and was dropped
    FAILED = "failed"        # Fetch failed; previous snapshot kept
    SKIPPED = "skipped"      # No topology source configured
