# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""meshmap - live network topology on a map.

Pulls topology snapshots (nodes and links with coordinates) from a
community network endpoint, derives display attributes, filters nodes by
category and drives a rendering surface.

CLI entry point: ``meshmap``
"""

__version__ = "1.0.0"

from . import (
    core as core,
    topology as topology,
)
