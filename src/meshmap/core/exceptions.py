# SPDX-License-Identifier: MIT
# Copyright (c) 2026 meshmap Contributors

"""Exception hierarchy for meshmap.

Every error raised by the topology pipeline derives from
``MeshMapException`` so callers can catch the whole family at once and
serialize it for display.
"""

from __future__ import annotations

from typing import Any


class MeshMapException(Exception):
    """Base exception for all meshmap errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class NetworkError(MeshMapException):
    """Exception for transport failures while fetching a topology.

    Raised when:
    - The endpoint cannot be reached
    - The request times out
    - The endpoint answers with a non-success HTTP status
    """

    def __init__(self, url: str, status: int | None = None, detail: str = ""):
        message = f"Failed to fetch topology from {url}"
        if status is not None:
            message += f": HTTP {status}"
        if detail:
            message += f": {detail}"
        details: dict[str, Any] = {"url": url}
        if status is not None:
            details["status"] = status
        super().__init__(message, details)
        self.url = url
        self.status = status


class MalformedDataError(MeshMapException):
    """Exception for topology payloads that do not match the snapshot shape.

    Raised when:
    - The body is not valid JSON
    - A required field is missing
    - A field has the wrong type or an out of range value
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class FocusTargetNotFound(MeshMapException):
    """Soft error for a focus request on a node missing from the snapshot.

    The controller never raises this itself; it is carried by the focus
    result and only raised when a caller opts in.
    """

    def __init__(self, node_id: str):
        super().__init__(f"Node not found: {node_id}", {"node_id": node_id})
        self.node_id = node_id


class ConfigException(MeshMapException):
    """Exception for configuration errors.

    Raised when:
    - A coordinate setting cannot be parsed
    - A required setting (such as the topology URL) is missing
    """

    def __init__(self, message: str, setting: str | None = None):
        details = {}
        if setting:
            details["setting"] = setting
        super().__init__(message, details)
        self.setting = setting
