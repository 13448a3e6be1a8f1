"""Exception types raised across the wifidata package."""

from __future__ import annotations

__all__ = [
    "WifiDataError",
    "ValidationError",
    "RecordNotFoundError",
    "SourceError",
    "DuplicateRecordError",
]


class WifiDataError(Exception):
    """Base class for every error raised by wifidata."""


class ValidationError(WifiDataError, ValueError):
    """A request parameter is missing, malformed or out of range."""


class RecordNotFoundError(WifiDataError, LookupError):
    """No WiFi point exists for the requested identifier."""

    def __init__(self, point_id: str):
        self.point_id = point_id
        super().__init__(f"WiFi point not found with ID: {point_id}")


class SourceError(WifiDataError):
    """The ingestion source could not be opened or read."""


class DuplicateRecordError(WifiDataError):
    """A bulk write collided with identifiers already in the store."""
