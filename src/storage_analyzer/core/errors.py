"""Exception hierarchy of the analyzer core."""

from __future__ import annotations


class StorageAnalyzerError(Exception):
    """Base class for analyzer errors."""


class InvalidArgumentError(StorageAnalyzerError, ValueError):
    """Raised for structurally invalid input, e.g. a missing device graph."""


class NotFoundError(StorageAnalyzerError, LookupError):
    """Raised when a device does not belong to the device graph in use."""
