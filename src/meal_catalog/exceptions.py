"""Custom exception classes for the meal catalog pipeline.

Only the file boundary raises these. Everything inside the reconciler is
recoverable and ends up in the change report instead.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class MealCatalogError(Exception):
    """Base exception class for all fatal pipeline errors.

    Attributes:
        message: Human-readable error message.
        details: Optional additional error context (paths, positions).
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CatalogLoadError(MealCatalogError):
    """Input catalog is missing, unreadable, not JSON, or not a JSON object."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Could not load catalog '{path}': {reason}", details={"path": path})


class CatalogWriteError(MealCatalogError):
    """Output catalog or report could not be written."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Could not write '{path}': {reason}", details={"path": path})
