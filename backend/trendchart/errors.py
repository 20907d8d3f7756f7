"""Exceptions raised by the trendline engine and its remote client."""
from typing import Any, Dict, List, Optional


class TrendchartError(Exception):
    """Base class for every error raised by this package."""


class ScaleUnavailableError(TrendchartError):
    """The viewport has no usable axis scale (e.g. before the first data load)."""


class RemoteSyncError(TrendchartError):
    """A remote CRUD call failed for a reason other than validation."""

    def __init__(self, operation: str, detail: Optional[str] = None) -> None:
        message = f"Failed to {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.operation = operation
        self.detail = detail


class TrendlineValidationError(RemoteSyncError):
    """The API rejected a trendline payload; ``errors`` holds the field-level detail."""

    def __init__(self, operation: str, errors: Optional[List[Dict[str, Any]]] = None) -> None:
        super().__init__(operation, "Invalid trendline data")
        self.errors = errors or []

    @property
    def fields(self) -> List[str]:
        names: List[str] = []
        for error in self.errors:
            loc = error.get("loc") or error.get("path") or []
            if loc:
                names.append(str(loc[-1]))
        return names
