"""
Error taxonomy for the analytics core.

Every error carries the HTTP status a controller should answer with, so the
boundary can translate failures without inspecting messages.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional


class AnalyticsError(Exception):
    """Base exception for analytics core errors."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """JSON body for the HTTP response."""
        return {"error": self.error, "message": self.message}


class InvalidParameterError(AnalyticsError):
    """Malformed or out-of-range input."""

    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.error = f"Invalid {field} parameter"

    @classmethod
    def not_one_of(
        cls, field: str, label: str, accepted: Iterable[str]
    ) -> "InvalidParameterError":
        """Build the error for a value outside a fixed set."""
        return cls(field, f"{label} must be one of: {', '.join(accepted)}")


class NotFoundError(AnalyticsError):
    """No data for otherwise valid parameters."""

    status_code = 404
    error = "Not Found"


class UpstreamFailureError(AnalyticsError):
    """A connector or external analytics module failed."""

    status_code = 500


class TransientConnectorError(UpstreamFailureError):
    """Connector failure worth retrying (overload, dropped connection)."""
    pass
