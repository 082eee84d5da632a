"""
Service Error Taxonomy

Every failure a handler reports to its caller is one of these exceptions.
The HTTP layer renders them as ``{"error": message}`` with the matching
status code, so service code never builds responses itself.
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message}


class Unauthorized(ServiceError):
    """No active admin session."""
    status_code = 401
    default_message = "Unauthorized"


class ValidationFailed(ServiceError):
    """Missing required field, non-numeric price, empty cart."""
    status_code = 400
    default_message = "Missing required fields"


class NotFound(ServiceError):
    """Unresolvable table token, order, or other tenant-owned row."""
    status_code = 404
    default_message = "Not found"


class UpstreamFailure(ServiceError):
    """The store, object storage or a third-party API rejected the call."""
    status_code = 502
    default_message = "Upstream service failure"
