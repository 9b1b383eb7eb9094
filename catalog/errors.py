"""
Catalog error taxonomy.

Core functions raise these; the routers translate them to HTTP responses.
"""
from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Unexpected/internal failure. Reported generically to callers."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_detail(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Safe, JSON-ready error body"""
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        if request_id is not None:
            body["request_id"] = request_id
        return body


class RequestValidationFailed(CatalogError):
    """Caller sent a malformed request."""

    status_code = 400


class QueryValidationError(RequestValidationFailed):
    """List query parameters failed type/enum/bounds checks."""


class InvalidRangeError(RequestValidationFailed):
    """A directly supplied range has min > max."""


class ProductNotFound(CatalogError):
    status_code = 404


class UpstreamInvalid(CatalogError):
    """The model replied with non-JSON or schema-invalid JSON."""

    status_code = 502


class ModelInvocationError(CatalogError):
    """The model could not be reached or returned an error response."""

    status_code = 502
