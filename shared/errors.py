"""
Shared error handling for the Meeting Access Gateway.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel
from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for gateway services."""

    status_code: int = 500
    # Upstream diagnostics stay in the logs unless a subclass opts in.
    expose_details: bool = True

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        # Get trace ID from current span
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details if self.expose_details else {}
        )


class AuthenticationError(AccessLayerException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class ValidationError(AccessLayerException):
    """Malformed client input."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class ConfigurationError(AccessLayerException):
    """Required configuration is missing or invalid."""

    status_code = 500

    def __init__(self, message: str = "Service misconfigured", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ExternalServiceError(AccessLayerException):
    """External service errors."""

    status_code = 502
    expose_details = False

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)


class ClientClosedRequestError(AccessLayerException):
    """The caller went away before the response was ready."""

    status_code = 499

    def __init__(self, message: str = "Client closed request", details: Optional[Dict[str, Any]] = None):
        super().__init__("CLIENT_CLOSED_REQUEST", message, details)
