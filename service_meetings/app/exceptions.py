"""
Exceptions raised by the meetings gateway components.
"""

from typing import Any, Dict, Optional

from shared.errors import AccessLayerException, AuthenticationError, ExternalServiceError


class SigningError(AccessLayerException):
    """The meeting signature could not be produced."""

    status_code = 500

    def __init__(self, message: str = "Failed to generate signature", details: Optional[Dict[str, Any]] = None):
        super().__init__("SIGNING_ERROR", message, details)


# Identity validation

class IdentityValidationError(AuthenticationError):
    """Base class for every way a credential check can fail."""

    kind = "identity_error"


class MissingCredentialError(IdentityValidationError):
    kind = "missing_credential"

    def __init__(self, message: str = "Token is required", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class IdentityTransportError(IdentityValidationError):
    """The identity service could not be reached."""

    kind = "transport_error"


class MalformedEnvelopeError(IdentityValidationError):
    """The identity service answered with something that is not a JSON object."""

    kind = "malformed_envelope"


class SchemaMismatchError(IdentityValidationError):
    """The envelope or principal payload does not have the expected shape."""

    kind = "schema_mismatch"


class UpstreamRejectedError(IdentityValidationError):
    """The identity service understood the request and refused the token."""

    kind = "upstream_rejected"

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        super().__init__(reason, details)


# Zoom API

class UpstreamAuthError(ExternalServiceError):
    """The OAuth token exchange was refused or never completed."""

    def __init__(self, status: Optional[int], body: str, message: str = "OAuth token request failed"):
        self.status = status
        self.body = body
        super().__init__("zoom_oauth", message, details={"status": status, "body": body})


class TokenDecodeError(ExternalServiceError):
    """The OAuth endpoint accepted the request but its body could not be decoded."""

    def __init__(self, body: str, message: str = "OAuth token response could not be decoded"):
        self.body = body
        super().__init__("zoom_oauth", message, details={"body": body})


class DownstreamError(ExternalServiceError):
    """The meeting API rejected the request or could not be reached."""

    def __init__(self, status: Optional[int], body: str, message: str = "Meeting creation failed"):
        self.status = status
        self.body = body
        super().__init__("zoom_meetings", message, details={"status": status, "body": body})


class MeetingDecodeError(ExternalServiceError):
    """The meeting API reported success but its body could not be decoded."""

    def __init__(self, body: str, message: str = "Meeting response could not be decoded"):
        self.body = body
        super().__init__("zoom_meetings", message, details={"body": body})
