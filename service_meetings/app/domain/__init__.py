"""
Domain utilities for the Meetings Service.

Includes the authentication gate wired in front of the ``/api`` routes and
the meeting-creation use case that sits between the handlers and the
adapters.
"""

from .auth_middleware import AuthGate, extract_credential
from .meetings import MeetingService, apply_meeting_defaults

__all__ = [
    "AuthGate",
    "MeetingService",
    "apply_meeting_defaults",
    "extract_credential",
]
