"""
Adapters package for the Meetings Service.

Contains HTTP client wrappers for the upstream services:

- DooTask user-info endpoint (credential validation)
- Zoom Server-To-Server OAuth token endpoint
- Zoom meeting creation API

Every adapter makes a single attempt per call with a bounded timeout and
maps failures onto the exceptions in ``app.exceptions``.
"""

from .identity_client import IdentityValidator, parse_envelope
from .meetings_client import MeetingGateway
from .oauth_client import TokenBroker

__all__ = [
    "IdentityValidator",
    "MeetingGateway",
    "TokenBroker",
    "parse_envelope",
]
