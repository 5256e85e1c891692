"""
Meeting SDK signature generation.
"""

import time
from typing import Callable, Optional

from jose import jwt
from jose.exceptions import JOSEError

from shared.logging import get_logger
from ..exceptions import SigningError

SIGNATURE_ALGORITHM = "HS256"
SIGNATURE_TTL_SECONDS = 24 * 60 * 60


class Signer:
    """Produce HS256 tokens that let a client join a specific meeting.

    The token is ``base64url(header).base64url(payload).base64url(mac)`` where
    the payload carries the API key as issuer, a fixed 24 hour expiry, the
    meeting number and the role. The MAC is HMAC-SHA256 keyed with the API
    secret. This service only issues tokens; the video service verifies them.
    """

    def __init__(self, api_key: str, api_secret: str, clock: Optional[Callable[[], float]] = None):
        self.api_key = api_key
        self._api_secret = api_secret
        self._clock = clock or time.time
        self.logger = get_logger("meetings.signer")

    def sign(self, meeting_number: str, role: int) -> str:
        """Sign ``meeting_number`` for ``role``. Inputs are not range-checked."""
        # Field order is part of the signed bytes.
        payload = {
            "iss": self.api_key,
            "exp": int(self._clock()) + SIGNATURE_TTL_SECONDS,
            "mn": meeting_number,
            "role": role,
        }

        try:
            token = jwt.encode(payload, self._api_secret, algorithm=SIGNATURE_ALGORITHM)
        except (JOSEError, TypeError, ValueError) as e:
            self.logger.error("Signature generation failed", error_type=type(e).__name__)
            raise SigningError(details={"reason": type(e).__name__}) from e

        self.logger.debug("Signature generated", meeting_number=meeting_number, role=role)
        return token
