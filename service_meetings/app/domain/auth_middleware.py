"""
Authentication gate for the Meetings Service.
"""

from fastapi import Request
from typing import Optional

from shared.cancellation import cancel_on_disconnect
from shared.errors import AuthenticationError
from shared.logging import get_logger, set_user_context
from ..adapters.identity_client import IdentityValidator
from ..exceptions import IdentityValidationError
from ..models import Principal

TOKEN_HEADER = "Token"
BEARER_PREFIX = "Bearer "
TOKEN_QUERY_PARAM = "token"


def extract_credential(request: Request) -> Optional[str]:
    """Find the caller credential.

    Looked up in order: ``Token`` header, ``Authorization: Bearer`` header,
    ``token`` query parameter.
    """
    token = request.headers.get(TOKEN_HEADER)
    if token:
        return token

    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):]
        if token:
            return token

    return request.query_params.get(TOKEN_QUERY_PARAM) or None


class AuthGate:
    """FastAPI dependency that admits only callers the identity service vouches for.

    With ``bypass`` set no credential is required and no validation call is
    made; the dependency then yields ``None``.
    """

    def __init__(self, validator: IdentityValidator, bypass: bool = False):
        self.validator = validator
        self.bypass = bypass
        self.logger = get_logger("meetings.auth_gate")

    async def __call__(self, request: Request) -> Optional[Principal]:
        return await self.authenticate_request(request)

    async def authenticate_request(self, request: Request) -> Optional[Principal]:
        """Validate the request credential and attach the principal."""
        self.logger.debug("Processing auth gate", method=request.method, path=request.url.path)

        if self.bypass:
            self.logger.debug("Identity validation disabled, skipping")
            return None

        credential = extract_credential(request)
        if not credential:
            raise AuthenticationError("Token is required")

        try:
            principal = await cancel_on_disconnect(request, self.validator.validate(credential))
        except IdentityValidationError as e:
            self.logger.warning(
                "Token validation failed",
                failure=e.kind,
                reason=e.message,
                details=e.details,
            )
            raise AuthenticationError("Invalid token") from e

        request.state.principal = principal
        request.state.user_id = str(principal.userid)
        set_user_context(user_id=str(principal.userid))

        self.logger.info(
            "Token validation successful",
            principal_id=principal.userid,
            nickname=principal.nickname,
            email=principal.email,
        )
        return principal
