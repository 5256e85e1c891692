"""
Zoom Server-To-Server OAuth client.
"""

import httpx
from pydantic import ValidationError as PydanticValidationError
from typing import Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..exceptions import TokenDecodeError, UpstreamAuthError
from ..models import ServiceToken

ZOOM_TOKEN_URL = "https://zoom.us/oauth/token"
OAUTH_TIMEOUT_SECONDS = 30.0


class TokenBroker:
    """Exchange account credentials for a short-lived API bearer token.

    Every call performs a fresh exchange; tokens are not cached between
    requests.
    """

    def __init__(
        self,
        account_id: str,
        client_id: str,
        client_secret: str,
        metrics: Optional[MetricsCollector] = None,
        token_url: str = ZOOM_TOKEN_URL,
    ):
        self.account_id = account_id
        self.client_id = client_id
        self._client_secret = client_secret
        self.token_url = token_url
        self.timeout = OAUTH_TIMEOUT_SECONDS
        self.metrics = metrics
        self.logger = get_logger("meetings.oauth_client")

    async def get_service_token(self) -> ServiceToken:
        """Request an access token using the ``account_credentials`` grant."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.token_url,
                    data={
                        "grant_type": "account_credentials",
                        "account_id": self.account_id,
                    },
                    auth=httpx.BasicAuth(self.client_id, self._client_secret),
                )
        except httpx.TimeoutException as e:
            self.logger.error("OAuth token request timed out", url=self.token_url)
            self._record("transport_error")
            raise UpstreamAuthError(None, str(e), "OAuth token request timed out") from e
        except httpx.RequestError as e:
            self.logger.error("OAuth token request error", url=self.token_url, error=str(e))
            self._record("transport_error")
            raise UpstreamAuthError(None, str(e)) from e

        if not response.is_success:
            self.logger.warning(
                "OAuth token request rejected",
                status_code=response.status_code,
                response=response.text
            )
            self._record("rejected")
            raise UpstreamAuthError(response.status_code, response.text)

        try:
            token = ServiceToken.model_validate_json(response.content)
        except PydanticValidationError as e:
            self.logger.error("OAuth token response could not be decoded", error=str(e))
            self._record("decode_error")
            raise TokenDecodeError(response.text) from e

        self._record("ok")
        self.logger.info("OAuth token obtained", expires_in=token.expires_in, scope=token.scope)
        return token

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_upstream_call("zoom_oauth", outcome)
