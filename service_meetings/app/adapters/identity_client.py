"""
DooTask identity client.

The user-info endpoint answers every request with an envelope::

    {"ret": 1, "msg": "...", "data": {...}}

``ret == 1`` is the only success value. Parsing is split from transport so
the envelope rules can be exercised on raw bytes.
"""

import json
import httpx
from dataclasses import dataclass
from pydantic import ValidationError as PydanticValidationError
from typing import Any, Dict, Optional, Union

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..exceptions import (
    IdentityTransportError,
    MalformedEnvelopeError,
    MissingCredentialError,
    SchemaMismatchError,
    UpstreamRejectedError,
)
from ..models import Principal

USER_INFO_PATH = "/api/user/info"
SUCCESS_RET = 1
REJECTION_FALLBACK_REASON = "identity service rejected the token"


@dataclass(frozen=True)
class EnvelopeAccepted:
    payload: Dict[str, Any]


@dataclass(frozen=True)
class EnvelopeRejected:
    reason: str


@dataclass(frozen=True)
class EnvelopeMalformed:
    # "json" when the body is not a JSON object, "schema" when fields are wrong
    kind: str
    detail: str


EnvelopeResult = Union[EnvelopeAccepted, EnvelopeRejected, EnvelopeMalformed]


def parse_envelope(body: Union[bytes, str]) -> EnvelopeResult:
    """Classify an identity service response body."""
    try:
        envelope = json.loads(body)
    except ValueError as e:
        return EnvelopeMalformed("json", f"body is not valid JSON: {e}")

    if not isinstance(envelope, dict):
        return EnvelopeMalformed("json", "body is not a JSON object")

    ret = envelope.get("ret")
    if isinstance(ret, bool) or not isinstance(ret, (int, float)):
        return EnvelopeMalformed("schema", "'ret' is missing or not numeric")

    if ret != SUCCESS_RET:
        msg = envelope.get("msg")
        if not isinstance(msg, str):
            return EnvelopeRejected(REJECTION_FALLBACK_REASON)
        return EnvelopeRejected(msg)

    data = envelope.get("data")
    if isinstance(data, dict):
        return EnvelopeAccepted(data)
    if isinstance(data, list):
        # Some endpoints return bare lists under the same envelope.
        return EnvelopeAccepted({"list": data})

    return EnvelopeMalformed("schema", "'data' is neither an object nor a list")


def decode_principal(payload: Dict[str, Any], strict: bool = True) -> Principal:
    """Turn an accepted payload into a Principal.

    In strict mode a payload without ``userid`` is refused instead of
    producing an anonymous principal.
    """
    if strict and "userid" not in payload:
        raise SchemaMismatchError(
            "Invalid token",
            details={"reason": "principal payload has no userid"},
        )

    try:
        return Principal.model_validate(payload)
    except PydanticValidationError as e:
        raise SchemaMismatchError(
            "Invalid token",
            details={"reason": "principal payload does not match schema", "errors": e.error_count()},
        ) from e


class IdentityValidator:
    """Confirm caller credentials against the DooTask user-info endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        strict: bool = True,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.strict = strict
        self.metrics = metrics
        self.logger = get_logger("meetings.identity_client")

    async def validate(self, credential: str) -> Principal:
        """Return the principal behind ``credential`` or raise an IdentityValidationError."""
        if not credential:
            raise MissingCredentialError()

        try:
            principal = await self._validate(credential)
        except (IdentityTransportError, MalformedEnvelopeError, SchemaMismatchError, UpstreamRejectedError) as e:
            self._record(e.kind)
            raise

        self._record("ok")
        return principal

    async def _validate(self, credential: str) -> Principal:
        url = f"{self.base_url}{USER_INFO_PATH}"
        self.logger.debug("Sending token validation request", url=url, timeout=self.timeout)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params={"token": credential})
        except httpx.TimeoutException as e:
            self.logger.error("Identity service timeout", url=url)
            raise IdentityTransportError(
                "Identity service timeout",
                details={"error": str(e)},
            ) from e
        except httpx.RequestError as e:
            self.logger.error("Identity service request error", url=url, error=str(e))
            raise IdentityTransportError(
                "Identity service unavailable",
                details={"error": str(e)},
            ) from e

        result = parse_envelope(response.content)

        if isinstance(result, EnvelopeMalformed):
            self.logger.warning(
                "Identity service returned a malformed envelope",
                kind=result.kind,
                detail=result.detail,
                status_code=response.status_code,
            )
            if result.kind == "json":
                raise MalformedEnvelopeError("Invalid token", details={"reason": result.detail})
            raise SchemaMismatchError("Invalid token", details={"reason": result.detail})

        if isinstance(result, EnvelopeRejected):
            self.logger.warning(
                "Identity service rejected the token",
                reason=result.reason,
                status_code=response.status_code,
            )
            raise UpstreamRejectedError(result.reason)

        principal = decode_principal(result.payload, strict=self.strict)
        self.logger.info(
            "Token validated",
            principal_id=principal.userid,
            nickname=principal.nickname,
        )
        return principal

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_token_validation(outcome)
