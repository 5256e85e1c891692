"""
Meetings gateway service.

Exposes meeting signatures, meeting creation and client configuration
behind the DooTask authentication gate.
"""

from fastapi import APIRouter, Depends, Request
from typing import Optional

from shared.base_service import BaseService
from shared.cancellation import cancel_on_disconnect
from shared.config import MeetingsConfig
from shared.errors import ConfigurationError
from .adapters.identity_client import IdentityValidator
from .adapters.meetings_client import MeetingGateway
from .adapters.oauth_client import TokenBroker
from .domain.auth_middleware import AuthGate
from .domain.meetings import MeetingService
from .models import (
    ConfigResponse,
    MeetingRecord,
    MeetingRequest,
    SignatureRequest,
    SignatureResponse,
)
from .signing.signer import Signer


class MeetingsService(BaseService):
    """Meetings gateway service implementation."""

    def __init__(self, config: Optional[MeetingsConfig] = None):
        super().__init__("meetings", config)
        self.config.validate_startup()

        self.signer = Signer(self.config.zoom_api_key, self.config.zoom_api_secret)
        self.identity_validator = IdentityValidator(
            self.config.dootask_url,
            timeout=float(self.config.dootask_timeout),
            strict=self.config.dootask_strict_principal,
            metrics=self.metrics,
        )
        self.auth_gate = AuthGate(self.identity_validator, bypass=self.config.disable_dootask_auth)
        self.meeting_service = MeetingService(
            self.config,
            TokenBroker(
                self.config.zoom_account_id,
                self.config.zoom_client_id,
                self.config.zoom_client_secret,
                metrics=self.metrics,
            ),
            MeetingGateway(metrics=self.metrics),
        )

        self._setup_meeting_routes()

        self.logger.info(
            "Meetings service configured",
            port=self.config.port,
            identity_service=self.config.dootask_url,
            auth_bypass=self.config.disable_dootask_auth,
            join_meeting_disabled=self.config.disable_join_meeting,
            endpoints=[
                "POST /api/signature",
                "POST /api/meetings",
                "GET /api/config",
            ],
        )

        # Expose service instance via app state for introspection/testing
        self.app.state.meetings_service = self

    def _setup_meeting_routes(self):
        """Set up meeting routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "meetings",
                "message": "Meeting Access Gateway - Meetings Service",
                "version": "1.0.0"
            }

        router = APIRouter(prefix="/api", dependencies=[Depends(self.auth_gate)])

        @router.post("/signature", response_model=SignatureResponse)
        async def generate_signature(body: SignatureRequest) -> SignatureResponse:
            """Sign a meeting number for the Meeting SDK."""
            if not (self.config.zoom_api_key and self.config.zoom_api_secret):
                raise ConfigurationError("Meeting signing is not configured")

            signature = self.signer.sign(body.meeting_number, body.role)
            self.metrics.record_signature()
            return SignatureResponse(signature=signature)

        @router.post("/meetings", response_model=MeetingRecord)
        async def create_meeting(request: Request, body: MeetingRequest) -> MeetingRecord:
            """Create a meeting through the Zoom API."""
            requested_by = getattr(request.state, "user_id", None)
            return await cancel_on_disconnect(
                request,
                self.meeting_service.create_meeting(body, requested_by=requested_by),
            )

        @router.get("/config", response_model=ConfigResponse)
        async def get_config() -> ConfigResponse:
            """Client feature switches."""
            return ConfigResponse(disable_join_meeting=self.config.disable_join_meeting)

        self.app.include_router(router)


def create_app(config: Optional[MeetingsConfig] = None):
    """Create FastAPI application."""
    service = MeetingsService(config)
    return service.app


if __name__ == "__main__":
    service = MeetingsService()
    service.run()
