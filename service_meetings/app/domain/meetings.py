"""
Meeting creation use case.
"""

from typing import Optional

from shared.config import MeetingsConfig
from shared.errors import ConfigurationError
from shared.logging import get_logger
from ..adapters.meetings_client import MeetingGateway
from ..adapters.oauth_client import TokenBroker
from ..models import MeetingRecord, MeetingRequest, MeetingSettings

DEFAULT_DURATION_MINUTES = 60
DEFAULT_TIMEZONE = "Asia/Shanghai"


def default_meeting_settings() -> MeetingSettings:
    return MeetingSettings(
        host_video=True,
        participant_video=True,
        join_before_host=False,
        mute_upon_entry=True,
        waiting_room=False,
    )


def apply_meeting_defaults(request: MeetingRequest) -> MeetingRequest:
    """Return a copy of ``request`` with duration, timezone and settings filled in."""
    updates = {}
    if not request.duration:
        updates["duration"] = DEFAULT_DURATION_MINUTES
    if not request.timezone:
        updates["timezone"] = DEFAULT_TIMEZONE
    if request.settings is None:
        updates["settings"] = default_meeting_settings()
    return request.model_copy(update=updates)


class MeetingService:
    """Create a meeting: OAuth exchange first, then the meeting API call."""

    def __init__(
        self,
        config: MeetingsConfig,
        token_broker: TokenBroker,
        gateway: MeetingGateway,
    ):
        self.config = config
        self.token_broker = token_broker
        self.gateway = gateway
        self.logger = get_logger("meetings.service")

    async def create_meeting(self, request: MeetingRequest, requested_by: Optional[str] = None) -> MeetingRecord:
        if not self.config.oauth_configured:
            raise ConfigurationError(
                "Server-To-Server OAuth not configured",
                details={"missing": self.config.missing_oauth_settings()},
            )

        prepared = apply_meeting_defaults(request)
        service_token = await self.token_broker.get_service_token()
        record = await self.gateway.create_meeting(service_token.access_token, prepared)

        self.logger.info(
            "Meeting created for caller",
            meeting_id=record.id,
            requested_by=requested_by,
        )
        return record
