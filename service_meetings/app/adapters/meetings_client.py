"""
Zoom meeting API client.
"""

import httpx
from pydantic import ValidationError as PydanticValidationError
from typing import Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..exceptions import DownstreamError, MeetingDecodeError
from ..models import MeetingRecord, MeetingRequest

ZOOM_CREATE_MEETING_URL = "https://api.zoom.us/v2/users/me/meetings"
MEETINGS_TIMEOUT_SECONDS = 30.0


class MeetingGateway:
    """Create meetings on behalf of the token owner.

    Transport only: callers are expected to have filled in defaults.
    """

    def __init__(
        self,
        metrics: Optional[MetricsCollector] = None,
        create_url: str = ZOOM_CREATE_MEETING_URL,
    ):
        self.create_url = create_url
        self.timeout = MEETINGS_TIMEOUT_SECONDS
        self.metrics = metrics
        self.logger = get_logger("meetings.meetings_client")

    async def create_meeting(self, access_token: str, request: MeetingRequest) -> MeetingRecord:
        """POST the meeting and decode the created record."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.create_url,
                    json=request.model_dump(exclude_none=True),
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.TimeoutException as e:
            self.logger.error("Meeting API timed out", url=self.create_url)
            self._record("transport_error")
            raise DownstreamError(None, str(e), "Meeting API timed out") from e
        except httpx.RequestError as e:
            self.logger.error("Meeting API request error", url=self.create_url, error=str(e))
            self._record("transport_error")
            raise DownstreamError(None, str(e)) from e

        if response.status_code != httpx.codes.CREATED:
            self.logger.warning(
                "Meeting creation rejected",
                status_code=response.status_code,
                response=response.text
            )
            self._record("rejected")
            raise DownstreamError(response.status_code, response.text)

        try:
            record = MeetingRecord.model_validate_json(response.content)
        except PydanticValidationError as e:
            self.logger.error("Meeting response could not be decoded", error=str(e))
            self._record("decode_error")
            raise MeetingDecodeError(response.text) from e

        self._record("ok")
        self.logger.info("Meeting created", meeting_id=record.id, topic=record.topic)
        return record

    def _record(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.record_upstream_call("zoom_meetings", outcome)
