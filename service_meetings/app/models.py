"""
Request, response and upstream payload models for the meetings gateway.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SignatureRequest(BaseModel):
    """Body of ``POST /api/signature``."""

    meeting_number: str = Field(default="", alias="meetingNumber")
    role: int = 0

    model_config = ConfigDict(populate_by_name=True)


class SignatureResponse(BaseModel):
    signature: str


class ConfigResponse(BaseModel):
    disable_join_meeting: bool


class ServiceToken(BaseModel):
    """Bearer token issued by the Server-To-Server OAuth endpoint."""

    access_token: str
    token_type: str = ""
    expires_in: int = 0
    scope: str = ""

    model_config = ConfigDict(extra="ignore")


class MeetingSettings(BaseModel):
    host_video: Optional[bool] = None
    participant_video: Optional[bool] = None
    join_before_host: Optional[bool] = None
    mute_upon_entry: Optional[bool] = None
    waiting_room: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")


class MeetingRequest(BaseModel):
    """Body of ``POST /api/meetings``, forwarded to the meeting API."""

    topic: str
    type: int = 2
    start_time: Optional[str] = None
    duration: Optional[int] = None
    timezone: Optional[str] = None
    password: Optional[str] = None
    agenda: Optional[str] = None
    settings: Optional[MeetingSettings] = None


class MeetingRecord(BaseModel):
    """Meeting as returned by the meeting API after creation."""

    id: int
    uuid: str = ""
    host_id: str = ""
    host_email: str = ""
    topic: str = ""
    type: int = 0
    status: str = ""
    start_time: Optional[datetime] = None
    duration: int = 0
    timezone: str = ""
    created_at: Optional[datetime] = None
    join_url: str = ""
    password: str = ""
    h323_password: str = ""
    pstn_password: str = ""
    encrypted_password: str = ""
    settings: Optional[MeetingSettings] = None

    model_config = ConfigDict(extra="ignore")


class Principal(BaseModel):
    """Identity confirmed by the DooTask user-info endpoint."""

    userid: int = 0
    username: str = ""
    nickname: str = ""
    email: str = ""
    userimg: str = ""
    identity: List[str] = Field(default_factory=list)
    department: List[int] = Field(default_factory=list)
    department_name: str = ""
    profession: str = ""
    bot: int = 0
    # Set when the service answered with a bare list instead of a user object.
    items: Optional[List[Any]] = Field(default=None, alias="list")

    model_config = ConfigDict(extra="ignore", populate_by_name=True, strict=True)

    def is_admin(self) -> bool:
        return "admin" in self.identity
