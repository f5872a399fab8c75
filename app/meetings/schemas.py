"""
Meetings Domain Schemas - Request validation using Pydantic

Payload field names follow the camelCase wire contract.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CreateMeetingRequest(_WireModel):
    """Body of POST /meetings."""

    created_by: str = Field(..., alias="createdBy", min_length=1)
    creator_name: str = Field(..., alias="creatorName", min_length=1)

    @field_validator("created_by", "creator_name")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class EndMeetingRequest(_WireModel):
    """Body of POST /meetings/end."""

    meeting_id: str = Field(..., alias="meetingId", min_length=1)
    uid: str = Field(..., min_length=1)


class SocketFrame(_WireModel):
    """Envelope of every frame on the meeting socket."""

    event: str
    data: Optional[Dict[str, Any]] = None


class JoinMeetingPayload(_WireModel):
    """Data of a join-meeting event. Content checks happen in the registry."""

    meeting_id: str = Field("", alias="meetingId")
    uid: str = ""
    name: str = ""


class SendMessagePayload(_WireModel):
    """Data of a send-message event."""

    meeting_id: str = Field("", alias="meetingId")
    text: str = ""


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    code: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
