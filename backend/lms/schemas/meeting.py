"""Meeting request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class MeetingCreate(BaseModel):
    course_id: str
    title: str
    meet_link: str


class MeetingUpdate(BaseModel):
    title: Optional[str] = None
    meet_link: Optional[str] = None


class MeetingResponse(BaseModel):
    id: str
    course_id: str
    title: str
    meet_link: str
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MeetingEnvelope(BaseModel):
    meeting: MeetingResponse


class MeetingMutationResponse(BaseModel):
    message: str
    meeting: MeetingResponse


class MeetingListResponse(BaseModel):
    meetings: list[MeetingResponse]
    total: int
