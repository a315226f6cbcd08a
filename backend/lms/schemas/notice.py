"""Notice request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class NoticeCreate(BaseModel):
    title: str
    body: str
    course_id: Optional[str] = None


class NoticeUpdate(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None


class NoticeResponse(BaseModel):
    id: str
    course_id: Optional[str] = None
    title: str
    body: str
    posted_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NoticeEnvelope(BaseModel):
    notice: NoticeResponse


class NoticeMutationResponse(BaseModel):
    message: str
    notice: NoticeResponse


class NoticeListResponse(BaseModel):
    notices: list[NoticeResponse]
    total: int
