"""Lecture request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class LectureCreate(BaseModel):
    course_id: str
    title: str
    scheduled_at: datetime


class LectureUpdate(BaseModel):
    title: Optional[str] = None
    scheduled_at: Optional[datetime] = None


class LectureResponse(BaseModel):
    id: str
    course_id: str
    title: str
    scheduled_at: datetime
    record_path: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class LectureEnvelope(BaseModel):
    lecture: LectureResponse


class LectureMutationResponse(BaseModel):
    message: str
    lecture: LectureResponse


class LectureListResponse(BaseModel):
    lectures: list[LectureResponse]
    total: int
