"""Course and enrollment request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from lms.schemas.lecture import LectureResponse
from lms.schemas.material import MaterialResponse
from lms.schemas.meeting import MeetingResponse
from lms.schemas.notice import NoticeResponse
from lms.schemas.user import UserSummary


class CourseCreate(BaseModel):
    title: str
    description: Optional[str] = None
    teacher_ids: list[str] = []


class CourseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    active: Optional[bool] = None
    teacher_ids: Optional[list[str]] = None


class CourseCounts(BaseModel):
    enrollments: int = 0
    materials: int = 0
    lectures: int = 0
    meetings: int = 0
    notices: int = 0


class CourseResponse(BaseModel):
    id: str
    title: str
    description: Optional[str]
    active: bool
    teachers: list[UserSummary]
    created_at: datetime
    updated_at: datetime
    counts: CourseCounts


class EnrollmentResponse(BaseModel):
    id: str
    student_id: str
    course_id: str
    created_at: datetime
    student: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class CourseDetail(CourseResponse):
    enrollments: list[EnrollmentResponse]
    materials: list[MaterialResponse]
    lectures: list[LectureResponse]
    meetings: list[MeetingResponse]
    notices: list[NoticeResponse]


class CourseDetailResponse(BaseModel):
    course: CourseDetail


class CourseMutationResponse(BaseModel):
    message: str
    course: CourseResponse


class CourseListResponse(BaseModel):
    courses: list[CourseResponse]
    total: int


class EnrollRequest(BaseModel):
    student_id: Optional[str] = None


class BulkEnrollRequest(BaseModel):
    student_ids: list[str]


class BulkEnrollResult(BaseModel):
    student_id: str
    success: bool
    error: Optional[str] = None
    enrollment_id: Optional[str] = None


class BulkEnrollResponse(BaseModel):
    message: str
    results: list[BulkEnrollResult]
    enrolled: int
    failed: int


class EnrollmentMutationResponse(BaseModel):
    message: str
    enrollment: EnrollmentResponse


class EnrollmentListResponse(BaseModel):
    enrollments: list[EnrollmentResponse]
    total: int
