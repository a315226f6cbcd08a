"""Courses router — course management and enrollment."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.database import get_db
from lms.middleware.auth import get_current_user
from lms.models.course import Course
from lms.permissions import AuthContext
from lms.schemas.auth import MessageResponse
from lms.schemas.course import (
    BulkEnrollRequest,
    BulkEnrollResponse,
    CourseCounts,
    CourseCreate,
    CourseDetail,
    CourseDetailResponse,
    CourseListResponse,
    CourseMutationResponse,
    CourseResponse,
    CourseUpdate,
    EnrollmentListResponse,
    EnrollmentMutationResponse,
    EnrollmentResponse,
    EnrollRequest,
)
from lms.schemas.lecture import LectureResponse
from lms.schemas.material import MaterialResponse
from lms.schemas.meeting import MeetingResponse
from lms.schemas.notice import NoticeResponse
from lms.schemas.user import UserSummary
from lms.services import course_service, enrollment_service

router = APIRouter(prefix="/api/courses", tags=["courses"])


def _counts(course: Course) -> CourseCounts:
    return CourseCounts(
        enrollments=len(course.enrollments),
        materials=len(course.materials),
        lectures=len(course.lectures),
        meetings=len(course.meetings),
        notices=len(course.notices),
    )


def _course_to_response(course: Course) -> CourseResponse:
    return CourseResponse(
        id=course.id,
        title=course.title,
        description=course.description,
        active=course.active,
        teachers=[UserSummary.model_validate(t) for t in course.teachers],
        created_at=course.created_at,
        updated_at=course.updated_at,
        counts=_counts(course),
    )


def _course_to_detail(course: Course) -> CourseDetail:
    return CourseDetail(
        **_course_to_response(course).model_dump(),
        enrollments=[EnrollmentResponse.model_validate(e) for e in course.enrollments],
        materials=[MaterialResponse.model_validate(m) for m in course.materials],
        lectures=[LectureResponse.model_validate(lec) for lec in sorted(course.lectures, key=lambda x: x.scheduled_at)],
        meetings=[MeetingResponse.model_validate(m) for m in course.meetings],
        notices=[NoticeResponse.model_validate(n) for n in course.notices],
    )


def _course_list(courses: list[Course]) -> CourseListResponse:
    return CourseListResponse(courses=[_course_to_response(c) for c in courses], total=len(courses))


@router.get("", response_model=CourseListResponse)
def list_courses(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _course_list(course_service.list_courses(db, current_user))


@router.get("/active", response_model=CourseListResponse)
def list_active_courses(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _course_list(course_service.list_courses(db, current_user, active_only=True))


@router.get("/my-courses", response_model=CourseListResponse)
def list_my_courses(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Courses the current teacher teaches."""
    return _course_list(course_service.list_taught(db, current_user))


@router.get("/enrolled", response_model=CourseListResponse)
def list_enrolled_courses(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Courses the current student is enrolled in."""
    return _course_list(course_service.list_enrolled(db, current_user))


@router.get("/{course_id}", response_model=CourseDetailResponse)
def get_course(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return CourseDetailResponse(course=_course_to_detail(course_service.get_course(db, current_user, course_id)))


@router.post("", response_model=CourseMutationResponse, status_code=201)
def create_course(
    req: CourseCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    course = course_service.create_course(db, current_user, req.title, req.description, req.teacher_ids)
    return CourseMutationResponse(message="Course created successfully", course=_course_to_response(course))


@router.put("/{course_id}", response_model=CourseMutationResponse)
def update_course(
    course_id: str,
    req: CourseUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    course = course_service.update_course(
        db,
        current_user,
        course_id,
        title=req.title,
        description=req.description,
        active=req.active,
        teacher_ids=req.teacher_ids,
    )
    return CourseMutationResponse(message="Course updated successfully", course=_course_to_response(course))


@router.delete("/{course_id}", response_model=MessageResponse)
def delete_course(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    course_service.delete_course(db, current_user, course_id)
    return MessageResponse(message="Course deleted successfully")


# ── Enrollment ────────────────────────────────────────────────────────────────

@router.post("/{course_id}/enroll", response_model=EnrollmentMutationResponse, status_code=201)
def enroll(
    course_id: str,
    req: Optional[EnrollRequest] = None,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Students enroll themselves; staff pass ``student_id``."""
    student_id = req.student_id if req else None
    enrollment = enrollment_service.enroll(db, current_user, course_id, student_id)
    return EnrollmentMutationResponse(
        message="Student enrolled successfully",
        enrollment=EnrollmentResponse.model_validate(enrollment),
    )


@router.post("/{course_id}/enroll/bulk", response_model=BulkEnrollResponse)
def bulk_enroll(
    course_id: str,
    req: BulkEnrollRequest,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    results = enrollment_service.bulk_enroll(db, current_user, course_id, req.student_ids)
    enrolled = sum(1 for r in results if r["success"])
    return BulkEnrollResponse(
        message=f"Enrolled {enrolled} of {len(results)} students",
        results=results,
        enrolled=enrolled,
        failed=len(results) - enrolled,
    )


@router.delete("/{course_id}/enroll/{student_id}", response_model=MessageResponse)
def unenroll(
    course_id: str,
    student_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    enrollment_service.unenroll(db, current_user, course_id, student_id)
    return MessageResponse(message="Student unenrolled successfully")


@router.put("/{course_id}/enroll/{student_id}/approve", response_model=EnrollmentMutationResponse)
def approve_enrollment(
    course_id: str,
    student_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    enrollment = enrollment_service.approve_enrollment(db, current_user, course_id, student_id)
    return EnrollmentMutationResponse(
        message="Enrollment approved",
        enrollment=EnrollmentResponse.model_validate(enrollment),
    )


@router.get("/{course_id}/enrollments", response_model=EnrollmentListResponse)
def list_enrollments(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    enrollments = enrollment_service.list_course_enrollments(db, current_user, course_id)
    return EnrollmentListResponse(
        enrollments=[EnrollmentResponse.model_validate(e) for e in enrollments],
        total=len(enrollments),
    )
