"""Reports router — dashboard statistics for management and administrators."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.database import get_db
from lms.middleware.auth import get_current_user
from lms.permissions import AuthContext
from lms.schemas.report import (
    ActiveCoursesResponse,
    CourseActivityResponse,
    CoursePerformanceResponse,
    EnrollmentStatsResponse,
    EnrollmentTrendsResponse,
    OverviewResponse,
    UserStatsResponse,
)
from lms.services import report_service

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/overview", response_model=OverviewResponse)
def overview(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return OverviewResponse(overview=report_service.overview(db, current_user))


@router.get("/enrollment-stats", response_model=EnrollmentStatsResponse)
def enrollment_stats(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    stats = report_service.enrollment_stats(db, current_user)
    return EnrollmentStatsResponse(
        enrollment_stats=stats,
        total_courses=len(stats),
        total_enrollments=sum(s["enrollments"] for s in stats),
    )


@router.get("/active-courses", response_model=ActiveCoursesResponse)
def active_courses(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    courses = report_service.active_courses(db, current_user)
    return ActiveCoursesResponse(active_courses=courses, total_active_courses=len(courses))


@router.get("/course-activity", response_model=CourseActivityResponse)
def course_activity(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    activity = report_service.course_activity(db, current_user)
    return CourseActivityResponse(course_activity=activity, total_courses=len(activity))


@router.get("/user-stats", response_model=UserStatsResponse)
def user_stats(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    stats = report_service.user_stats(db, current_user)
    return UserStatsResponse(user_stats=stats, total_users=sum(s["count"] for s in stats))


@router.get("/course-performance", response_model=CoursePerformanceResponse)
def course_performance(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    metrics = report_service.course_performance(db, current_user)
    return CoursePerformanceResponse(course_performance=metrics, total_courses=len(metrics))


@router.get("/enrollment-trends", response_model=EnrollmentTrendsResponse)
def enrollment_trends(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return EnrollmentTrendsResponse(enrollment_trends=report_service.enrollment_trends(db, current_user))
