"""Report schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from lms.schemas.course import CourseCounts


class Overview(BaseModel):
    total_users: int
    total_courses: int
    active_courses: int
    total_enrollments: int
    total_materials: int
    total_lectures: int
    total_meetings: int
    total_notices: int
    recent_activities: int


class OverviewResponse(BaseModel):
    overview: Overview


class CourseEnrollmentStat(BaseModel):
    id: str
    title: str
    active: bool
    enrollments: int


class EnrollmentStatsResponse(BaseModel):
    enrollment_stats: list[CourseEnrollmentStat]
    total_courses: int
    total_enrollments: int


class ActiveCourse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    created_at: datetime
    counts: CourseCounts


class ActiveCoursesResponse(BaseModel):
    active_courses: list[ActiveCourse]
    total_active_courses: int


class CourseActivity(BaseModel):
    id: str
    title: str
    counts: CourseCounts
    activity_score: int


class CourseActivityResponse(BaseModel):
    course_activity: list[CourseActivity]
    total_courses: int


class RoleCount(BaseModel):
    role: str
    count: int


class UserStatsResponse(BaseModel):
    user_stats: list[RoleCount]
    total_users: int


class CoursePerformance(BaseModel):
    id: str
    title: str
    active: bool
    created_at: datetime
    days_since_creation: int
    total_activities: int
    activities_per_day: float
    enrollment_rate: int


class CoursePerformanceResponse(BaseModel):
    course_performance: list[CoursePerformance]
    total_courses: int


class MonthlyEnrollments(BaseModel):
    month: str
    count: int


class EnrollmentTrendsResponse(BaseModel):
    enrollment_trends: list[MonthlyEnrollments]
