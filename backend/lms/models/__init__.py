"""SQLAlchemy ORM models."""

from lms.models.course import Course, course_teachers
from lms.models.user import User
from lms.models.enrollment import Enrollment
from lms.models.material import Material, MaterialType
from lms.models.lecture import Lecture
from lms.models.meeting import Meeting
from lms.models.notice import Notice
from lms.models.activity import Activity

__all__ = [
    "User",
    "Course",
    "course_teachers",
    "Enrollment",
    "Material",
    "MaterialType",
    "Lecture",
    "Meeting",
    "Notice",
    "Activity",
]
