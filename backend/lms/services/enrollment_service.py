"""Enrollment service — self-enrollment, staff enrollment, bulk and unenrollment."""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.errors import Conflict, Forbidden, LMSError, NotFound, ValidationError
from lms.models.course import Course
from lms.models.enrollment import Enrollment
from lms.models.user import User
from lms.permissions import AuthContext, Capability, Role, authorize
from lms.services import activity_service
from lms.services.activity_service import ActivityAction, ActivityEntity
from lms.services.course_service import find_course


def _active_course(db: Session, course_id: str) -> Course:
    course = find_course(db, course_id)
    if not course.active:
        raise ValidationError("Course is not active")
    return course


def _existing_enrollment(db: Session, course_id: str, student_id: str) -> Optional[Enrollment]:
    return (
        db.query(Enrollment)
        .filter(Enrollment.course_id == course_id, Enrollment.student_id == student_id)
        .first()
    )


def _find_enrollment(db: Session, course_id: str, student_id: str) -> Enrollment:
    enrollment = _existing_enrollment(db, course_id, student_id)
    if not enrollment:
        raise NotFound("Enrollment not found")
    return enrollment


def _create_enrollment(db: Session, course: Course, student_id: str) -> Enrollment:
    student = db.query(User).filter(User.id == student_id).first()
    if not student:
        raise NotFound("Student not found")
    if student.role != Role.STUDENT.value:
        raise ValidationError("User is not a student")

    if _existing_enrollment(db, course.id, student_id):
        raise Conflict("Student already enrolled in this course")

    enrollment = Enrollment(student_id=student_id, course_id=course.id)
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError:
        # Another writer inserted the same pair between our check and commit.
        db.rollback()
        raise Conflict("Student already enrolled in this course")
    db.refresh(enrollment)
    return enrollment


def enroll(
    db: Session,
    actor: AuthContext,
    course_id: str,
    student_id: Optional[str] = None,
) -> Enrollment:
    """Enroll a student. Students always enroll themselves; staff name the student."""
    if actor.is_staff:
        authorize(actor, Capability.ENROLLMENT_MANAGE)
        target_id = student_id
    else:
        authorize(actor, Capability.ENROLL_SELF)
        target_id = actor.id
    if not target_id:
        raise ValidationError("Student ID is required")

    course = _active_course(db, course_id)
    enrollment = _create_enrollment(db, course, target_id)

    activity_service.record(
        db, actor.id, ActivityAction.STUDENT_ENROLLED, ActivityEntity.ENROLLMENT, enrollment.id
    ).discard()
    return enrollment


def bulk_enroll(db: Session, actor: AuthContext, course_id: str, student_ids: list[str]) -> list[dict]:
    """Enroll many students; each failure is reported without stopping the batch."""
    authorize(actor, Capability.ENROLLMENT_MANAGE)
    if not student_ids:
        raise ValidationError("At least one student ID is required")
    course = _active_course(db, course_id)

    results = []
    for student_id in dict.fromkeys(student_ids):
        try:
            enrollment = _create_enrollment(db, course, student_id)
        except LMSError as e:
            results.append({"student_id": student_id, "success": False, "error": e.message})
            continue

        activity_service.record(
            db, actor.id, ActivityAction.STUDENT_ENROLLED, ActivityEntity.ENROLLMENT, enrollment.id
        ).discard()
        results.append({"student_id": student_id, "success": True, "enrollment_id": enrollment.id})
    return results


def unenroll(db: Session, actor: AuthContext, course_id: str, student_id: str) -> None:
    if actor.is_staff:
        authorize(actor, Capability.ENROLLMENT_MANAGE)
    else:
        authorize(actor, Capability.ENROLL_SELF)
        if student_id != actor.id:
            raise Forbidden("You can only unenroll yourself")

    enrollment = _find_enrollment(db, course_id, student_id)
    db.delete(enrollment)
    db.commit()

    activity_service.record(
        db, actor.id, ActivityAction.STUDENT_UNENROLLED, ActivityEntity.ENROLLMENT, f"{student_id}_{course_id}"
    ).discard()


def approve_enrollment(db: Session, actor: AuthContext, course_id: str, student_id: str) -> Enrollment:
    """Enrollments are active from creation; approval only confirms one exists."""
    authorize(actor, Capability.ENROLLMENT_MANAGE)
    return _find_enrollment(db, course_id, student_id)


def list_course_enrollments(db: Session, actor: AuthContext, course_id: str) -> list[Enrollment]:
    authorize(actor, Capability.ENROLLMENT_MANAGE)
    find_course(db, course_id)
    return (
        db.query(Enrollment)
        .filter(Enrollment.course_id == course_id)
        .order_by(Enrollment.created_at.desc())
        .all()
    )
