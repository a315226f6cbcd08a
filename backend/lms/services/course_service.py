"""Course service — course CRUD with ownership narrowing for teachers."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from lms.errors import NotFound, ValidationError
from lms.models.course import Course
from lms.models.enrollment import Enrollment
from lms.models.user import User
from lms.permissions import AuthContext, Capability, Role, authorize, ensure_owner
from lms.services import activity_service
from lms.services.activity_service import ActivityAction, ActivityEntity
from lms.services.storage import get_storage

logger = logging.getLogger(__name__)


def _load_teachers(db: Session, teacher_ids: list[str]) -> list[User]:
    wanted = list(dict.fromkeys(teacher_ids))
    if not wanted:
        return []

    found = {u.id: u for u in db.query(User).filter(User.id.in_(wanted)).all()}
    teachers = []
    for teacher_id in wanted:
        user = found.get(teacher_id)
        if not user:
            raise NotFound(f"Teacher not found: {teacher_id}")
        if user.role != Role.TEACHER.value:
            raise ValidationError(f"User {teacher_id} is not a teacher")
        teachers.append(user)
    return teachers


def find_course(db: Session, course_id: str) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise NotFound("Course not found")
    return course


def list_courses(db: Session, actor: AuthContext, active_only: bool = False) -> list[Course]:
    authorize(actor, Capability.COURSE_VIEW)
    query = db.query(Course)
    if active_only:
        query = query.filter(Course.active.is_(True))
    return query.order_by(Course.created_at.desc()).all()


def get_course(db: Session, actor: AuthContext, course_id: str) -> Course:
    authorize(actor, Capability.COURSE_VIEW)
    return find_course(db, course_id)


def list_taught(db: Session, actor: AuthContext) -> list[Course]:
    """Courses whose teacher set includes the acting teacher."""
    authorize(actor, Capability.COURSE_LIST_TAUGHT)
    return (
        db.query(Course)
        .filter(Course.teachers.any(User.id == actor.id))
        .order_by(Course.created_at.desc())
        .all()
    )


def list_enrolled(db: Session, actor: AuthContext) -> list[Course]:
    authorize(actor, Capability.ENROLL_SELF)
    return (
        db.query(Course)
        .join(Enrollment, Enrollment.course_id == Course.id)
        .filter(Enrollment.student_id == actor.id)
        .order_by(Enrollment.created_at.desc())
        .all()
    )


def create_course(
    db: Session,
    actor: AuthContext,
    title: str,
    description: Optional[str] = None,
    teacher_ids: Optional[list[str]] = None,
) -> Course:
    authorize(actor, Capability.COURSE_CREATE)
    if not (title or "").strip():
        raise ValidationError("Course title is required")

    course = Course(
        title=title.strip(),
        description=description,
        teachers=_load_teachers(db, teacher_ids or []),
    )
    db.add(course)
    db.commit()
    db.refresh(course)

    activity_service.record(db, actor.id, ActivityAction.COURSE_CREATED, ActivityEntity.COURSE, course.id).discard()
    return course


def update_course(
    db: Session,
    actor: AuthContext,
    course_id: str,
    title: Optional[str] = None,
    description: Optional[str] = None,
    active: Optional[bool] = None,
    teacher_ids: Optional[list[str]] = None,
) -> Course:
    """Partially update a course. ``teacher_ids`` replaces the whole teacher set.

    A teacher of the course may reassign its teachers, themselves included.
    """
    authorize(actor, Capability.COURSE_UPDATE)
    course = find_course(db, course_id)
    ensure_owner(actor, Capability.COURSE_UPDATE, course, "You can only update courses you teach")

    if title is not None:
        if not title.strip():
            raise ValidationError("Course title cannot be empty")
        course.title = title.strip()
    if description is not None:
        course.description = description
    if active is not None:
        course.active = active
    if teacher_ids is not None:
        course.teachers = _load_teachers(db, teacher_ids)
        if actor.role == Role.TEACHER and actor.id not in teacher_ids:
            logger.info("Teacher %s removed themselves from course %s", actor.id, course.id)

    db.commit()
    db.refresh(course)

    activity_service.record(db, actor.id, ActivityAction.COURSE_UPDATED, ActivityEntity.COURSE, course.id).discard()
    return course


def delete_course(db: Session, actor: AuthContext, course_id: str) -> None:
    """Delete a course and everything attached to it.

    Stored files of its materials and lecture recordings are removed after the
    rows are gone; a failed file removal does not undo the deletion.
    """
    authorize(actor, Capability.COURSE_DELETE)
    course = find_course(db, course_id)
    ensure_owner(actor, Capability.COURSE_DELETE, course, "You can only delete courses you teach")

    references = [m.file_path for m in course.materials]
    references += [lec.record_path for lec in course.lectures if lec.record_path]

    db.delete(course)
    db.commit()

    storage = get_storage()
    for reference in references:
        storage.remove(reference).discard()

    activity_service.record(db, actor.id, ActivityAction.COURSE_DELETED, ActivityEntity.COURSE, course_id).discard()
