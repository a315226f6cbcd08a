"""Activity service — best-effort audit trail and its query surface."""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from lms.config import settings
from lms.errors import BestEffort, ValidationError
from lms.models.activity import Activity
from lms.permissions import AuthContext, Capability, authorize

logger = logging.getLogger(__name__)


class ActivityAction(str, Enum):
    USER_CREATED = "created user"
    USER_UPDATED = "updated user"
    USER_DELETED = "deleted user"
    COURSE_CREATED = "created course"
    COURSE_UPDATED = "updated course"
    COURSE_DELETED = "deleted course"
    MATERIAL_UPLOADED = "uploaded material"
    MATERIAL_UPDATED = "updated material"
    MATERIAL_DELETED = "deleted material"
    LECTURE_CREATED = "created lecture"
    LECTURE_UPDATED = "updated lecture"
    LECTURE_DELETED = "deleted lecture"
    LECTURE_RECORDED = "uploaded lecture recording"
    MEETING_CREATED = "created meeting"
    MEETING_UPDATED = "updated meeting"
    MEETING_DELETED = "deleted meeting"
    NOTICE_CREATED = "created notice"
    NOTICE_UPDATED = "updated notice"
    NOTICE_DELETED = "deleted notice"
    STUDENT_ENROLLED = "enrolled student"
    STUDENT_UNENROLLED = "unenrolled student"


class ActivityEntity(str, Enum):
    USER = "User"
    COURSE = "Course"
    ENROLLMENT = "Enrollment"
    MATERIAL = "Material"
    LECTURE = "Lecture"
    MEETING = "Meeting"
    NOTICE = "Notice"


def _write(db: Session, actor_id: str, action: str, entity: str, entity_id: str) -> Activity:
    activity = Activity(actor_id=actor_id, action=action, entity=entity, entity_id=entity_id)
    db.add(activity)
    db.commit()
    return activity


def record(
    db: Session,
    actor_id: str,
    action: ActivityAction,
    entity: ActivityEntity,
    entity_id: str,
) -> BestEffort:
    """Append one activity row after the primary change has been committed.

    Never raises: a failed write is logged, rolled back on its own, and reported
    through the returned ``BestEffort``.
    """
    try:
        _write(db, actor_id, action.value, entity.value, entity_id)
    except Exception as e:
        db.rollback()
        logger.exception("Failed to record activity '%s' on %s %s", action.value, entity.value, entity_id)
        return BestEffort(error=e)
    return BestEffort()


def _resolve_limit(limit: Optional[int], default: int) -> int:
    if limit is None:
        return default
    if limit < 1:
        raise ValidationError("limit must be a positive integer")
    return min(limit, settings.ACTIVITY_MAX_LIMIT)


def recent(db: Session, actor: AuthContext, limit: Optional[int] = None) -> list[Activity]:
    """Most recent activities system-wide."""
    authorize(actor, Capability.ACTIVITY_VIEW)
    return (
        db.query(Activity)
        .order_by(Activity.created_at.desc())
        .limit(_resolve_limit(limit, settings.ACTIVITY_DEFAULT_LIMIT))
        .all()
    )


def for_entity(
    db: Session,
    actor: AuthContext,
    entity: str,
    entity_id: str,
    limit: Optional[int] = None,
) -> list[Activity]:
    authorize(actor, Capability.ACTIVITY_VIEW)
    return (
        db.query(Activity)
        .filter(Activity.entity == entity, Activity.entity_id == entity_id)
        .order_by(Activity.created_at.desc())
        .limit(_resolve_limit(limit, settings.ACTIVITY_ENTITY_DEFAULT_LIMIT))
        .all()
    )


def for_actor(
    db: Session,
    actor: AuthContext,
    actor_id: str,
    limit: Optional[int] = None,
) -> list[Activity]:
    authorize(actor, Capability.ACTIVITY_VIEW)
    return (
        db.query(Activity)
        .filter(Activity.actor_id == actor_id)
        .order_by(Activity.created_at.desc())
        .limit(_resolve_limit(limit, settings.ACTIVITY_ENTITY_DEFAULT_LIMIT))
        .all()
    )
