"""Lecture service — scheduling lectures and attaching their recordings."""

from datetime import datetime, timezone
from typing import BinaryIO, Optional

from sqlalchemy.orm import Session

from lms.errors import NotFound, ValidationError
from lms.models.lecture import Lecture
from lms.permissions import AuthContext, Capability, authorize
from lms.services import activity_service
from lms.services.activity_service import ActivityAction, ActivityEntity
from lms.services.course_service import find_course
from lms.services.storage import get_storage, lecture_video_policy, validate_upload

UPCOMING_LIMIT = 5


def _as_naive_utc(value: datetime) -> datetime:
    # Columns are stored without tzinfo; normalise aware inputs to UTC first.
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def find_lecture(db: Session, lecture_id: str) -> Lecture:
    lecture = db.query(Lecture).filter(Lecture.id == lecture_id).first()
    if not lecture:
        raise NotFound("Lecture not found")
    return lecture


def list_for_course(db: Session, actor: AuthContext, course_id: str) -> list[Lecture]:
    authorize(actor, Capability.LECTURE_VIEW)
    return (
        db.query(Lecture)
        .filter(Lecture.course_id == course_id)
        .order_by(Lecture.scheduled_at.asc())
        .all()
    )


def upcoming(db: Session, actor: AuthContext, course_id: str) -> list[Lecture]:
    authorize(actor, Capability.LECTURE_VIEW)
    now = _as_naive_utc(datetime.now(timezone.utc))
    return (
        db.query(Lecture)
        .filter(Lecture.course_id == course_id, Lecture.scheduled_at >= now)
        .order_by(Lecture.scheduled_at.asc())
        .limit(UPCOMING_LIMIT)
        .all()
    )


def get_lecture(db: Session, actor: AuthContext, lecture_id: str) -> Lecture:
    authorize(actor, Capability.LECTURE_VIEW)
    return find_lecture(db, lecture_id)


def create_lecture(
    db: Session,
    actor: AuthContext,
    course_id: str,
    title: str,
    scheduled_at: Optional[datetime],
) -> Lecture:
    authorize(actor, Capability.LECTURE_MANAGE)
    if not course_id or not (title or "").strip() or scheduled_at is None:
        raise ValidationError("Course ID, title, and scheduled date are required")
    find_course(db, course_id)

    lecture = Lecture(
        course_id=course_id,
        title=title.strip(),
        scheduled_at=_as_naive_utc(scheduled_at),
        created_by=actor.id,
    )
    db.add(lecture)
    db.commit()
    db.refresh(lecture)

    activity_service.record(db, actor.id, ActivityAction.LECTURE_CREATED, ActivityEntity.LECTURE, lecture.id).discard()
    return lecture


def update_lecture(
    db: Session,
    actor: AuthContext,
    lecture_id: str,
    title: Optional[str] = None,
    scheduled_at: Optional[datetime] = None,
) -> Lecture:
    authorize(actor, Capability.LECTURE_MANAGE)
    lecture = find_lecture(db, lecture_id)

    if title:
        lecture.title = title.strip()
    if scheduled_at is not None:
        lecture.scheduled_at = _as_naive_utc(scheduled_at)

    db.commit()
    db.refresh(lecture)

    activity_service.record(db, actor.id, ActivityAction.LECTURE_UPDATED, ActivityEntity.LECTURE, lecture.id).discard()
    return lecture


def upload_recording(
    db: Session,
    actor: AuthContext,
    lecture_id: str,
    data: bytes,
    filename: Optional[str],
    content_type: Optional[str],
) -> Lecture:
    """Attach a recorded video to a lecture, replacing any previous recording."""
    authorize(actor, Capability.LECTURE_RECORD_UPLOAD)
    lecture = find_lecture(db, lecture_id)
    validate_upload(data, content_type, lecture_video_policy())

    storage = get_storage()
    previous = lecture.record_path
    reference = storage.store(data, filename, prefix="lecture-")
    lecture.record_path = reference
    try:
        db.commit()
    except Exception:
        db.rollback()
        storage.remove(reference).discard()
        raise
    db.refresh(lecture)

    if previous:
        storage.remove(previous).discard()

    activity_service.record(db, actor.id, ActivityAction.LECTURE_RECORDED, ActivityEntity.LECTURE, lecture.id).discard()
    return lecture


def delete_lecture(db: Session, actor: AuthContext, lecture_id: str) -> None:
    authorize(actor, Capability.LECTURE_MANAGE)
    lecture = find_lecture(db, lecture_id)
    reference = lecture.record_path

    db.delete(lecture)
    db.commit()
    if reference:
        get_storage().remove(reference).discard()

    activity_service.record(db, actor.id, ActivityAction.LECTURE_DELETED, ActivityEntity.LECTURE, lecture_id).discard()


def open_recording(db: Session, actor: AuthContext, lecture_id: str) -> tuple[Lecture, BinaryIO]:
    lecture = get_lecture(db, actor, lecture_id)
    if not lecture.record_path:
        raise NotFound("No recording available for this lecture")
    return lecture, get_storage().resolve(lecture.record_path)
