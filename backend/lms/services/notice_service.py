"""Notice service — course and general notices."""

from typing import Optional

from sqlalchemy.orm import Session

from lms.errors import NotFound, ValidationError
from lms.models.notice import Notice
from lms.permissions import AuthContext, Capability, authorize, ensure_owner
from lms.services import activity_service
from lms.services.activity_service import ActivityAction, ActivityEntity
from lms.services.course_service import find_course

RECENT_DEFAULT_LIMIT = 10


def find_notice(db: Session, notice_id: str) -> Notice:
    notice = db.query(Notice).filter(Notice.id == notice_id).first()
    if not notice:
        raise NotFound("Notice not found")
    return notice


def list_for_course(db: Session, actor: AuthContext, course_id: str) -> list[Notice]:
    authorize(actor, Capability.NOTICE_VIEW)
    return (
        db.query(Notice)
        .filter(Notice.course_id == course_id)
        .order_by(Notice.created_at.desc())
        .all()
    )


def list_general(db: Session, actor: AuthContext) -> list[Notice]:
    authorize(actor, Capability.NOTICE_VIEW)
    return (
        db.query(Notice)
        .filter(Notice.course_id.is_(None))
        .order_by(Notice.created_at.desc())
        .all()
    )


def recent(db: Session, actor: AuthContext, limit: Optional[int] = None) -> list[Notice]:
    authorize(actor, Capability.NOTICE_VIEW)
    limit = RECENT_DEFAULT_LIMIT if limit is None else limit
    if limit < 1:
        raise ValidationError("limit must be a positive integer")
    return db.query(Notice).order_by(Notice.created_at.desc()).limit(limit).all()


def get_notice(db: Session, actor: AuthContext, notice_id: str) -> Notice:
    authorize(actor, Capability.NOTICE_VIEW)
    return find_notice(db, notice_id)


def create_notice(
    db: Session,
    actor: AuthContext,
    title: str,
    body: str,
    course_id: Optional[str] = None,
) -> Notice:
    """Post a notice; without ``course_id`` it is a general notice."""
    authorize(actor, Capability.NOTICE_MANAGE)
    if not (title or "").strip() or not (body or "").strip():
        raise ValidationError("Title and body are required")

    if course_id:
        course = find_course(db, course_id)
        ensure_owner(
            actor, Capability.NOTICE_MANAGE, course,
            "You are not authorized to post notices for this course",
        )

    notice = Notice(course_id=course_id or None, title=title.strip(), body=body, posted_by=actor.id)
    db.add(notice)
    db.commit()
    db.refresh(notice)

    activity_service.record(db, actor.id, ActivityAction.NOTICE_CREATED, ActivityEntity.NOTICE, notice.id).discard()
    return notice


def update_notice(
    db: Session,
    actor: AuthContext,
    notice_id: str,
    title: Optional[str] = None,
    body: Optional[str] = None,
) -> Notice:
    authorize(actor, Capability.NOTICE_MANAGE)
    notice = find_notice(db, notice_id)
    ensure_owner(actor, Capability.NOTICE_MANAGE, notice, "You can only update notices you created")

    if title:
        notice.title = title.strip()
    if body:
        notice.body = body

    db.commit()
    db.refresh(notice)

    activity_service.record(db, actor.id, ActivityAction.NOTICE_UPDATED, ActivityEntity.NOTICE, notice.id).discard()
    return notice


def delete_notice(db: Session, actor: AuthContext, notice_id: str) -> None:
    authorize(actor, Capability.NOTICE_MANAGE)
    notice = find_notice(db, notice_id)
    ensure_owner(actor, Capability.NOTICE_MANAGE, notice, "You can only delete notices you created")

    db.delete(notice)
    db.commit()

    activity_service.record(db, actor.id, ActivityAction.NOTICE_DELETED, ActivityEntity.NOTICE, notice_id).discard()
