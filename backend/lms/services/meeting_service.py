"""Meeting service — Google Meet links, editable only by their creator when a teacher."""

import re
from typing import Optional

from sqlalchemy.orm import Session

from lms.errors import NotFound, ValidationError
from lms.models.meeting import Meeting
from lms.permissions import AuthContext, Capability, authorize, ensure_owner
from lms.services import activity_service
from lms.services.activity_service import ActivityAction, ActivityEntity
from lms.services.course_service import find_course

MEET_URL_PATTERN = re.compile(r"^https://meet\.google\.com/[a-zA-Z0-9-]+$")
UPCOMING_LIMIT = 5


def _check_meet_link(meet_link: str) -> str:
    if not MEET_URL_PATTERN.match(meet_link):
        raise ValidationError("Invalid Google Meet link format")
    return meet_link


def find_meeting(db: Session, meeting_id: str) -> Meeting:
    meeting = db.query(Meeting).filter(Meeting.id == meeting_id).first()
    if not meeting:
        raise NotFound("Meeting not found")
    return meeting


def list_for_course(db: Session, actor: AuthContext, course_id: str, limit: Optional[int] = None) -> list[Meeting]:
    authorize(actor, Capability.MEETING_VIEW)
    query = (
        db.query(Meeting)
        .filter(Meeting.course_id == course_id)
        .order_by(Meeting.created_at.desc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def upcoming(db: Session, actor: AuthContext, course_id: str) -> list[Meeting]:
    # Meetings carry no schedule, so "upcoming" means the most recent few.
    return list_for_course(db, actor, course_id, limit=UPCOMING_LIMIT)


def get_meeting(db: Session, actor: AuthContext, meeting_id: str) -> Meeting:
    authorize(actor, Capability.MEETING_VIEW)
    return find_meeting(db, meeting_id)


def create_meeting(db: Session, actor: AuthContext, course_id: str, title: str, meet_link: str) -> Meeting:
    authorize(actor, Capability.MEETING_MANAGE)
    if not course_id or not (title or "").strip() or not meet_link:
        raise ValidationError("Course ID, title, and meet link are required")
    _check_meet_link(meet_link)

    course = find_course(db, course_id)
    ensure_owner(
        actor, Capability.MEETING_MANAGE, course,
        "You are not authorized to create meetings for this course",
    )

    meeting = Meeting(course_id=course_id, title=title.strip(), meet_link=meet_link, created_by=actor.id)
    db.add(meeting)
    db.commit()
    db.refresh(meeting)

    activity_service.record(db, actor.id, ActivityAction.MEETING_CREATED, ActivityEntity.MEETING, meeting.id).discard()
    return meeting


def update_meeting(
    db: Session,
    actor: AuthContext,
    meeting_id: str,
    title: Optional[str] = None,
    meet_link: Optional[str] = None,
) -> Meeting:
    authorize(actor, Capability.MEETING_MANAGE)
    meeting = find_meeting(db, meeting_id)
    ensure_owner(actor, Capability.MEETING_MANAGE, meeting, "You can only update meetings you created")

    if title:
        meeting.title = title.strip()
    if meet_link:
        meeting.meet_link = _check_meet_link(meet_link)

    db.commit()
    db.refresh(meeting)

    activity_service.record(db, actor.id, ActivityAction.MEETING_UPDATED, ActivityEntity.MEETING, meeting.id).discard()
    return meeting


def delete_meeting(db: Session, actor: AuthContext, meeting_id: str) -> None:
    authorize(actor, Capability.MEETING_MANAGE)
    meeting = find_meeting(db, meeting_id)
    ensure_owner(actor, Capability.MEETING_MANAGE, meeting, "You can only delete meetings you created")

    db.delete(meeting)
    db.commit()

    activity_service.record(db, actor.id, ActivityAction.MEETING_DELETED, ActivityEntity.MEETING, meeting_id).discard()
