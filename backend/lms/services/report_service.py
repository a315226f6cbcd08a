"""Report service — aggregate statistics for MANAGEMENT and ADMIN dashboards."""

from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from lms.models.activity import Activity
from lms.models.course import Course
from lms.models.enrollment import Enrollment
from lms.models.lecture import Lecture
from lms.models.material import Material
from lms.models.meeting import Meeting
from lms.models.notice import Notice
from lms.models.user import User
from lms.permissions import AuthContext, Capability, authorize

TREND_MONTHS = 12
RECENT_ACTIVITY_DAYS = 7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _counts_by_course(db: Session, model) -> dict[str, int]:
    rows = (
        db.query(model.course_id, func.count(model.id))
        .filter(model.course_id.isnot(None))
        .group_by(model.course_id)
        .all()
    )
    return {course_id: count for course_id, count in rows}


def _course_counts(db: Session) -> dict[str, dict[str, int]]:
    """Per-course counts of every child entity, keyed by course id."""
    per_model = {
        "enrollments": _counts_by_course(db, Enrollment),
        "materials": _counts_by_course(db, Material),
        "lectures": _counts_by_course(db, Lecture),
        "meetings": _counts_by_course(db, Meeting),
        "notices": _counts_by_course(db, Notice),
    }
    course_ids = [row[0] for row in db.query(Course.id).all()]
    return {
        cid: {name: counts.get(cid, 0) for name, counts in per_model.items()}
        for cid in course_ids
    }


def _activity_score(counts: dict[str, int]) -> int:
    return counts["materials"] + counts["lectures"] + counts["meetings"] + counts["notices"]


def overview(db: Session, actor: AuthContext) -> dict:
    authorize(actor, Capability.REPORT_VIEW)
    since = _utcnow() - timedelta(days=RECENT_ACTIVITY_DAYS)
    return {
        "total_users": db.query(func.count(User.id)).scalar(),
        "total_courses": db.query(func.count(Course.id)).scalar(),
        "active_courses": db.query(func.count(Course.id)).filter(Course.active.is_(True)).scalar(),
        "total_enrollments": db.query(func.count(Enrollment.id)).scalar(),
        "total_materials": db.query(func.count(Material.id)).scalar(),
        "total_lectures": db.query(func.count(Lecture.id)).scalar(),
        "total_meetings": db.query(func.count(Meeting.id)).scalar(),
        "total_notices": db.query(func.count(Notice.id)).scalar(),
        "recent_activities": db.query(func.count(Activity.id)).filter(Activity.created_at >= since).scalar(),
    }


def enrollment_stats(db: Session, actor: AuthContext) -> list[dict]:
    """Enrollment count per course, most enrolled first."""
    authorize(actor, Capability.REPORT_VIEW)
    counts = _counts_by_course(db, Enrollment)
    stats = [
        {"id": c.id, "title": c.title, "active": c.active, "enrollments": counts.get(c.id, 0)}
        for c in db.query(Course).all()
    ]
    stats.sort(key=lambda s: s["enrollments"], reverse=True)
    return stats


def active_courses(db: Session, actor: AuthContext) -> list[dict]:
    authorize(actor, Capability.REPORT_VIEW)
    counts = _course_counts(db)
    courses = db.query(Course).filter(Course.active.is_(True)).order_by(Course.created_at.desc()).all()
    return [
        {
            "id": c.id,
            "title": c.title,
            "description": c.description,
            "created_at": c.created_at,
            "counts": counts[c.id],
        }
        for c in courses
    ]


def course_activity(db: Session, actor: AuthContext) -> list[dict]:
    authorize(actor, Capability.REPORT_VIEW)
    counts = _course_counts(db)
    courses = db.query(Course).order_by(Course.created_at.desc()).all()
    return [
        {
            "id": c.id,
            "title": c.title,
            "counts": counts[c.id],
            "activity_score": _activity_score(counts[c.id]),
        }
        for c in courses
    ]


def user_stats(db: Session, actor: AuthContext) -> list[dict]:
    authorize(actor, Capability.REPORT_VIEW)
    rows = db.query(User.role, func.count(User.id)).group_by(User.role).all()
    return [{"role": role, "count": count} for role, count in rows]


def course_performance(db: Session, actor: AuthContext) -> list[dict]:
    authorize(actor, Capability.REPORT_VIEW)
    counts = _course_counts(db)
    now = _utcnow()

    metrics = []
    for c in db.query(Course).all():
        days = max(1, (now - _naive(c.created_at)).days)
        total = _activity_score(counts[c.id])
        metrics.append({
            "id": c.id,
            "title": c.title,
            "active": c.active,
            "created_at": c.created_at,
            "days_since_creation": days,
            "total_activities": total,
            "activities_per_day": round(total / days, 2),
            "enrollment_rate": counts[c.id]["enrollments"],
        })
    return metrics


def enrollment_trends(db: Session, actor: AuthContext) -> list[dict]:
    """Enrollments per calendar month, newest month first, last twelve months with data."""
    authorize(actor, Capability.REPORT_VIEW)
    months = Counter(
        _naive(created_at).strftime("%Y-%m")
        for (created_at,) in db.query(Enrollment.created_at).all()
    )
    return [
        {"month": month, "count": months[month]}
        for month in sorted(months, reverse=True)[:TREND_MONTHS]
    ]
