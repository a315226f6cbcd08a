"""Activity model — append-only record of who did what to which entity."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Index
from sqlalchemy.orm import relationship

from lms.database import Base


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_entity", "entity", "entity_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # No foreign key: the trail outlives deleted users.
    actor_id = Column(String(36), nullable=False, index=True)
    action = Column(String(100), nullable=False)  # created course | enrolled student | ...
    entity = Column(String(50), nullable=False)  # Course | Enrollment | Material | ...
    entity_id = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, index=True, default=lambda: datetime.now(timezone.utc))

    actor = relationship(
        "User",
        primaryjoin="foreign(Activity.actor_id) == User.id",
        viewonly=True,
    )
